"""Inference client adapter: one blocking chat request per call.

Two backends share the ``complete(prompt) -> str | None`` interface:

* ``OllamaChatClient`` speaks the native Ollama chat API through the ``ollama``
  client: ``{model, messages: [{role: "user", content}], stream: false}`` in,
  ``{message: {content}}`` out.
* ``OpenAIChatClient`` wraps the ``openai`` SDK for OpenAI-compatible servers
  (LM Studio, Ollama's ``/v1`` endpoint).

``summarize`` is what the workflow calls: it never raises, returning a fixed
fallback string when the request fails or comes back empty.  There is no
retry and no streaming.
"""

import logging
import os
import time

import ollama as _ollama
import openai as _openai

from weekly_summarizer.models import InferenceError, Settings

logger = logging.getLogger(__name__)

NO_SUMMARY = "No summary generated."
SUMMARY_ERROR = "Error summarizing content."
NO_REVIEW = "No review generated."
REVIEW_ERROR = "Error generating review."


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class OllamaChatClient:
    """Client for the native Ollama ``/api/chat`` endpoint.

    Attributes:
        model:      Model identifier sent with every request.
        host:       Base URL of the Ollama server.
        max_tokens: Sent as ``options.num_predict`` when set.
    """

    def __init__(
        self,
        model: str,
        host: str,
        timeout_s: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self.model = model
        self.host = host
        self.max_tokens = max_tokens
        self._client = _ollama.Client(host=host, timeout=timeout_s)

    def complete(self, prompt: str) -> str | None:
        """Send one non-streaming chat request and return the reply text.

        Returns ``None`` when the response carries no message content.

        Raises:
            InferenceError: if the request fails.
        """
        kwargs: dict = dict(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            stream=False,
        )
        if self.max_tokens is not None:
            kwargs["options"] = {"num_predict": self.max_tokens}
        try:
            response = self._client.chat(**kwargs)
        except Exception as exc:
            raise InferenceError(f"Chat request failed: {exc}") from exc
        message = getattr(response, "message", None)
        return getattr(message, "content", None)


class OpenAIChatClient:
    """Client for OpenAI-compatible chat-completion servers.

    Attributes:
        model:      Model identifier sent with every request.
        base_url:   API base URL (e.g. ``http://localhost:1234/v1``).
        max_tokens: Sent as ``max_tokens`` when set.
    """

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str = "lm-studio",
        timeout_s: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self.model = model
        self.base_url = base_url
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self._client = _openai.OpenAI(base_url=base_url, api_key=api_key)

    def complete(self, prompt: str) -> str | None:
        kwargs: dict = dict(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            stream=False,
        )
        if self.timeout_s is not None:
            kwargs["timeout"] = self.timeout_s
        if self.max_tokens is not None:
            kwargs["max_tokens"] = self.max_tokens
        try:
            response = self._client.chat.completions.create(**kwargs)
        except Exception as exc:
            raise InferenceError(f"Chat request failed: {exc}") from exc
        choices = getattr(response, "choices", None) or []
        if not choices:
            return None
        return getattr(choices[0].message, "content", None)


ChatClient = OllamaChatClient | OpenAIChatClient


def create_client(settings: Settings) -> ChatClient:
    """Build the chat client selected by ``settings.backend``.

    The token budget only applies to two-pass runs.  For the ``openai``
    backend the API key is read from ``LLM_API_KEY``, falling back to the
    dummy ``"lm-studio"`` that local servers ignore.
    """
    max_tokens = settings.max_tokens if settings.mode == "two-pass" else None

    if settings.backend == "openai":
        api_key = os.environ.get("LLM_API_KEY") or "lm-studio"
        return OpenAIChatClient(
            model=settings.model_name,
            base_url=settings.endpoint_url,
            api_key=api_key,
            timeout_s=settings.timeout_s,
            max_tokens=max_tokens,
        )

    return OllamaChatClient(
        model=settings.model_name,
        host=settings.endpoint_url,
        timeout_s=settings.timeout_s,
        max_tokens=max_tokens,
    )


# ---------------------------------------------------------------------------
# Public helper
# ---------------------------------------------------------------------------


def summarize(
    client: ChatClient,
    prompt: str,
    fallback: str = NO_SUMMARY,
    error_fallback: str = SUMMARY_ERROR,
) -> str:
    """Send ``prompt`` and return the trimmed reply.

    Returns ``fallback`` when the reply is empty or not text, and
    ``error_fallback`` when the request itself fails.  Failures are logged,
    never raised.
    """
    logger.debug(
        "Calling LLM  model=%s  prompt=%s chars", client.model, f"{len(prompt):,}"
    )
    t0 = time.monotonic()
    try:
        text = client.complete(prompt)
    except InferenceError as exc:
        logger.error("%s", exc)
        return error_fallback
    elapsed = time.monotonic() - t0

    if not isinstance(text, str) or not text.strip():
        logger.warning("LLM returned no content (%.1fs); using fallback", elapsed)
        return fallback

    logger.debug("Response received (%.1fs, %s chars)", elapsed, f"{len(text):,}")
    return text.strip()
