"""
weekly-summarizer is a local weekly review generator for a markdown vault.

Reads the notes in a vault, summarizes them with a locally hosted LLM via
Ollama (or any OpenAI-compatible server) and writes one review per ISO week.
"""

__version__ = "0.1.0"
