"""LLM client used by the remote intent, suggestion and embedding strategies."""

from .openai_client import DEFAULT_CHAT_MODEL, DEFAULT_EMBEDDING_MODEL, OpenAIClient

__all__ = ["OpenAIClient", "DEFAULT_CHAT_MODEL", "DEFAULT_EMBEDDING_MODEL"]
