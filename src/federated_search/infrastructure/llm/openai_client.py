"""
OpenAI-compatible LLM client.

Chat completions (remote intent classification and suggestions) and
embeddings (semantic reranking). Any OpenAI-compatible endpoint works
through ``base_url``.

All failures return None; callers fall back to their local strategy.
"""

from __future__ import annotations

import logging
from typing import Any

from federated_search.infrastructure.sources.base_client import BaseAPIClient

logger = logging.getLogger(__name__)

DEFAULT_CHAT_MODEL = "gpt-4o-mini"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"


class OpenAIClient(BaseAPIClient):
    """
    Thin async client for the OpenAI REST API.

    Example:
        client = OpenAIClient(api_key=settings.openai_api_key)
        if client.available:
            answer = await client.chat("You are terse.", "Say hi")
    """

    _service_name = "OpenAI"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 10.0,
        **kwargs: Any,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        super().__init__(base_url=base_url, timeout=timeout, headers=headers, **kwargs)
        self._api_key = api_key

    @property
    def available(self) -> bool:
        return bool(self._api_key)

    async def chat(
        self,
        system: str,
        user: str,
        *,
        model: str = DEFAULT_CHAT_MODEL,
        temperature: float = 0.3,
        max_tokens: int = 300,
    ) -> str | None:
        """
        Run a single-turn chat completion.

        Returns:
            The assistant message content, or None on any failure
        """
        if not self.available:
            return None

        data = await self._make_request(
            "/chat/completions",
            method="POST",
            data={
                "model": model,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )
        if not isinstance(data, dict):
            return None

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.warning("OpenAI chat response had no message content")
            return None
        return content or None

    async def embed(
        self,
        texts: list[str],
        *,
        model: str = DEFAULT_EMBEDDING_MODEL,
    ) -> list[list[float]] | None:
        """
        Embed a batch of texts.

        Returns:
            One vector per input text in input order, or None on any failure
        """
        if not self.available or not texts:
            return None

        data = await self._make_request(
            "/embeddings",
            method="POST",
            data={"model": model, "input": texts},
        )
        if not isinstance(data, dict):
            return None

        rows = data.get("data")
        if not isinstance(rows, list) or len(rows) != len(texts):
            logger.warning("OpenAI embeddings response did not match the input batch")
            return None
        # The API tags each vector with its input index
        rows = sorted(rows, key=lambda row: row.get("index", 0))
        return [row.get("embedding") or [] for row in rows]
