"""
Runtime settings read from the environment.

All API keys are optional. Sources that need a key degrade gracefully
(the web search source falls back to scraping, AbuseIPDB is skipped) and
the remote intent/embedding strategies are only enabled when an OpenAI key
is present.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any

from .exceptions import ConfigurationError


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Service configuration."""

    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    github_token: str | None = None
    google_api_key: str | None = None
    google_cse_id: str | None = None
    abuseipdb_api_key: str | None = None
    ncbi_api_key: str | None = None
    search_timeout: float = 6.0
    default_limit: int = 30
    cache_ttl: float = 300.0
    cache_size: int = 500
    remote_timeout: float = 4.0
    user_agent: str = "FederatedSearch/1.0"

    @property
    def use_ai_intent(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def use_embeddings(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables."""
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            openai_base_url=os.environ.get("OPENAI_BASE_URL", cls.openai_base_url),
            github_token=os.environ.get("GITHUB_TOKEN") or None,
            google_api_key=os.environ.get("GOOGLE_API_KEY") or None,
            google_cse_id=os.environ.get("GOOGLE_CSE_ID") or None,
            abuseipdb_api_key=os.environ.get("ABUSEIPDB_API_KEY") or None,
            ncbi_api_key=os.environ.get("NCBI_API_KEY") or None,
            search_timeout=_env_float("FEDSEARCH_SEARCH_TIMEOUT", cls.search_timeout),
            default_limit=_env_int("FEDSEARCH_DEFAULT_LIMIT", cls.default_limit),
            cache_ttl=_env_float("FEDSEARCH_CACHE_TTL", cls.cache_ttl),
            cache_size=_env_int("FEDSEARCH_CACHE_SIZE", cls.cache_size),
            remote_timeout=_env_float("FEDSEARCH_REMOTE_TIMEOUT", cls.remote_timeout),
            user_agent=os.environ.get("FEDSEARCH_USER_AGENT", cls.user_agent),
        )

    def to_config(self) -> dict[str, Any]:
        """Flatten to the dict shape loaded into the DI container."""
        return asdict(self)
