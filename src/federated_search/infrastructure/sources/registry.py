"""
Source Registry - static map from source id to adapter instance.

Built once by the DI container. Several source ids are served by the same
adapter class in a different mode (wikidata, news, sec), so the registry is
keyed by ``SourceType`` rather than by adapter class.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Iterator

from federated_search.domain.entities import (
    CATEGORY_SOURCES,
    SOURCE_METADATA,
    CategoryType,
    SourceConfig,
    SourceDescriptor,
    SourceType,
)
from federated_search.shared.settings import Settings

from .adapter import SourceAdapter
from .civic import CensusAdapter, WhoAdapter, WorldBankAdapter
from .code import DevToAdapter, GitHubAdapter, LobstersAdapter, NpmAdapter, PyPIAdapter, StackOverflowAdapter
from .osint import CompanyAdapter, CveAdapter, DnsAdapter, IpLookupAdapter, UsernameAdapter, WhoisAdapter
from .research import ArxivAdapter, CrossRefAdapter, PubMedAdapter
from .social import HackerNewsAdapter, RedditAdapter
from .web import ArchiveAdapter, DuckDuckGoAdapter, WebSearchAdapter, WikipediaAdapter

logger = logging.getLogger(__name__)


class SourceRegistry:
    """Holds every configured adapter, in registration order."""

    def __init__(self, adapters: Iterable[SourceAdapter] = ()) -> None:
        self._adapters: dict[SourceType, SourceAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: SourceAdapter) -> None:
        source = adapter.config.source
        if source in self._adapters:
            logger.warning(f"Replacing adapter for {source.value}")
        self._adapters[source] = adapter

    def get(self, source: SourceType | str) -> SourceAdapter | None:
        try:
            return self._adapters.get(SourceType(source))
        except ValueError:
            return None

    def sources_for_category(self, category: CategoryType | str) -> list[SourceType]:
        """Registered sources of a category; ``all`` means every registered source."""
        category = CategoryType(category)
        if category is CategoryType.ALL:
            return list(self._adapters)
        return [s for s in CATEGORY_SOURCES[category] if s in self._adapters]

    def enabled_sources(self) -> list[SourceType]:
        return [s for s, adapter in self._adapters.items() if adapter.enabled]

    def descriptors(self, category: CategoryType | str | None = None) -> list[SourceDescriptor]:
        sources = self.sources_for_category(category) if category else list(self._adapters)
        descriptors = []
        for source in sources:
            config = self._adapters[source].config
            meta = SOURCE_METADATA[source]
            descriptors.append(
                SourceDescriptor(
                    id=source.value,
                    name=config.name,
                    icon=meta.icon,
                    color=meta.color,
                    category=config.category.value,
                    enabled=config.enabled,
                    timeout=config.timeout,
                )
            )
        return descriptors

    async def close(self) -> None:
        """Close every adapter's HTTP client."""
        await asyncio.gather(*(adapter.close() for adapter in self._adapters.values()))

    def __len__(self) -> int:
        return len(self._adapters)

    def __contains__(self, source: object) -> bool:
        try:
            return SourceType(source) in self._adapters  # type: ignore[arg-type]
        except ValueError:
            return False

    def __iter__(self) -> Iterator[SourceAdapter]:
        return iter(self._adapters.values())


def _config(
    source: SourceType,
    category: CategoryType,
    timeout: float = 3.0,
    rate_limit: int | None = None,
) -> SourceConfig:
    return SourceConfig(
        name=SOURCE_METADATA[source].name,
        source=source,
        category=category,
        timeout=timeout,
        rate_limit=rate_limit,
    )


def build_default_registry(settings: Settings | None = None) -> SourceRegistry:
    """Instantiate every built-in source from settings."""
    settings = settings or Settings()
    ua = settings.user_agent

    adapters: list[SourceAdapter] = [
        # Web
        WikipediaAdapter(_config(SourceType.WIKIPEDIA, CategoryType.WEB)),
        WikipediaAdapter(_config(SourceType.WIKIDATA, CategoryType.WEB), wikidata=True),
        DuckDuckGoAdapter(_config(SourceType.DUCKDUCKGO, CategoryType.WEB)),
        WebSearchAdapter(
            _config(SourceType.GOOGLECSE, CategoryType.WEB, timeout=5.0),
            api_key=settings.google_api_key,
            cse_id=settings.google_cse_id,
        ),
        ArchiveAdapter(_config(SourceType.ARCHIVE, CategoryType.WEB, timeout=4.0)),
        # Code
        GitHubAdapter(
            _config(SourceType.GITHUB, CategoryType.CODE, rate_limit=10),
            token=settings.github_token,
        ),
        StackOverflowAdapter(_config(SourceType.STACKOVERFLOW, CategoryType.CODE)),
        DevToAdapter(_config(SourceType.DEVTO, CategoryType.CODE)),
        LobstersAdapter(_config(SourceType.LOBSTERS, CategoryType.CODE)),
        NpmAdapter(_config(SourceType.NPM, CategoryType.CODE)),
        PyPIAdapter(_config(SourceType.PYPI, CategoryType.CODE)),
        # News & social
        HackerNewsAdapter(_config(SourceType.HACKERNEWS, CategoryType.NEWS)),
        HackerNewsAdapter(_config(SourceType.NEWS, CategoryType.NEWS), by_date=True),
        RedditAdapter(_config(SourceType.REDDIT, CategoryType.NEWS), user_agent=ua),
        # OSINT
        WhoisAdapter(_config(SourceType.WHOIS, CategoryType.OSINT, timeout=5.0)),
        DnsAdapter(_config(SourceType.DNS, CategoryType.OSINT)),
        CveAdapter(_config(SourceType.CVE, CategoryType.OSINT, timeout=5.0)),
        CompanyAdapter(_config(SourceType.COMPANY, CategoryType.OSINT, timeout=5.0), user_agent=ua),
        CompanyAdapter(_config(SourceType.SEC, CategoryType.OSINT, timeout=5.0), sec_only=True, user_agent=ua),
        UsernameAdapter(_config(SourceType.USERNAME, CategoryType.OSINT, timeout=10.0), user_agent=ua),
        IpLookupAdapter(
            _config(SourceType.IPGEO, CategoryType.OSINT, timeout=5.0),
            abuseipdb_api_key=settings.abuseipdb_api_key,
        ),
        # Research
        ArxivAdapter(_config(SourceType.ARXIV, CategoryType.RESEARCH, timeout=4.0)),
        PubMedAdapter(
            _config(SourceType.PUBMED, CategoryType.RESEARCH, timeout=5.0),
            api_key=settings.ncbi_api_key,
        ),
        CrossRefAdapter(_config(SourceType.CROSSREF, CategoryType.RESEARCH, timeout=5.0), user_agent=ua),
        WorldBankAdapter(_config(SourceType.WORLDBANK, CategoryType.RESEARCH, timeout=5.0)),
        WhoAdapter(_config(SourceType.WHO, CategoryType.RESEARCH, timeout=5.0)),
        CensusAdapter(_config(SourceType.CENSUS, CategoryType.RESEARCH, timeout=5.0)),
    ]

    registry = SourceRegistry(adapters)
    logger.info(f"Source registry built with {len(registry)} sources")
    return registry
