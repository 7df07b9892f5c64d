"""
Source adapters.

Each adapter wraps one upstream API behind ``SourceAdapter.search``.
"""

from .adapter import SourceAdapter, iso_from_epoch, join_parts, strip_html, truncate
from .base_client import BaseAPIClient
from .civic import CensusAdapter, WhoAdapter, WorldBankAdapter
from .code import DevToAdapter, GitHubAdapter, LobstersAdapter, NpmAdapter, PyPIAdapter, StackOverflowAdapter
from .osint import CompanyAdapter, CveAdapter, DnsAdapter, IpLookupAdapter, UsernameAdapter, WhoisAdapter
from .registry import SourceRegistry, build_default_registry
from .research import ArxivAdapter, CrossRefAdapter, PubMedAdapter
from .social import HackerNewsAdapter, RedditAdapter
from .web import ArchiveAdapter, DuckDuckGoAdapter, WebSearchAdapter, WikipediaAdapter

__all__ = [
    # Base
    "BaseAPIClient",
    "SourceAdapter",
    "strip_html",
    "truncate",
    "iso_from_epoch",
    "join_parts",
    # Registry
    "SourceRegistry",
    "build_default_registry",
    # Web
    "WikipediaAdapter",
    "DuckDuckGoAdapter",
    "WebSearchAdapter",
    "ArchiveAdapter",
    # Code
    "GitHubAdapter",
    "StackOverflowAdapter",
    "DevToAdapter",
    "LobstersAdapter",
    "NpmAdapter",
    "PyPIAdapter",
    # News & social
    "HackerNewsAdapter",
    "RedditAdapter",
    # OSINT
    "WhoisAdapter",
    "DnsAdapter",
    "CveAdapter",
    "CompanyAdapter",
    "UsernameAdapter",
    "IpLookupAdapter",
    # Research
    "ArxivAdapter",
    "PubMedAdapter",
    "CrossRefAdapter",
    "WorldBankAdapter",
    "WhoAdapter",
    "CensusAdapter",
]
