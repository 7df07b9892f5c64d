"""
Domain Entity: Sources

Identifiers, categories and static metadata for every upstream source.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SourceType(str, Enum):
    """Upstream source identifier."""

    # Web & knowledge
    WIKIPEDIA = "wikipedia"
    WIKIDATA = "wikidata"
    DUCKDUCKGO = "duckduckgo"
    GOOGLECSE = "googlecse"
    ARCHIVE = "archive"
    # Code & development
    GITHUB = "github"
    STACKOVERFLOW = "stackoverflow"
    DEVTO = "devto"
    LOBSTERS = "lobsters"
    NPM = "npm"
    PYPI = "pypi"
    # News & social
    HACKERNEWS = "hackernews"
    REDDIT = "reddit"
    NEWS = "news"
    # OSINT & security
    WHOIS = "whois"
    DNS = "dns"
    CVE = "cve"
    COMPANY = "company"
    SEC = "sec"
    USERNAME = "username"
    IPGEO = "ipgeo"
    # Research & civic data
    ARXIV = "arxiv"
    PUBMED = "pubmed"
    CROSSREF = "crossref"
    WORLDBANK = "worldbank"
    WHO = "who"
    CENSUS = "census"


class CategoryType(str, Enum):
    """Coarse grouping of sources."""

    WEB = "web"
    CODE = "code"
    OSINT = "osint"
    RESEARCH = "research"
    NEWS = "news"
    ALL = "all"


# Category -> sources. ``ALL`` is resolved against the registry at runtime.
CATEGORY_SOURCES: dict[CategoryType, tuple[SourceType, ...]] = {
    CategoryType.WEB: (
        SourceType.WIKIPEDIA,
        SourceType.WIKIDATA,
        SourceType.DUCKDUCKGO,
        SourceType.GOOGLECSE,
        SourceType.ARCHIVE,
    ),
    CategoryType.CODE: (
        SourceType.GITHUB,
        SourceType.STACKOVERFLOW,
        SourceType.DEVTO,
        SourceType.NPM,
        SourceType.PYPI,
        SourceType.LOBSTERS,
    ),
    CategoryType.OSINT: (
        SourceType.WHOIS,
        SourceType.DNS,
        SourceType.CVE,
        SourceType.COMPANY,
        SourceType.SEC,
        SourceType.USERNAME,
        SourceType.IPGEO,
        SourceType.ARCHIVE,
    ),
    CategoryType.RESEARCH: (
        SourceType.ARXIV,
        SourceType.PUBMED,
        SourceType.CROSSREF,
        SourceType.WORLDBANK,
        SourceType.WHO,
        SourceType.CENSUS,
        SourceType.WIKIPEDIA,
        SourceType.WIKIDATA,
    ),
    CategoryType.NEWS: (
        SourceType.HACKERNEWS,
        SourceType.REDDIT,
        SourceType.NEWS,
        SourceType.DEVTO,
        SourceType.LOBSTERS,
    ),
    CategoryType.ALL: (),
}


@dataclass(frozen=True)
class SourceMeta:
    """Display metadata for a source."""

    name: str
    icon: str
    color: str


SOURCE_METADATA: dict[SourceType, SourceMeta] = {
    SourceType.WIKIPEDIA: SourceMeta("Wikipedia", "W", "source-wikipedia"),
    SourceType.WIKIDATA: SourceMeta("Wikidata", "WD", "source-wikipedia"),
    SourceType.DUCKDUCKGO: SourceMeta("DuckDuckGo", "DDG", "source-news"),
    SourceType.GOOGLECSE: SourceMeta("Web Search", "G", "source-news"),
    SourceType.ARCHIVE: SourceMeta("Archive.org", "IA", "source-archive"),
    SourceType.GITHUB: SourceMeta("GitHub", "GH", "source-github"),
    SourceType.STACKOVERFLOW: SourceMeta("Stack Overflow", "SO", "source-stackoverflow"),
    SourceType.DEVTO: SourceMeta("Dev.to", "DEV", "source-devto"),
    SourceType.LOBSTERS: SourceMeta("Lobsters", "L", "source-hackernews"),
    SourceType.NPM: SourceMeta("npm", "npm", "source-npm"),
    SourceType.PYPI: SourceMeta("PyPI", "Py", "source-pypi"),
    SourceType.HACKERNEWS: SourceMeta("Hacker News", "HN", "source-hackernews"),
    SourceType.REDDIT: SourceMeta("Reddit", "R", "source-reddit"),
    SourceType.NEWS: SourceMeta("News", "N", "source-news"),
    SourceType.WHOIS: SourceMeta("WHOIS", "WH", "source-whois"),
    SourceType.DNS: SourceMeta("DNS", "DNS", "source-whois"),
    SourceType.CVE: SourceMeta("CVE", "CVE", "source-cve"),
    SourceType.COMPANY: SourceMeta("Companies", "CO", "source-company"),
    SourceType.SEC: SourceMeta("SEC", "SEC", "source-company"),
    SourceType.USERNAME: SourceMeta("Username", "@", "source-whois"),
    SourceType.IPGEO: SourceMeta("IP Lookup", "IP", "source-cve"),
    SourceType.ARXIV: SourceMeta("arXiv", "arX", "source-arxiv"),
    SourceType.PUBMED: SourceMeta("PubMed", "PM", "source-arxiv"),
    SourceType.CROSSREF: SourceMeta("CrossRef", "CR", "source-arxiv"),
    SourceType.WORLDBANK: SourceMeta("World Bank", "WB", "source-company"),
    SourceType.WHO: SourceMeta("WHO", "WHO", "source-arxiv"),
    SourceType.CENSUS: SourceMeta("US Census", "CEN", "source-company"),
}


@dataclass(frozen=True)
class SourceConfig:
    """
    Static configuration of one source adapter.

    Attributes:
        name: Human-readable name
        source: Source identifier stamped on every result
        category: Category stamped on every result
        enabled: Disabled sources are skipped by fan-out
        timeout: Per-call timeout in seconds
        rate_limit: Optional requests per minute
    """

    name: str
    source: SourceType
    category: CategoryType
    enabled: bool = True
    timeout: float = 3.0
    rate_limit: int | None = None


@dataclass(frozen=True)
class SourceDescriptor:
    """Public listing entry for a source."""

    id: str
    name: str
    icon: str
    color: str
    category: str
    enabled: bool
    timeout: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "color": self.color,
            "category": self.category,
            "enabled": self.enabled,
            "timeout": self.timeout,
        }
