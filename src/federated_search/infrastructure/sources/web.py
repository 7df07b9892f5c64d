"""
Web & knowledge sources.

- WikipediaAdapter: MediaWiki full-text search (Wikipedia) or entity search (Wikidata)
- DuckDuckGoAdapter: Instant Answer API
- WebSearchAdapter: Google Custom Search, degrading to a DuckDuckGo HTML scrape without a key
- ArchiveAdapter: Wayback availability for domains, archive.org item search otherwise
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote, unquote

from federated_search.domain.entities import SearchResult, SourceConfig
from federated_search.shared.patterns import is_domain

from .adapter import SourceAdapter, strip_html, truncate

logger = logging.getLogger(__name__)


class WikipediaAdapter(SourceAdapter):
    """
    MediaWiki search.

    With ``wikidata=True`` the adapter queries Wikidata entities instead of
    Wikipedia articles.
    """

    WIKIPEDIA_API = "https://en.wikipedia.org/w/api.php"
    WIKIDATA_API = "https://www.wikidata.org/w/api.php"

    def __init__(self, config: SourceConfig, *, wikidata: bool = False, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self.wikidata = wikidata

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        if self.wikidata:
            return await self._search_wikidata(query, limit)
        return await self._search_wikipedia(query, limit)

    async def _search_wikipedia(self, query: str, limit: int) -> list[SearchResult]:
        data = await self._make_request(
            self.WIKIPEDIA_API,
            params={
                "action": "query",
                "list": "search",
                "srsearch": query,
                "srlimit": limit,
                "format": "json",
            },
        )
        if not isinstance(data, dict):
            return []

        results = []
        for item in data.get("query", {}).get("search", []):
            title = item.get("title")
            if not title:
                continue
            results.append(
                self.make_result(
                    title=title,
                    description=strip_html(item.get("snippet")),
                    url=f"https://en.wikipedia.org/wiki/{quote(title.replace(' ', '_'))}",
                    timestamp=item.get("timestamp"),
                    score=0.8,
                    metadata={"pageid": item.get("pageid"), "wordcount": item.get("wordcount")},
                    favicon="https://en.wikipedia.org/favicon.ico",
                )
            )
        return results

    async def _search_wikidata(self, query: str, limit: int) -> list[SearchResult]:
        data = await self._make_request(
            self.WIKIDATA_API,
            params={
                "action": "wbsearchentities",
                "search": query,
                "language": "en",
                "limit": limit,
                "format": "json",
            },
        )
        if not isinstance(data, dict):
            return []

        results = []
        for item in data.get("search", []):
            entity_id = item.get("id")
            if not entity_id:
                continue
            results.append(
                self.make_result(
                    title=item.get("label") or entity_id,
                    description=item.get("description") or f"Wikidata entity {entity_id}",
                    url=f"https://www.wikidata.org/wiki/{entity_id}",
                    score=0.75,
                    metadata={"entityId": entity_id},
                    favicon="https://www.wikidata.org/favicon.ico",
                )
            )
        return results


class DuckDuckGoAdapter(SourceAdapter):
    """DuckDuckGo Instant Answer API: abstract, definition, related topics, results."""

    API_URL = "https://api.duckduckgo.com/"
    FAVICON = "https://duckduckgo.com/favicon.ico"

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        data = await self._make_request(
            self.API_URL,
            params={
                "q": query,
                "format": "json",
                "no_redirect": 1,
                "no_html": 1,
                "skip_disambig": 1,
            },
        )
        if not isinstance(data, dict):
            return []

        heading = data.get("Heading") or query
        results: list[SearchResult] = []

        if data.get("AbstractText") and data.get("AbstractURL"):
            results.append(
                self.make_result(
                    title=heading,
                    description=strip_html(data["AbstractText"]),
                    url=data["AbstractURL"],
                    score=0.9,
                    metadata={
                        "abstractSource": data.get("AbstractSource"),
                        "image": data.get("Image") or None,
                        "type": data.get("Type"),
                    },
                    favicon=self.FAVICON,
                )
            )

        if data.get("Definition") and data.get("DefinitionURL"):
            results.append(
                self.make_result(
                    title=f"Definition: {heading}",
                    description=data["Definition"],
                    url=data["DefinitionURL"],
                    score=0.85,
                    favicon=self.FAVICON,
                )
            )

        topics: list[dict[str, Any]] = []
        for topic in data.get("RelatedTopics") or []:
            # Topic groups nest their entries under "Topics"
            topics.extend(topic.get("Topics") or [topic])

        for topic in topics:
            if len(results) >= limit:
                break
            if topic.get("FirstURL") and topic.get("Text"):
                results.append(self._topic_result(topic, 0.7))

        for item in data.get("Results") or []:
            if len(results) >= limit:
                break
            if item.get("FirstURL") and item.get("Text"):
                results.append(self._topic_result(item, 0.75))

        return results[:limit]

    def _topic_result(self, topic: dict[str, Any], score: float) -> SearchResult:
        text = topic["Text"]
        icon = (topic.get("Icon") or {}).get("URL")
        return self.make_result(
            title=truncate(text.split(" - ")[0] or text, 100),
            description=text,
            url=topic["FirstURL"],
            score=score,
            favicon=f"https://duckduckgo.com{icon}" if icon and icon.startswith("/") else self.FAVICON,
        )


class WebSearchAdapter(SourceAdapter):
    """
    General web search.

    Uses Google Custom Search when an API key and engine id are configured.
    Otherwise (or when the API call yields nothing) it scrapes DuckDuckGo's
    HTML endpoint. The scrape is brittle by nature and kept isolated in
    ``_scrape_html``; it follows the same never-raise contract.
    """

    CSE_URL = "https://www.googleapis.com/customsearch/v1"
    HTML_URL = "https://html.duckduckgo.com/html/"
    DEFAULT_CSE_ID = "20e0bdcc4fe9a4599"

    RESULT_LINK = re.compile(
        r'<a[^>]*class="result__a"[^>]*href="([^"]*)"[^>]*>(.*?)</a>',
        re.IGNORECASE | re.DOTALL,
    )
    RESULT_SNIPPET = re.compile(
        r'<a[^>]*class="result__snippet"[^>]*>(.*?)</a>',
        re.IGNORECASE | re.DOTALL,
    )
    UDDG_PARAM = re.compile(r"uddg=([^&]*)")

    def __init__(
        self,
        config: SourceConfig,
        *,
        api_key: str | None = None,
        cse_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, **kwargs)
        self._api_key = api_key
        self._cse_id = cse_id or self.DEFAULT_CSE_ID

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        if self._api_key:
            results = await self._search_cse(query, limit)
            if results:
                return results
        return await self._scrape_html(query, limit)

    async def _search_cse(self, query: str, limit: int) -> list[SearchResult]:
        data = await self._make_request(
            self.CSE_URL,
            params={
                "key": self._api_key,
                "cx": self._cse_id,
                "q": query,
                "num": min(limit, 10),
            },
        )
        if not isinstance(data, dict):
            return []

        info = data.get("searchInformation") or {}
        results = []
        for item in data.get("items") or []:
            display_link = item.get("displayLink", "")
            results.append(
                self.make_result(
                    title=item.get("title", ""),
                    description=item.get("snippet", ""),
                    url=item.get("link", ""),
                    score=0.95,
                    metadata={
                        "displayLink": display_link,
                        "totalResults": info.get("totalResults"),
                    },
                    favicon=f"https://www.google.com/s2/favicons?domain={display_link}&sz=32",
                )
            )
        return results

    async def _scrape_html(self, query: str, limit: int) -> list[SearchResult]:
        page = await self._make_request(
            self.HTML_URL,
            params={"q": query},
            headers={"User-Agent": "Mozilla/5.0 (compatible; FederatedSearchBot/1.0)"},
            expect_json=False,
        )
        if not isinstance(page, str):
            return []
        return self.parse_html_results(page, limit)

    def parse_html_results(self, page: str, limit: int) -> list[SearchResult]:
        links = self.RESULT_LINK.findall(page)
        snippets = self.RESULT_SNIPPET.findall(page)

        results = []
        for i, (href, title) in enumerate(links[:limit]):
            uddg = self.UDDG_PARAM.search(href)
            url = unquote(uddg.group(1)) if uddg else href
            if url.startswith("//"):
                url = f"https:{url}"
            snippet = snippets[i] if i < len(snippets) else ""
            results.append(
                self.make_result(
                    title=strip_html(title),
                    description=strip_html(snippet),
                    url=url,
                    score=0.85 - i * 0.02,
                    metadata={"engine": "duckduckgo-html"},
                )
            )
        return results


class ArchiveAdapter(SourceAdapter):
    """Internet Archive: Wayback snapshot for domains, item search otherwise."""

    SEARCH_URL = "https://archive.org/advancedsearch.php"
    WAYBACK_URL = "https://archive.org/wayback/available"
    FAVICON = "https://archive.org/favicon.ico"

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        if is_domain(query):
            snapshot = await self._search_wayback(query.strip())
            if snapshot:
                return snapshot

        data = await self._make_request(
            self.SEARCH_URL,
            params={
                "q": query,
                "output": "json",
                "rows": limit,
                "fl[]": "identifier,title,description,creator,date,mediatype,downloads",
                "sort[]": "downloads desc",
            },
        )
        if not isinstance(data, dict):
            return []

        results = []
        for doc in (data.get("response") or {}).get("docs", []):
            identifier = doc.get("identifier")
            if not identifier:
                continue
            description = _first(doc.get("description"))
            creator = _first(doc.get("creator"))
            downloads = doc.get("downloads") or 0
            parts = [
                strip_html(description)[:200] if description else None,
                f"by {creator}" if creator else None,
                f"Type: {doc['mediatype']}" if doc.get("mediatype") else None,
                f"{downloads:,} downloads" if downloads else None,
            ]
            results.append(
                self.make_result(
                    title=_first(doc.get("title")) or identifier,
                    description=" | ".join(p for p in parts if p),
                    url=f"https://archive.org/details/{identifier}",
                    timestamp=doc.get("date"),
                    score=0.5 + downloads / 100000,
                    metadata={
                        "identifier": identifier,
                        "mediatype": doc.get("mediatype"),
                        "downloads": downloads,
                        "creator": creator,
                    },
                    favicon=self.FAVICON,
                )
            )
        return results

    async def _search_wayback(self, domain: str) -> list[SearchResult]:
        data = await self._make_request(self.WAYBACK_URL, params={"url": domain})
        if not isinstance(data, dict):
            return []
        closest = (data.get("archived_snapshots") or {}).get("closest")
        if not closest or not closest.get("url"):
            return []

        stamp = str(closest.get("timestamp", ""))
        date = f"{stamp[0:4]}-{stamp[4:6]}-{stamp[6:8]}" if len(stamp) >= 8 else None
        return [
            self.make_result(
                title=f"Wayback Machine: {domain}",
                description=f"Archived snapshot from {date}" if date else "Archived snapshot",
                url=closest["url"],
                timestamp=date,
                score=0.8,
                metadata={
                    "originalUrl": f"https://{domain}",
                    "archiveTimestamp": stamp,
                    "status": closest.get("status"),
                },
                favicon=self.FAVICON,
            )
        ]


def _first(value: Any) -> str | None:
    """archive.org returns either a string or a list of strings."""
    if isinstance(value, list):
        return str(value[0]) if value else None
    return str(value) if value else None
