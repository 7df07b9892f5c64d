"""
Research sources.

- ArxivAdapter: arXiv Atom API
- PubMedAdapter: NCBI E-utilities (esearch + esummary, JSON mode)
- CrossRefAdapter: CrossRef works search, or a direct DOI lookup
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

import defusedxml.ElementTree as ET  # Security: prevent XML attacks
import httpx
from defusedxml import DefusedXmlException
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from federated_search.domain.entities import SearchResult, SourceConfig
from federated_search.shared.patterns import extract_doi

from .adapter import SourceAdapter, join_parts, strip_html, truncate

logger = logging.getLogger(__name__)


# =============================================================================
# arXiv
# =============================================================================

ATOM_NAMESPACES = {
    "atom": "http://www.w3.org/2005/Atom",
    "arxiv": "http://arxiv.org/schemas/atom",
}


class ArxivAdapter(SourceAdapter):
    """arXiv preprints, relevance-sorted."""

    API_URL = "https://export.arxiv.org/api/query"

    def __init__(self, config: SourceConfig, **kwargs: Any) -> None:
        super().__init__(config, headers={"Accept": "application/atom+xml"}, **kwargs)

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        # Field prefixes and grouping are arXiv query syntax
        escaped = query.replace(":", " ").replace("(", " ").replace(")", " ").strip()
        if not escaped:
            return []

        xml_text = await self._make_request(
            self.API_URL,
            params={
                "search_query": f"all:{escaped}",
                "start": 0,
                "max_results": min(limit, 100),
                "sortBy": "relevance",
                "sortOrder": "descending",
            },
            expect_json=False,
        )
        if not isinstance(xml_text, str):
            return []
        return self.parse_feed(xml_text)

    def parse_feed(self, xml_text: str) -> list[SearchResult]:
        try:
            root = ET.fromstring(xml_text)
        except (ET.ParseError, DefusedXmlException) as e:
            logger.warning(f"arXiv returned unparseable XML: {e}")
            return []

        results = []
        for entry in root.findall("atom:entry", ATOM_NAMESPACES):
            entry_id = _text(entry, "atom:id")
            title = _text(entry, "atom:title")
            if not entry_id or not title:
                continue

            match = re.search(r"arxiv\.org/abs/(.+)", entry_id)
            arxiv_id = match.group(1) if match else entry_id
            summary = strip_html(_text(entry, "atom:summary"))
            authors = [
                name.text.strip()
                for name in entry.findall("atom:author/atom:name", ATOM_NAMESPACES)
                if name.text
            ]
            categories = [
                cat.get("term") for cat in entry.findall("atom:category", ATOM_NAMESPACES) if cat.get("term")
            ]
            pdf_url = next(
                (
                    link.get("href")
                    for link in entry.findall("atom:link", ATOM_NAMESPACES)
                    if link.get("title") == "pdf"
                ),
                f"https://arxiv.org/pdf/{arxiv_id}",
            )
            author_line = None
            if authors:
                author_line = f"Authors: {', '.join(authors[:3])}{'...' if len(authors) > 3 else ''}"

            results.append(
                self.make_result(
                    title=truncate(strip_html(title), 200),
                    description=join_parts(
                        summary[:200] or None,
                        author_line,
                        ", ".join(categories[:2]) or None,
                    ),
                    url=f"https://arxiv.org/abs/{arxiv_id}",
                    timestamp=_text(entry, "atom:published"),
                    score=0.75,
                    metadata={
                        "arxivId": arxiv_id,
                        "authors": authors,
                        "categories": categories,
                        "pdfUrl": pdf_url,
                        "doi": _text(entry, "arxiv:doi"),
                    },
                    favicon="https://arxiv.org/favicon.ico",
                )
            )
        return results


def _text(element: Any, path: str) -> str | None:
    found = element.find(path, ATOM_NAMESPACES)
    if found is None or not found.text:
        return None
    return found.text.strip()


# =============================================================================
# PubMed
# =============================================================================

# Retry settings for transient E-utilities errors; kept short to fit the fan-out deadline
MAX_RETRIES = 2
RETRY_DELAY = 0.5  # seconds

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def _is_retryable_eutils(error: BaseException) -> bool:
    """Transport failures and throttling/5xx answers are worth another try."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in _RETRYABLE_STATUS
    return isinstance(error, httpx.TransportError)


class PubMedAdapter(SourceAdapter):
    """
    PubMed articles via NCBI E-utilities.

    esearch resolves PMIDs, esummary fetches the document summaries. Both
    calls go through ``_eutils`` which retries transient NCBI failures with
    tenacity. An API key raises NCBI's limit from 3 to 10 requests/second.
    """

    EUTILS_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/{tool}.fcgi"

    def __init__(self, config: SourceConfig, *, api_key: str | None = None, **kwargs: Any) -> None:
        min_interval = 0.1 if api_key else 0.34
        super().__init__(config, min_interval=min_interval, **kwargs)
        self._api_key = api_key

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        try:
            found = await self._eutils(
                "esearch",
                {"db": "pubmed", "term": query, "retmax": limit, "sort": "relevance"},
            )
            pmids = (found.get("esearchresult") or {}).get("idlist") or []
            if not pmids:
                return []
            summary = await self._eutils("esummary", {"db": "pubmed", "id": ",".join(pmids)})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"PubMed search failed: {e}")
            return []

        return self.parse_summaries(summary, pmids)

    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(multiplier=RETRY_DELAY, min=RETRY_DELAY, max=RETRY_DELAY * 4),
        retry=retry_if_exception(_is_retryable_eutils),
        reraise=True,
    )
    async def _eutils(self, tool: str, params: dict[str, Any]) -> dict[str, Any]:
        """Call one E-utility in JSON mode; raises on HTTP errors so tenacity can retry."""
        await self._rate_limit()
        query = {**params, "retmode": "json"}
        if self._api_key:
            query["api_key"] = self._api_key
        response = await self._execute_request(self.EUTILS_URL.format(tool=tool), params=query)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"{tool} returned a non-object payload")
        return payload

    def parse_summaries(self, payload: dict[str, Any], pmids: list[str]) -> list[SearchResult]:
        docs = payload.get("result") or {}
        results = []
        for pmid in pmids:
            doc = docs.get(pmid)
            if not isinstance(doc, dict) or not doc.get("title"):
                continue
            authors = [a.get("name") for a in doc.get("authors") or [] if a.get("name")]
            doi = next(
                (a.get("value") for a in doc.get("articleids") or [] if a.get("idtype") == "doi"),
                None,
            )
            journal = doc.get("fulljournalname") or doc.get("source")
            author_line = None
            if authors:
                author_line = ", ".join(authors[:3]) + (" et al." if len(authors) > 3 else "")

            results.append(
                self.make_result(
                    title=strip_html(doc["title"]),
                    description=join_parts(
                        author_line,
                        journal,
                        doc.get("pubdate"),
                    ),
                    url=f"https://pubmed.ncbi.nlm.nih.gov/{pmid}/",
                    timestamp=_pubmed_date(doc.get("sortpubdate")),
                    score=0.8,
                    metadata={
                        "pmid": pmid,
                        "doi": doi,
                        "journal": journal,
                        "authors": authors[:10],
                        "pubTypes": doc.get("pubtype") or None,
                    },
                    favicon="https://pubmed.ncbi.nlm.nih.gov/favicon.ico",
                )
            )
        return results


def _pubmed_date(sortpubdate: str | None) -> str | None:
    """esummary sort dates look like ``2024/03/15 00:00``."""
    if not sortpubdate:
        return None
    date = sortpubdate.split(" ")[0].replace("/", "-")
    return date if re.fullmatch(r"\d{4}-\d{2}-\d{2}", date) else None


# =============================================================================
# CrossRef
# =============================================================================


class CrossRefAdapter(SourceAdapter):
    """
    CrossRef scholarly works.

    Queries that contain a DOI are resolved directly; anything else is a
    relevance-sorted works search. CrossRef asks API users to identify
    themselves in the User-Agent.
    """

    WORKS_URL = "https://api.crossref.org/works"

    def __init__(self, config: SourceConfig, *, user_agent: str = "FederatedSearch/1.0", **kwargs: Any) -> None:
        super().__init__(config, headers={"User-Agent": user_agent}, **kwargs)

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        doi = extract_doi(query)
        if doi:
            data = await self._make_request(f"{self.WORKS_URL}/{quote(doi, safe='/')}")
            if not isinstance(data, dict) or data.get("status") != "ok" or not data.get("message"):
                return []
            return [self.format_work(data["message"], 0)]

        data = await self._make_request(
            self.WORKS_URL,
            params={"query": query, "rows": limit, "sort": "relevance", "order": "desc"},
        )
        if not isinstance(data, dict) or data.get("status") != "ok":
            return []
        items = (data.get("message") or {}).get("items") or []
        return [self.format_work(work, i) for i, work in enumerate(items)]

    def format_work(self, work: dict[str, Any], index: int) -> SearchResult:
        titles = work.get("title") or []
        title = titles[0] if titles else "Untitled"
        authors = [_author_name(a) for a in work.get("author") or []]
        authors = [a for a in authors if a]
        journals = work.get("container-title") or []
        journal = journals[0] if journals else None
        date_parts = (work.get("published") or {}).get("date-parts") or [[]]
        year = date_parts[0][0] if date_parts and date_parts[0] else None
        abstract = strip_html(work.get("abstract"))
        pdf_link = next(
            (link.get("URL") for link in work.get("link") or [] if link.get("content-type") == "application/pdf"),
            None,
        )

        return self.make_result(
            title=truncate(strip_html(title), 200),
            description=join_parts(
                ", ".join(authors[:4]) or "Unknown authors",
                f"Published in: {journal}" if journal else None,
                f"({year})" if year else None,
                abstract[:150] or None,
            ),
            url=work.get("URL") or f"https://doi.org/{work.get('DOI', '')}",
            timestamp=f"{year}-01-01" if year else None,
            score=0.85 - index * 0.02,
            metadata={
                "doi": work.get("DOI"),
                "type": work.get("type"),
                "citations": work.get("is-referenced-by-count") or 0,
                "authors": authors[:10],
                "journal": journal,
                "year": year,
                "subjects": (work.get("subject") or [])[:5] or None,
                "publisher": work.get("publisher"),
                "pdfLink": pdf_link,
            },
            favicon="https://www.crossref.org/favicon.ico",
        )


def _author_name(author: dict[str, Any]) -> str:
    if author.get("name"):
        return str(author["name"])
    return " ".join(p for p in (author.get("given"), author.get("family")) if p)
