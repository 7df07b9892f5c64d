"""
Code & developer sources.

- GitHubAdapter: repository search sorted by stars
- StackOverflowAdapter: StackExchange advanced search
- DevToAdapter: articles by tag, falling back to the weekly top list
- LobstersAdapter: hottest stories filtered by query terms
- NpmAdapter: npm registry search
- PyPIAdapter: exact package lookup on PyPI
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from federated_search.domain.entities import SearchResult, SourceConfig

from .adapter import SourceAdapter, iso_from_epoch, join_parts, strip_html

logger = logging.getLogger(__name__)


class GitHubAdapter(SourceAdapter):
    """GitHub repository search. Authenticated when a token is configured."""

    SEARCH_URL = "https://api.github.com/search/repositories"

    def __init__(self, config: SourceConfig, *, token: str | None = None, **kwargs: Any) -> None:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        super().__init__(config, headers=headers, **kwargs)

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        data = await self._make_request(
            self.SEARCH_URL,
            params={"q": query, "per_page": limit, "sort": "stars", "order": "desc"},
        )
        if not isinstance(data, dict):
            return []

        results = []
        for item in data.get("items") or []:
            stars = item.get("stargazers_count") or 0
            language = item.get("language")
            results.append(
                self.make_result(
                    title=item.get("full_name", ""),
                    description=join_parts(
                        item.get("description") or "No description",
                        f"Language: {language}" if language else None,
                        f"Stars: {stars:,}",
                    ),
                    url=item.get("html_url", ""),
                    timestamp=item.get("updated_at"),
                    score=0.5 + stars / 100000,
                    metadata={
                        "stars": stars,
                        "language": language,
                        "topics": item.get("topics") or None,
                    },
                    favicon="https://github.com/favicon.ico",
                )
            )
        return results


class StackOverflowAdapter(SourceAdapter):
    """Stack Overflow questions via the StackExchange API."""

    SEARCH_URL = "https://api.stackexchange.com/2.3/search/advanced"

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        data = await self._make_request(
            self.SEARCH_URL,
            params={
                "q": query,
                "pagesize": limit,
                "order": "desc",
                "sort": "relevance",
                "site": "stackoverflow",
                "filter": "withbody",
            },
        )
        if not isinstance(data, dict):
            return []

        results = []
        for item in data.get("items") or []:
            votes = item.get("score") or 0
            answered = bool(item.get("is_answered"))
            tags = item.get("tags") or []
            body = strip_html(item.get("body"))[:150]
            results.append(
                self.make_result(
                    title=strip_html(item.get("title")),
                    description=join_parts(
                        body or None,
                        f"{votes} votes",
                        f"{item.get('answer_count', 0)} answers",
                        "Answered" if answered else "Unanswered",
                        ", ".join(tags[:3]),
                    ),
                    url=item.get("link", ""),
                    timestamp=iso_from_epoch(item.get("creation_date")),
                    score=0.5 + votes / 100 + (0.2 if answered else 0.0),
                    metadata={
                        "votes": votes,
                        "answers": item.get("answer_count"),
                        "isAnswered": answered,
                        "tags": tags,
                    },
                    favicon="https://stackoverflow.com/favicon.ico",
                )
            )
        return results


class DevToAdapter(SourceAdapter):
    """Dev.to articles. The API only filters by tag, so the query is squashed into one."""

    ARTICLES_URL = "https://dev.to/api/articles"

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        tag = "".join(query.split()).lower()
        articles = await self._make_request(self.ARTICLES_URL, params={"per_page": limit, "tag": tag})
        if not articles:
            articles = await self._make_request(self.ARTICLES_URL, params={"per_page": limit, "top": 7})
        if not isinstance(articles, list):
            return []
        return [self._to_result(article) for article in articles[:limit] if article.get("url")]

    def _to_result(self, article: dict[str, Any]) -> SearchResult:
        reactions = article.get("positive_reactions_count") or 0
        user = article.get("user") or {}
        tags = article.get("tag_list") or []
        if isinstance(tags, str):
            tags = [t.strip() for t in tags.split(",") if t.strip()]
        return self.make_result(
            title=article.get("title", ""),
            description=join_parts(
                article.get("description"),
                f"{article.get('reading_time_minutes', 0)} min read",
                f"{reactions} reactions",
                f"by {user['name']}" if user.get("name") else None,
                ", ".join(tags[:3]),
            ),
            url=article["url"],
            timestamp=article.get("published_at"),
            score=0.5 + reactions / 500,
            metadata={
                "reactions": reactions,
                "comments": article.get("comments_count"),
                "readingTime": article.get("reading_time_minutes"),
                "tags": tags,
                "author": user.get("username"),
            },
            favicon="https://dev.to/favicon.ico",
        )


class LobstersAdapter(SourceAdapter):
    """
    Lobsters stories.

    Lobsters has no search API; the hottest list is filtered locally by
    query terms (title or tag match).
    """

    HOTTEST_URL = "https://lobste.rs/hottest.json"

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        stories = await self._make_request(self.HOTTEST_URL)
        if not isinstance(stories, list):
            return []

        terms = [t for t in query.lower().split() if len(t) > 1]
        results = []
        for story in stories:
            title = story.get("title", "")
            tags = story.get("tags") or []
            haystack = f"{title.lower()} {' '.join(tags).lower()}"
            if terms and not any(term in haystack for term in terms):
                continue
            points = story.get("score") or 0
            comments_url = story.get("comments_url") or story.get("short_id_url", "")
            results.append(
                self.make_result(
                    title=title,
                    description=join_parts(
                        strip_html(story.get("description")) or None,
                        f"{points} points",
                        f"{story.get('comment_count', 0)} comments",
                        ", ".join(tags[:3]),
                    ),
                    url=story.get("url") or comments_url,
                    timestamp=story.get("created_at"),
                    score=0.5 + points / 100,
                    metadata={"points": points, "tags": tags, "commentsUrl": comments_url},
                    favicon="https://lobste.rs/favicon.ico",
                )
            )
            if len(results) >= limit:
                break
        return results


class NpmAdapter(SourceAdapter):
    """npm registry search."""

    SEARCH_URL = "https://registry.npmjs.org/-/v1/search"

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        data = await self._make_request(self.SEARCH_URL, params={"text": query, "size": limit})
        if not isinstance(data, dict):
            return []

        results = []
        for item in data.get("objects") or []:
            pkg = item.get("package") or {}
            score = item.get("score") or {}
            detail = score.get("detail") or {}
            final = float(score.get("final") or 0.0)
            links = pkg.get("links") or {}
            name = pkg.get("name", "")
            results.append(
                self.make_result(
                    title=f"{name}@{pkg.get('version', '')}",
                    description=join_parts(
                        pkg.get("description") or "No description",
                        f"Score: {round(final * 100)}%",
                        ", ".join((pkg.get("keywords") or [])[:3]),
                    ),
                    url=links.get("npm") or f"https://www.npmjs.com/package/{name}",
                    timestamp=pkg.get("date"),
                    score=final,
                    metadata={
                        "version": pkg.get("version"),
                        "homepage": links.get("homepage"),
                        "repository": links.get("repository"),
                        "publisher": (pkg.get("publisher") or {}).get("username"),
                        "quality": detail.get("quality"),
                        "popularity": detail.get("popularity"),
                        "maintenance": detail.get("maintenance"),
                    },
                    favicon="https://static.npmjs.com/favicon.ico",
                )
            )
        return results


class PyPIAdapter(SourceAdapter):
    """Exact-name package lookup on PyPI (PyPI has no JSON search API)."""

    PACKAGE_URL = "https://pypi.org/pypi/{name}/json"

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        name = query.strip().replace(" ", "-")
        if not name:
            return []
        data = await self._make_request(self.PACKAGE_URL.format(name=quote(name)))
        if not isinstance(data, dict) or not data.get("info"):
            return []

        info = data["info"]
        release_date = self._latest_upload(data.get("releases") or {})
        return [
            self.make_result(
                title=f"{info.get('name', name)}=={info.get('version', '')}",
                description=join_parts(
                    info.get("summary") or "No description",
                    f"by {info['author']}" if info.get("author") else None,
                ),
                url=f"https://pypi.org/project/{info.get('name', name)}/",
                timestamp=release_date,
                score=0.75,
                metadata={
                    "version": info.get("version"),
                    "homepage": info.get("home_page") or None,
                    "author": info.get("author") or None,
                    "projectUrls": info.get("project_urls"),
                },
                favicon="https://pypi.org/favicon.ico",
            )
        ]

    @staticmethod
    def _latest_upload(releases: dict[str, list[dict[str, Any]]]) -> str | None:
        uploads = [files[0].get("upload_time", "") for files in releases.values() if files]
        uploads = [u for u in uploads if u]
        return max(uploads) if uploads else None
