"""
News & social sources.

- HackerNewsAdapter: Algolia HN search (relevance, or newest first in news mode)
- RedditAdapter: site-wide Reddit search
"""

from __future__ import annotations

import logging
from typing import Any

from federated_search.domain.entities import SearchResult, SourceConfig

from .adapter import SourceAdapter, iso_from_epoch, join_parts, strip_html

logger = logging.getLogger(__name__)


class HackerNewsAdapter(SourceAdapter):
    """
    Hacker News stories via Algolia.

    ``by_date=True`` serves the news source: same index, newest first.
    """

    SEARCH_URL = "https://hn.algolia.com/api/v1/search"
    SEARCH_BY_DATE_URL = "https://hn.algolia.com/api/v1/search_by_date"

    def __init__(self, config: SourceConfig, *, by_date: bool = False, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self.by_date = by_date

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        url = self.SEARCH_BY_DATE_URL if self.by_date else self.SEARCH_URL
        data = await self._make_request(
            url,
            params={"query": query, "hitsPerPage": limit, "tags": "story"},
        )
        if not isinstance(data, dict):
            return []

        results = []
        for hit in data.get("hits") or []:
            if not hit.get("title"):
                continue
            hn_url = f"https://news.ycombinator.com/item?id={hit.get('objectID')}"
            points = hit.get("points") or 0
            story_text = strip_html(hit.get("story_text"))[:200]
            results.append(
                self.make_result(
                    title=hit["title"],
                    description=join_parts(
                        story_text or None,
                        f"{points} points",
                        f"{hit.get('num_comments') or 0} comments",
                        f"by {hit.get('author')}",
                    ),
                    url=hit.get("url") or hn_url,
                    timestamp=hit.get("created_at"),
                    score=0.5 + points / 500,
                    metadata={
                        "points": points,
                        "comments": hit.get("num_comments"),
                        "author": hit.get("author"),
                        "hnUrl": hn_url,
                    },
                    favicon="https://news.ycombinator.com/favicon.ico",
                )
            )
        return results


class RedditAdapter(SourceAdapter):
    """Reddit search. Reddit rejects requests without a descriptive User-Agent."""

    SEARCH_URL = "https://www.reddit.com/search.json"

    def __init__(self, config: SourceConfig, *, user_agent: str = "FederatedSearch/1.0", **kwargs: Any) -> None:
        super().__init__(config, headers={"User-Agent": user_agent}, **kwargs)

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        data = await self._make_request(
            self.SEARCH_URL,
            params={"q": query, "limit": limit, "sort": "relevance", "t": "all"},
        )
        if not isinstance(data, dict):
            return []

        results = []
        for child in (data.get("data") or {}).get("children") or []:
            post = child.get("data") or {}
            if not post.get("title"):
                continue
            post_url = f"https://reddit.com{post.get('permalink', '')}"
            upvotes = post.get("score") or 0
            selftext = strip_html(post.get("selftext"))[:200]
            results.append(
                self.make_result(
                    title=post["title"],
                    description=join_parts(
                        selftext or None,
                        f"r/{post.get('subreddit')}",
                        f"{upvotes} upvotes",
                        f"{post.get('num_comments') or 0} comments",
                    ),
                    url=post_url if post.get("is_self") else (post.get("url") or post_url),
                    timestamp=iso_from_epoch(post.get("created_utc")),
                    score=0.4 + upvotes / 10000,
                    metadata={
                        "subreddit": post.get("subreddit"),
                        "upvotes": upvotes,
                        "comments": post.get("num_comments"),
                        "author": post.get("author"),
                        "redditUrl": post_url,
                    },
                    favicon="https://www.reddit.com/favicon.ico",
                )
            )
        return results
