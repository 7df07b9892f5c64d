"""
ResultMerger - Cross-Source Deduplication

Combines the per-source result lists of one fan-out into a single list,
collapsing near-duplicates and keeping the strongest survivor.

Duplicate detection (any rule suffices):
1. Normalized URLs are equal
2. Same source and title token Jaccard > title threshold
3. Identical normalized titles and description token Jaccard > description threshold

The scan is O(n²) in the number of results. n is bounded by the sum of the
per-source limits, a few hundred at most.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from urllib.parse import urlsplit

from federated_search.domain.entities import SearchResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DedupConfig:
    """Similarity thresholds for duplicate detection."""

    title_threshold: float = 0.8
    description_threshold: float = 0.6


DEFAULT_DEDUP_CONFIG = DedupConfig()


def normalize_url(url: str) -> str:
    """
    Normalize a URL for duplicate comparison.

    Drops the scheme, lowercases the host, strips a leading ``www.`` and one
    trailing slash from the path, and keeps the query string.
    """
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        port = parts.port
    except ValueError:
        return url.lower()

    if not host:
        return url.lower()

    if host.startswith("www."):
        host = host[4:]
    if port:
        host = f"{host}:{port}"

    path = parts.path
    if path.endswith("/"):
        path = path[:-1]

    query = f"?{parts.query}" if parts.query else ""
    return f"{host}{path}{query}"


def _tokens(text: str) -> set[str]:
    return set(text.lower().split())


def jaccard_similarity(a: str, b: str) -> float:
    """Token-set Jaccard similarity; two empty strings are identical (1.0)."""
    tokens_a = _tokens(a)
    tokens_b = _tokens(b)
    union = tokens_a | tokens_b
    if not union:
        return 1.0
    return len(tokens_a & tokens_b) / len(union)


def _normalize_title(title: str) -> str:
    return " ".join(title.lower().split())


def are_duplicates(
    a: SearchResult,
    b: SearchResult,
    config: DedupConfig = DEFAULT_DEDUP_CONFIG,
) -> bool:
    """Whether two results describe the same item."""
    if normalize_url(a.url) == normalize_url(b.url):
        return True

    if a.source == b.source and jaccard_similarity(a.title, b.title) > config.title_threshold:
        return True

    return (
        _normalize_title(a.title) == _normalize_title(b.title)
        and jaccard_similarity(a.description, b.description) > config.description_threshold
    )


def _should_replace(existing: SearchResult, candidate: SearchResult) -> bool:
    existing_score = existing.score or 0.0
    candidate_score = candidate.score or 0.0
    if candidate_score != existing_score:
        return candidate_score > existing_score
    return len(candidate.description) > len(existing.description)


def _absorb_duplicates(
    accepted: list[SearchResult],
    index: int,
    config: DedupConfig,
) -> None:
    """
    Collapse every other entry that duplicates ``accepted[index]`` into it.

    Needed after a replacement: the new survivor can match entries the old
    one did not. The scan restarts whenever the survivor changes.
    """
    other = 0
    while other < len(accepted):
        if other != index and are_duplicates(accepted[index], accepted[other], config):
            if _should_replace(accepted[index], accepted[other]):
                accepted[index] = accepted[other]
            del accepted[other]
            if other < index:
                index -= 1
            other = 0
            continue
        other += 1


def deduplicate_results(
    results: Iterable[SearchResult],
    config: DedupConfig = DEFAULT_DEDUP_CONFIG,
) -> list[SearchResult]:
    """
    Remove duplicates, keeping the higher-scored (then longer) entry.

    A replacement takes the position of the entry it replaces, and then
    absorbs any other accepted entry it duplicates, so the output never
    holds two duplicates.
    """
    accepted: list[SearchResult] = []
    for result in results:
        for index, existing in enumerate(accepted):
            if are_duplicates(existing, result, config):
                if _should_replace(existing, result):
                    accepted[index] = result
                    _absorb_duplicates(accepted, index, config)
                break
        else:
            accepted.append(result)
    return accepted


def _sort_key(result: SearchResult) -> tuple[float, int, float]:
    published = result.published_at
    if published is None:
        return (-(result.score or 0.0), 1, 0.0)
    return (-(result.score or 0.0), 0, -published.timestamp())


def sort_results(results: Sequence[SearchResult]) -> list[SearchResult]:
    """Score descending, then newer timestamp first; undated results last."""
    return sorted(results, key=_sort_key)


def merge_results(
    result_lists: Iterable[Sequence[SearchResult]],
    config: DedupConfig = DEFAULT_DEDUP_CONFIG,
) -> list[SearchResult]:
    """
    Flatten, deduplicate and sort per-source result lists.

    Deterministic for a given input order.

    Args:
        result_lists: One list per source, in adapter order
        config: Similarity thresholds

    Returns:
        Merged list sorted by score, then recency
    """
    flat = [result for results in result_lists for result in results]
    merged = sort_results(deduplicate_results(flat, config))
    if len(merged) < len(flat):
        logger.debug(f"Merged {len(flat)} results into {len(merged)} unique")
    return merged
