"""
ResultRanker - Multi-Signal Ranking and Diversification

Composite score per result:

    0.4 * base score         (source-reported relevance, 0.5 if absent)
  + 0.2 * source trust       (static per-source authority)
  + 0.3 * intent affinity    (how well the source answers this intent)
  + 0.1 * intent confidence
  + recency bonus            (+0.1 < 1 day, +0.05 < 7 days, +0.02 < 30 days)

clamped to [0, 1]. The weights are empirical and kept configurable through
``RankingWeights``.

After ranking, ``diversify`` caps how many results any one source may place
in the output with a greedy single pass.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from federated_search.domain.entities import (
    IntentType,
    QueryIntent,
    SearchResult,
    SourceType,
    clamp_score,
)

if TYPE_CHECKING:
    from .semantic_reranker import SemanticReranker

logger = logging.getLogger(__name__)


# =============================================================================
# Scoring Tables
# =============================================================================

NEUTRAL_SCORE = 0.5

# Source authority (higher = more authoritative)
SOURCE_TRUST: dict[SourceType, float] = {
    # Web & knowledge
    SourceType.WIKIPEDIA: 0.95,
    SourceType.WIKIDATA: 0.9,
    SourceType.DUCKDUCKGO: 0.75,
    SourceType.GOOGLECSE: 0.9,
    SourceType.ARCHIVE: 0.8,
    # Code & development
    SourceType.GITHUB: 0.85,
    SourceType.STACKOVERFLOW: 0.85,
    SourceType.DEVTO: 0.75,
    SourceType.LOBSTERS: 0.7,
    SourceType.NPM: 0.8,
    SourceType.PYPI: 0.8,
    # News & social
    SourceType.HACKERNEWS: 0.7,
    SourceType.REDDIT: 0.6,
    SourceType.NEWS: 0.7,
    # OSINT & security
    SourceType.WHOIS: 0.9,
    SourceType.DNS: 0.9,
    SourceType.CVE: 0.95,
    SourceType.COMPANY: 0.85,
    SourceType.SEC: 0.95,
    SourceType.USERNAME: 0.7,
    SourceType.IPGEO: 0.85,
    # Research & civic data
    SourceType.ARXIV: 0.95,
    SourceType.PUBMED: 0.95,
    SourceType.CROSSREF: 0.95,
    SourceType.WORLDBANK: 0.9,
    SourceType.WHO: 0.95,
    SourceType.CENSUS: 0.9,
}

# Affinity used when the intent row has no entry for a source
DEFAULT_RELEVANCE: dict[SourceType, float] = {
    SourceType.WIKIPEDIA: 0.5,
    SourceType.WIKIDATA: 0.5,
    SourceType.DUCKDUCKGO: 0.5,
    SourceType.GOOGLECSE: 0.5,
    SourceType.ARCHIVE: 0.4,
    SourceType.GITHUB: 0.4,
    SourceType.STACKOVERFLOW: 0.4,
    SourceType.DEVTO: 0.4,
    SourceType.LOBSTERS: 0.4,
    SourceType.NPM: 0.3,
    SourceType.PYPI: 0.3,
    SourceType.HACKERNEWS: 0.4,
    SourceType.REDDIT: 0.4,
    SourceType.NEWS: 0.4,
    SourceType.WHOIS: 0.3,
    SourceType.DNS: 0.3,
    SourceType.CVE: 0.3,
    SourceType.COMPANY: 0.4,
    SourceType.SEC: 0.3,
    SourceType.USERNAME: 0.3,
    SourceType.IPGEO: 0.3,
    SourceType.ARXIV: 0.4,
    SourceType.PUBMED: 0.4,
    SourceType.CROSSREF: 0.4,
    SourceType.WORLDBANK: 0.4,
    SourceType.WHO: 0.4,
    SourceType.CENSUS: 0.4,
}

# How well each source answers each intent (sparse rows)
INTENT_SOURCE_AFFINITY: dict[IntentType, dict[SourceType, float]] = {
    IntentType.GENERAL: {
        SourceType.GOOGLECSE: 1.0,
        SourceType.WIKIPEDIA: 0.95,
        SourceType.DUCKDUCKGO: 0.9,
        SourceType.HACKERNEWS: 0.7,
        SourceType.REDDIT: 0.6,
        SourceType.WIKIDATA: 0.8,
        SourceType.ARCHIVE: 0.5,
        SourceType.NEWS: 0.6,
        SourceType.DEVTO: 0.5,
        SourceType.LOBSTERS: 0.5,
    },
    IntentType.TECH: {
        SourceType.GITHUB: 1.0,
        SourceType.STACKOVERFLOW: 1.0,
        SourceType.NPM: 0.9,
        SourceType.PYPI: 0.9,
        SourceType.DEVTO: 0.85,
        SourceType.HACKERNEWS: 0.8,
        SourceType.LOBSTERS: 0.8,
        SourceType.GOOGLECSE: 0.7,
        SourceType.WIKIPEDIA: 0.6,
        SourceType.REDDIT: 0.7,
    },
    IntentType.SECURITY: {
        SourceType.CVE: 1.0,
        SourceType.IPGEO: 0.9,
        SourceType.GITHUB: 0.8,
        SourceType.WHOIS: 0.7,
        SourceType.DNS: 0.7,
        SourceType.HACKERNEWS: 0.7,
        SourceType.REDDIT: 0.6,
        SourceType.GOOGLECSE: 0.6,
        SourceType.ARCHIVE: 0.5,
        SourceType.LOBSTERS: 0.6,
    },
    IntentType.DOMAIN: {
        SourceType.WHOIS: 1.0,
        SourceType.DNS: 1.0,
        SourceType.ARCHIVE: 0.9,
        SourceType.IPGEO: 0.7,
        SourceType.CVE: 0.5,
        SourceType.GOOGLECSE: 0.5,
        SourceType.COMPANY: 0.4,
        SourceType.SEC: 0.3,
    },
    IntentType.COMPANY: {
        SourceType.COMPANY: 1.0,
        SourceType.SEC: 1.0,
        SourceType.WIKIPEDIA: 0.8,
        SourceType.GOOGLECSE: 0.8,
        SourceType.NEWS: 0.8,
        SourceType.HACKERNEWS: 0.7,
        SourceType.REDDIT: 0.6,
        SourceType.WIKIDATA: 0.7,
        SourceType.WORLDBANK: 0.5,
        SourceType.ARCHIVE: 0.5,
    },
    IntentType.PERSON: {
        SourceType.WIKIPEDIA: 1.0,
        SourceType.WIKIDATA: 0.9,
        SourceType.USERNAME: 0.9,
        SourceType.GOOGLECSE: 0.8,
        SourceType.REDDIT: 0.7,
        SourceType.HACKERNEWS: 0.6,
        SourceType.GITHUB: 0.6,
        SourceType.NEWS: 0.7,
    },
    IntentType.RESEARCH: {
        SourceType.ARXIV: 1.0,
        SourceType.PUBMED: 1.0,
        SourceType.CROSSREF: 1.0,
        SourceType.WORLDBANK: 0.9,
        SourceType.WHO: 0.9,
        SourceType.CENSUS: 0.9,
        SourceType.WIKIPEDIA: 0.8,
        SourceType.WIKIDATA: 0.7,
        SourceType.GOOGLECSE: 0.6,
    },
    IntentType.IP: {
        SourceType.IPGEO: 1.0,
        SourceType.WHOIS: 0.8,
        SourceType.DNS: 0.8,
        SourceType.CVE: 0.5,
    },
    IntentType.USERNAME: {
        SourceType.USERNAME: 1.0,
        SourceType.GITHUB: 0.9,
        SourceType.REDDIT: 0.8,
        SourceType.HACKERNEWS: 0.7,
        SourceType.DEVTO: 0.6,
        SourceType.GOOGLECSE: 0.5,
    },
    IntentType.DOI: {
        SourceType.CROSSREF: 1.0,
        SourceType.ARXIV: 0.9,
        SourceType.PUBMED: 0.9,
        SourceType.GOOGLECSE: 0.5,
    },
}

# (max age, bonus) checked in order
RECENCY_BONUSES: tuple[tuple[timedelta, float], ...] = (
    (timedelta(days=1), 0.1),
    (timedelta(days=7), 0.05),
    (timedelta(days=30), 0.02),
)


def source_trust(source: SourceType | str) -> float:
    """Authority of a source; unlisted sources are neutral."""
    return SOURCE_TRUST.get(source, NEUTRAL_SCORE)  # type: ignore[arg-type]


def intent_affinity(intent_type: IntentType, source: SourceType | str) -> float:
    """Intent row first, then the per-source default, then neutral."""
    row = INTENT_SOURCE_AFFINITY.get(intent_type, {})
    if source in row:
        return row[source]  # type: ignore[index]
    return DEFAULT_RELEVANCE.get(source, NEUTRAL_SCORE)  # type: ignore[arg-type]


def recency_bonus(published: datetime | None, now: datetime) -> float:
    """Additive bonus for recent results. Future dates count as fresh."""
    if published is None:
        return 0.0
    age = now - published
    for max_age, bonus in RECENCY_BONUSES:
        if age < max_age:
            return bonus
    return 0.0


# =============================================================================
# Ranker
# =============================================================================

@dataclass(frozen=True)
class RankingWeights:
    """
    Weights of the composite score.

    Presets:
    - DEFAULT: the balanced production weights
    - SOURCE_FOCUSED: leans on trust and affinity over source-reported scores
    """

    base_weight: float = 0.4
    trust_weight: float = 0.2
    affinity_weight: float = 0.3
    confidence_weight: float = 0.1

    @classmethod
    def default(cls) -> RankingWeights:
        return cls()

    @classmethod
    def source_focused(cls) -> RankingWeights:
        return cls(base_weight=0.2, trust_weight=0.3, affinity_weight=0.4, confidence_weight=0.1)


class ResultRanker:
    """
    Intent-aware ranker.

    ``now`` may be pinned for reproducible recency scoring in tests.
    """

    def __init__(
        self,
        weights: RankingWeights | None = None,
        *,
        now: datetime | None = None,
        reranker: SemanticReranker | None = None,
    ) -> None:
        self.weights = weights or RankingWeights.default()
        self._now = now
        self.reranker = reranker

    def _current_time(self) -> datetime:
        return self._now or datetime.now(timezone.utc)

    def score(self, result: SearchResult, intent: QueryIntent, now: datetime | None = None) -> float:
        """Composite relevance of one result."""
        w = self.weights
        base = result.score if result.score is not None else NEUTRAL_SCORE
        combined = (
            base * w.base_weight
            + source_trust(result.source) * w.trust_weight
            + intent_affinity(intent.type, result.source) * w.affinity_weight
            + intent.confidence * w.confidence_weight
        )
        combined += recency_bonus(result.published_at, now or self._current_time())
        return clamp_score(combined)

    def rank(self, results: Sequence[SearchResult], intent: QueryIntent) -> list[SearchResult]:
        """
        Score every result in place and sort by score descending.

        The output is a permutation of the input; equal scores keep input order.
        """
        now = self._current_time()
        for result in results:
            result.score = self.score(result, intent, now)
        return sorted(results, key=lambda r: r.score or 0.0, reverse=True)

    async def rank_pipeline(
        self,
        query: str,
        results: Sequence[SearchResult],
        intent: QueryIntent,
        *,
        use_embeddings: bool = False,
    ) -> list[SearchResult]:
        """
        Full ranking: intent scoring, then a semantic or lexical second pass.

        Embedding reranking only runs when requested and a reranker with an
        embedding client is configured; otherwise local lexical similarity is
        blended in over the whole list.
        """
        if not results:
            return []

        ranked = self.rank(results, intent)
        if self.reranker is None:
            return ranked

        if use_embeddings and self.reranker.embeddings_available:
            return await self.reranker.rerank_head_with_embeddings(query, ranked)
        return self.reranker.rerank_with_local_similarity(query, ranked)


# =============================================================================
# Diversification & Grouping
# =============================================================================

def diversify(results: Sequence[SearchResult], max_per_source: int = 5) -> list[SearchResult]:
    """
    Cap how many results each source contributes.

    Greedy single pass: a result is admitted only while its source is under
    the cap. The output is an order-preserving subsequence of the input.
    """
    counts: dict[SourceType, int] = {}
    diversified: list[SearchResult] = []
    for result in results:
        count = counts.get(result.source, 0)
        if count < max_per_source:
            diversified.append(result)
            counts[result.source] = count + 1
    return diversified


def group_by_source(results: Sequence[SearchResult]) -> dict[SourceType, list[SearchResult]]:
    """Group results by source, preserving order within each group."""
    groups: dict[SourceType, list[SearchResult]] = {}
    for result in results:
        groups.setdefault(result.source, []).append(result)
    return groups
