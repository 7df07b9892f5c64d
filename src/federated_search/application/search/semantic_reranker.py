"""
SemanticReranker - Second-Pass Relevance

Two strategies, both blending a similarity signal into the first-pass score:

- Embeddings (optional): cosine similarity between the query embedding and
  each head result's ``title + description``; ``0.4 * prior + 0.6 * cosine``.
  Only the top ``head_size`` results are re-sorted, the tail keeps its order.
  Any embedding failure leaves the head untouched.
- Local similarity (always available): token overlap with partial substring
  credit; ``0.5 * prior + 0.5 * similarity`` over the full list.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

from federated_search.domain.entities import SearchResult, clamp_score
from federated_search.shared.async_utils import timeout_with_fallback

if TYPE_CHECKING:
    from federated_search.infrastructure.llm import OpenAIClient

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; 0 for mismatched lengths or zero vectors."""
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def local_similarity(query: str, text: str) -> float:
    """
    Lexical similarity in [0, 1].

    Each query term earns 1 for an exact token match, plus 0.5 for the first
    text token that contains it (or is contained by it).
    """
    query_terms = query.lower().split()
    if not query_terms:
        return 0.0
    text_terms = text.lower().split()
    text_set = set(text_terms)

    matches = 0.0
    for term in query_terms:
        if term in text_set:
            matches += 1
        if any(term in t or t in term for t in text_terms):
            matches += 0.5

    return min(1.0, matches / len(query_terms))


def _result_text(result: SearchResult) -> str:
    return f"{result.title} {result.description}"


class SemanticReranker:
    """Second-pass reranker with an optional embedding backend."""

    def __init__(
        self,
        embedding_client: OpenAIClient | None = None,
        *,
        head_size: int = 30,
        timeout: float = 4.0,
        prior_weight: float = 0.4,
        local_prior_weight: float = 0.5,
    ) -> None:
        self._embeddings = embedding_client
        self.head_size = head_size
        self._timeout = timeout
        self.prior_weight = prior_weight
        self.local_prior_weight = local_prior_weight

    @property
    def embeddings_available(self) -> bool:
        return self._embeddings is not None and self._embeddings.available

    async def rerank_with_embeddings(
        self,
        query: str,
        results: Sequence[SearchResult],
    ) -> list[SearchResult]:
        """Re-score and re-sort ``results`` by embedding similarity."""
        if not results or not self.embeddings_available:
            return list(results)

        texts = [query, *(_result_text(r) for r in results)]
        try:
            vectors = await timeout_with_fallback(
                self._embeddings.embed(texts),  # type: ignore[union-attr]
                self._timeout,
                None,
            )
        except Exception as e:
            logger.warning(f"Embedding rerank failed, keeping first-pass order: {e}")
            return list(results)

        if not vectors or len(vectors) != len(texts):
            logger.warning("Embedding rerank returned no usable vectors")
            return list(results)

        query_vector = vectors[0]
        for result, vector in zip(results, vectors[1:]):
            similarity = cosine_similarity(query_vector, vector)
            prior = result.score or 0.0
            result.score = clamp_score(
                prior * self.prior_weight + similarity * (1 - self.prior_weight)
            )

        return sorted(results, key=lambda r: r.score or 0.0, reverse=True)

    async def rerank_head_with_embeddings(
        self,
        query: str,
        ranked: Sequence[SearchResult],
    ) -> list[SearchResult]:
        """Embedding rerank of the top ``head_size``; the tail keeps its order."""
        head = list(ranked[: self.head_size])
        tail = list(ranked[self.head_size:])
        return [*await self.rerank_with_embeddings(query, head), *tail]

    def rerank_with_local_similarity(
        self,
        query: str,
        results: Sequence[SearchResult],
    ) -> list[SearchResult]:
        """Blend lexical similarity into every score and re-sort."""
        for result in results:
            similarity = local_similarity(query, _result_text(result))
            prior = result.score or 0.0
            result.score = clamp_score(
                prior * self.local_prior_weight + similarity * (1 - self.local_prior_weight)
            )
        return sorted(results, key=lambda r: r.score or 0.0, reverse=True)
