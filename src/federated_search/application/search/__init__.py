"""
Search pipeline: intent classification, fan-out, merging and ranking.
"""

from .intent_classifier import (
    INTENT_SOURCES,
    QUERY_SYNONYMS,
    IntentClassifier,
    RemoteIntentClassifier,
    expand_query,
)
from .orchestrator import FanOutOrchestrator
from .ranking import (
    INTENT_SOURCE_AFFINITY,
    SOURCE_TRUST,
    RankingWeights,
    ResultRanker,
    diversify,
    group_by_source,
)
from .result_merger import (
    DedupConfig,
    are_duplicates,
    deduplicate_results,
    jaccard_similarity,
    merge_results,
    normalize_url,
)
from .semantic_reranker import SemanticReranker, cosine_similarity, local_similarity

__all__ = [
    # Intent
    "IntentClassifier",
    "RemoteIntentClassifier",
    "INTENT_SOURCES",
    "QUERY_SYNONYMS",
    "expand_query",
    # Fan-out
    "FanOutOrchestrator",
    # Merge
    "DedupConfig",
    "normalize_url",
    "jaccard_similarity",
    "are_duplicates",
    "deduplicate_results",
    "merge_results",
    # Ranking
    "RankingWeights",
    "ResultRanker",
    "SOURCE_TRUST",
    "INTENT_SOURCE_AFFINITY",
    "diversify",
    "group_by_source",
    "SemanticReranker",
    "cosine_similarity",
    "local_similarity",
]
