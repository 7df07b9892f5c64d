"""
Domain Entities

Core objects for federated search.
"""

from __future__ import annotations

from .intent import IntentType, QueryIntent
from .result import SearchResult, clamp_score, new_result_id, parse_timestamp
from .search import FanOutResult, FetchOutcome, SearchResponse
from .source import (
    CATEGORY_SOURCES,
    SOURCE_METADATA,
    CategoryType,
    SourceConfig,
    SourceDescriptor,
    SourceMeta,
    SourceType,
)
from .suggestion import Suggestion, SuggestionType

__all__ = [
    # Results
    "SearchResult",
    "clamp_score",
    "new_result_id",
    "parse_timestamp",
    # Sources
    "SourceType",
    "CategoryType",
    "SourceConfig",
    "SourceDescriptor",
    "SourceMeta",
    "CATEGORY_SOURCES",
    "SOURCE_METADATA",
    # Intent
    "IntentType",
    "QueryIntent",
    # Fan-out / responses
    "FetchOutcome",
    "FanOutResult",
    "SearchResponse",
    # Suggestions
    "Suggestion",
    "SuggestionType",
]
