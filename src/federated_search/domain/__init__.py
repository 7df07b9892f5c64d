"""
Domain Layer - Core Business Objects

Contains:
- entities: results, sources, intents, suggestions, fan-out outcomes
"""

from .entities import (
    CategoryType,
    IntentType,
    QueryIntent,
    SearchResult,
    SourceConfig,
    SourceType,
    Suggestion,
)

__all__ = [
    "SearchResult",
    "SourceType",
    "CategoryType",
    "SourceConfig",
    "IntentType",
    "QueryIntent",
    "Suggestion",
]
