"""
Query suggestions: completions, refinements, trending queries and operators.
"""

from .engine import (
    OPERATORS,
    TRENDING_QUERIES,
    RemoteSuggestionEngine,
    SuggestionEngine,
    operator_hints,
    trending_queries,
)

__all__ = [
    "SuggestionEngine",
    "RemoteSuggestionEngine",
    "OPERATORS",
    "TRENDING_QUERIES",
    "operator_hints",
    "trending_queries",
]
