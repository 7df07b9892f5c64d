"""
Federated Search - one query, many sources.

Fans a query out to web, code, OSINT, research and news sources in
parallel, then merges, de-duplicates and ranks the results by the
query's intent.

Usage:
    from federated_search import create_container

    container = create_container()
    service = container.search_service()
    response = await service.search("rust async runtime", categories=["code"])

    for result in response.results:
        print(f"{result.source.value}: {result.title}")

Entry points:
    - HTTP API:   federated_search.api.create_api_server()
    - MCP server: python -m federated_search.presentation.mcp_server
"""

from .container import ApplicationContainer, create_container
from .domain.entities import (
    CategoryType,
    IntentType,
    QueryIntent,
    SearchResponse,
    SearchResult,
    SourceType,
    Suggestion,
)
from .shared.exceptions import FederatedSearchError
from .shared.settings import Settings

__version__ = "1.0.0"

__all__ = [
    "ApplicationContainer",
    "create_container",
    "Settings",
    "FederatedSearchError",
    "SearchResult",
    "SearchResponse",
    "SourceType",
    "CategoryType",
    "IntentType",
    "QueryIntent",
    "Suggestion",
]
