"""
Federated Search MCP Tools

Search (2):
- federated_search: Parallel multi-source search, ranked
- search_single_source: One source, unranked

Discovery (3):
- classify_query_intent, suggest_queries, list_search_sources

Usage:
    from .tools import register_all_tools
    register_all_tools(mcp, service)
"""

from mcp.server.fastmcp import FastMCP

from federated_search.application.search.service import FederatedSearchService

from .discovery import register_discovery_tools
from .search import register_search_tools

TOOL_NAMES = (
    "federated_search",
    "search_single_source",
    "classify_query_intent",
    "suggest_queries",
    "list_search_sources",
)


def register_all_tools(mcp: FastMCP, service: FederatedSearchService):
    """Register every federated search tool on ``mcp``."""
    register_search_tools(mcp, service)
    register_discovery_tools(mcp, service)


__all__ = ["TOOL_NAMES", "register_all_tools"]
