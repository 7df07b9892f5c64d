"""
Discovery Tools - Understand queries and available sources.

Tools:
- classify_query_intent: Intent, entities and suggested sources
- suggest_queries: Autocomplete and refinements
- list_search_sources: Registered sources by category
"""

from __future__ import annotations

import logging
from itertools import groupby

from mcp.server.fastmcp import FastMCP

from federated_search.application.search.service import FederatedSearchService
from federated_search.shared.exceptions import FederatedSearchError

from ._common import ResponseFormatter

logger = logging.getLogger(__name__)


def register_discovery_tools(mcp: FastMCP, service: FederatedSearchService):
    """Register query-understanding and source-listing tools."""

    @mcp.tool()
    async def classify_query_intent(query: str, use_ai: bool = False) -> str:
        """
        Classify what a query is about and which sources suit it.

        Args:
            query: Search text.
            use_ai: Ask the LLM first (falls back to the local rules).

        Returns:
            Intent type, confidence, entities, suggested sources and
            lexical expansions.
        """
        try:
            intent = await service.classify_intent(query, use_remote=use_ai)
        except FederatedSearchError as e:
            return e.to_agent_message()

        output = [
            f"🧭 **Intent**: {intent.type.value} ({intent.confidence:.0%})",
            f"**Suggested sources**: {', '.join(s.value for s in intent.suggested_sources) or '-'}",
        ]
        if intent.entities:
            output.append(f"**Entities**: {', '.join(intent.entities)}")
        expansions = service.expand_query(query)
        if len(expansions) > 1:
            output.append("**Expansions**: " + " | ".join(f"`{e}`" for e in expansions))
        return "\n".join(output)

    @mcp.tool()
    async def suggest_queries(query: str = "", limit: int = 8, use_ai: bool = False) -> str:
        """
        Suggest completions and refinements for a partial query.

        Args:
            query: Partial query; empty returns trending queries and operators.
            limit: Maximum suggestions (1-15, default 8).
            use_ai: Ask the LLM first (falls back to local suggestions).
        """
        try:
            suggestions = await service.suggest(query, limit=limit, use_remote=use_ai)
        except FederatedSearchError as e:
            return e.to_agent_message()

        if not suggestions:
            return ResponseFormatter.no_results(query=query or "(empty)")

        lines = [f"💡 **Suggestions** for `{query.strip()}`" if query.strip() else "🔥 **Trending**"]
        for s in suggestions:
            note = f" - {s.description}" if s.description else ""
            lines.append(f"- `{s.text}` _{s.type.value}_ ({s.confidence:.2f}){note}")
        return "\n".join(lines)

    @mcp.tool()
    async def list_search_sources(category: str | None = None) -> str:
        """
        List registered sources.

        Args:
            category: Optional filter: web, code, osint, research, news or all.
        """
        try:
            descriptors = service.list_sources(category.strip().lower() if category else None)
        except FederatedSearchError as e:
            return e.to_agent_message()

        output = [f"📋 **Sources** ({len(descriptors)})"]
        ordered = sorted(descriptors, key=lambda d: d.category)
        for group, items in groupby(ordered, key=lambda d: d.category):
            output.append(f"\n### {group}")
            for d in items:
                state = "" if d.enabled else " (disabled)"
                output.append(f"- `{d.id}` {d.name}, timeout {d.timeout:g}s{state}")
        return "\n".join(output)
