"""
MCP Server Instructions - usage guide for AI agents.
"""

from __future__ import annotations

SERVER_INSTRUCTIONS = """
Federated Search MCP Server - one query, many sources.

## Which tool?
- federated_search(query): default entry point. Queries web, code, OSINT,
  research and news sources in parallel and returns one ranked list.
- search_single_source(source, query): when the user names a source
  ("search GitHub for ...", "look up this CVE in NVD").
- classify_query_intent(query): see how a query will be routed.
- suggest_queries(query): completions and refinements for vague queries.
- list_search_sources(category): valid source ids.

## Typed queries route automatically
- 8.8.8.8              -> IP geolocation, reputation, scanners
- example.com          -> WHOIS/RDAP, DNS, Wayback snapshots
- CVE-2024-3094        -> NVD / CIRCL vulnerability records
- 10.1038/nature12373  -> CrossRef, arXiv, Semantic Scholar
- @username            -> account lookups across platforms

## Narrowing
federated_search(query="rust async runtime", categories="code")
federated_search(query="attention is all you need", sources="arxiv,semanticscholar")

Sources that time out or fail are skipped; the response lists them.
"""
