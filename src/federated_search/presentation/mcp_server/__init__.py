"""
Federated Search MCP Server

Usage as standalone server:
    python -m federated_search.presentation.mcp_server

Or in mcp.json:
    {
        "servers": {
            "federated-search": {
                "type": "stdio",
                "command": "python",
                "args": ["-m", "federated_search.presentation.mcp_server"]
            }
        }
    }

Usage for integration:
    from federated_search.presentation.mcp_server import register_all_tools

    register_all_tools(your_mcp_server, container.search_service())
"""

from __future__ import annotations

from .server import create_server, main
from .tools import register_all_tools

__all__ = ["create_server", "main", "register_all_tools"]
