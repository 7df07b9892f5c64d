"""
Federated Search MCP Server

Exposes the federated search service as MCP tools.

Architecture:
- instructions.py: SERVER_INSTRUCTIONS for AI agents
- tools/: tool implementations (search, discovery)
- container: DI container (dependency-injector) for service lifecycle
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any, cast

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from federated_search.container import ApplicationContainer, create_container

from .instructions import SERVER_INSTRUCTIONS
from .tools import TOOL_NAMES, register_all_tools

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from federated_search.application.search.service import FederatedSearchService

logger = logging.getLogger(__name__)

# ── Module-level DI container ──────────────────────────────────────────────
_container: ApplicationContainer | None = None


def get_container() -> ApplicationContainer:
    """Get the application DI container.

    Raises:
        RuntimeError: If ``create_server()`` has not been called yet.
    """
    if _container is None:
        msg = "Container not initialized. Call create_server() first."
        raise RuntimeError(msg)
    return _container


def _make_lifespan(
    container: ApplicationContainer,
) -> Callable[[FastMCP[Any]], AbstractAsyncContextManager[ApplicationContainer]]:
    """Create a FastMCP lifespan handler bound to *container*."""

    @asynccontextmanager
    async def _lifespan(server: FastMCP[Any]) -> AsyncIterator[ApplicationContainer]:
        logger.info("Lifecycle: startup, sources ready")
        try:
            yield container
        finally:
            await container.registry().close()
            logger.info("Lifecycle: shutdown, source clients closed")

    return _lifespan


def create_server(
    name: str = "federated-search",
    container: ApplicationContainer | None = None,
    disable_security: bool = False,
    json_response: bool = False,
    stateless_http: bool = False,
) -> FastMCP:
    """
    Create and configure the Federated Search MCP server.

    Args:
        name: Server name.
        container: DI container; built from the environment when omitted.
        disable_security: Disable DNS rebinding protection (needed for remote access).
        json_response: Use JSON responses instead of SSE.
        stateless_http: Use stateless HTTP mode (no session management).

    Returns:
        Configured FastMCP server instance.
    """
    global _container
    logger.info("Initializing Federated Search MCP Server...")

    _container = container or create_container()
    service = cast("FederatedSearchService", _container.search_service())

    if disable_security:
        transport_security = TransportSecuritySettings(enable_dns_rebinding_protection=False)
        logger.info("DNS rebinding protection disabled for remote access")
    else:
        transport_security = None

    mcp = FastMCP(
        name,
        instructions=SERVER_INSTRUCTIONS,
        transport_security=transport_security,
        json_response=json_response,
        stateless_http=stateless_http,
        lifespan=_make_lifespan(_container),
    )

    register_all_tools(mcp, service)
    logger.info("Registered %d tools over %d sources", len(TOOL_NAMES), len(service.registry))

    return mcp


def main():
    """Run the MCP server over stdio."""

    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    server = create_server()
    server.run()


if __name__ == "__main__":
    main()
