#!/usr/bin/env python3
"""
Federated Search - HTTP Mode

Runs either the MCP server over HTTP (SSE or streamable-http) so remote
clients can connect, or the plain JSON API.

Usage:
    # MCP with SSE transport (default, more compatible)
    python run_server.py --transport sse --port 8765

    # MCP with streamable-http transport
    python run_server.py --transport streamable-http --port 8765

    # JSON API (GET /api/search, /api/suggestions, ...)
    python run_server.py --mode api --port 8765

Environment Variables:
    OPENAI_API_KEY: Enables LLM intent, suggestions and embedding rerank
    GITHUB_TOKEN, GOOGLE_API_KEY, GOOGLE_CSE_ID, ABUSEIPDB_API_KEY, NCBI_API_KEY
    MCP_PORT: Server port (default: 8765)
    MCP_HOST: Server host (default: 0.0.0.0)
"""

import argparse
import logging
import os
import sys

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from federated_search.container import create_container

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Run Federated Search in HTTP mode")
    parser.add_argument(
        "--mode",
        choices=["mcp", "api"],
        default="mcp",
        help="Serve MCP tools or the JSON API (default: mcp)",
    )
    parser.add_argument(
        "--transport",
        choices=["sse", "streamable-http"],
        default="sse",
        help="MCP transport protocol (default: sse)",
    )
    parser.add_argument(
        "--host",
        default=os.environ.get("MCP_HOST", "0.0.0.0"),
        help="Server host (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("MCP_PORT", "8765")),
        help="Server port (default: 8765)",
    )
    parser.add_argument(
        "--no-security",
        action="store_true",
        default=True,
        help="Disable DNS rebinding protection (default: True for remote access)",
    )

    args = parser.parse_args()

    import uvicorn

    container = create_container()
    settings = container.settings()
    logger.info("Creating Federated Search server...")
    logger.info(f"  Mode: {args.mode}")
    logger.info(f"  OpenAI: {'Set' if settings.openai_api_key else 'Not set'}")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")

    if args.mode == "api":
        from federated_search.api.server import create_api_server

        app = create_api_server(container)
        uvicorn.run(app, host=args.host, port=args.port, log_level="info")
        return

    from starlette.applications import Starlette
    from starlette.responses import JSONResponse
    from starlette.routing import Mount, Route

    from federated_search.presentation.mcp_server.server import create_server

    logger.info(f"  Transport: {args.transport}")
    logger.info(f"  DNS Rebinding Protection: {'Disabled' if args.no_security else 'Enabled'}")
    server = create_server(container=container, disable_security=args.no_security)

    if args.transport == "sse":
        logger.info("SSE endpoint: /sse")
        logger.info("Message endpoint: /messages")
        mcp_app = server.sse_app()
    else:
        logger.info("Streamable HTTP endpoint: /mcp")
        mcp_app = server.streamable_http_app()

    async def health(request):
        return JSONResponse({"status": "ok", "service": "federated-search", "sources": len(container.registry())})

    app = Starlette(
        routes=[
            Route("/health", health),
            Mount("/", app=mcp_app),
        ],
        lifespan=lambda _: mcp_app.router.lifespan_context(mcp_app),
    )

    logger.info(f"Starting server at http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
