"""
HTTP API Server for federated search.

JSON endpoints over the search service:

    GET  /health
    GET  /api/search?q=&categories=&sources=&limit=&timeout=&ai=
    POST /api/search
    GET  /api/intent?q=&ai=
    GET  /api/suggestions?q=&limit=&ai=
    GET  /api/sources?category=
    GET  /api/sources/{source}?q=&limit=
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from federated_search.container import ApplicationContainer, create_container
from federated_search.shared.exceptions import (
    FederatedSearchError,
    SourceDisabledError,
    UnknownSourceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_API_PORT = 8765


# Pydantic models for API requests/responses
class SearchRequest(BaseModel):
    """Body of POST /api/search."""

    query: str = ""
    categories: list[str] | None = None
    sources: list[str] | None = None
    limit: int | None = None
    timeout: float | None = None
    useAI: bool = False


class ResultModel(BaseModel):
    id: str
    title: str
    description: str = ""
    url: str
    source: str
    category: str
    timestamp: str | None = None
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    favicon: str | None = None


class IntentModel(BaseModel):
    type: str
    confidence: float
    entities: list[str] = Field(default_factory=list)
    suggestedSources: list[str] = Field(default_factory=list)


class SearchResponseModel(BaseModel):
    results: list[ResultModel]
    query: str
    intent: IntentModel
    totalSources: int
    successfulSources: int
    timing: float
    cached: bool = False


class IntentResponse(BaseModel):
    query: str
    intent: IntentModel
    expansions: list[str]


class SuggestionModel(BaseModel):
    text: str
    type: str
    confidence: float
    intent: str | None = None
    description: str | None = None


class SuggestionsResponse(BaseModel):
    suggestions: list[SuggestionModel]
    query: str
    intent: dict[str, Any] | None
    timing: float


class SourceModel(BaseModel):
    id: str
    name: str
    icon: str
    color: str
    category: str
    enabled: bool
    timeout: float


class SourcesResponse(BaseModel):
    sources: list[SourceModel]
    total: int


class SourceSearchResponse(BaseModel):
    results: list[ResultModel]
    source: str
    query: str
    timing: float


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    sources: int
    cached_responses: int


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str
    message: str | None = None


def _split_csv(value: str | None) -> list[str] | None:
    if not value:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)


def _error_status(error: FederatedSearchError) -> int:
    if isinstance(error, UnknownSourceError):
        return 404
    if isinstance(error, SourceDisabledError):
        return 503
    if isinstance(error, ValidationError):
        return 400
    return 500


def create_api_server(container: ApplicationContainer | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        container: DI container; built from the environment when omitted.
            Tests pass a container with overridden providers.

    Returns:
        Configured FastAPI instance.
    """
    container = container or create_container()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("HTTP API server initialized")
        yield
        logger.info("HTTP API server shutting down")
        await container.registry().close()

    app = FastAPI(
        title="Federated Search API",
        description="Parallel search across web, code, OSINT, research and news sources.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(FederatedSearchError)
    async def handle_search_error(request: Request, exc: FederatedSearchError) -> JSONResponse:
        status = _error_status(exc)
        if status == 500:
            logger.error(f"Unhandled service error on {request.url.path}: {exc}")
        return JSONResponse(status_code=status, content=ErrorResponse(error=str(exc)).model_dump())

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Request failed: {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Search failed", message=str(exc)).model_dump(),
        )

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        service = container.search_service()
        return HealthResponse(
            status="healthy",
            sources=len(service.registry),
            cached_responses=len(service.cache),
        )

    @app.get(
        "/api/search",
        response_model=SearchResponseModel,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    )
    async def search(
        q: str = Query(default="", description="Search query"),
        categories: str | None = Query(default=None, description="Comma-separated categories"),
        sources: str | None = Query(default=None, description="Comma-separated source ids"),
        limit: int | None = Query(default=None, description="Maximum results (1-100)"),
        timeout: float | None = Query(default=None, description="Per-source deadline in seconds"),
        ai: bool = Query(default=False, description="Use LLM intent and embedding rerank"),
    ) -> dict[str, Any]:
        """Federated search across all (or the selected) sources."""
        response = await container.search_service().search(
            q,
            categories=_split_csv(categories),
            sources=_split_csv(sources),
            limit=limit,
            timeout=timeout,
            use_ai=ai,
        )
        return response.to_dict()

    @app.post(
        "/api/search",
        response_model=SearchResponseModel,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    )
    async def search_post(body: SearchRequest) -> dict[str, Any]:
        response = await container.search_service().search(
            body.query,
            categories=body.categories,
            sources=body.sources,
            limit=body.limit,
            timeout=body.timeout,
            use_ai=body.useAI,
        )
        return response.to_dict()

    @app.get("/api/intent", response_model=IntentResponse, responses={400: {"model": ErrorResponse}})
    async def intent(
        q: str = Query(default=""),
        ai: bool = Query(default=False),
    ) -> dict[str, Any]:
        """Classify a query and list its lexical expansions."""
        service = container.search_service()
        query_intent = await service.classify_intent(q, use_remote=ai)
        return {
            "query": q.strip(),
            "intent": query_intent.to_dict(),
            "expansions": service.expand_query(q),
        }

    @app.get("/api/suggestions", response_model=SuggestionsResponse, responses={400: {"model": ErrorResponse}})
    async def suggestions(
        q: str = Query(default=""),
        limit: int = Query(default=8, ge=1),
        ai: bool = Query(default=False),
    ) -> dict[str, Any]:
        """Autocomplete; an empty query returns trending queries."""
        started = time.perf_counter()
        service = container.search_service()
        query = q.strip()
        items = await service.suggest(q, limit=limit, use_remote=ai)
        intent_summary = None
        if query:
            query_intent = await service.classify_intent(query)
            intent_summary = {"type": query_intent.type.value, "confidence": query_intent.confidence}
        return {
            "suggestions": [s.to_dict() for s in items],
            "query": query,
            "intent": intent_summary,
            "timing": _elapsed_ms(started),
        }

    @app.get("/api/sources", response_model=SourcesResponse, responses={400: {"model": ErrorResponse}})
    async def list_sources(category: str | None = Query(default=None)) -> dict[str, Any]:
        descriptors = container.search_service().list_sources(category)
        return {"sources": [d.to_dict() for d in descriptors], "total": len(descriptors)}

    @app.get(
        "/api/sources/{source}",
        response_model=SourceSearchResponse,
        responses={
            400: {"model": ErrorResponse},
            404: {"model": ErrorResponse, "description": "Unknown source"},
            503: {"model": ErrorResponse, "description": "Source disabled"},
        },
    )
    async def search_source(
        source: str,
        q: str = Query(default=""),
        limit: int = Query(default=10),
    ) -> dict[str, Any]:
        """Search a single source directly (no fan-out, no ranking)."""
        started = time.perf_counter()
        results = await container.search_service().search_one_source(source, q, limit)
        return {
            "results": [r.to_dict() for r in results],
            "source": source,
            "query": q.strip(),
            "timing": _elapsed_ms(started),
        }

    return app


def run_api_server(host: str = "127.0.0.1", port: int = DEFAULT_API_PORT) -> None:
    """
    Run the HTTP API server.

    Args:
        host: Host to bind to (default: 127.0.0.1 for local only)
        port: Port to bind to (default: 8765)
    """
    import uvicorn

    app = create_api_server()
    logger.info(f"Starting HTTP API server on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Federated Search HTTP API Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=DEFAULT_API_PORT, help="Port to bind to")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    run_api_server(host=args.host, port=args.port)
