"""
Application DI Container (dependency-injector).

Centralizes service creation and lifecycle management. Every boundary
(FastAPI app, MCP server) resolves the search service from here.

Usage::

    from federated_search.container import create_container

    container = create_container()          # Settings.from_env()
    service = container.search_service()

    # In tests — override any provider:
    container.registry.override(providers.Object(fake_registry))
"""

from __future__ import annotations

import logging
from typing import Any

from dependency_injector import containers, providers

from federated_search.shared.settings import Settings

logger = logging.getLogger(__name__)


def _create_settings(values: dict[str, Any]) -> Settings:
    """Rebuild frozen Settings from the container configuration."""
    known = Settings.__dataclass_fields__
    return Settings(**{k: v for k, v in (values or {}).items() if k in known})


def _create_registry(settings: Settings) -> object:
    """Lazy factory for the source registry (imports every adapter)."""
    from federated_search.infrastructure.sources import build_default_registry

    return build_default_registry(settings)


def _create_llm_client(api_key: str | None, base_url: str | None, timeout: float | None) -> object:
    """Lazy factory for the OpenAI-compatible client."""
    from federated_search.infrastructure.llm import OpenAIClient

    return OpenAIClient(
        api_key=api_key or None,
        base_url=base_url or "https://api.openai.com/v1",
        timeout=timeout or 4.0,
    )


def _create_intent_classifier() -> object:
    from federated_search.application.search.intent_classifier import IntentClassifier

    return IntentClassifier()


def _create_remote_intent_classifier(local: object, llm_client: object, timeout: float | None) -> object:
    from federated_search.application.search.intent_classifier import RemoteIntentClassifier

    return RemoteIntentClassifier(local, llm_client, timeout=timeout or 4.0)  # type: ignore[arg-type]


def _create_orchestrator(registry: object) -> object:
    from federated_search.application.search.orchestrator import FanOutOrchestrator

    return FanOutOrchestrator(registry)  # type: ignore[arg-type]


def _create_ranker(llm_client: object, timeout: float | None) -> object:
    from federated_search.application.search.ranking import ResultRanker
    from federated_search.application.search.semantic_reranker import SemanticReranker

    reranker = SemanticReranker(llm_client, timeout=timeout or 4.0)  # type: ignore[arg-type]
    return ResultRanker(reranker=reranker)


def _create_suggestion_engine(classifier: object) -> object:
    from federated_search.application.suggestions.engine import SuggestionEngine

    return SuggestionEngine(classifier)  # type: ignore[arg-type]


def _create_remote_suggestion_engine(local: object, llm_client: object, timeout: float | None) -> object:
    from federated_search.application.suggestions.engine import RemoteSuggestionEngine

    return RemoteSuggestionEngine(local, llm_client, timeout=timeout or 4.0)  # type: ignore[arg-type]


def _create_result_cache(max_size: int | None, ttl: float | None) -> object:
    from federated_search.infrastructure.cache import ResultCache

    return ResultCache(max_size=max_size or 500, ttl=ttl or 300.0)


def _create_search_service(**kwargs: Any) -> object:
    """Lazy factory for the boundary facade."""
    from federated_search.application.search.service import FederatedSearchService

    return FederatedSearchService(**kwargs)


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for Federated Search.

    Manages creation and lifecycle of all core services:
    - ``registry``: every source adapter, keyed by source id
    - ``llm_client``: OpenAI-compatible chat/embedding client
    - ``intent_classifier`` / ``remote_intent_classifier``: query intent
    - ``orchestrator``: concurrent fan-out
    - ``ranker``: intent scoring plus semantic/lexical rerank
    - ``suggestion_engine`` / ``remote_suggestion_engine``: autocomplete
    - ``result_cache``: TTL cache of search responses
    - ``search_service``: the facade used by the API and MCP tools
    """

    config = providers.Configuration()

    settings = providers.Singleton(_create_settings, values=config)

    registry = providers.Singleton(_create_registry, settings=settings)

    llm_client = providers.Singleton(
        _create_llm_client,
        api_key=config.openai_api_key,
        base_url=config.openai_base_url,
        timeout=config.remote_timeout,
    )

    intent_classifier = providers.Singleton(_create_intent_classifier)

    remote_intent_classifier = providers.Singleton(
        _create_remote_intent_classifier,
        local=intent_classifier,
        llm_client=llm_client,
        timeout=config.remote_timeout,
    )

    orchestrator = providers.Singleton(_create_orchestrator, registry=registry)

    ranker = providers.Singleton(
        _create_ranker,
        llm_client=llm_client,
        timeout=config.remote_timeout,
    )

    suggestion_engine = providers.Singleton(_create_suggestion_engine, classifier=intent_classifier)

    remote_suggestion_engine = providers.Singleton(
        _create_remote_suggestion_engine,
        local=suggestion_engine,
        llm_client=llm_client,
        timeout=config.remote_timeout,
    )

    result_cache = providers.Singleton(
        _create_result_cache,
        max_size=config.cache_size,
        ttl=config.cache_ttl,
    )

    search_service = providers.Singleton(
        _create_search_service,
        registry=registry,
        orchestrator=orchestrator,
        ranker=ranker,
        classifier=intent_classifier,
        remote_classifier=remote_intent_classifier,
        suggestion_engine=suggestion_engine,
        remote_suggestion_engine=remote_suggestion_engine,
        cache=result_cache,
        settings=settings,
    )


def create_container(settings: Settings | None = None) -> ApplicationContainer:
    """Build a container loaded from ``settings`` (default: the environment)."""
    settings = settings or Settings.from_env()
    container = ApplicationContainer()
    container.config.from_dict(settings.to_config())
    logger.debug("Application container configured")
    return container


__all__ = ["ApplicationContainer", "create_container"]
