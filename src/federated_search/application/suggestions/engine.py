"""
SuggestionEngine - Autocomplete and Query Refinement

Builds suggestions for a partial query from static tables and the local
intent signal:

1. Pattern completions (lexical continuations keyed by query substring)
2. Intent refinements ("<query> <term>")
3. Intent-related variants
4. Contextual operators for ``@handle`` and ``ip:`` queries

RemoteSuggestionEngine asks an LLM first and falls back to the local engine
on any failure.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from federated_search.application.search.intent_classifier import (
    IntentClassifier,
    strip_code_fence,
)
from federated_search.domain.entities import IntentType, Suggestion, SuggestionType
from federated_search.shared.async_utils import timeout_with_fallback

if TYPE_CHECKING:
    from federated_search.infrastructure.llm import OpenAIClient

logger = logging.getLogger(__name__)


# =============================================================================
# Static Tables
# =============================================================================

QUERY_PATTERNS: dict[str, tuple[str, ...]] = {
    # Tech
    "how to": ("install", "use", "fix", "configure", "deploy", "build", "create", "setup"),
    "what is": ("the difference between", "the best", "a good", "the purpose of", "the meaning of"),
    "why does": ("my code", "this error", "the program", "javascript", "python", "react"),
    "error": ("message", "handling", "in javascript", "in python", "fix", "undefined", "null"),
    "react": ("hooks", "component", "useEffect", "useState", "context", "router", "typescript"),
    "python": ("tutorial", "list", "dictionary", "pandas", "numpy", "function", "class"),
    "javascript": ("array", "object", "async await", "promise", "function", "class", "es6"),
    "api": ("endpoint", "documentation", "authentication", "rest", "graphql", "rate limit"),
    "docker": ("compose", "container", "image", "build", "run", "volume", "network"),
    "git": ("commit", "push", "pull", "merge", "rebase", "branch", "checkout", "reset"),
    # OSINT
    "whois": ("lookup", "domain", "ip", "history", "privacy"),
    "ip": ("address", "lookup", "geolocation", "reputation", "range", "block"),
    "cve": ("2024", "2025", "critical", "vulnerability", "exploit", "patch"),
    "domain": ("lookup", "history", "dns", "ssl", "expiration", "owner"),
    # Research
    "research": ("paper", "study", "methodology", "findings", "data"),
    "study": ("on", "about", "shows", "finds", "results"),
    "statistics": ("on", "about", "data", "graph", "chart"),
}

INTENT_REFINEMENTS: dict[IntentType, tuple[str, ...]] = {
    IntentType.TECH: ("tutorial", "example", "documentation", "best practices", "vs", "alternative"),
    IntentType.SECURITY: ("exploit", "patch", "mitigation", "affected versions", "proof of concept"),
    IntentType.RESEARCH: ("pdf", "citation", "methodology", "results", "data", "peer reviewed"),
    IntentType.COMPANY: ("stock", "revenue", "employees", "founded", "headquarters", "ceo"),
    IntentType.PERSON: ("biography", "net worth", "career", "social media", "contact"),
    IntentType.DOMAIN: ("history", "owner", "dns records", "ssl certificate", "archive"),
    IntentType.IP: ("geolocation", "isp", "reputation", "abuse reports", "asn"),
    IntentType.USERNAME: ("twitter", "github", "linkedin", "reddit", "instagram"),
}

OPERATORS: tuple[tuple[str, str], ...] = (
    ("site:", "Search within a specific domain"),
    ("filetype:", "Search for specific file types"),
    ("intitle:", "Search in page titles"),
    ("@", "Search for username across platforms"),
    ("ip:", "Lookup IP address information"),
    ("domain:", "Get domain/WHOIS information"),
    ("cve:", "Search for CVE vulnerabilities"),
    ("doi:", "Lookup academic paper by DOI"),
)

TRENDING_QUERIES: tuple[str, ...] = (
    "react 19 new features",
    "openai api tutorial",
    "nextjs 15 migration",
    "tailwind css v4",
    "rust vs go 2024",
    "kubernetes best practices",
    "CVE-2024 critical vulnerabilities",
    "machine learning basics",
)


def trending_queries() -> list[str]:
    return list(TRENDING_QUERIES)


def operator_hints() -> list[Suggestion]:
    return [
        Suggestion(text=prefix, type=SuggestionType.OPERATOR, confidence=0.9, description=description)
        for prefix, description in OPERATORS
    ]


def trending_suggestions() -> list[Suggestion]:
    return [Suggestion(text=text, type=SuggestionType.TRENDING, confidence=0.8) for text in TRENDING_QUERIES]


def finalize(suggestions: list[Suggestion], limit: int) -> list[Suggestion]:
    """De-duplicate by case-folded text, sort by confidence (stable), truncate."""
    seen: set[str] = set()
    unique = []
    for suggestion in suggestions:
        key = suggestion.text.casefold()
        if key in seen:
            continue
        seen.add(key)
        unique.append(suggestion)
    unique.sort(key=lambda s: s.confidence, reverse=True)
    return unique[:limit]


# =============================================================================
# Local Engine
# =============================================================================


class SuggestionEngine:
    """Deterministic, table-driven suggestion engine."""

    def __init__(self, classifier: IntentClassifier | None = None) -> None:
        self.classifier = classifier or IntentClassifier()

    def suggest(self, query: str, limit: int = 8) -> list[Suggestion]:
        if not query.strip():
            return (trending_suggestions() + operator_hints())[:limit]
        if len(query.strip()) < 2:
            return operator_hints()[:limit]

        intent_type = self.classifier.classify(query).type
        suggestions = [
            *self._contextual_operators(query),
            *self._completions(query, intent_type),
            *self._refinements(query, intent_type),
            *self._related(query, intent_type),
        ]
        return finalize(suggestions, limit)

    @staticmethod
    def _completions(query: str, intent_type: IntentType) -> list[Suggestion]:
        lowered = query.lower().strip()
        words = lowered.split()
        last_word = "" if query.endswith((" ", "\t")) else words[-1]
        head = " ".join(words if not last_word else words[:-1])

        suggestions = []
        for pattern, completions in QUERY_PATTERNS.items():
            if pattern not in lowered and not pattern.startswith(lowered):
                continue
            for completion in completions:
                if not (completion.startswith(last_word) or len(last_word) < 2):
                    continue
                if not last_word:
                    text = f"{query}{completion}"
                else:
                    text = f"{head} {completion}".strip()
                suggestions.append(
                    Suggestion(text=text, type=SuggestionType.COMPLETION, confidence=0.8, intent=intent_type)
                )
        return suggestions

    @staticmethod
    def _refinements(query: str, intent_type: IntentType) -> list[Suggestion]:
        lowered = query.lower()
        terms = INTENT_REFINEMENTS.get(intent_type, INTENT_REFINEMENTS[IntentType.TECH])
        base = query.strip()
        return [
            Suggestion(text=f"{base} {term}", type=SuggestionType.REFINEMENT, confidence=0.7, intent=intent_type)
            for term in terms
            if term not in lowered
        ]

    @staticmethod
    def _related(query: str, intent_type: IntentType) -> list[Suggestion]:
        base = query.strip()
        if intent_type is IntentType.TECH:
            return [
                Suggestion(text=f"{base} {term}", type=SuggestionType.RELATED, confidence=0.6, intent=IntentType.TECH)
                for term in ("best practices", "alternatives to")
            ]
        if intent_type in (IntentType.DOMAIN, IntentType.IP):
            return [
                Suggestion(
                    text=f"{base} vulnerabilities",
                    type=SuggestionType.RELATED,
                    confidence=0.65,
                    intent=IntentType.SECURITY,
                )
            ]
        if intent_type is IntentType.RESEARCH:
            return [
                Suggestion(
                    text=f"{base} recent studies",
                    type=SuggestionType.RELATED,
                    confidence=0.65,
                    intent=IntentType.RESEARCH,
                ),
                Suggestion(
                    text=f"{base} statistics",
                    type=SuggestionType.RELATED,
                    confidence=0.6,
                    intent=IntentType.RESEARCH,
                ),
            ]
        return []

    @staticmethod
    def _contextual_operators(query: str) -> list[Suggestion]:
        text = query.strip()
        if text.startswith("@"):
            return [Suggestion(text=text, type=SuggestionType.OPERATOR, confidence=0.95, intent=IntentType.USERNAME)]
        if text.startswith("ip:"):
            return [Suggestion(text=text, type=SuggestionType.OPERATOR, confidence=0.95, intent=IntentType.IP)]
        return []


# =============================================================================
# Remote Strategy
# =============================================================================

_SUGGESTION_SYSTEM_PROMPT = """You are a search query suggestion engine. Given a partial search query, generate relevant completions and related searches.

Consider these query types:
- Technical (programming, software, APIs)
- OSINT (domains, IPs, usernames, security)
- Research (academic papers, statistics, data)
- General knowledge

Return JSON array of suggestions:
[{"text": "completed query", "type": "completion|related|refinement", "confidence": 0.0-1.0}]

Generate 6-8 diverse, useful suggestions. Prioritize completions over related queries."""


class RemoteSuggestionEngine:
    """LLM-backed suggestions with local fallback. Never raises."""

    def __init__(
        self,
        local: SuggestionEngine,
        llm_client: OpenAIClient | None,
        timeout: float = 4.0,
    ) -> None:
        self.local = local
        self._llm = llm_client
        self._timeout = timeout

    async def suggest(self, query: str, limit: int = 8) -> list[Suggestion]:
        if not query.strip() or self._llm is None or not self._llm.available:
            return self.local.suggest(query, limit)

        try:
            content = await timeout_with_fallback(
                self._llm.chat(
                    _SUGGESTION_SYSTEM_PROMPT,
                    query,
                    temperature=0.7,
                    max_tokens=300,
                ),
                self._timeout,
                None,
            )
        except Exception as e:
            logger.warning(f"Remote suggestions failed: {e}")
            return self.local.suggest(query, limit)

        if not content:
            return self.local.suggest(query, limit)

        try:
            suggestions = self._parse(content)
        except (ValueError, TypeError) as e:
            logger.warning(f"Unusable remote suggestions, using local: {e}")
            return self.local.suggest(query, limit)

        if not suggestions:
            return self.local.suggest(query, limit)
        return finalize(suggestions, limit)

    @staticmethod
    def _parse(content: str) -> list[Suggestion]:
        payload: Any = json.loads(strip_code_fence(content))
        if not isinstance(payload, list):
            raise ValueError("suggestion answer is not an array")

        suggestions = []
        for item in payload:
            if not isinstance(item, dict) or not item.get("text"):
                continue
            try:
                suggestion_type = SuggestionType(item.get("type"))
            except ValueError:
                continue
            confidence = max(0.0, min(1.0, float(item.get("confidence") or 0.5)))
            suggestions.append(Suggestion(text=str(item["text"]), type=suggestion_type, confidence=confidence))
        return suggestions
