"""
IntentClassifier - Query Intent Detection for Federated Search

Determines what kind of thing a query is looking for (an IP address, a
domain, a CVE, a paper, a programming topic...) and which sources are most
likely to answer it.

Architecture Decision:
    IntentClassifier is stateless and purely local: ordered literal checks
    followed by regex signature scoring. RemoteIntentClassifier wraps it as a
    strategy that asks an LLM first and falls back to the local result on any
    failure. Callers depend only on ``classify``.

Example:
    >>> classifier = IntentClassifier()
    >>> intent = classifier.classify("CVE-2024-12345")
    >>> intent.type, intent.confidence, intent.entities
    (<IntentType.SECURITY: 'security'>, 0.98, ('CVE-2024-12345',))
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from federated_search.domain.entities import IntentType, QueryIntent, SourceType
from federated_search.shared.async_utils import timeout_with_fallback
from federated_search.shared.patterns import (
    CVE_PATTERN,
    HANDLE_PATTERN,
    extract_doi,
    is_domain,
    is_ip_address,
)

if TYPE_CHECKING:
    from federated_search.infrastructure.llm import OpenAIClient

logger = logging.getLogger(__name__)


# =============================================================================
# Static Tables
# =============================================================================

# Recommended sources per intent (advisory, ordered by usefulness)
INTENT_SOURCES: dict[IntentType, tuple[SourceType, ...]] = {
    IntentType.GENERAL: (
        SourceType.WIKIPEDIA,
        SourceType.DUCKDUCKGO,
        SourceType.HACKERNEWS,
        SourceType.REDDIT,
        SourceType.GITHUB,
    ),
    IntentType.PERSON: (
        SourceType.WIKIPEDIA,
        SourceType.WIKIDATA,
        SourceType.USERNAME,
        SourceType.REDDIT,
        SourceType.HACKERNEWS,
    ),
    IntentType.COMPANY: (
        SourceType.COMPANY,
        SourceType.SEC,
        SourceType.WIKIPEDIA,
        SourceType.HACKERNEWS,
        SourceType.REDDIT,
    ),
    IntentType.DOMAIN: (
        SourceType.WHOIS,
        SourceType.DNS,
        SourceType.ARCHIVE,
        SourceType.CVE,
    ),
    IntentType.TECH: (
        SourceType.GITHUB,
        SourceType.STACKOVERFLOW,
        SourceType.NPM,
        SourceType.PYPI,
        SourceType.DEVTO,
        SourceType.HACKERNEWS,
    ),
    IntentType.SECURITY: (
        SourceType.CVE,
        SourceType.GITHUB,
        SourceType.HACKERNEWS,
    ),
    IntentType.RESEARCH: (
        SourceType.ARXIV,
        SourceType.PUBMED,
        SourceType.CROSSREF,
        SourceType.WIKIPEDIA,
    ),
    IntentType.IP: (
        SourceType.IPGEO,
        SourceType.WHOIS,
        SourceType.DNS,
    ),
    IntentType.USERNAME: (
        SourceType.USERNAME,
        SourceType.GITHUB,
        SourceType.REDDIT,
        SourceType.HACKERNEWS,
    ),
    IntentType.DOI: (
        SourceType.CROSSREF,
        SourceType.ARXIV,
        SourceType.PUBMED,
    ),
}

# Abbreviation -> full forms, used by expand_query
QUERY_SYNONYMS: dict[str, tuple[str, ...]] = {
    "js": ("javascript",),
    "ts": ("typescript",),
    "py": ("python",),
    "react": ("reactjs", "react.js"),
    "vue": ("vuejs", "vue.js"),
    "node": ("nodejs", "node.js"),
    "api": ("rest api", "http api"),
    "ml": ("machine learning",),
    "ai": ("artificial intelligence",),
    "db": ("database",),
    "k8s": ("kubernetes",),
    "sql": ("mysql", "postgresql"),
}

SIGNATURE_THRESHOLD = 0.2


class IntentClassifier:
    """
    Local, deterministic intent classifier.

    Rules are checked in priority order and the first literal match wins
    with a fixed confidence. Anything else is scored against per-category
    regex signatures.
    """

    # Signature patterns, checked in this order (ties go to the earlier one)
    SIGNATURES: dict[IntentType, tuple[re.Pattern[str], ...]] = {
        IntentType.SECURITY: (
            re.compile(r"\b(cve|vulnerability|exploit|malware|attack|breach|hack)\b", re.IGNORECASE),
            re.compile(r"\b(security|pentest|penetration|bug\s*bounty)\b", re.IGNORECASE),
            re.compile(r"CVE-\d{4}-\d+", re.IGNORECASE),
        ),
        IntentType.COMPANY: (
            re.compile(r"\b(company|corporation|corp|inc|llc|ltd|gmbh|plc)\b", re.IGNORECASE),
            re.compile(r"\b(stock|ticker|sec|filing|investor|quarterly)\b", re.IGNORECASE),
            re.compile(r"\b(founded|ceo|revenue|valuation|acquisition)\b", re.IGNORECASE),
        ),
        IntentType.PERSON: (
            re.compile(r"^[A-Z][a-z]+\s+[A-Z][a-z]+$"),
            re.compile(r"\b(who\s+is|biography|born|died|age\s+of)\b", re.IGNORECASE),
            re.compile(r"\b(founder|ceo|president|director|author)\b", re.IGNORECASE),
        ),
        IntentType.TECH: (
            re.compile(r"\b(programming|code|coding|developer|software|api|sdk)\b", re.IGNORECASE),
            re.compile(r"\b(javascript|typescript|python|rust|golang|react|vue|angular)\b", re.IGNORECASE),
            re.compile(r"\b(npm|pip|package|library|framework|tutorial|docs)\b", re.IGNORECASE),
            re.compile(r"\b(github|stackoverflow|documentation)\b", re.IGNORECASE),
        ),
        IntentType.RESEARCH: (
            re.compile(r"\b(research|paper|study|journal|academic|scientific)\b", re.IGNORECASE),
            re.compile(r"\b(arxiv|pubmed|doi|citation|thesis|dissertation)\b", re.IGNORECASE),
            re.compile(r"\b(hypothesis|methodology|findings|results)\b", re.IGNORECASE),
        ),
    }

    def __init__(self, threshold: float = SIGNATURE_THRESHOLD) -> None:
        self.threshold = threshold

    def classify(self, query: str) -> QueryIntent:
        """
        Classify a query.

        Args:
            query: Raw user query

        Returns:
            QueryIntent with recommended sources attached
        """
        text = query.strip()

        if is_ip_address(text):
            return self._intent(IntentType.IP, 0.98, (text,))

        if is_domain(text):
            return self._intent(IntentType.DOMAIN, 0.95, (text,))

        cve = CVE_PATTERN.search(text)
        if cve:
            return self._intent(IntentType.SECURITY, 0.98, (cve.group(0).upper(),))

        doi = extract_doi(text)
        if doi:
            return self._intent(IntentType.DOI, 0.98, (doi,))

        handle = HANDLE_PATTERN.match(text)
        if handle:
            return self._intent(IntentType.USERNAME, 0.95, (handle.group(1),))

        best_type, best_score = self.score_signatures(text)
        if best_type is not None and best_score > self.threshold:
            return self._intent(best_type, min(best_score + 0.3, 0.9))

        return self._intent(IntentType.GENERAL, 0.5)

    def score_signatures(self, text: str) -> tuple[IntentType | None, float]:
        """Return the best-matching signature category and its score."""
        best_type: IntentType | None = None
        best_score = 0.0
        for intent_type, patterns in self.SIGNATURES.items():
            matches = sum(1 for pattern in patterns if pattern.search(text))
            score = matches / len(patterns)
            if score > best_score:
                best_type, best_score = intent_type, score
        return best_type, best_score

    @staticmethod
    def _intent(
        intent_type: IntentType,
        confidence: float,
        entities: tuple[str, ...] = (),
    ) -> QueryIntent:
        return QueryIntent(
            type=intent_type,
            confidence=confidence,
            entities=entities,
            suggested_sources=INTENT_SOURCES[intent_type],
        )


# =============================================================================
# Remote Strategy
# =============================================================================

_INTENT_SYSTEM_PROMPT = """You are a query intent classifier. Classify the user's search query into one of these types:
- general: General knowledge questions
- person: Looking for information about a specific person
- company: Looking for company/business information
- domain: Looking up a website or domain
- tech: Programming, code, software related
- security: Security vulnerabilities, CVEs, exploits
- research: Academic, scientific research
- ip: Looking up an IP address
- username: Looking for an online handle across platforms
- doi: Looking up a paper by DOI

Respond with JSON only: {"type": "...", "confidence": 0.0-1.0, "entities": ["extracted entities"], "reason": "brief explanation"}"""

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


def strip_code_fence(content: str) -> str:
    """Remove a surrounding markdown code fence from an LLM answer."""
    return _CODE_FENCE.sub("", content.strip())


class RemoteIntentClassifier:
    """
    LLM-backed intent classification with local fallback.

    Never raises: any failure (no key, timeout, non-2xx, bad JSON, unknown
    type) returns the local classification instead.
    """

    def __init__(
        self,
        local: IntentClassifier,
        llm_client: OpenAIClient | None,
        timeout: float = 4.0,
    ) -> None:
        self.local = local
        self._llm = llm_client
        self._timeout = timeout

    async def classify(self, query: str) -> QueryIntent:
        fallback = self.local.classify(query)
        if self._llm is None or not self._llm.available:
            return fallback

        try:
            content = await timeout_with_fallback(
                self._llm.chat(
                    _INTENT_SYSTEM_PROMPT,
                    query,
                    temperature=0.1,
                    max_tokens=150,
                ),
                self._timeout,
                None,
            )
        except Exception as e:
            logger.warning(f"Remote intent classification failed: {e}")
            return fallback

        if not content:
            return fallback

        try:
            return self._parse(content)
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Unusable remote intent answer, using local: {e}")
            return fallback

    @staticmethod
    def _parse(content: str) -> QueryIntent:
        payload: Any = json.loads(strip_code_fence(content))
        if not isinstance(payload, dict):
            raise ValueError("intent answer is not an object")

        intent_type = IntentType(payload["type"])
        confidence = float(payload.get("confidence") or 0.7)
        confidence = max(0.0, min(1.0, confidence))
        entities = tuple(str(e) for e in payload.get("entities") or ())

        return QueryIntent(
            type=intent_type,
            confidence=confidence,
            entities=entities,
            suggested_sources=INTENT_SOURCES[intent_type],
        )


# =============================================================================
# Query Expansion
# =============================================================================

_REVERSE_SYNONYMS: dict[str, str] = {
    full: abbreviation
    for abbreviation, fulls in QUERY_SYNONYMS.items()
    for full in fulls
}


def expand_query(query: str) -> list[str]:
    """
    Produce lexical variants of a query via abbreviation <-> full form swaps.

    Only whole tokens are substituted, so "json" never expands "js".

    Example:
        >>> expand_query("js testing")
        ['js testing', 'javascript testing']
    """
    original = query.strip()
    if not original:
        return []

    tokens = original.lower().split()
    variants: list[str] = [original]

    for i, token in enumerate(tokens):
        for full in QUERY_SYNONYMS.get(token, ()):
            variants.append(" ".join([*tokens[:i], full, *tokens[i + 1:]]))

    for full, abbreviation in _REVERSE_SYNONYMS.items():
        full_tokens = full.split()
        width = len(full_tokens)
        for i in range(len(tokens) - width + 1):
            if tokens[i:i + width] == full_tokens:
                variants.append(" ".join([*tokens[:i], abbreviation, *tokens[i + width:]]))

    return list(dict.fromkeys(variants))
