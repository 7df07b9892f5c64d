"""
Domain Entity: QueryIntent

Classification of a raw query into an intent category.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .source import SourceType


class IntentType(str, Enum):
    """What kind of thing the user is looking for."""

    GENERAL = "general"
    PERSON = "person"
    COMPANY = "company"
    DOMAIN = "domain"
    TECH = "tech"
    SECURITY = "security"
    RESEARCH = "research"
    IP = "ip"
    USERNAME = "username"
    DOI = "doi"


@dataclass(frozen=True)
class QueryIntent:
    """
    Immutable intent of one query.

    ``suggested_sources`` is advisory: fan-out never restricts itself to it.
    """

    type: IntentType
    confidence: float
    entities: tuple[str, ...] = ()
    suggested_sources: tuple[SourceType, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "confidence": round(self.confidence, 4),
            "entities": list(self.entities),
            "suggestedSources": [s.value for s in self.suggested_sources],
        }
