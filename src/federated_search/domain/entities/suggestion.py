"""
Domain Entity: Suggestion
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .intent import IntentType


class SuggestionType(str, Enum):
    COMPLETION = "completion"
    RELATED = "related"
    REFINEMENT = "refinement"
    OPERATOR = "operator"
    TRENDING = "trending"


@dataclass(frozen=True)
class Suggestion:
    """A single autocomplete/refinement suggestion."""

    text: str
    type: SuggestionType
    confidence: float
    intent: IntentType | None = None
    description: str | None = None

    def to_dict(self) -> dict:
        data: dict = {
            "text": self.text,
            "type": self.type.value,
            "confidence": self.confidence,
        }
        if self.intent is not None:
            data["intent"] = self.intent.value
        if self.description:
            data["description"] = self.description
        return data
