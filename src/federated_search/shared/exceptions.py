"""
Unified Exception Hierarchy for Federated Search.

Exception Hierarchy:
    FederatedSearchError (base)
    ├── APIError
    │   ├── RateLimitError
    │   ├── NetworkError
    │   └── ServiceUnavailableError
    ├── ValidationError
    │   ├── InvalidQueryError
    │   ├── InvalidParameterError
    │   ├── UnknownSourceError
    │   └── SourceDisabledError
    ├── DataError
    │   └── ParseError
    └── ConfigurationError

Caller errors (``ValidationError`` and subclasses) are raised before any
source adapter runs. Adapter failures never surface as exceptions to the
caller: they are absorbed by the fan-out layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = auto()      # Recoverable, can continue
    ERROR = auto()        # Failed but can retry
    CRITICAL = auto()     # Cannot continue
    TRANSIENT = auto()    # Temporary, should retry automatically


class ErrorCategory(Enum):
    """Categories for error classification."""
    API = "api"
    VALIDATION = "validation"
    DATA = "data"
    CONFIGURATION = "config"
    NETWORK = "network"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Structured context attached to every error."""
    tool_name: str | None = None
    operation: str | None = None
    input_value: Any = None
    suggestion: str | None = None
    example: str | None = None
    retry_after: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class FederatedSearchError(Exception):
    """
    Base exception for all federated search errors.

    Provides:
    - Structured error context
    - Severity classification
    - Retry guidance
    - Agent-friendly formatting
    """

    __slots__ = ("context", "severity", "category", "retryable")

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.API,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "error": str(self),
            "category": self.category.value,
            "severity": self.severity.name.lower(),
            "retryable": self.retryable,
        }
        if self.context.tool_name:
            result["tool"] = self.context.tool_name
        if self.context.suggestion:
            result["suggestion"] = self.context.suggestion
        if self.context.example:
            result["example"] = self.context.example
        if self.context.retry_after:
            result["retry_after_seconds"] = self.context.retry_after
        return result

    def to_agent_message(self) -> str:
        """Format for Agent consumption (Markdown)."""
        parts = [f"❌ **Error**: {self}"]

        if self.context.suggestion:
            parts.append(f"💡 **Suggestion**: {self.context.suggestion}")
        if self.context.example:
            parts.append(f"📝 **Example**: `{self.context.example}`")
        if self.retryable:
            if self.context.retry_after:
                parts.append(f"🔄 Retry after {self.context.retry_after:.1f} seconds")
            else:
                parts.append("🔄 This error is retryable")

        return "\n".join(parts)


# =============================================================================
# API Errors
# =============================================================================

class APIError(FederatedSearchError):
    """Base class for upstream API errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.API,
            retryable=retryable,
        )


class RateLimitError(APIError):
    """Raised when an upstream rate limit is exceeded."""

    def __init__(
        self,
        message: str = "API rate limit exceeded",
        *,
        retry_after: float = 1.0,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = context or ErrorContext()
        ctx = replace(
            ctx,
            suggestion=ctx.suggestion or "Wait and retry the request",
            retry_after=retry_after,
        )
        super().__init__(message, context=ctx, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT


class NetworkError(APIError):
    """Raised for network connectivity issues."""

    def __init__(
        self,
        message: str = "Network connection failed",
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message, context=context, retryable=True)
        self.category = ErrorCategory.NETWORK


class ServiceUnavailableError(APIError):
    """Raised when an upstream service is temporarily unavailable."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        *,
        service: str = "upstream",
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(f"{service}: {message}", context=context, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT
        self.service = service


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(FederatedSearchError):
    """Base class for caller errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.VALIDATION,
            retryable=False,
        )


class InvalidQueryError(ValidationError):
    """Raised when the search query is invalid."""

    def __init__(
        self,
        query: str | None,
        reason: str = "Query cannot be empty",
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = context or ErrorContext()
        ctx = replace(
            ctx,
            input_value=query,
            suggestion=ctx.suggestion or "Provide a non-empty search query",
            example=ctx.example or 'federated_search(query="rust async runtime")',
        )
        super().__init__(f"Invalid query: {reason}", context=ctx)


class InvalidParameterError(ValidationError):
    """Raised when a parameter value is invalid."""

    def __init__(
        self,
        param_name: str,
        value: Any,
        expected: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = context or ErrorContext()
        ctx = replace(ctx, input_value=value, suggestion=f"Expected {expected}")
        super().__init__(
            f"Invalid parameter '{param_name}': {value!r} (expected {expected})",
            context=ctx,
        )
        self.param_name = param_name


class UnknownSourceError(ValidationError):
    """Raised when a source identifier is not registered."""

    def __init__(
        self,
        source: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = context or ErrorContext()
        ctx = replace(
            ctx,
            input_value=source,
            suggestion=ctx.suggestion or "Use list_search_sources to see valid source ids",
            example=ctx.example or 'search_single_source(source="github", query="httpx")',
        )
        super().__init__(f"Unknown source: {source!r}", context=ctx)
        self.source = source


class SourceDisabledError(ValidationError):
    """Raised when a registered source is disabled."""

    def __init__(
        self,
        source: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = context or ErrorContext()
        ctx = replace(
            ctx,
            input_value=source,
            suggestion=ctx.suggestion or "Pick an enabled source",
        )
        super().__init__(f"Source is disabled: {source!r}", context=ctx)
        self.source = source


# =============================================================================
# Data Errors
# =============================================================================

class DataError(FederatedSearchError):
    """Base class for data-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.DATA,
            retryable=False,
        )


class ParseError(DataError):
    """Raised when an upstream payload cannot be parsed."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        full_msg = f"Parse error: {message}"
        if source:
            full_msg = f"Parse error ({source}): {message}"
        super().__init__(full_msg, context=context)


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(FederatedSearchError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )
