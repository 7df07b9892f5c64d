"""
Shared building blocks for Federated Search.

Provides:
- Unified exception hierarchy
- Async utilities (rate limiting, circuit breaker, timeouts)
- Environment settings
"""

from .async_utils import (
    CircuitBreaker,
    RateLimiter,
    get_rate_limiter,
    timeout_with_fallback,
)
from .exceptions import (
    APIError,
    ConfigurationError,
    DataError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    FederatedSearchError,
    InvalidParameterError,
    InvalidQueryError,
    NetworkError,
    ParseError,
    RateLimitError,
    ServiceUnavailableError,
    SourceDisabledError,
    UnknownSourceError,
    ValidationError,
)
from .settings import Settings

__all__ = [
    # Exceptions
    "FederatedSearchError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "APIError",
    "RateLimitError",
    "NetworkError",
    "ServiceUnavailableError",
    "ValidationError",
    "InvalidQueryError",
    "InvalidParameterError",
    "UnknownSourceError",
    "SourceDisabledError",
    "DataError",
    "ParseError",
    "ConfigurationError",
    # Async utilities
    "RateLimiter",
    "get_rate_limiter",
    "CircuitBreaker",
    "timeout_with_fallback",
    # Settings
    "Settings",
]
