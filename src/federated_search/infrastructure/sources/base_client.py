"""
Base API Client - Common HTTP request pattern with retry, rate limiting, and circuit breaker.

Every source adapter and the LLM client sit on top of this class:
- Automatic retry on 429 (rate limit) with Retry-After support
- Rate limiting (minimum interval plus an optional shared token bucket)
- Circuit breaker so a dead upstream stops costing a timeout per query
- Consistent error handling: failures are logged and turned into None
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx
from typing_extensions import Self

from federated_search.shared.async_utils import CircuitBreaker, RateLimiter
from federated_search.shared.exceptions import (
    NetworkError,
    ParseError,
    RateLimitError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """
    Base class for external API clients.

    Provides common infrastructure:
    - httpx.AsyncClient management
    - Rate limiting with configurable interval
    - Retry on 429 with exponential backoff
    - Circuit breaker for fault tolerance
    - Consistent error handling

    Subclasses should set `_service_name` and can override:
    - `_handle_expected_status()`: Handle service-specific status codes (e.g., 404)
    - `_parse_response()`: Custom response processing

    Example:
        class MyClient(BaseAPIClient):
            _service_name = "MyAPI"

            def __init__(self):
                super().__init__(base_url="https://api.example.com", min_interval=0.1)

            async def get_item(self, item_id: str) -> dict | None:
                return await self._make_request(f"/items/{item_id}")
    """

    _service_name: str = "API"
    # Sources run under short fan-out timeouts, so one retry is all that fits
    _MAX_RETRIES: int = 1

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        min_interval: float = 0.0,
        headers: dict[str, str] | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize base client.

        Args:
            base_url: Base URL for the API (optional, can pass full URLs)
            timeout: Request timeout in seconds
            min_interval: Minimum seconds between requests
            headers: Default headers for all requests
            circuit_breaker: Optional circuit breaker. If None, a default one
                is created (threshold=10, recovery=60s).
            rate_limiter: Optional token bucket shared across instances
            transport: Optional httpx transport (used by tests)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._min_interval = min_interval
        self._last_request_time = 0.0
        self._rate_limiter = rate_limiter
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers=headers or {},
            follow_redirects=True,
            transport=transport,
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
        )
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=10, recovery_timeout=60.0, name=self._service_name
        )

    async def _rate_limit(self) -> None:
        """Enforce minimum interval between requests and the token bucket."""
        if self._rate_limiter is not None:
            await self._rate_limiter.acquire()
        elapsed = time.time() - self._last_request_time
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)
        self._last_request_time = time.time()

    def _build_url(self, url: str) -> str:
        """Build full URL from path or full URL."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self._base_url}{url}"

    async def _make_request(
        self,
        url: str,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        expect_json: bool = True,
    ) -> Any:
        """
        Make HTTP request with retry on 429 and circuit breaker protection.

        Args:
            url: Full URL or path (appended to base_url)
            method: HTTP method (GET or POST)
            params: Query string parameters
            data: JSON body for POST requests
            headers: Additional headers for this request
            expect_json: If True, parse response as JSON; otherwise return text

        Returns:
            Parsed JSON, response text, or None on error
        """
        full_url = self._build_url(url)
        try:
            return await self._request_with_retry(
                full_url, method=method, params=params, data=data, headers=headers, expect_json=expect_json
            )
        except ServiceUnavailableError:
            logger.warning(f"{self._service_name}: Circuit breaker open, skipping request")
        except RateLimitError:
            logger.warning(f"{self._service_name}: Rate limit exceeded after retries")
        except NetworkError as e:
            logger.warning(str(e))
        except ParseError as e:
            logger.warning(str(e))
        return None

    async def _request_with_retry(
        self,
        full_url: str,
        *,
        method: str,
        params: dict[str, Any] | None,
        data: dict[str, Any] | None,
        headers: dict[str, str] | None,
        expect_json: bool,
    ) -> Any:
        """
        Run one request, retrying once on 429 and on transport errors.

        HTTP error statuses are logged and yield None.

        Raises:
            ServiceUnavailableError: The circuit breaker rejected the call
            RateLimitError: Still rate limited after the retry
            NetworkError: Transport failed after the retry
            ParseError: The body could not be decoded
        """
        retry_after = 0.0
        for attempt in range(self._MAX_RETRIES + 1):
            await self._rate_limit()
            try:
                async with self._circuit_breaker:
                    response = await self._execute_request(
                        full_url, method=method, params=params, data=data, headers=headers
                    )

                    expected = self._handle_expected_status(response, full_url)
                    if expected is not _CONTINUE:
                        return expected

                    if response.status_code != 429:
                        response.raise_for_status()
                        return self._parse_response(response, expect_json)
                    retry_after = self._get_retry_after(response, attempt)

            except httpx.HTTPStatusError as e:
                logger.warning(
                    f"{self._service_name} HTTP error {e.response.status_code}: {e.response.reason_phrase}"
                )
                return None
            except httpx.RequestError as e:
                if attempt < self._MAX_RETRIES:
                    logger.warning(f"{self._service_name} request error (attempt {attempt + 1}): {e}")
                    await asyncio.sleep(0.5 * (attempt + 1))
                    continue
                raise NetworkError(f"{self._service_name} request failed: {e}") from e
            except ValueError as e:
                # Undecodable JSON body
                raise ParseError(str(e), source=self._service_name) from e

            if attempt < self._MAX_RETRIES:
                logger.warning(
                    f"{self._service_name}: Rate limited (429), "
                    f"retry {attempt + 1}/{self._MAX_RETRIES} in {retry_after:.1f}s"
                )
                await asyncio.sleep(retry_after)

        raise RateLimitError(f"{self._service_name} rate limit exceeded", retry_after=retry_after)

    async def _execute_request(
        self,
        url: str,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Execute the actual HTTP request. Override for custom behavior."""
        if method == "POST":
            return await self._client.post(url, params=params, json=data, headers=headers or {})
        return await self._client.get(url, params=params, headers=headers or {})

    def _handle_expected_status(self, response: httpx.Response, url: str) -> Any:
        """
        Handle expected non-200 status codes that shouldn't trigger retry.

        Return a value to short-circuit (e.g., None for 404).
        Return the sentinel _CONTINUE to continue normal processing.

        Default: 404 means "nothing there" and yields None quietly.
        """
        if response.status_code == 404:
            logger.debug(f"{self._service_name}: 404 for {url}")
            return None
        return _CONTINUE

    def _parse_response(self, response: httpx.Response, expect_json: bool) -> Any:
        """Parse response body. Override for custom extraction logic."""
        if expect_json:
            return response.json()
        return response.text

    @staticmethod
    def _get_retry_after(response: httpx.Response, attempt: int) -> float:
        """Extract Retry-After from response headers, with exponential backoff fallback."""
        try:
            return float(response.headers.get("Retry-After", 2 ** attempt))
        except (ValueError, TypeError):
            return float(2 ** attempt)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


# Sentinel object to indicate "continue normal processing" from _handle_expected_status
_CONTINUE = object()
