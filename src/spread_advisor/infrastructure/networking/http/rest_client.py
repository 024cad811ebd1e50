"""
Base REST client for public exchange market-data endpoints.

aiohttp session with a pooled connector, msgspec JSON parsing, status-code
to exception mapping and fixed-delay retries on 429/5xx/connection errors.
Venue clients subclass it and implement ``exchange_name`` and, where the
venue has its own error envelope, ``_handle_error``.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import aiohttp
import msgspec

from spread_advisor.config.structs import RestConfig
from spread_advisor.infrastructure.decorators.retry import retry_decorator
from spread_advisor.infrastructure.exceptions.exchange import (
    ExchangeRestError, ExchangeConnectionRestError, ExchangeServerError, ExchangeTimeoutError,
    TooManyRequestsError, InvalidParameterError, InvalidSymbolError
)
from spread_advisor.infrastructure.logging import HFTLoggerInterface, get_exchange_logger
from .structs import HTTPMethod


class BaseRestClient(ABC):
    """
    Shared request path for unauthenticated REST clients.

    ``session`` may be injected (tests, shared pools); an injected session is
    not closed by ``close()``.
    """

    def __init__(self, config: RestConfig, logger: Optional[HFTLoggerInterface] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.logger = logger or get_exchange_logger(self.exchange_name.lower(), 'rest')
        self._session = session
        self._owns_session = session is None
        self._request_count = 0

        self._request_with_retry = retry_decorator(
            max_attempts=config.max_retries + 1,
            backoff="fixed",
            base_delay=config.retry_delay,
            logger=self.logger,
        )(self._request)

    @property
    @abstractmethod
    def exchange_name(self) -> str:
        pass

    def _handle_error(self, status: int, response_text: str) -> Exception:
        """Map an HTTP error response to an exception."""
        message = response_text[:200]
        if status == 429:
            return TooManyRequestsError(status, f"Rate limit exceeded: {message}")
        if status >= 500:
            return ExchangeServerError(status, message)
        if status == 404:
            return InvalidSymbolError(status, message)
        if status == 400:
            return InvalidParameterError(status, message)
        return ExchangeRestError(status, message)

    def _parse_response(self, response_text: str) -> Any:
        if not response_text:
            return None
        try:
            return msgspec.json.decode(response_text)
        except msgspec.DecodeError:
            raise ExchangeRestError(400, f"Invalid JSON response: {response_text[:100]}...")

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=20,
                ttl_dns_cache=300,
                keepalive_timeout=30,
            )
            timeout = aiohttp.ClientTimeout(total=self.config.timeout, connect=min(5.0, self.config.timeout))
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=timeout,
                headers={
                    'User-Agent': 'spread-advisor/1.0',
                    'Accept': 'application/json',
                },
            )
            self._owns_session = True
        return self._session

    async def _request(self, method: HTTPMethod, endpoint: str,
                       params: Optional[Dict[str, Any]] = None) -> Any:
        session = await self._ensure_session()
        url = f"{self.config.base_url.rstrip('/')}{endpoint}"
        try:
            async with session.request(method.value, url, params=params) as response:
                response_text = await response.text()
                if response.status >= 400:
                    raise self._handle_error(response.status, response_text)
                return self._parse_response(response_text)
        except asyncio.TimeoutError as e:
            raise ExchangeTimeoutError(408, f"Request timed out: {method.value} {endpoint}") from e
        except aiohttp.ClientConnectionError as e:
            raise ExchangeConnectionRestError(503, f"Connection failed: {e}") from e

    async def request(self, method: HTTPMethod, endpoint: str,
                      params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute a request with retries and latency tracking."""
        start_time = time.perf_counter()
        try:
            result = await self._request_with_retry(method, endpoint, params)
        except ExchangeRestError as e:
            self.logger.counter("rest_request_error", endpoint=endpoint)
            self.logger.warning(f"{self.exchange_name} request failed",
                                method=method.value,
                                endpoint=endpoint,
                                error_type=type(e).__name__,
                                error_message=str(e))
            raise

        self._request_count += 1
        self.logger.metric("rest_request_latency_ms", (time.perf_counter() - start_time) * 1000,
                           endpoint=endpoint)
        return result

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
