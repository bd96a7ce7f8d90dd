"""Base classes for data providers."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from ..core.exceptions import DataSourceError, RateLimitError
from ..core.models import AllocationResearch
from ..core.types import DataSource, TokenAmount

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Abstract base class for all data providers."""

    # Subclasses must define their data source
    SOURCE: DataSource = DataSource.UNKNOWN

    def __init__(
        self,
        rate_limit_calls: int = 60,
        rate_limit_period: int = 60,
    ):
        """
        Initialize provider with rate limiting.

        Args:
            rate_limit_calls: Maximum calls per period
            rate_limit_period: Period in seconds
        """
        self.rate_limit_calls = rate_limit_calls
        self.rate_limit_period = rate_limit_period
        self._call_timestamps: list[float] = []

    async def _wait_for_rate_limit(self) -> None:
        """Enforce rate limiting by sleeping if necessary."""
        now = time.monotonic()
        self._call_timestamps = [
            ts for ts in self._call_timestamps if now - ts < self.rate_limit_period
        ]

        if len(self._call_timestamps) >= self.rate_limit_calls:
            sleep_time = self._call_timestamps[0] + self.rate_limit_period - now
            if sleep_time > 0:
                logger.debug(f"[{self.SOURCE.value}] Rate limit: sleeping {sleep_time:.1f}s")
                await asyncio.sleep(sleep_time)

        self._call_timestamps.append(time.monotonic())

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available and configured."""
        pass


class CachedProvider(BaseProvider):
    """Base class for providers with caching support."""

    def __init__(
        self,
        cache_ttl_seconds: int = 3600,
        **kwargs: Any,
    ):
        """
        Initialize cached provider.

        Args:
            cache_ttl_seconds: Cache time-to-live in seconds
            **kwargs: Passed to BaseProvider
        """
        super().__init__(**kwargs)
        self.cache_ttl_seconds = cache_ttl_seconds
        self._cache: dict[str, tuple[Any, float]] = {}

    def _get_from_cache(self, key: str) -> Any | None:
        """Get value from cache if not expired."""
        if key in self._cache:
            value, timestamp = self._cache[key]
            if time.time() - timestamp < self.cache_ttl_seconds:
                logger.debug(f"[{self.SOURCE.value}] Cache hit: {key}")
                return value
            else:
                del self._cache[key]
        return None

    def _set_cache(self, key: str, value: Any) -> None:
        """Store value in cache."""
        self._cache[key] = (value, time.time())

    def clear_cache(self) -> None:
        """Clear the cache."""
        self._cache.clear()


class HttpProvider(CachedProvider):
    """Cached provider that talks JSON over HTTP."""

    BASE_URL = ""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ):
        """
        Initialize HTTP provider.

        Args:
            base_url: API root (defaults to BASE_URL)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to stub the network in tests)
            **kwargs: Passed to CachedProvider
        """
        super().__init__(**kwargs)
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        """Extra request headers (API keys)."""
        return {}

    async def _make_request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        method: str = "GET",
        json_body: Any = None,
    ) -> Any:
        """
        Make a rate-limited request and decode the JSON response.

        Returns {} on 404.

        Raises:
            RateLimitError: On HTTP 429
            DataSourceError: On any other HTTP or transport failure
        """
        await self._wait_for_rate_limit()
        source = self.SOURCE.value
        url = f"{self.base_url}{endpoint}"
        start_time = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method, url, params=params, headers=self._headers(), json=json_body
                )

            duration_ms = int((time.monotonic() - start_time) * 1000)
            logger.debug(f"[{source}] {method} {endpoint} -> {response.status_code} ({duration_ms}ms)")

            if response.status_code == 429:
                retry_after = response.headers.get("retry-after")
                raise RateLimitError(
                    source=source,
                    retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else 60,
                    endpoint=endpoint,
                )

            if response.status_code == 404:
                return {}

            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            raise DataSourceError(
                source=source,
                message=f"HTTP {e.response.status_code}",
                endpoint=endpoint,
                status_code=e.response.status_code,
            )
        except httpx.RequestError as e:
            raise DataSourceError(
                source=source,
                message=str(e) or type(e).__name__,
                endpoint=endpoint,
            )
        except ValueError as e:
            raise DataSourceError(
                source=source,
                message=f"Invalid JSON: {e}",
                endpoint=endpoint,
            )


class ResearchProvider(ABC):
    """Source of allocation assumptions for a token."""

    SOURCE: DataSource = DataSource.UNKNOWN

    @abstractmethod
    async def research_allocations(
        self,
        token_id: str,
        name: str,
        symbol: str,
        total_supply: TokenAmount | None = None,
    ) -> AllocationResearch | None:
        """
        Return allocation research for a token, or None if this source has none.

        Raises:
            DataSourceError: If the source fails
        """
        pass

    def is_available(self) -> bool:
        return True
