"""CoinGecko market data provider.

Fetches live price, market cap and supply fields from the /coins/markets
endpoint, which accepts a comma-separated id list so a whole batch of
tokens costs a single request per chunk.
"""

import logging
from datetime import date, datetime
from typing import Any, Iterable

import httpx

from ...core.exceptions import DataSourceError, TokenNotFoundError
from ...core.models import MarketSnapshot
from ...core.types import DataSource
from ..base import HttpProvider

logger = logging.getLogger(__name__)

# /coins/markets page size limit
MAX_IDS_PER_REQUEST = 250


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable CoinGecko timestamp: {value!r}")
        return None


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _positive(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def parse_market_entry(entry: dict[str, Any]) -> MarketSnapshot:
    """Build a MarketSnapshot from one /coins/markets row."""
    image = entry.get("image") or ""
    if isinstance(image, dict):
        image = image.get("large") or image.get("small") or ""

    return MarketSnapshot(
        token_id=entry["id"],
        name=entry.get("name") or entry["id"],
        symbol=(entry.get("symbol") or "").upper(),
        current_price=entry.get("current_price") or 0.0,
        market_cap=entry.get("market_cap") or 0.0,
        circulating_supply=entry.get("circulating_supply") or 0.0,
        total_supply=_positive(entry.get("total_supply")),
        max_supply=_positive(entry.get("max_supply")),
        image=image,
        ath_date=_parse_datetime(entry.get("ath_date")),
        genesis_date=_parse_date(entry.get("genesis_date")),
    )


class CoinGeckoMarketProvider(HttpProvider):
    """Fetches market snapshots from CoinGecko."""

    SOURCE = DataSource.COINGECKO
    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

    def __init__(
        self,
        api_key: str | None = None,
        rate_limit_calls: int = 30,
        rate_limit_period: int = 60,
        cache_ttl_seconds: int = 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize CoinGecko market provider.

        Args:
            api_key: Optional CoinGecko Pro API key
            rate_limit_calls: Rate limit per period
            rate_limit_period: Period in seconds
            cache_ttl_seconds: Snapshot cache TTL
            transport: Optional httpx transport
        """
        super().__init__(
            base_url=self.PRO_BASE_URL if api_key else self.BASE_URL,
            transport=transport,
            rate_limit_calls=rate_limit_calls,
            rate_limit_period=rate_limit_period,
            cache_ttl_seconds=cache_ttl_seconds,
        )
        self.api_key = api_key

    def is_available(self) -> bool:
        return True

    def _headers(self) -> dict[str, str]:
        if self.api_key:
            return {"x-cg-pro-api-key": self.api_key}
        return {}

    async def _fetch_markets(self, token_ids: list[str]) -> dict[str, MarketSnapshot]:
        data = await self._make_request(
            "/coins/markets",
            params={
                "vs_currency": "usd",
                "ids": ",".join(token_ids),
                "per_page": MAX_IDS_PER_REQUEST,
                "page": 1,
                "sparkline": "false",
            },
        )

        if data and not isinstance(data, list):
            raise DataSourceError(self.SOURCE.value, "Unexpected markets payload", endpoint="/coins/markets")

        snapshots: dict[str, MarketSnapshot] = {}
        for entry in data or []:
            if not isinstance(entry, dict) or not entry.get("id"):
                continue
            try:
                snapshot = parse_market_entry(entry)
            except ValueError as e:
                logger.warning(f"Skipping malformed market entry {entry.get('id')}: {e}")
                continue
            snapshots[snapshot.token_id] = snapshot
            self._set_cache(f"market:{snapshot.token_id}", snapshot)
        return snapshots

    async def get_market_data(self, token_id: str) -> MarketSnapshot:
        """
        Get the market snapshot of one token.

        Raises:
            TokenNotFoundError: If CoinGecko does not know the id
            DataSourceError: If the request fails
        """
        cached = self._get_from_cache(f"market:{token_id}")
        if cached is not None:
            return cached

        snapshots = await self._fetch_markets([token_id])
        if token_id not in snapshots:
            raise TokenNotFoundError(token_id, [self.SOURCE.value])
        return snapshots[token_id]

    async def get_market_data_batch(self, token_ids: Iterable[str]) -> dict[str, MarketSnapshot]:
        """
        Get market snapshots for many tokens in as few requests as possible.

        Unknown ids are absent from the returned mapping.

        Raises:
            DataSourceError: If any request fails
        """
        requested = list(dict.fromkeys(token_ids))
        result: dict[str, MarketSnapshot] = {}
        missing: list[str] = []
        for token_id in requested:
            cached = self._get_from_cache(f"market:{token_id}")
            if cached is not None:
                result[token_id] = cached
            else:
                missing.append(token_id)

        for i in range(0, len(missing), MAX_IDS_PER_REQUEST):
            chunk = missing[i:i + MAX_IDS_PER_REQUEST]
            result.update(await self._fetch_markets(chunk))

        logger.debug(f"Market batch: {len(result)} of {len(requested)} resolved")
        return result
