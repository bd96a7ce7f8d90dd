"""CryptoRank allocation research provider.

Fetches token distribution breakdowns (with vesting where CryptoRank has
it) and normalizes them through the allocation mapper.
"""

import logging
from typing import Any

import httpx

from ...allocation_mapper import AllocationMapper
from ...core.exceptions import DataSourceError
from ...core.models import AllocationResearch
from ...core.types import ConfidenceLevel, DataSource, TokenAmount
from ..base import HttpProvider, ResearchProvider

logger = logging.getLogger(__name__)


class CryptoRankResearchProvider(HttpProvider, ResearchProvider):
    """Fetches allocation research from the CryptoRank API."""

    SOURCE = DataSource.CRYPTORANK
    BASE_URL = "https://api.cryptorank.io/v1"

    def __init__(
        self,
        api_key: str | None = None,
        mapper: AllocationMapper | None = None,
        rate_limit_calls: int = 30,
        rate_limit_period: int = 60,
        cache_ttl_seconds: int = 3600,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize CryptoRank research provider.

        Args:
            api_key: CryptoRank API key
            mapper: Allocation mapper used to normalize entries
            rate_limit_calls: Rate limit per period
            rate_limit_period: Period in seconds
            cache_ttl_seconds: Cache TTL
            transport: Optional httpx transport
        """
        super().__init__(
            transport=transport,
            rate_limit_calls=rate_limit_calls,
            rate_limit_period=rate_limit_period,
            cache_ttl_seconds=cache_ttl_seconds,
        )
        self.api_key = api_key
        self.mapper = mapper or AllocationMapper()

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        params = dict(params or {})
        if self.api_key:
            params["api_key"] = self.api_key
        return await self._make_request(endpoint, params=params)

    def _unexpected(self, endpoint: str, what: str) -> DataSourceError:
        return DataSourceError(self.SOURCE.value, f"Unexpected {what} payload", endpoint=endpoint)

    async def search_project(self, query: str) -> list[dict[str, Any]]:
        """Search for projects matching a query."""
        data = await self._get("/currencies", params={"search": query, "limit": 10})
        if not data:
            return []
        results = data.get("data") if isinstance(data, dict) else None
        if results is None:
            return []
        if not isinstance(results, list):
            raise self._unexpected("/currencies", "search")
        return [project for project in results if isinstance(project, dict)]

    async def resolve_project_key(self, token_id: str, symbol: str) -> str | None:
        """Resolve a CoinGecko id / symbol to a CryptoRank project key."""
        results = await self.search_project(symbol or token_id)
        if not results:
            return None

        for project in results:
            if project.get("key") == token_id:
                return token_id

        symbol_upper = (symbol or "").upper()
        for project in results:
            if str(project.get("symbol", "")).upper() == symbol_upper:
                key = project.get("key")
                return str(key) if key else None

        key = results[0].get("key")
        return str(key) if key else None

    def _distribution(self, project_data: dict[str, Any], endpoint: str) -> list[Any]:
        # CryptoRank stores this in different fields depending on the project
        tokenomics = project_data.get("tokenomics") or {}
        if not isinstance(tokenomics, dict):
            raise self._unexpected(endpoint, "tokenomics")
        distribution = (
            project_data.get("tokenDistribution")
            or tokenomics.get("distribution")
            or project_data.get("allocation")
            or []
        )
        if not isinstance(distribution, list):
            raise self._unexpected(endpoint, "distribution")
        return distribution

    async def research_allocations(
        self,
        token_id: str,
        name: str,
        symbol: str,
        total_supply: TokenAmount | None = None,
    ) -> AllocationResearch | None:
        if not self.is_available():
            return None

        cache_key = f"research:{token_id}"
        cached = self._get_from_cache(cache_key)
        if cached is not None:
            return cached

        project_key = await self.resolve_project_key(token_id, symbol)
        if not project_key:
            logger.info(f"CryptoRank has no project for {token_id}")
            return None

        endpoint = f"/currencies/{project_key}"
        data = await self._get(endpoint)
        project_data = data.get("data") if isinstance(data, dict) else None
        if not project_data:
            return None
        if not isinstance(project_data, dict):
            raise self._unexpected(endpoint, "project")

        entries = []
        for item in self._distribution(project_data, endpoint):
            if not isinstance(item, dict):
                continue
            vesting = item.get("vesting") or item.get("vestingSchedule")
            entries.append({**item, "vesting": vesting} if vesting else item)

        allocations = self.mapper.normalize(entries, total_supply)
        if not allocations:
            logger.info(f"No allocation data found for {project_key}")
            return None

        has_vesting = any(e.get("vesting") for e in entries)
        research = AllocationResearch(
            allocations=allocations,
            confidence=ConfidenceLevel.MEDIUM if has_vesting else ConfidenceLevel.LOW,
            notes=f"CryptoRank token distribution for {name} ({project_key})",
            source=self.SOURCE,
        )
        self._set_cache(cache_key, research)
        return research
