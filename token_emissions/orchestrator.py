"""Main orchestrator for the token emissions engine.

Coordinates the market and research providers, the two cache tiers and
the build pipeline to resolve ProjectEmissionsResult values:

1. In-process cache (fresh entries only)
2. Durable JSON store
3. Full build: market snapshot, allocation research, simulation

Upstream failures surface as absence (None, or a key missing from a batch
result); storage failures are treated as cache misses.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

from .allocation_mapper import AllocationMapper
from .cache import MemoryCache
from .calculator.emissions import build_project_emissions
from .core.categories import get_token_category
from .core.config import EngineConfig, get_config
from .core.exceptions import EmissionsError, StorageError
from .core.models import AllocationResearch, MarketSnapshot, ProjectEmissionsResult
from .providers.base import ResearchProvider
from .providers.market import CoinGeckoMarketProvider
from .providers.research import CryptoRankResearchProvider, ManualResearchProvider
from .storage import EmissionsStore, ResearchStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]

DEFAULT_DATA_DIR = Path("data")


def normalize_token_id(token_id: str) -> str:
    return token_id.strip().lower()


class EmissionsOrchestrator:
    """Resolves, caches and rebuilds emission schedules."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        market_provider: CoinGeckoMarketProvider | None = None,
        research_providers: list[ResearchProvider] | None = None,
        emissions_store: EmissionsStore | None = None,
        research_store: ResearchStore | None = None,
        memory_cache: MemoryCache | None = None,
        now_fn: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the orchestrator with providers and cache tiers.

        Args:
            config: Engine settings (defaults to the global configuration)
            market_provider: Market data source (defaults to CoinGecko)
            research_providers: Research sources tried in order (defaults to
                manual files, then CryptoRank when a key is configured)
            emissions_store: Durable results tier
            research_store: Durable research cache
            memory_cache: In-process results tier
            now_fn: Clock used for calibration
        """
        self.config = config or get_config()
        data_dir = self.config.data_dir or DEFAULT_DATA_DIR

        self.market_provider = market_provider or CoinGeckoMarketProvider(
            api_key=self.config.coingecko_api_key,
            cache_ttl_seconds=self.config.market_ttl_seconds,
        )

        if research_providers is None:
            mapper = AllocationMapper(config_path=self.config.group_rules_path)
            research_providers = [
                ManualResearchProvider(
                    data_directory=self.config.manual_data_dir or data_dir / "manual",
                    mapper=mapper,
                )
            ]
            if self.config.has_cryptorank():
                research_providers.append(
                    CryptoRankResearchProvider(api_key=self.config.cryptorank_api_key, mapper=mapper)
                )
        self.research_providers = research_providers

        self.emissions_store = emissions_store or EmissionsStore(data_dir)
        self.research_store = research_store or ResearchStore(data_dir)
        self.memory_cache = memory_cache or MemoryCache(ttl_seconds=self.config.cache_ttl_seconds)
        self._now = now_fn or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Cache tiers
    # ------------------------------------------------------------------

    def _load_durable(self, token_id: str) -> ProjectEmissionsResult | None:
        try:
            result = self.emissions_store.load_result(token_id)
        except StorageError as e:
            logger.warning(f"Durable cache read failed for {token_id}: {e.message}")
            return None
        if result is not None:
            logger.debug(f"Durable cache hit: {token_id}")
        return result

    def _save_durable(self, result: ProjectEmissionsResult) -> None:
        try:
            self.emissions_store.save_result(result)
        except StorageError as e:
            logger.warning(f"Durable cache write failed for {result.token.token_id}: {e.message}")

    def _cached(self, token_id: str) -> ProjectEmissionsResult | None:
        """Return a cached result from either tier, promoting durable hits."""
        result = self.memory_cache.get(token_id)
        if result is not None:
            return result

        result = self._load_durable(token_id)
        if result is not None:
            self.memory_cache.set(token_id, result)
        return result

    # ------------------------------------------------------------------
    # Upstream
    # ------------------------------------------------------------------

    async def _fetch_market(self, token_id: str) -> MarketSnapshot | None:
        try:
            return await self.market_provider.get_market_data(token_id)
        except EmissionsError as e:
            logger.warning(f"Market data unavailable for {token_id}: {e.message}")
            return None

    async def _fetch_market_batch(self, token_ids: list[str]) -> tuple[dict[str, MarketSnapshot], bool]:
        """Fetch snapshots in one batched call; the flag is False if the call failed."""
        if not token_ids:
            return {}, True
        try:
            return await self.market_provider.get_market_data_batch(token_ids), True
        except EmissionsError as e:
            logger.warning(f"Batched market request failed: {e.message}")
            return {}, False

    async def _get_research(self, token_id: str, snapshot: MarketSnapshot) -> AllocationResearch | None:
        try:
            cached = self.research_store.load_research(token_id)
        except StorageError as e:
            logger.warning(f"Research cache read failed for {token_id}: {e.message}")
            cached = None
        if cached is not None and not cached.is_empty:
            logger.debug(f"Research cache hit: {token_id}")
            return cached

        total_supply = snapshot.fully_diluted_supply or None
        for provider in self.research_providers:
            try:
                research = await provider.research_allocations(
                    token_id, snapshot.name, snapshot.symbol, total_supply
                )
            except EmissionsError as e:
                logger.warning(f"[{provider.SOURCE.value}] Research failed for {token_id}: {e.message}")
                continue

            if research is None or research.is_empty:
                continue

            try:
                self.research_store.save_research(token_id, research)
            except StorageError as e:
                logger.warning(f"Research cache write failed for {token_id}: {e.message}")
            return research

        return None

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    async def _build(self, token_id: str, snapshot: MarketSnapshot) -> ProjectEmissionsResult | None:
        research = await self._get_research(token_id, snapshot)
        if research is None:
            logger.warning(f"No allocation research for {token_id}")
            return None

        result = build_project_emissions(
            snapshot,
            research,
            horizon_months=self.config.horizon_months,
            window_months=self.config.window_months,
            now=self._now(),
            category=get_token_category(token_id),
        )

        self.memory_cache.set(token_id, result)
        self._save_durable(result)
        return result

    async def _overlay(self, result: ProjectEmissionsResult, token_id: str) -> ProjectEmissionsResult:
        snapshot = await self._fetch_market(token_id)
        return result.with_market_overlay(snapshot)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def get_project_emissions(self, token_id: str) -> ProjectEmissionsResult | None:
        """
        Resolve the emissions result of one token, building it if needed.

        Cached results are returned with live market fields overlaid.

        Args:
            token_id: CoinGecko token id

        Returns:
            ProjectEmissionsResult, or None if market data or research is unavailable
        """
        token_id = normalize_token_id(token_id)

        cached = self._cached(token_id)
        if cached is not None:
            return await self._overlay(cached, token_id)

        logger.info(f"Building emissions for {token_id}")
        snapshot = await self._fetch_market(token_id)
        if snapshot is None:
            return None
        return await self._build(token_id, snapshot)

    async def get_batch_project_emissions(
        self,
        token_ids: Iterable[str],
        on_progress: ProgressCallback | None = None,
    ) -> dict[str, ProjectEmissionsResult]:
        """
        Resolve many tokens, building misses concurrently.

        Args:
            token_ids: CoinGecko token ids (duplicates are ignored)
            on_progress: Called as (token_id, completed, total) whenever a key
                resolves, successfully or not

        Returns:
            Mapping of token id to result, containing only the keys that resolved
        """
        keys = list(dict.fromkeys(normalize_token_id(t) for t in token_ids if t and t.strip()))
        total = len(keys)
        completed = 0
        resolved: dict[str, ProjectEmissionsResult] = {}

        def report(token_id: str) -> None:
            nonlocal completed
            completed += 1
            if on_progress is None:
                return
            try:
                on_progress(token_id, completed, total)
            except Exception as e:
                logger.warning(f"Progress callback failed for {token_id}: {e}")

        cached: dict[str, ProjectEmissionsResult] = {}
        misses: list[str] = []
        for key in keys:
            hit = self._cached(key)
            if hit is not None:
                cached[key] = hit
            else:
                misses.append(key)

        logger.info(f"Batch of {total}: {len(cached)} cached, {len(misses)} to build")
        snapshots, batch_ok = await self._fetch_market_batch(keys)

        for key, result in cached.items():
            resolved[key] = result.with_market_overlay(snapshots.get(key))
            report(key)

        async def build_one(key: str) -> ProjectEmissionsResult | None:
            snapshot = snapshots.get(key)
            if snapshot is None and not batch_ok:
                snapshot = await self._fetch_market(key)
            if snapshot is None:
                logger.warning(f"No market data for {key}")
                return None
            return await self._build(key, snapshot)

        async def guarded(key: str) -> tuple[str, ProjectEmissionsResult | None]:
            try:
                result = await asyncio.wait_for(
                    build_one(key), timeout=self.config.build_timeout_seconds
                )
            except asyncio.TimeoutError:
                logger.warning(f"Build for {key} timed out after {self.config.build_timeout_seconds}s")
                result = None
            except Exception as e:
                logger.error(f"Failed to build {key}: {e}")
                result = None
            return key, result

        for next_done in asyncio.as_completed([guarded(key) for key in misses]):
            key, result = await next_done
            if result is not None:
                resolved[key] = result
            report(key)

        return {key: resolved[key] for key in keys if key in resolved}

    async def invalidate_and_rebuild(
        self,
        token_id: str,
        refresh_research: bool = True,
    ) -> ProjectEmissionsResult | None:
        """
        Clear every cached copy of a token's result and build it again.

        Args:
            token_id: CoinGecko token id
            refresh_research: Also drop the cached allocation research

        Returns:
            The rebuilt result, or None if upstream data is unavailable
        """
        token_id = normalize_token_id(token_id)
        logger.info(f"Reseeding {token_id}")

        try:
            self.emissions_store.delete(token_id)
        except StorageError as e:
            logger.warning(f"Durable cache delete failed for {token_id}: {e.message}")
        self.memory_cache.evict(token_id)

        if refresh_research:
            try:
                self.research_store.delete(token_id)
            except StorageError as e:
                logger.warning(f"Research cache delete failed for {token_id}: {e.message}")
            for provider in self.research_providers:
                clear_cache = getattr(provider, "clear_cache", None)
                if clear_cache is not None:
                    clear_cache()

        return await self.get_project_emissions(token_id)
