"""Pytest configuration and fixtures for token emissions engine tests."""

import asyncio
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from token_emissions.core.config import EngineConfig
from token_emissions.core.exceptions import DataSourceError, TokenNotFoundError
from token_emissions.core.models import (
    AllocationInput,
    AllocationResearch,
    MarketSnapshot,
)
from token_emissions.core.types import (
    ConfidenceLevel,
    DataSource,
    StandardGroup,
    VestingType,
)
from token_emissions.orchestrator import EmissionsOrchestrator
from token_emissions.providers.base import ResearchProvider

TOTAL_SUPPLY = 1_000_000_000.0

# Circulating supply the sample allocations reach exactly at month 12
CIRCULATING_AT_MONTH_12 = 223_750_000.0


class FakeMarketProvider:
    """In-memory market data source."""

    SOURCE = DataSource.COINGECKO

    def __init__(self, snapshots: dict[str, MarketSnapshot]):
        self.snapshots = dict(snapshots)
        self.calls: list[str] = []
        self.batch_calls: list[list[str]] = []
        self.fail = False
        self.fail_batch = False

    async def get_market_data(self, token_id: str) -> MarketSnapshot:
        self.calls.append(token_id)
        if self.fail:
            raise DataSourceError("coingecko", "service unavailable", status_code=503)
        if token_id not in self.snapshots:
            raise TokenNotFoundError(token_id, ["coingecko"])
        return self.snapshots[token_id]

    async def get_market_data_batch(self, token_ids: list[str]) -> dict[str, MarketSnapshot]:
        ids = list(token_ids)
        self.batch_calls.append(ids)
        if self.fail or self.fail_batch:
            raise DataSourceError("coingecko", "service unavailable", status_code=503)
        return {t: self.snapshots[t] for t in ids if t in self.snapshots}


class FakeResearchProvider(ResearchProvider):
    """In-memory research source with optional per-token delays."""

    SOURCE = DataSource.MANUAL

    def __init__(self, research: dict[str, AllocationResearch]):
        self.research = dict(research)
        self.delays: dict[str, float] = {}
        self.calls: list[str] = []

    async def research_allocations(
        self,
        token_id: str,
        name: str,
        symbol: str,
        total_supply: float | None = None,
    ) -> AllocationResearch | None:
        self.calls.append(token_id)
        delay = self.delays.get(token_id)
        if delay:
            await asyncio.sleep(delay)
        return self.research.get(token_id)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_allocations() -> list[AllocationInput]:
    """A complete 100% allocation set covering every vesting type."""
    return [
        AllocationInput(
            category="Team",
            standard_group=StandardGroup.TEAM,
            percentage=20.0,
            vesting_type=VestingType.LINEAR,
            cliff_months=12,
            vesting_months=36,
        ),
        AllocationInput(
            category="Investors",
            standard_group=StandardGroup.INVESTORS,
            percentage=15.0,
            vesting_type=VestingType.LINEAR,
            cliff_months=6,
            vesting_months=24,
            tge_percent=10.0,
        ),
        AllocationInput(
            category="Public Sale",
            standard_group=StandardGroup.PUBLIC,
            percentage=10.0,
            vesting_type=VestingType.IMMEDIATE,
        ),
        AllocationInput(
            category="Treasury",
            standard_group=StandardGroup.TREASURY,
            percentage=25.0,
            vesting_type=VestingType.CLIFF,
            cliff_months=24,
        ),
        AllocationInput(
            category="Community",
            standard_group=StandardGroup.COMMUNITY,
            percentage=30.0,
            vesting_type=VestingType.LINEAR,
            vesting_months=48,
        ),
    ]


@pytest.fixture
def sample_research(sample_allocations: list[AllocationInput]) -> AllocationResearch:
    return AllocationResearch(
        allocations=sample_allocations,
        confidence=ConfidenceLevel.HIGH,
        notes="Whitepaper allocation table",
        source=DataSource.MANUAL,
    )


def make_snapshot(token_id: str, symbol: str, **overrides: Any) -> MarketSnapshot:
    fields: dict[str, Any] = {
        "token_id": token_id,
        "name": token_id.title(),
        "symbol": symbol,
        "current_price": 2.0,
        "market_cap": 2.0 * CIRCULATING_AT_MONTH_12,
        "circulating_supply": CIRCULATING_AT_MONTH_12,
        "total_supply": TOTAL_SUPPLY,
        "max_supply": TOTAL_SUPPLY,
        "image": f"https://example.com/{token_id}.png",
        "ath_date": datetime(2024, 3, 1, tzinfo=timezone.utc),
        "genesis_date": date(2024, 6, 1),
    }
    fields.update(overrides)
    return MarketSnapshot(**fields)


@pytest.fixture
def sample_snapshot() -> MarketSnapshot:
    return make_snapshot("alpha", "ALP")


@pytest.fixture
def market_provider() -> FakeMarketProvider:
    return FakeMarketProvider(
        {
            "alpha": make_snapshot("alpha", "ALP"),
            "beta": make_snapshot("beta", "BET"),
            "gamma": make_snapshot("gamma", "GAM", current_price=0.5),
        }
    )


@pytest.fixture
def research_provider(sample_research: AllocationResearch) -> FakeResearchProvider:
    return FakeResearchProvider(
        {
            "alpha": sample_research,
            # beta's research source comes back empty
            "beta": AllocationResearch(allocations=[], source=DataSource.MANUAL),
            "gamma": sample_research,
        }
    )


@pytest.fixture
def engine_config(tmp_path: Path) -> EngineConfig:
    return EngineConfig(
        data_dir=tmp_path / "data",
        horizon_months=120,
        window_months=60,
        cache_ttl_seconds=1800,
        build_timeout_seconds=5.0,
    )


@pytest.fixture
def make_orchestrator(engine_config, market_provider, research_provider, fixed_now):
    """Factory building orchestrators that share providers and the data directory."""

    def _make(**overrides: Any) -> EmissionsOrchestrator:
        kwargs: dict[str, Any] = {
            "config": engine_config,
            "market_provider": market_provider,
            "research_providers": [research_provider],
            "now_fn": lambda: fixed_now,
        }
        kwargs.update(overrides)
        return EmissionsOrchestrator(**kwargs)

    return _make
