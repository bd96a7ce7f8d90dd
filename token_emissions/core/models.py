"""Pydantic data models for the token emissions engine.

All data structures are immutable (frozen) after creation. A schedule is
rebuilt from freshly supplied inputs, never patched in place; the only
sanctioned change to a built result is the live market overlay, which
produces a new copy.
"""

from datetime import date, datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .types import (
    CalibrationMethod,
    ConfidenceLevel,
    DataSource,
    MonthLabel,
    Percentage,
    StandardGroup,
    TokenAmount,
    UnlockKind,
    USDAmount,
    VestingType,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AllocationInput(BaseModel):
    """One funding/participant bucket of a token and its vesting rule."""

    category: str
    standard_group: StandardGroup = StandardGroup.COMMUNITY
    percentage: Percentage = 0.0
    amount: TokenAmount | None = None  # Derived from percentage when omitted
    vesting_type: VestingType = VestingType.LINEAR
    cliff_months: int = 0
    vesting_months: int = 0
    tge_percent: Percentage = 0.0
    unlock_overrides: dict[int, Percentage] | None = None  # month -> cumulative %
    notes: str | None = None

    model_config = {"frozen": True}

    @field_validator("percentage", "tge_percent")
    @classmethod
    def validate_percentage(cls, v: Percentage) -> Percentage:
        if v < 0 or v > 100:
            raise ValueError(f"Percentage must be 0-100, got {v}")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: TokenAmount | None) -> TokenAmount | None:
        if v is not None and v < 0:
            raise ValueError(f"Token amount must be non-negative, got {v}")
        return v

    @field_validator("vesting_type", mode="before")
    @classmethod
    def parse_vesting_type(cls, v: Any) -> VestingType:
        return VestingType.parse(v)

    @field_validator("standard_group", mode="before")
    @classmethod
    def parse_standard_group(cls, v: Any) -> StandardGroup:
        if isinstance(v, StandardGroup):
            return v
        try:
            return StandardGroup(str(v).strip().lower())
        except ValueError:
            return StandardGroup.COMMUNITY

    @field_validator("cliff_months", "vesting_months", mode="before")
    @classmethod
    def clamp_months(cls, v: Any) -> int:
        if v is None or v == "":
            return 0
        months = int(float(v))
        return max(months, 0)

    def total_tokens(self, total_supply: TokenAmount = 0.0) -> TokenAmount:
        """Absolute token amount, derived from percentage if not given."""
        if self.amount is not None:
            return self.amount
        if total_supply and total_supply > 0:
            return total_supply * self.percentage / 100
        return 0.0

    @property
    def has_overrides(self) -> bool:
        return bool(self.unlock_overrides)


class VestingTerms(BaseModel):
    """Vesting fields extracted from a research payload or free text."""

    vesting_type: VestingType | None = None
    tge_percent: Percentage | None = None
    cliff_months: int | None = None
    vesting_months: int | None = None
    raw_description: str | None = None

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return all(
            v is None
            for v in (self.vesting_type, self.tge_percent, self.cliff_months, self.vesting_months)
        )


class AllocationResearch(BaseModel):
    """Allocation assumptions returned by a research source."""

    allocations: list[AllocationInput] = Field(default_factory=list)
    confidence: ConfidenceLevel = ConfidenceLevel.UNKNOWN
    notes: str = ""
    source: DataSource = DataSource.UNKNOWN
    researched_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return not self.allocations


class MarketSnapshot(BaseModel):
    """Live market fields for a token."""

    token_id: str
    name: str
    symbol: str
    current_price: float = 0.0
    market_cap: USDAmount = 0.0
    circulating_supply: TokenAmount = 0.0
    total_supply: TokenAmount | None = None
    max_supply: TokenAmount | None = None
    image: str = ""
    ath_date: datetime | None = None
    genesis_date: date | None = None
    fetched_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    @property
    def fully_diluted_supply(self) -> TokenAmount:
        """Return the supply used to size allocations (max, else total)."""
        return self.max_supply or self.total_supply or 0.0


class AllocationScheduleResult(BaseModel):
    """Simulated cumulative unlock curve of one allocation."""

    category: str
    standard_group: StandardGroup = StandardGroup.COMMUNITY
    percentage: Percentage = 0.0
    total_tokens: TokenAmount = 0.0
    vesting_type: VestingType = VestingType.LINEAR
    cliff_months: int = 0
    vesting_months: int = 0
    tge_percent: Percentage = 0.0
    cumulative_supply: list[TokenAmount] = Field(default_factory=list)
    opening_supply: TokenAmount = 0.0  # Cumulative value just before the first element

    model_config = {"frozen": True}

    @property
    def remaining_tokens(self) -> TokenAmount:
        """Tokens left to unlock after the TGE release."""
        return self.total_tokens - self.total_tokens * self.tge_percent / 100

    @property
    def unlock_kind(self) -> UnlockKind | None:
        """Classify the post-TGE remainder as cliff- or linear-sourced."""
        if self.vesting_type == VestingType.IMMEDIATE:
            return None
        if self.vesting_type == VestingType.CLIFF:
            return UnlockKind.CLIFF
        if self.vesting_months == 0 and self.cliff_months > 0:
            return UnlockKind.CLIFF
        return UnlockKind.LINEAR


class CliffEvent(BaseModel):
    """A discrete unlock step of one allocation."""

    month_index: int
    label: str
    category: str
    amount: TokenAmount
    month: MonthLabel | None = None  # Set once the schedule is calendar-anchored

    model_config = {"frozen": True}


class ProjectSchedule(BaseModel):
    """Unsliced aggregate emission schedule of one project."""

    horizon_months: int
    allocations: list[AllocationScheduleResult] = Field(default_factory=list)
    total_cumulative_supply: list[TokenAmount] = Field(default_factory=list)
    monthly_inflation_rate: list[float] = Field(default_factory=list)
    cliff_events: list[CliffEvent] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class CalibrationResult(BaseModel):
    """Mapping between schedule month indices and calendar months."""

    anchor_month: date  # Calendar month of schedule index 0 (first of month)
    current_index: int
    method: CalibrationMethod

    model_config = {"frozen": True}


class EmissionToken(BaseModel):
    """Token identity and market metadata of an emissions result."""

    token_id: str
    name: str
    symbol: str
    total_supply: TokenAmount = 0.0
    circulating_supply: TokenAmount = 0.0
    max_supply: TokenAmount | None = None
    current_price: float = 0.0
    market_cap: USDAmount = 0.0
    image: str = ""
    category: str | None = None

    model_config = {"frozen": True}


class ProjectEmissionsResult(BaseModel):
    """Calibrated, windowed emission schedule of one token."""

    token: EmissionToken
    months: list[MonthLabel] = Field(default_factory=list)
    allocations: list[AllocationScheduleResult] = Field(default_factory=list)
    total_supply_time_series: list[TokenAmount] = Field(default_factory=list)
    inflation_rate: list[float] = Field(default_factory=list)
    cliff_events: list[CliffEvent] = Field(default_factory=list)
    confidence: ConfidenceLevel = ConfidenceLevel.UNKNOWN
    notes: str = ""

    # Calibration provenance
    calibration: CalibrationResult
    window_start: int = 0
    window_end: int = 0
    horizon_months: int = 0
    built_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    def with_market_overlay(self, snapshot: MarketSnapshot | None) -> "ProjectEmissionsResult":
        """Return a copy with live market fields applied (vesting arrays untouched)."""
        if snapshot is None:
            return self

        updates: dict[str, Any] = {}
        if snapshot.current_price:
            updates["current_price"] = snapshot.current_price
        if snapshot.market_cap:
            updates["market_cap"] = snapshot.market_cap
        if snapshot.circulating_supply:
            updates["circulating_supply"] = snapshot.circulating_supply
        if snapshot.image:
            updates["image"] = snapshot.image

        if not updates:
            return self
        return self.model_copy(update={"token": self.token.model_copy(update=updates)})


class CacheEntry(BaseModel):
    """A cached emissions result and its write time (epoch seconds)."""

    result: ProjectEmissionsResult
    written_at: float

    model_config = {"frozen": True}

    def is_fresh(self, ttl_seconds: float, now: float) -> bool:
        return now - self.written_at < ttl_seconds


class ComparisonRow(BaseModel):
    """Per-project supply and unlock comparison metrics."""

    project: str
    symbol: str
    token_id: str
    image: str = ""
    circulating_pct: Percentage
    locked_pct: Percentage
    cliff_unlock_pct: Percentage
    linear_unlock_pct: Percentage
    total_unlock_pct: Percentage
    cliff_unlock_value: USDAmount
    linear_unlock_value: USDAmount
    unlock_value: USDAmount
    market_cap: USDAmount = 0.0
    current_price: float = 0.0
    total_supply: TokenAmount = 0.0
    circulating_supply: TokenAmount = 0.0

    model_config = {"frozen": True}


class MarketEmissionsRow(BaseModel):
    """Portfolio-wide USD value unlocked in one calendar month."""

    month: MonthLabel
    total_value_unlock: USDAmount = 0.0
    cliff_value_unlock: USDAmount = 0.0
    linear_value_unlock: USDAmount = 0.0

    model_config = {"frozen": True}


class InflationPeriodMetrics(BaseModel):
    """Annualized supply inflation over the first three years and now."""

    token_id: str
    symbol: str
    name: str
    image: str = ""
    year1_inflation: float = 0.0
    year2_inflation: float = 0.0
    year3_inflation: float = 0.0
    current_inflation: float = 0.0

    model_config = {"frozen": True}
