"""Build a calibrated, windowed emissions result for one token.

Steps run strictly in order: allocation curves, aggregate, calibration,
window slice. Nothing here performs I/O.
"""

import logging
from datetime import datetime, timezone

from ..core.models import (
    AllocationResearch,
    EmissionToken,
    MarketSnapshot,
    ProjectEmissionsResult,
)
from .calibration import calibrate, describe
from .schedule import aggregate
from .window import compute_window, slice_schedule

logger = logging.getLogger(__name__)


def build_project_emissions(
    snapshot: MarketSnapshot,
    research: AllocationResearch,
    *,
    horizon_months: int,
    window_months: int,
    now: datetime | None = None,
    category: str | None = None,
) -> ProjectEmissionsResult:
    """
    Simulate, calibrate and slice the emission schedule of a token.

    Args:
        snapshot: Market data used for sizing and calibration
        research: Allocation assumptions
        horizon_months: Simulation horizon
        window_months: Width of the returned display window
        now: Present time (defaults to the current UTC time)
        category: Sector category tag stored with the result

    Returns:
        ProjectEmissionsResult sliced to the display window
    """
    now = now or datetime.now(timezone.utc)
    total_supply = snapshot.fully_diluted_supply

    schedule = aggregate(research.allocations, horizon_months, total_supply)

    calibration = calibrate(
        schedule.total_cumulative_supply,
        now=now,
        circulating_supply=snapshot.circulating_supply,
        generation_date=snapshot.genesis_date,
        ath_date=snapshot.ath_date,
        horizon_months=schedule.horizon_months,
    )
    window = compute_window(calibration.current_index, window_months, schedule.horizon_months)
    sliced = slice_schedule(schedule, calibration, window)

    logger.info(
        f"{snapshot.symbol.upper()}: {len(schedule.allocations)} allocations, "
        f"calibrated by {calibration.method.value} to month {calibration.current_index}, "
        f"window [{sliced.start}, {sliced.end})"
    )

    notes = [research.notes] if research.notes else []
    notes.extend(schedule.notes)
    notes.append(describe(calibration, schedule.horizon_months))

    token = EmissionToken(
        token_id=snapshot.token_id,
        name=snapshot.name,
        symbol=snapshot.symbol.upper(),
        total_supply=total_supply,
        circulating_supply=snapshot.circulating_supply,
        max_supply=snapshot.max_supply,
        current_price=snapshot.current_price,
        market_cap=snapshot.market_cap,
        image=snapshot.image,
        category=category,
    )

    return ProjectEmissionsResult(
        token=token,
        months=sliced.months,
        allocations=sliced.allocations,
        total_supply_time_series=sliced.total_supply,
        inflation_rate=sliced.inflation_rate,
        cliff_events=sliced.cliff_events,
        confidence=research.confidence,
        notes="\n".join(notes),
        calibration=calibration,
        window_start=sliced.start,
        window_end=sliced.end,
        horizon_months=schedule.horizon_months,
        built_at=now,
    )
