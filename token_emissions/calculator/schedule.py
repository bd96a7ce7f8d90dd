"""Schedule aggregator.

Combines the allocations of one project into an aggregate cumulative
supply curve, a monthly inflation series and the discrete cliff unlocks.

Parameters that do not fit the horizon (cliff + vesting past the last
month) are not rejected: the allocation is forced to 100% at the last
horizon month instead.
"""

import logging
from typing import Sequence

from ..core.models import (
    AllocationInput,
    AllocationScheduleResult,
    CliffEvent,
    ProjectSchedule,
)
from ..core.types import TokenAmount
from .vesting import allocation_curve, fallback_note

logger = logging.getLogger(__name__)

# Smallest step (in tokens) reported as a cliff unlock
CLIFF_EVENT_TOLERANCE = 1e-6


def build_allocation_schedule(
    allocation: AllocationInput,
    horizon_months: int,
    total_supply: TokenAmount = 0.0,
) -> AllocationScheduleResult:
    """Simulate one allocation over the horizon."""
    total_tokens = allocation.total_tokens(total_supply)
    curve = allocation_curve(allocation, horizon_months, total_supply)
    if curve and total_tokens > 0:
        curve[-1] = total_tokens

    return AllocationScheduleResult(
        category=allocation.category,
        standard_group=allocation.standard_group,
        percentage=allocation.percentage,
        total_tokens=total_tokens,
        vesting_type=allocation.vesting_type,
        cliff_months=allocation.cliff_months,
        vesting_months=allocation.vesting_months,
        tge_percent=allocation.tge_percent,
        cumulative_supply=curve,
    )


def inflation_series(total_supply: Sequence[TokenAmount]) -> list[float]:
    """Month-over-month supply growth as a fraction; 0 when undefined."""
    rates = [0.0] * len(total_supply)
    for m in range(1, len(total_supply)):
        previous = total_supply[m - 1]
        if previous > 0:
            rates[m] = (total_supply[m] - previous) / previous
    return rates


def detect_cliff_events(
    schedules: Sequence[AllocationScheduleResult],
    horizon_months: int,
) -> list[CliffEvent]:
    """Emit one event per allocation whose curve steps up at its cliff month."""
    events: list[CliffEvent] = []
    if horizon_months <= 1:
        return events

    for schedule in schedules:
        cliff = min(schedule.cliff_months, horizon_months - 1)
        if cliff <= 0:
            continue

        curve = schedule.cumulative_supply
        jump = curve[cliff] - curve[cliff - 1]
        if jump >= CLIFF_EVENT_TOLERANCE:
            events.append(
                CliffEvent(
                    month_index=cliff,
                    label=f"{schedule.category} Cliff Unlock",
                    category=schedule.category,
                    amount=jump,
                )
            )

    events.sort(key=lambda e: e.month_index)
    return events


def aggregate(
    allocations: Sequence[AllocationInput],
    horizon_months: int,
    total_supply: TokenAmount = 0.0,
) -> ProjectSchedule:
    """
    Aggregate all allocations of a project.

    Args:
        allocations: Allocation inputs of the project
        horizon_months: Simulation horizon
        total_supply: Supply used to size percentage-only allocations

    Returns:
        ProjectSchedule with per-allocation curves, totals, inflation and
        cliff events
    """
    horizon = max(horizon_months, 0)
    schedules = [build_allocation_schedule(a, horizon, total_supply) for a in allocations]

    total = [0.0] * horizon
    for schedule in schedules:
        for m, value in enumerate(schedule.cumulative_supply):
            total[m] += value

    notes = [note for note in (fallback_note(a) for a in allocations) if note]
    for note in notes:
        logger.warning(note)

    return ProjectSchedule(
        horizon_months=horizon,
        allocations=schedules,
        total_cumulative_supply=total,
        monthly_inflation_rate=inflation_series(total),
        cliff_events=detect_cliff_events(schedules, horizon),
        notes=notes,
    )
