"""Window slicer.

Cuts a fixed-width display window out of a calibrated schedule. The window
starts at the current month and runs forward; near the end of the horizon
it slides back so it keeps its width and shows more history instead.
"""

from dataclasses import dataclass, field

from ..core.models import (
    AllocationScheduleResult,
    CalibrationResult,
    CliffEvent,
    ProjectSchedule,
)
from ..core.types import MonthLabel, TokenAmount
from .calibration import month_label


@dataclass(frozen=True)
class ScheduleSlice:
    """All series of a schedule cut to the same [start, end) window."""

    start: int
    end: int
    months: list[MonthLabel] = field(default_factory=list)
    allocations: list[AllocationScheduleResult] = field(default_factory=list)
    total_supply: list[TokenAmount] = field(default_factory=list)
    inflation_rate: list[float] = field(default_factory=list)
    cliff_events: list[CliffEvent] = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.end - self.start


def compute_window(current_index: int, width: int, horizon_months: int) -> tuple[int, int]:
    """
    Compute the [start, end) bounds of the display window.

    The window ends at min(current_index + width, horizon) and starts
    width months earlier, never before month 0.
    """
    if horizon_months <= 0:
        return 0, 0

    width = max(width, 1)
    current = min(max(current_index, 0), horizon_months - 1)
    end = min(current + width, horizon_months)
    start = max(0, end - width)
    return start, end


def slice_schedule(
    schedule: ProjectSchedule,
    calibration: CalibrationResult,
    window: tuple[int, int],
) -> ScheduleSlice:
    """Slice every series of a schedule consistently and label the months."""
    start, end = window

    allocations = []
    for alloc in schedule.allocations:
        curve = alloc.cumulative_supply
        opening = curve[start - 1] if start > 0 else 0.0
        allocations.append(
            alloc.model_copy(
                update={"cumulative_supply": curve[start:end], "opening_supply": opening}
            )
        )

    cliff_events = [
        event.model_copy(update={"month": month_label(calibration.anchor_month, event.month_index)})
        for event in schedule.cliff_events
        if start <= event.month_index < end
    ]

    return ScheduleSlice(
        start=start,
        end=end,
        months=[month_label(calibration.anchor_month, i) for i in range(start, end)],
        allocations=allocations,
        total_supply=schedule.total_cumulative_supply[start:end],
        inflation_rate=schedule.monthly_inflation_rate[start:end],
        cliff_events=cliff_events,
    )
