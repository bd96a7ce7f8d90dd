"""Emission schedule calculation module."""

from .vesting import evaluate, allocation_curve
from .schedule import aggregate, build_allocation_schedule, detect_cliff_events, inflation_series
from .calibration import calibrate, calibrate_by_date, calibrate_by_supply, month_label
from .window import ScheduleSlice, compute_window, slice_schedule
from .emissions import build_project_emissions
from .comparison import (
    annualize,
    compute_aggregate_market_emissions,
    compute_comparison_rows,
    compute_inflation_periods,
)

__all__ = [
    "evaluate",
    "allocation_curve",
    "aggregate",
    "build_allocation_schedule",
    "detect_cliff_events",
    "inflation_series",
    "calibrate",
    "calibrate_by_date",
    "calibrate_by_supply",
    "month_label",
    "ScheduleSlice",
    "compute_window",
    "slice_schedule",
    "build_project_emissions",
    "annualize",
    "compute_aggregate_market_emissions",
    "compute_comparison_rows",
    "compute_inflation_periods",
]
