"""Calibration engine.

The simulation starts at an arbitrary month 0 (TGE). Calibration decides
which schedule month is "now" for a real token, in three tiers:

1. Supply: bracket the observed circulating supply on the aggregate curve
   and round to the nearest month (a fraction of exactly 0.5 rounds up).
2. Date: whole months elapsed since the generation date, or since the
   all-time-high date when no generation date is known.
3. Default: month 0, i.e. the token is treated as freshly generated.

The anchor month is the calendar month of schedule index 0, so schedule
index i maps to anchor_month + i months.
"""

import logging
from datetime import date, datetime
from typing import Sequence

from dateutil.relativedelta import relativedelta

from ..core.models import CalibrationResult
from ..core.types import CalibrationMethod, MonthLabel, TokenAmount

logger = logging.getLogger(__name__)

# Fractional position at or above which the later month is chosen
ROUND_UP_FRACTION = 0.5


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def first_of_month(value: date | datetime) -> date:
    """Normalize a date to the first day of its month."""
    return _as_date(value).replace(day=1)


def month_label(anchor_month: date, index: int) -> MonthLabel:
    """Calendar label ("YYYY-MM") of a schedule index."""
    return (anchor_month + relativedelta(months=index)).strftime("%Y-%m")


def calibrate_by_supply(
    curve: Sequence[TokenAmount],
    circulating_supply: TokenAmount | None,
) -> int | None:
    """
    Find the schedule index whose cumulative supply matches an observation.

    Args:
        curve: Aggregate cumulative supply by month
        circulating_supply: Observed circulating supply

    Returns:
        Nearest schedule index, or None when the observation does not
        exceed the month-0 supply (too early to calibrate)
    """
    if not curve or circulating_supply is None:
        return None
    if circulating_supply <= curve[0]:
        return None

    last = len(curve) - 1
    if circulating_supply >= curve[last]:
        return last

    for i in range(last):
        low, high = curve[i], curve[i + 1]
        if low <= circulating_supply <= high:
            span = high - low
            if span <= 0:
                return i
            frac = (circulating_supply - low) / span
            return i + 1 if frac >= ROUND_UP_FRACTION else i

    return None


def calibrate_by_date(
    generation_date: date | datetime | None,
    now: date | datetime,
    horizon_months: int,
) -> int | None:
    """
    Whole months elapsed since a generation date, clamped to the horizon.

    Returns None when the date is unknown or lies in the future.
    """
    if generation_date is None or horizon_months <= 0:
        return None

    today = _as_date(now)
    if _as_date(generation_date) > today:
        return None

    start = first_of_month(generation_date)
    elapsed = (today.year - start.year) * 12 + (today.month - start.month)
    return min(max(elapsed, 0), horizon_months - 1)


def calibrate(
    total_curve: Sequence[TokenAmount],
    *,
    now: date | datetime,
    circulating_supply: TokenAmount | None = None,
    generation_date: date | datetime | None = None,
    ath_date: date | datetime | None = None,
    horizon_months: int | None = None,
) -> CalibrationResult:
    """
    Choose the schedule index that corresponds to the present month.

    Args:
        total_curve: Aggregate cumulative supply by month
        now: Present date
        circulating_supply: Observed circulating supply (preferred signal)
        generation_date: Known token generation date
        ath_date: All-time-high date, used as a generation-date proxy
        horizon_months: Horizon length (defaults to the curve length)

    Returns:
        CalibrationResult with anchor month, current index and method
    """
    horizon = horizon_months if horizon_months is not None else len(total_curve)

    index = calibrate_by_supply(total_curve, circulating_supply)
    method = CalibrationMethod.SUPPLY

    if index is None:
        candidate = generation_date if generation_date is not None else ath_date
        index = calibrate_by_date(candidate, now, horizon)
        method = CalibrationMethod.DATE

    if index is None:
        logger.debug("No calibration signal, treating token as freshly generated")
        index = 0
        method = CalibrationMethod.DEFAULT

    anchor = first_of_month(now) - relativedelta(months=index)
    return CalibrationResult(anchor_month=anchor, current_index=index, method=method)


def describe(calibration: CalibrationResult, horizon_months: int) -> str:
    """One-line provenance note for a calibration."""
    position = f"month {calibration.current_index} of {horizon_months}"
    tge = calibration.anchor_month.strftime("%Y-%m")
    if calibration.method == CalibrationMethod.SUPPLY:
        return f"Calibrated to circulating supply: {position}, implied TGE {tge}"
    if calibration.method == CalibrationMethod.DATE:
        return f"Calibrated from generation date: {position}, TGE {tge}"
    return f"No calibration signal: treated as freshly generated in {tge}"
