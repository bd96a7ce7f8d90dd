"""Vesting curve evaluator.

Computes the cumulative number of tokens an allocation has unlocked by a
given month after the token generation event (month 0):

- immediate: the full amount at month 0
- cliff: the TGE release at month 0, the remainder as one step at the cliff
- linear: the TGE release at month 0, the remainder accruing at a constant
  rate from the cliff to cliff + vesting
- custom: explicit per-month overrides when supplied, otherwise linear

All functions here are pure and never raise for in-range input.
"""

from typing import Any

from ..core.models import AllocationInput
from ..core.types import TokenAmount, VestingType


def normalize_month(month: Any) -> int:
    """Treat negative or missing months as month 0."""
    if month is None:
        return 0
    try:
        value = int(month)
    except (TypeError, ValueError):
        return 0
    return max(value, 0)


def _override_fraction(allocation: AllocationInput, month: int) -> float:
    """Cumulative unlocked fraction from explicit custom overrides."""
    pct = allocation.tge_percent
    for override_month, override_pct in sorted(
        (normalize_month(k), v) for k, v in (allocation.unlock_overrides or {}).items()
    ):
        if override_month > month:
            break
        # Running max keeps the curve non-decreasing
        pct = max(pct, override_pct)
    return min(max(pct, 0.0), 100.0) / 100


def evaluate(
    allocation: AllocationInput,
    month: Any,
    total_supply: TokenAmount = 0.0,
) -> TokenAmount:
    """
    Cumulative tokens unlocked for an allocation by a month.

    Args:
        allocation: Allocation and its vesting rule
        month: Month index since TGE (negative/missing treated as 0)
        total_supply: Supply used to size percentage-only allocations

    Returns:
        Unlocked tokens, within [0, total_tokens]
    """
    total = allocation.total_tokens(total_supply)
    if total <= 0:
        return 0.0

    m = normalize_month(month)
    vesting_type = allocation.vesting_type

    if vesting_type == VestingType.IMMEDIATE:
        return total

    if vesting_type == VestingType.CUSTOM and allocation.has_overrides:
        return total * _override_fraction(allocation, m)

    tge_tokens = total * allocation.tge_percent / 100
    remaining = total - tge_tokens
    cliff = allocation.cliff_months
    vesting = allocation.vesting_months

    # Cliff type, or a linear rule without a vesting window: one step at the cliff
    if vesting_type == VestingType.CLIFF or vesting == 0:
        return total if m >= cliff else tge_tokens

    if m < cliff:
        return tge_tokens

    fraction = (m - cliff) / vesting
    if fraction >= 1:
        return total
    return min(tge_tokens + remaining * fraction, total)


def allocation_curve(
    allocation: AllocationInput,
    horizon_months: int,
    total_supply: TokenAmount = 0.0,
) -> list[TokenAmount]:
    """Evaluate an allocation for months 0 .. horizon_months - 1."""
    return [evaluate(allocation, m, total_supply) for m in range(max(horizon_months, 0))]


def fallback_note(allocation: AllocationInput) -> str | None:
    """Provenance note when a vesting rule was approximated."""
    if allocation.vesting_type == VestingType.CUSTOM and not allocation.has_overrides:
        return (
            f"{allocation.category}: custom vesting has no per-month schedule, "
            f"modeled as linear ({allocation.cliff_months}mo cliff, "
            f"{allocation.vesting_months}mo vesting)"
        )
    return None
