"""Cross-project aggregation and comparison.

All functions take resolved ProjectEmissionsResult values and return
stateless view-model rows:

- Comparison rows: circulating / locked share and the remaining post-TGE
  supply split into cliff- and linear-sourced unlocks, valued at the
  current price
- Market emissions: portfolio USD value unlocked per calendar month
- Inflation periods: annualized inflation for years 1-3 and now
"""

import logging
from typing import Sequence

from ..core.models import (
    ComparisonRow,
    InflationPeriodMetrics,
    MarketEmissionsRow,
    ProjectEmissionsResult,
)
from ..core.types import UnlockKind

logger = logging.getLogger(__name__)

# Month ranges (start inclusive, end exclusive) of the yearly inflation periods
INFLATION_PERIODS = ((0, 12), (12, 24), (24, 36))


def annualize(monthly_rate: float) -> float:
    """Compound a monthly growth rate into an annual one."""
    return (1 + monthly_rate) ** 12 - 1


def _average(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_comparison_rows(results: Sequence[ProjectEmissionsResult]) -> list[ComparisonRow]:
    """Per-project supply and unlock comparison rows."""
    rows = []
    for result in results:
        token = result.token
        total_supply = token.total_supply

        if total_supply > 0:
            circulating_pct = min(max(token.circulating_supply / total_supply * 100, 0.0), 100.0)
        else:
            circulating_pct = 0.0
        locked_pct = 100.0 - circulating_pct

        cliff_tokens = 0.0
        linear_tokens = 0.0
        for alloc in result.allocations:
            kind = alloc.unlock_kind
            if kind == UnlockKind.CLIFF:
                cliff_tokens += alloc.remaining_tokens
            elif kind == UnlockKind.LINEAR:
                linear_tokens += alloc.remaining_tokens

        denominator = total_supply or 1.0
        cliff_unlock_pct = cliff_tokens / denominator * 100
        linear_unlock_pct = linear_tokens / denominator * 100
        price = token.current_price or 0.0

        rows.append(
            ComparisonRow(
                project=token.name,
                symbol=token.symbol,
                token_id=token.token_id,
                image=token.image,
                circulating_pct=circulating_pct,
                locked_pct=locked_pct,
                cliff_unlock_pct=cliff_unlock_pct,
                linear_unlock_pct=linear_unlock_pct,
                total_unlock_pct=cliff_unlock_pct + linear_unlock_pct,
                cliff_unlock_value=cliff_tokens * price,
                linear_unlock_value=linear_tokens * price,
                unlock_value=(cliff_tokens + linear_tokens) * price,
                market_cap=token.market_cap,
                current_price=token.current_price,
                total_supply=token.total_supply,
                circulating_supply=token.circulating_supply,
            )
        )
    return rows


def compute_aggregate_market_emissions(
    results: Sequence[ProjectEmissionsResult],
) -> list[MarketEmissionsRow]:
    """
    Sum the USD value unlocked per calendar month across projects.

    Months follow the longest month series among the projects; a project
    contributes to a month only if its own window covers it. Monthly
    unlocks are month-over-month increments floored at 0, valued at each
    project's current price.
    """
    if not results:
        return []

    reference = max(results, key=lambda r: len(r.months))
    indexed = [(r, {month: i for i, month in enumerate(r.months)}) for r in results]

    rows = []
    for month in reference.months:
        cliff_value = 0.0
        linear_value = 0.0

        for result, positions in indexed:
            i = positions.get(month)
            if i is None:
                continue
            price = result.token.current_price or 0.0

            for alloc in result.allocations:
                kind = alloc.unlock_kind
                if kind is None or i >= len(alloc.cumulative_supply):
                    continue
                previous = alloc.cumulative_supply[i - 1] if i > 0 else alloc.opening_supply
                delta = max(alloc.cumulative_supply[i] - previous, 0.0)
                if kind == UnlockKind.CLIFF:
                    cliff_value += delta * price
                else:
                    linear_value += delta * price

        rows.append(
            MarketEmissionsRow(
                month=month,
                total_value_unlock=cliff_value + linear_value,
                cliff_value_unlock=cliff_value,
                linear_value_unlock=linear_value,
            )
        )
    return rows


def compute_inflation_periods(
    results: Sequence[ProjectEmissionsResult],
) -> list[InflationPeriodMetrics]:
    """Annualized average inflation for months 1-12, 13-24, 25-36 and the latest month."""
    metrics = []
    for result in results:
        rates = result.inflation_rate
        year1, year2, year3 = (
            annualize(_average(rates[start:end])) for start, end in INFLATION_PERIODS
        )
        metrics.append(
            InflationPeriodMetrics(
                token_id=result.token.token_id,
                symbol=result.token.symbol,
                name=result.token.name,
                image=result.token.image,
                year1_inflation=year1,
                year2_inflation=year2,
                year3_inflation=year3,
                current_inflation=annualize(rates[-1]) if rates else 0.0,
            )
        )
    return metrics
