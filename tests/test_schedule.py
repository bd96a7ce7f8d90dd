"""Tests for the schedule aggregator."""

import pytest

from token_emissions.calculator.schedule import (
    aggregate,
    build_allocation_schedule,
    detect_cliff_events,
    inflation_series,
)
from token_emissions.core.models import AllocationInput


def _alloc(category="Test", **kwargs) -> AllocationInput:
    fields = {"category": category, "amount": 1_200.0}
    fields.update(kwargs)
    return AllocationInput(**fields)


class TestAggregate:
    """Tests for aggregate()."""

    def test_total_is_sum_of_allocations(self, sample_allocations):
        schedule = aggregate(sample_allocations, 120, total_supply=1_000_000_000)

        assert len(schedule.total_cumulative_supply) == 120
        for m in (0, 12, 59, 119):
            expected = sum(a.cumulative_supply[m] for a in schedule.allocations)
            assert schedule.total_cumulative_supply[m] == pytest.approx(expected)

    def test_known_month_values(self, sample_allocations):
        schedule = aggregate(sample_allocations, 120, total_supply=1_000_000_000)

        # Public sale plus the investors' TGE release
        assert schedule.total_cumulative_supply[0] == pytest.approx(115_000_000)
        assert schedule.total_cumulative_supply[12] == pytest.approx(223_750_000)
        assert schedule.total_cumulative_supply[-1] == pytest.approx(1_000_000_000)

    def test_total_curve_is_monotonic(self, sample_allocations):
        curve = aggregate(sample_allocations, 120, total_supply=1_000_000_000).total_cumulative_supply

        assert all(b >= a for a, b in zip(curve, curve[1:]))

    def test_empty_allocations(self):
        schedule = aggregate([], 24)

        assert schedule.total_cumulative_supply == [0.0] * 24
        assert schedule.monthly_inflation_rate == [0.0] * 24
        assert schedule.cliff_events == []

    def test_custom_fallback_is_noted(self):
        schedule = aggregate([_alloc("Grants", vesting_type="custom", vesting_months=12)], 24)

        assert len(schedule.notes) == 1
        assert "Grants" in schedule.notes[0]


class TestSaturation:
    """Allocations that do not finish within the horizon."""

    def test_forced_to_full_at_last_month(self):
        result = build_allocation_schedule(_alloc(cliff_months=100, vesting_months=100), 24)

        assert result.cumulative_supply[-2] == 0
        assert result.cumulative_supply[-1] == 1_200

    def test_cliff_beyond_horizon_reported_at_last_month(self):
        schedules = [build_allocation_schedule(_alloc(vesting_type="cliff", cliff_months=30), 24)]

        events = detect_cliff_events(schedules, 24)

        assert [e.month_index for e in events] == [23]
        assert events[0].amount == 1_200


class TestInflationSeries:
    """Tests for inflation_series()."""

    def test_first_month_is_zero(self):
        assert inflation_series([100, 110])[0] == 0

    def test_growth_fraction(self):
        rates = inflation_series([100, 110, 110, 121])

        assert rates[1] == pytest.approx(0.10)
        assert rates[2] == 0
        assert rates[3] == pytest.approx(0.10)

    def test_zero_previous_supply_is_zero(self):
        assert inflation_series([0, 0, 50]) == [0.0, 0.0, 0.0]


class TestCliffEvents:
    """Tests for cliff unlock detection."""

    def test_cliff_vesting_emits_event(self):
        schedule = aggregate(
            [_alloc("Treasury", vesting_type="cliff", tge_percent=25, cliff_months=12)], 24
        )

        assert len(schedule.cliff_events) == 1
        event = schedule.cliff_events[0]
        assert event.month_index == 12
        assert event.label == "Treasury Cliff Unlock"
        assert event.category == "Treasury"
        assert event.amount == pytest.approx(900)

    def test_linear_vesting_has_no_cliff_jump(self):
        schedule = aggregate([_alloc(cliff_months=6, vesting_months=12)], 24)

        assert schedule.cliff_events == []

    def test_linear_without_duration_releases_at_cliff(self):
        schedule = aggregate([_alloc(cliff_months=6, vesting_months=0)], 24)

        assert [e.month_index for e in schedule.cliff_events] == [6]

    def test_events_sorted_by_month(self, sample_allocations):
        sample = aggregate(sample_allocations, 120, total_supply=1_000_000_000)
        extra = aggregate(
            [_alloc("Late", vesting_type="cliff", cliff_months=48), _alloc("Early", vesting_type="cliff", cliff_months=3)],
            120,
        )

        months = [e.month_index for e in extra.cliff_events]
        assert months == sorted(months) == [3, 48]
        assert [e.category for e in sample.cliff_events] == ["Treasury"]
