"""Tests for the vesting curve evaluator."""

import pytest
from pydantic import ValidationError

from token_emissions.calculator.vesting import allocation_curve, evaluate, fallback_note
from token_emissions.core.models import AllocationInput
from token_emissions.core.types import StandardGroup, VestingType


def _alloc(**kwargs) -> AllocationInput:
    fields = {"category": "Test", "amount": 12_000.0}
    fields.update(kwargs)
    return AllocationInput(**fields)


class TestLinearVesting:
    """Tests for linear vesting after a cliff."""

    def test_nothing_unlocks_during_cliff(self):
        alloc = _alloc(vesting_type="linear", cliff_months=6, vesting_months=12)

        assert evaluate(alloc, 0) == 0
        assert evaluate(alloc, 5) == 0

    def test_accrual_starts_at_cliff_without_jump(self):
        alloc = _alloc(vesting_type="linear", cliff_months=6, vesting_months=12)

        assert evaluate(alloc, 6) == 0
        assert evaluate(alloc, 7) == pytest.approx(1_000)

    def test_half_unlocked_at_midpoint(self):
        alloc = _alloc(vesting_type="linear", cliff_months=6, vesting_months=12)

        assert evaluate(alloc, 12) == pytest.approx(6_000)

    def test_fully_unlocked_after_vesting(self):
        alloc = _alloc(vesting_type="linear", cliff_months=6, vesting_months=12)

        assert evaluate(alloc, 18) == 12_000
        assert evaluate(alloc, 60) == 12_000

    def test_tge_release_before_cliff(self):
        alloc = _alloc(amount=1_000.0, tge_percent=10, cliff_months=12, vesting_months=24)

        assert evaluate(alloc, 0) == pytest.approx(100)
        assert evaluate(alloc, 11) == pytest.approx(100)
        # Remaining 900 half vested
        assert evaluate(alloc, 24) == pytest.approx(550)

    def test_zero_vesting_releases_at_cliff(self):
        alloc = _alloc(vesting_type="linear", cliff_months=6, vesting_months=0)

        assert evaluate(alloc, 5) == 0
        assert evaluate(alloc, 6) == 12_000


class TestOtherVestingTypes:
    """Tests for immediate, cliff and custom vesting."""

    def test_immediate_unlocks_everything_at_tge(self):
        alloc = _alloc(vesting_type="immediate", cliff_months=12, vesting_months=24)

        assert evaluate(alloc, 0) == 12_000

    def test_cliff_is_single_step(self):
        alloc = _alloc(vesting_type="cliff", tge_percent=25, cliff_months=12, vesting_months=24)

        assert evaluate(alloc, 0) == pytest.approx(3_000)
        assert evaluate(alloc, 11) == pytest.approx(3_000)
        assert evaluate(alloc, 12) == 12_000

    def test_custom_overrides_are_cumulative_percentages(self):
        alloc = _alloc(vesting_type="custom", unlock_overrides={3: 20.0, 6: 50.0})

        assert evaluate(alloc, 0) == 0
        assert evaluate(alloc, 3) == pytest.approx(2_400)
        assert evaluate(alloc, 5) == pytest.approx(2_400)
        assert evaluate(alloc, 6) == pytest.approx(6_000)

    def test_custom_overrides_never_decrease(self):
        alloc = _alloc(vesting_type="custom", unlock_overrides={3: 50.0, 6: 20.0})

        assert evaluate(alloc, 6) == pytest.approx(6_000)

    def test_custom_without_overrides_is_linear_with_note(self):
        custom = _alloc(vesting_type="custom", cliff_months=6, vesting_months=12)
        linear = _alloc(vesting_type="linear", cliff_months=6, vesting_months=12)

        for month in range(0, 24):
            assert evaluate(custom, month) == evaluate(linear, month)
        assert fallback_note(custom) is not None
        assert fallback_note(linear) is None


class TestEdgeCases:
    """Edge case handling."""

    def test_negative_or_missing_month_is_month_zero(self):
        alloc = _alloc(tge_percent=10, cliff_months=6, vesting_months=12)

        assert evaluate(alloc, -5) == evaluate(alloc, 0)
        assert evaluate(alloc, None) == evaluate(alloc, 0)

    def test_amount_derived_from_percentage(self):
        alloc = AllocationInput(category="Team", percentage=15.0, vesting_type="immediate")

        assert alloc.total_tokens(1_000_000) == 150_000
        assert evaluate(alloc, 0, total_supply=1_000_000) == 150_000

    def test_zero_amount_is_all_zero(self):
        alloc = AllocationInput(category="Nothing", percentage=0.0)

        assert allocation_curve(alloc, 12, total_supply=1_000_000) == [0.0] * 12

    @pytest.mark.parametrize("vesting_type", list(VestingType))
    def test_curves_are_monotonic_and_bounded(self, vesting_type):
        alloc = _alloc(
            vesting_type=vesting_type,
            tge_percent=5,
            cliff_months=7,
            vesting_months=13,
            unlock_overrides={2: 10.0, 9: 40.0, 30: 100.0},
        )
        curve = allocation_curve(alloc, 48)

        assert all(b >= a for a, b in zip(curve, curve[1:]))
        assert all(0 <= v <= 12_000 for v in curve)


class TestAllocationInput:
    """Validation at the ingestion boundary."""

    def test_percentage_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            AllocationInput(category="Team", percentage=120.0)

    def test_unknown_vesting_type_defaults_to_linear(self):
        assert AllocationInput(category="X", vesting_type="weekly-ish").vesting_type == VestingType.LINEAR
        assert AllocationInput(category="X", vesting_type=None).vesting_type == VestingType.LINEAR

    def test_unknown_group_defaults_to_community(self):
        assert AllocationInput(category="X", standard_group="whales").standard_group == StandardGroup.COMMUNITY
        assert AllocationInput(category="X").standard_group == StandardGroup.COMMUNITY

    def test_negative_months_clamped(self):
        alloc = AllocationInput(category="X", cliff_months=-3, vesting_months="12")

        assert alloc.cliff_months == 0
        assert alloc.vesting_months == 12
