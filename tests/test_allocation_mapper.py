"""Tests for allocation mapper module."""

import pytest

from token_emissions.allocation_mapper.mapper import AllocationMapper
from token_emissions.allocation_mapper.vesting_parser import VestingParser
from token_emissions.core.models import AllocationInput, VestingTerms
from token_emissions.core.types import StandardGroup, VestingType


class TestAllocationMapper:
    """Tests for AllocationMapper label mapping."""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Team", StandardGroup.TEAM),
            ("Founders", StandardGroup.TEAM),
            ("Core Contributors", StandardGroup.TEAM),
            ("Advisors", StandardGroup.TEAM),
            ("Seed Round", StandardGroup.INVESTORS),
            ("Private Sale", StandardGroup.INVESTORS),
            ("Series A", StandardGroup.INVESTORS),
            ("Early Backers", StandardGroup.INVESTORS),
            ("Public Sale", StandardGroup.PUBLIC),
            ("IDO", StandardGroup.PUBLIC),
            ("Community Sale", StandardGroup.PUBLIC),
            ("Treasury", StandardGroup.TREASURY),
            ("Foundation", StandardGroup.TREASURY),
            ("Strategic Reserve", StandardGroup.TREASURY),
            ("Liquidity", StandardGroup.TREASURY),
            ("Ecosystem Fund", StandardGroup.COMMUNITY),
            ("Liquidity Mining", StandardGroup.COMMUNITY),
            ("Airdrop", StandardGroup.COMMUNITY),
            ("Staking Rewards", StandardGroup.COMMUNITY),
        ],
    )
    def test_map_label(self, label, expected):
        mapper = AllocationMapper()

        group, _, _ = mapper.map_label(label)

        assert group == expected, f"'{label}' should map to {expected}"

    def test_unknown_label_defaults_to_community(self):
        mapper = AllocationMapper()

        group, rule, priority = mapper.map_label("Something Weird")

        assert group == StandardGroup.COMMUNITY
        assert rule == "default"
        assert priority == 0

    def test_yaml_rules_and_overrides(self, tmp_path):
        config = tmp_path / "groups.yaml"
        config.write_text(
            "standard_groups:\n"
            "  team:\n"
            "    patterns: ['^ops']\n"
            "    priority: 10\n"
            "label_overrides:\n"
            "  Ecosystem Fund: treasury\n",
            encoding="utf-8",
        )
        mapper = AllocationMapper(config)

        assert mapper.get_group_for_label("Ops Budget") == StandardGroup.TEAM
        assert mapper.map_label("ecosystem fund") == (StandardGroup.TREASURY, "label_override", 100)
        # Default rules are replaced, not merged
        assert mapper.get_group_for_label("Investors") == StandardGroup.COMMUNITY

    def test_missing_config_uses_defaults(self, tmp_path):
        mapper = AllocationMapper(tmp_path / "missing.yaml")

        assert mapper.get_group_for_label("Investors") == StandardGroup.INVESTORS


class TestToAllocationInput:
    """Tests for research payload normalization."""

    def test_camel_case_payload(self):
        mapper = AllocationMapper()

        alloc = mapper.to_allocation_input(
            {
                "label": "Seed Round",
                "percent": "15%",
                "vestingType": "linear",
                "cliffMonths": 12,
                "vestingMonths": 24,
                "tgePercent": 5,
            }
        )

        assert alloc.category == "Seed Round"
        assert alloc.standard_group == StandardGroup.INVESTORS
        assert alloc.percentage == 15
        assert alloc.vesting_type == VestingType.LINEAR
        assert alloc.cliff_months == 12
        assert alloc.vesting_months == 24
        assert alloc.tge_percent == 5
        assert alloc.total_tokens(1_000_000) == 150_000

    def test_percentage_derived_from_amount(self):
        mapper = AllocationMapper()

        alloc = mapper.to_allocation_input({"name": "Team", "tokens": "200,000,000"}, total_supply=1_000_000_000)

        assert alloc.percentage == pytest.approx(20)
        assert alloc.amount == 200_000_000

    def test_out_of_range_values_clamped(self):
        mapper = AllocationMapper()

        alloc = mapper.to_allocation_input({"category": "Bad", "percentage": 150, "tge_percent": -5})

        assert alloc.percentage == 100
        assert alloc.tge_percent == 0

    def test_negative_amount_ignored(self):
        mapper = AllocationMapper()

        alloc = mapper.to_allocation_input({"category": "Bad", "amount": -10, "percentage": 5})

        assert alloc.amount is None
        assert alloc.percentage == 5

    def test_free_text_vesting(self):
        mapper = AllocationMapper()

        alloc = mapper.to_allocation_input(
            {"category": "Team", "percentage": 20, "vesting": "10% TGE, 6 month cliff, 24 months linear"}
        )

        assert alloc.vesting_type == VestingType.LINEAR
        assert alloc.tge_percent == 10
        assert alloc.cliff_months == 6
        assert alloc.vesting_months == 24

    def test_nested_vesting_dict(self):
        mapper = AllocationMapper()

        alloc = mapper.to_allocation_input(
            {"category": "Team", "percentage": 20, "vesting": {"cliff": 12, "duration": 36}}
        )

        assert alloc.cliff_months == 12
        assert alloc.vesting_months == 36

    def test_explicit_group_wins(self):
        mapper = AllocationMapper()

        alloc = mapper.to_allocation_input({"category": "Ops", "group": "Treasury"})

        assert alloc.standard_group == StandardGroup.TREASURY

    def test_unlock_overrides(self):
        mapper = AllocationMapper()

        alloc = mapper.to_allocation_input(
            {"category": "Grants", "vesting_type": "custom", "unlock_overrides": {"3": "20", 6: 50, "x": 1}}
        )

        assert alloc.vesting_type == VestingType.CUSTOM
        assert alloc.unlock_overrides == {3: 20.0, 6: 50.0}

    def test_missing_vesting_defaults_to_linear(self):
        mapper = AllocationMapper()

        alloc = mapper.to_allocation_input({"category": "Community", "percentage": 10})

        assert alloc.vesting_type == VestingType.LINEAR
        assert alloc.cliff_months == 0
        assert alloc.vesting_months == 0

    def test_normalize_skips_non_mappings(self):
        mapper = AllocationMapper()
        existing = AllocationInput(category="Treasury", percentage=30)

        allocations = mapper.normalize(
            [{"category": "Team", "percentage": 20}, "garbage", existing, None],
            total_supply=1_000,
        )

        assert [a.category for a in allocations] == ["Team", "Treasury"]
        assert allocations[1] is existing


class TestVestingParser:
    """Tests for VestingParser class."""

    def test_parse_tge_cliff_linear(self):
        terms = VestingParser().parse("10% TGE, 6 month cliff, 24 months linear")

        assert terms.tge_percent == 10
        assert terms.cliff_months == 6
        assert terms.vesting_months == 24
        assert terms.vesting_type == VestingType.LINEAR

    def test_parse_years(self):
        terms = VestingParser().parse("1 year cliff, 2 years linear vesting")

        assert terms.cliff_months == 12
        assert terms.vesting_months == 24
        assert terms.vesting_type == VestingType.LINEAR

    def test_parse_monthly_over(self):
        terms = VestingParser().parse("20% at launch, then monthly over 12 months")

        assert terms.tge_percent == 20
        assert terms.vesting_months == 12
        assert terms.vesting_type == VestingType.LINEAR

    def test_parse_fully_unlocked(self):
        assert VestingParser().parse("100% unlocked at TGE").vesting_type == VestingType.IMMEDIATE
        assert VestingParser().parse("No vesting").vesting_type == VestingType.IMMEDIATE

    def test_partial_tge_unlock_is_not_immediate(self):
        terms = VestingParser().parse("10% unlocked at TGE, rest linear over 12 months")

        assert terms.tge_percent == 10
        assert terms.vesting_type == VestingType.LINEAR

    def test_parse_cliff_release(self):
        terms = VestingParser().parse("12 month cliff release")

        assert terms.cliff_months == 12
        assert terms.vesting_type == VestingType.CLIFF

    def test_parse_empty(self):
        assert VestingParser().parse("") is None
        assert VestingParser().parse(None) is None

    def test_parse_dict_structured_fields_win(self):
        terms = VestingParser().parse_dict({"cliff_months": 3, "description": "12 month cliff, 24 months linear"})

        assert terms.cliff_months == 3
        assert terms.vesting_months == 24

    def test_parse_dict_empty(self):
        assert VestingParser().parse_dict({}) is None
        assert VestingParser().parse_dict({"category": "Team"}) is None

    def test_format_summary(self):
        parser = VestingParser()

        assert parser.format_summary(None) == "No vesting info"
        assert parser.format_summary(VestingTerms(vesting_type=VestingType.IMMEDIATE)) == "Fully unlocked at TGE"
        assert (
            parser.format_summary(VestingTerms(tge_percent=10, cliff_months=6, vesting_months=24))
            == "10% TGE, 6mo cliff, 24mo linear"
        )
