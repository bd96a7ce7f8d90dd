"""Allocation mapper - turns research payloads into AllocationInput values.

Research sources return loosely shaped allocation entries: camelCase or
snake_case keys, token amounts instead of percentages, free-text vesting,
out-of-range numbers. The mapper is the single ingestion boundary that
normalizes them, including the standard group used for cross-project
comparison (inferred from the category label when not given).
"""

import logging
import re
from pathlib import Path
from typing import Any, Iterable

import yaml

from ..core.models import AllocationInput
from ..core.types import StandardGroup, TokenAmount, VestingType
from .vesting_parser import VestingParser, first_present

logger = logging.getLogger(__name__)


# Default group rules (used if no config file provided)
DEFAULT_GROUP_RULES: dict[str, dict[str, Any]] = {
    "team": {
        "patterns": [
            r"^team",
            r"^founder",
            r"^core.*(team|contributor)",
            r"^development.*team",
            r"^employee",
            r"^staff",
            r"^advisor",
            r"^partner",
        ],
        "priority": 10,
    },
    "investors": {
        "patterns": [
            r"^investor",
            r"^seed",
            r"^private",
            r"^strategic.*(sale|round)",
            r"^series.*[a-z]",
            r"^vc",
            r"^venture",
            r"^early.*(investor|backer)",
            r"^pre.*seed",
            r"^angel",
            r"backer",
        ],
        "priority": 10,
    },
    "public": {
        "patterns": [
            r"^public",
            r"^ico$",
            r"^ido$",
            r"^ieo$",
            r"^launchpad",
            r"^token.*sale",
            r"^crowd.*sale",
            r"^community.*sale",
        ],
        "priority": 10,
    },
    "treasury": {
        "patterns": [
            r"^treasury",
            r"^reserve",
            r"^foundation",
            r"^strategic.*reserve",
            r"^insurance",
            r"^protocol.*owned",
            r"^dao.*treasury",
            r"^liquidity(?!.*mining)",
            r"^market.*mak",
        ],
        "priority": 9,
    },
    "community": {
        "patterns": [
            r"^community",
            r"^ecosystem",
            r"^reward",
            r"^incentive",
            r"^mining",
            r"^staking",
            r"^emission",
            r"^farming",
            r"^liquidity.*mining",
            r"^grant",
            r"^bounty",
            r"^user",
            r"^airdrop",
            r"^retro",
        ],
        "priority": 8,
    },
}

# Alternative key spellings found in research payloads
CATEGORY_KEYS = ("category", "label", "name", "bucket")
GROUP_KEYS = ("standard_group", "standardGroup", "group")
PERCENT_KEYS = ("percentage", "percent", "pct", "share")
AMOUNT_KEYS = ("total_tokens", "totalTokens", "amount", "tokens")
OVERRIDE_KEYS = ("unlock_overrides", "unlockOverrides", "overrides")

# Percentages summing outside this band are logged as incomplete research
COMPLETE_BAND = (95.0, 105.0)


def _number(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(str(value).strip().rstrip("%").replace(",", ""))
    except ValueError:
        logger.debug(f"Ignoring non-numeric allocation value: {value!r}")
        return None


def _clamp_percentage(value: float, label: str, field: str) -> float:
    if value < 0 or value > 100:
        clamped = min(max(value, 0.0), 100.0)
        logger.warning(f"{label}: {field}={value} out of range, clamped to {clamped}")
        return clamped
    return value


class AllocationMapper:
    """Maps research payloads to validated allocation inputs."""

    def __init__(self, config_path: Path | str | None = None):
        """
        Initialize allocation mapper.

        Args:
            config_path: Path to YAML configuration file with group rules.
                If None, uses default rules.
        """
        self.rules: dict[str, dict[str, Any]] = {}
        self.label_overrides: dict[str, str] = {}
        self._compiled_patterns: dict[str, list[tuple[re.Pattern, int]]] = {}
        self.vesting_parser = VestingParser()

        if config_path:
            self._load_config(Path(config_path))
        else:
            self.rules = DEFAULT_GROUP_RULES

        self._compile_patterns()

    def _load_config(self, config_path: Path) -> None:
        """Load group rules from YAML config."""
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}

            if "standard_groups" in config:
                self.rules = config["standard_groups"]
            else:
                self.rules = DEFAULT_GROUP_RULES
                logger.warning(f"No 'standard_groups' in {config_path}, using defaults")

            self.label_overrides = {
                str(label).strip().lower(): str(group)
                for label, group in (config.get("label_overrides") or {}).items()
            }

            logger.info(f"Loaded group rules from {config_path}")

        except FileNotFoundError:
            logger.warning(f"Config file not found: {config_path}, using defaults")
            self.rules = DEFAULT_GROUP_RULES
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in {config_path}: {e}")
            self.rules = DEFAULT_GROUP_RULES

    def _compile_patterns(self) -> None:
        """Pre-compile regex patterns."""
        self._compiled_patterns = {}

        for group, config in self.rules.items():
            priority = config.get("priority", 5)
            compiled = []
            for pattern in config.get("patterns", []):
                try:
                    compiled.append((re.compile(pattern, re.IGNORECASE), priority))
                except re.error as e:
                    logger.error(f"Invalid regex pattern '{pattern}': {e}")
            self._compiled_patterns[group] = compiled

    def map_label(self, label: str) -> tuple[StandardGroup, str, int]:
        """
        Map a category label to a standard group.

        Args:
            label: Raw allocation category label

        Returns:
            Tuple of (standard_group, matched_rule, priority)
        """
        label_clean = label.strip()

        override = self.label_overrides.get(label_clean.lower())
        if override:
            try:
                return StandardGroup(override), "label_override", 100
            except ValueError:
                logger.warning(f"Invalid override group '{override}' for '{label}'")

        best_match: tuple[StandardGroup, str, int] | None = None

        for group_name, patterns in self._compiled_patterns.items():
            for pattern, priority in patterns:
                if pattern.search(label_clean):
                    try:
                        group = StandardGroup(group_name)
                    except ValueError:
                        continue
                    if best_match is None or priority > best_match[2]:
                        best_match = (group, pattern.pattern, priority)

        if best_match:
            return best_match

        return StandardGroup.COMMUNITY, "default", 0

    def get_group_for_label(self, label: str) -> StandardGroup:
        """Simple helper to get just the group for a label."""
        group, _, _ = self.map_label(label)
        return group

    def _standard_group(self, raw: dict[str, Any], category: str) -> StandardGroup:
        explicit = first_present(raw, GROUP_KEYS)
        if explicit is not None:
            try:
                return StandardGroup(str(explicit).strip().lower())
            except ValueError:
                logger.debug(f"{category}: unknown standard group {explicit!r}, inferring from label")
        return self.get_group_for_label(category)

    def _unlock_overrides(self, raw: dict[str, Any], category: str) -> dict[int, float] | None:
        overrides = first_present(raw, OVERRIDE_KEYS)
        if not isinstance(overrides, dict):
            return None

        parsed: dict[int, float] = {}
        for month, pct in overrides.items():
            month_num = _number(month)
            pct_num = _number(pct)
            if month_num is None or pct_num is None or month_num < 0:
                logger.warning(f"{category}: ignoring unlock override {month!r}: {pct!r}")
                continue
            parsed[int(month_num)] = _clamp_percentage(pct_num, category, "unlock_override")
        return parsed or None

    def to_allocation_input(
        self,
        raw: dict[str, Any],
        total_supply: TokenAmount | None = None,
    ) -> AllocationInput:
        """
        Normalize one research payload entry.

        Args:
            raw: Allocation entry with loose field naming
            total_supply: Supply used to derive a percentage from a token amount

        Returns:
            Validated AllocationInput
        """
        category = str(first_present(raw, CATEGORY_KEYS) or "Unknown").strip() or "Unknown"

        percentage = _number(first_present(raw, PERCENT_KEYS))
        amount = _number(first_present(raw, AMOUNT_KEYS))
        if amount is not None and amount < 0:
            logger.warning(f"{category}: negative token amount {amount}, ignored")
            amount = None

        if percentage is None and amount is not None and total_supply:
            percentage = amount / total_supply * 100
        percentage = _clamp_percentage(percentage or 0.0, category, "percentage")

        terms = self.vesting_parser.parse_dict(raw)
        vesting_type = VestingType.LINEAR
        tge_percent = 0.0
        cliff_months = 0
        vesting_months = 0
        if terms is not None:
            vesting_type = terms.vesting_type or VestingType.LINEAR
            tge_percent = terms.tge_percent or 0.0
            cliff_months = terms.cliff_months or 0
            vesting_months = terms.vesting_months or 0

        notes = raw.get("notes")

        return AllocationInput(
            category=category,
            standard_group=self._standard_group(raw, category),
            percentage=percentage,
            amount=amount,
            vesting_type=vesting_type,
            cliff_months=cliff_months,
            vesting_months=vesting_months,
            tge_percent=_clamp_percentage(tge_percent, category, "tge_percent"),
            unlock_overrides=self._unlock_overrides(raw, category),
            notes=str(notes) if notes else None,
        )

    def normalize(
        self,
        raw_allocations: Iterable[Any],
        total_supply: TokenAmount | None = None,
    ) -> list[AllocationInput]:
        """
        Normalize a list of research payload entries.

        Entries that are not mappings or that fail validation are skipped
        with a warning.

        Args:
            raw_allocations: Raw allocation entries
            total_supply: Supply used to derive percentages from amounts

        Returns:
            List of AllocationInput in input order
        """
        allocations = []
        for raw in raw_allocations or []:
            if isinstance(raw, AllocationInput):
                allocations.append(raw)
                continue
            if not isinstance(raw, dict):
                logger.warning(f"Skipping allocation entry of type {type(raw).__name__}")
                continue
            try:
                allocations.append(self.to_allocation_input(raw, total_supply))
            except ValueError as e:
                logger.warning(f"Skipping invalid allocation entry {raw!r}: {e}")

        total_percentage = sum(a.percentage for a in allocations)
        low, high = COMPLETE_BAND
        if allocations and not low <= total_percentage <= high:
            logger.info(f"Allocation percentages sum to {total_percentage:.1f}%")

        return allocations
