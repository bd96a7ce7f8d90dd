"""Vesting schedule parser.

Parses research payloads and free-text vesting descriptions into
structured VestingTerms objects. Handles common formats like:
- "10% TGE, 6 month cliff, 24 months linear"
- "20% at launch, then monthly over 12 months"
- "1 year cliff, 2 years linear vesting"
- "100% unlocked at TGE"
"""

import logging
import re
from typing import Any

from ..core.models import VestingTerms
from ..core.types import VestingType

logger = logging.getLogger(__name__)


_MONTH_UNIT = r"(?:months?|mos?|m)\b"
_YEAR_UNIT = r"(?:years?|yrs?|y)\b"

# Patterns tagged "year" are converted to months
PATTERNS: dict[str, list[str] | str] = {
    # TGE unlock: "10% TGE", "10% at TGE", "10% unlocked at launch", "TGE unlock of 10%"
    "tge_percent": [
        r"(\d+(?:\.\d+)?)\s*%\s*(?:unlocked\s+)?(?:at\s+)?(?:tge|launch|listing|initial)",
        r"(?:tge|launch|listing|initial)\s*(?:unlock)?\s*(?:of\s+)?(\d+(?:\.\d+)?)\s*%",
    ],
    # Cliff: "6 month cliff", "6-month cliff", "6m cliff", "cliff of 6 months", "1 year cliff"
    "cliff_months": [
        rf"(\d+(?:\.\d+)?)\s*-?\s*{_MONTH_UNIT}\s*cliff",
        rf"cliff\s*(?:of\s+)?(\d+(?:\.\d+)?)\s*-?\s*{_MONTH_UNIT}",
        rf"year:(\d+(?:\.\d+)?)\s*-?\s*{_YEAR_UNIT}\s*cliff",
        rf"year:cliff\s*(?:of\s+)?(\d+(?:\.\d+)?)\s*-?\s*{_YEAR_UNIT}",
    ],
    # Vesting duration: "24 months linear", "linear over 12 months", "2 years vesting"
    "vesting_months": [
        rf"(?:over|for|linear(?:ly)?)\s*(\d+(?:\.\d+)?)\s*-?\s*{_MONTH_UNIT}",
        rf"(\d+(?:\.\d+)?)\s*-?\s*{_MONTH_UNIT}\s*(?:linear|vesting|vest)",
        rf"year:(?:over|for|linear(?:ly)?)\s*(\d+(?:\.\d+)?)\s*-?\s*{_YEAR_UNIT}",
        rf"year:(\d+(?:\.\d+)?)\s*-?\s*{_YEAR_UNIT}\s*(?:linear|vesting|vest)",
    ],
    # Schedule type
    "immediate": r"fully\s+unlocked|no\s+vesting|no\s+lock|immediate",
    "cliff_only": r"cliff\s*(?:release|unlock)|(?:release|unlock)\s*after\s*cliff|one[-\s]time|single\s+unlock",
    "linear": r"linear|straight|continuous|daily|monthly|quarterly|each\s*month|vest",
}

# Alternative key spellings found in research payloads
FIELD_ALIASES = {
    "tge_percent": ("tge_percent", "tgePercent", "tge_unlock_pct", "tgeUnlock", "initial_unlock", "initialUnlock", "tge"),
    "cliff_months": ("cliff_months", "cliffMonths", "cliff"),
    "vesting_months": ("vesting_months", "vestingMonths", "duration", "durationMonths"),
    "vesting_type": ("vesting_type", "vestingType", "schedule_type", "scheduleType", "type"),
    "description": ("vesting", "vesting_description", "vestingDescription", "description", "text"),
}


def first_present(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    """Return the value of the first key present with a non-None value."""
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(str(value).strip().rstrip("%"))
    except ValueError:
        logger.debug(f"Ignoring non-numeric vesting value: {value!r}")
        return None


class VestingParser:
    """Parses vesting descriptions into structured data."""

    def __init__(self):
        self._compiled: dict[str, list[tuple[re.Pattern, bool]]] = {}
        self._compile_patterns()

    def _compile_patterns(self) -> None:
        """Pre-compile regex patterns."""
        for key, patterns in PATTERNS.items():
            if isinstance(patterns, str):
                patterns = [patterns]
            compiled = []
            for pattern in patterns:
                in_years = pattern.startswith("year:")
                if in_years:
                    pattern = pattern[len("year:"):]
                compiled.append((re.compile(pattern, re.IGNORECASE), in_years))
            self._compiled[key] = compiled

    def _extract_number(self, text: str, pattern_key: str) -> float | None:
        """
        Extract a number from text using patterns.

        Year-based matches are converted to months.
        """
        for pattern, in_years in self._compiled.get(pattern_key, []):
            match = pattern.search(text)
            if match:
                value = float(match.group(1))
                return value * 12 if in_years else value
        return None

    def _matches(self, text: str, pattern_key: str) -> bool:
        return any(p.search(text) for p, _ in self._compiled.get(pattern_key, []))

    def _detect_vesting_type(
        self,
        text: str,
        tge_percent: float | None,
        has_schedule: bool,
    ) -> VestingType | None:
        """Detect the vesting type from text."""
        if tge_percent is not None and tge_percent >= 100:
            return VestingType.IMMEDIATE
        if not has_schedule and self._matches(text, "immediate"):
            return VestingType.IMMEDIATE
        if self._matches(text, "cliff_only"):
            return VestingType.CLIFF
        if self._matches(text, "linear"):
            return VestingType.LINEAR
        return None

    def parse(self, text: str | None) -> VestingTerms | None:
        """
        Parse a vesting description into structured terms.

        Args:
            text: Free-text vesting description

        Returns:
            VestingTerms or None if text is empty
        """
        if not text:
            return None

        text = str(text).strip()
        if not text:
            return None

        tge_percent = self._extract_number(text, "tge_percent")
        cliff_months = self._extract_number(text, "cliff_months")
        vesting_months = self._extract_number(text, "vesting_months")

        return VestingTerms(
            vesting_type=self._detect_vesting_type(
                text, tge_percent, cliff_months is not None or vesting_months is not None
            ),
            tge_percent=min(tge_percent, 100.0) if tge_percent is not None else None,
            cliff_months=int(cliff_months) if cliff_months is not None else None,
            vesting_months=int(vesting_months) if vesting_months is not None else None,
            raw_description=text,
        )

    def parse_dict(self, data: dict[str, Any] | None) -> VestingTerms | None:
        """
        Parse vesting fields from a research payload.

        Structured fields win; a free-text description fills whatever the
        structured fields leave out.

        Args:
            data: Dictionary with vesting fields

        Returns:
            VestingTerms or None
        """
        if not data:
            return None

        nested = data.get("vesting")
        if isinstance(nested, dict):
            data = {k: v for k, v in data.items() if k != "vesting"}
            data.update(nested)

        tge = _to_float(first_present(data, FIELD_ALIASES["tge_percent"]))
        cliff = _to_float(first_present(data, FIELD_ALIASES["cliff_months"]))
        vesting = _to_float(first_present(data, FIELD_ALIASES["vesting_months"]))
        vesting_type = first_present(data, FIELD_ALIASES["vesting_type"])

        description = first_present(data, FIELD_ALIASES["description"])
        from_text = self.parse(description) if isinstance(description, str) else None

        terms = VestingTerms(
            vesting_type=VestingType.parse(vesting_type) if vesting_type is not None else None,
            tge_percent=min(max(tge, 0.0), 100.0) if tge is not None else None,
            cliff_months=max(int(cliff), 0) if cliff is not None else None,
            vesting_months=max(int(vesting), 0) if vesting is not None else None,
            raw_description=description if isinstance(description, str) else None,
        )

        if from_text is not None:
            terms = terms.model_copy(
                update={
                    field: getattr(from_text, field)
                    for field in ("vesting_type", "tge_percent", "cliff_months", "vesting_months")
                    if getattr(terms, field) is None
                }
            )

        if terms.is_empty and not terms.raw_description:
            return None
        return terms

    def format_summary(self, terms: VestingTerms | None) -> str:
        """
        Format vesting terms as a human-readable summary.

        Args:
            terms: VestingTerms to format

        Returns:
            Formatted string summary
        """
        if not terms:
            return "No vesting info"

        if terms.vesting_type == VestingType.IMMEDIATE:
            return "Fully unlocked at TGE"

        parts = []
        if terms.tge_percent:
            parts.append(f"{terms.tge_percent:.0f}% TGE")
        if terms.cliff_months:
            parts.append(f"{terms.cliff_months}mo cliff")
        if terms.vesting_months:
            parts.append(f"{terms.vesting_months}mo linear")
        elif terms.vesting_type == VestingType.CLIFF and terms.cliff_months:
            parts.append("released at cliff")

        if parts:
            return ", ".join(parts)

        if terms.raw_description:
            desc = terms.raw_description
            if len(desc) > 50:
                desc = desc[:47] + "..."
            return desc

        return "Vesting details available"
