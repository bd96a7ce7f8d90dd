"""Type definitions and enums for the token emissions engine."""

from enum import Enum


class VestingType(str, Enum):
    """Vesting rule applied to an allocation."""

    IMMEDIATE = "immediate"   # Everything unlocked at TGE
    CLIFF = "cliff"           # Single unlock at the cliff month
    LINEAR = "linear"         # Constant-rate unlock after the cliff
    CUSTOM = "custom"         # Explicit per-month overrides, else linear

    @classmethod
    def parse(cls, value: object) -> "VestingType":
        """Parse a loose vesting label, defaulting to LINEAR."""
        if isinstance(value, VestingType):
            return value
        if value is None:
            return cls.LINEAR

        text = str(value).strip().lower()
        if text in ("immediate", "instant", "tge", "unlocked", "none"):
            return cls.IMMEDIATE
        if text in ("cliff", "cliff_only", "one-time", "single"):
            return cls.CLIFF
        if text == "custom":
            return cls.CUSTOM
        return cls.LINEAR


class StandardGroup(str, Enum):
    """Standard allocation groups used to compare projects."""

    TEAM = "team"
    INVESTORS = "investors"
    PUBLIC = "public"
    TREASURY = "treasury"
    COMMUNITY = "community"

    @property
    def display_name(self) -> str:
        """Human-readable display name."""
        names = {
            self.TEAM: "Team / Advisors",
            self.INVESTORS: "Investors",
            self.PUBLIC: "Public Sale",
            self.TREASURY: "Treasury / Reserve",
            self.COMMUNITY: "Community / Ecosystem",
        }
        return names.get(self, self.value)


class DataSource(str, Enum):
    """Data source identifiers."""

    COINGECKO = "coingecko"
    CRYPTORANK = "cryptorank"
    MANUAL = "manual"
    UNKNOWN = "unknown"


class ConfidenceLevel(str, Enum):
    """Confidence level attached to allocation research."""

    HIGH = "high"           # Direct from authoritative source, verified
    MEDIUM = "medium"       # From reliable source, not cross-verified
    LOW = "low"             # Estimated or from single unreliable source
    UNKNOWN = "unknown"     # Source unknown or quality unclear

    @classmethod
    def parse(cls, value: object) -> "ConfidenceLevel":
        """Parse a loose confidence label."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class CalibrationMethod(str, Enum):
    """Strategy that produced the calibration anchor."""

    SUPPLY = "supply"       # Observed circulating supply bracketed on the curve
    DATE = "date"           # Months elapsed since the generation date
    DEFAULT = "default"     # Treated as freshly generated


class UnlockKind(str, Enum):
    """How the post-TGE remainder of an allocation reaches the market."""

    CLIFF = "cliff"
    LINEAR = "linear"


# Type aliases for common patterns
Percentage = float   # 0-100 scale
TokenAmount = float  # Number of tokens
USDAmount = float    # USD value
MonthLabel = str     # "YYYY-MM"
