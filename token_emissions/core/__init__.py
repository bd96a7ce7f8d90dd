"""Core module - data models, types, and exceptions."""

from .models import (
    AllocationInput,
    VestingTerms,
    AllocationResearch,
    MarketSnapshot,
    AllocationScheduleResult,
    CliffEvent,
    ProjectSchedule,
    CalibrationResult,
    EmissionToken,
    ProjectEmissionsResult,
    CacheEntry,
    ComparisonRow,
    MarketEmissionsRow,
    InflationPeriodMetrics,
)
from .types import (
    VestingType,
    StandardGroup,
    DataSource,
    ConfidenceLevel,
    CalibrationMethod,
    UnlockKind,
)
from .exceptions import (
    EmissionsError,
    TokenNotFoundError,
    DataSourceError,
    RateLimitError,
    ConfigurationError,
    StorageError,
)

__all__ = [
    # Models
    "AllocationInput",
    "VestingTerms",
    "AllocationResearch",
    "MarketSnapshot",
    "AllocationScheduleResult",
    "CliffEvent",
    "ProjectSchedule",
    "CalibrationResult",
    "EmissionToken",
    "ProjectEmissionsResult",
    "CacheEntry",
    "ComparisonRow",
    "MarketEmissionsRow",
    "InflationPeriodMetrics",
    # Types
    "VestingType",
    "StandardGroup",
    "DataSource",
    "ConfidenceLevel",
    "CalibrationMethod",
    "UnlockKind",
    # Exceptions
    "EmissionsError",
    "TokenNotFoundError",
    "DataSourceError",
    "RateLimitError",
    "ConfigurationError",
    "StorageError",
]
