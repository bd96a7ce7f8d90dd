"""Allocation mapping module.

Normalizes research payloads into validated allocation inputs and maps
category labels to standard groups using configurable rules.
"""

from .mapper import AllocationMapper
from .vesting_parser import VestingParser

__all__ = ["AllocationMapper", "VestingParser"]
