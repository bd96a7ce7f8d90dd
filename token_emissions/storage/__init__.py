"""Storage module for durable emissions and research data."""

from .json_store import EmissionsStore, JsonStore, ResearchStore

__all__ = ["EmissionsStore", "JsonStore", "ResearchStore"]
