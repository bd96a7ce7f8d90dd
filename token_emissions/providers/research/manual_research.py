"""Manual allocation research provider for analyst overrides.

Allows analysts to provide allocation research via YAML/JSON files
when automated sources are incomplete or incorrect. Files are named
{token_id}.yaml, {token_id}.yml or {token_id}.json:

    confidence: high
    notes: From the project whitepaper
    allocations:
      - category: Team
        percentage: 20
        vesting: "12 month cliff, 36 months linear"
      - category: Ecosystem
        percentage: 40
        vesting_type: linear
        vesting_months: 48
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from ...allocation_mapper import AllocationMapper
from ...core.exceptions import DataSourceError
from ...core.models import AllocationResearch
from ...core.types import ConfidenceLevel, DataSource, TokenAmount
from ..base import ResearchProvider

logger = logging.getLogger(__name__)


class ManualResearchProvider(ResearchProvider):
    """Loads allocation research from manual YAML/JSON files."""

    SOURCE = DataSource.MANUAL

    def __init__(
        self,
        data_directory: Path | str | None = None,
        mapper: AllocationMapper | None = None,
    ):
        """
        Initialize manual research provider.

        Args:
            data_directory: Directory containing manual research files
            mapper: Allocation mapper used to normalize entries
        """
        self.data_directory = Path(data_directory) if data_directory else None
        self.mapper = mapper or AllocationMapper()

    def is_available(self) -> bool:
        """Check if data directory exists and is readable."""
        if self.data_directory is None:
            return False
        return self.data_directory.exists() and self.data_directory.is_dir()

    def _find_research_file(self, token_id: str) -> Path | None:
        """Find research file for a token."""
        if not self.is_available():
            return None

        for stem in dict.fromkeys((token_id, token_id.lower())):
            for suffix in (".yaml", ".yml", ".json"):
                filepath = self.data_directory / f"{stem}{suffix}"
                if filepath.exists():
                    return filepath

        return None

    def _load_file(self, filepath: Path) -> dict[str, Any]:
        """Load YAML or JSON file."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                if filepath.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise DataSourceError(
                source=self.SOURCE.value,
                message=f"Failed to load {filepath.name}: {e}",
                endpoint=str(filepath),
            )

        # A bare list is accepted as the allocation list
        if isinstance(data, list):
            return {"allocations": data}
        if not isinstance(data, dict):
            raise DataSourceError(
                source=self.SOURCE.value,
                message=f"Unexpected content in {filepath.name}",
                endpoint=str(filepath),
            )
        return data

    def load_from_dict(
        self,
        data: dict[str, Any],
        total_supply: TokenAmount | None = None,
    ) -> AllocationResearch:
        """
        Build research directly from a dictionary (for programmatic use).

        Example:
            ```python
            provider = ManualResearchProvider()
            research = provider.load_from_dict({
                "allocations": [
                    {"category": "Team", "percentage": 15.0, "cliff_months": 12},
                    {"category": "Investors", "percentage": 20.0},
                ],
            })
            ```
        """
        allocations = self.mapper.normalize(data.get("allocations") or [], total_supply)
        confidence = data.get("confidence")

        return AllocationResearch(
            allocations=allocations,
            confidence=ConfidenceLevel.parse(confidence) if confidence else ConfidenceLevel.HIGH,
            notes=str(data.get("notes") or ""),
            source=self.SOURCE,
        )

    async def research_allocations(
        self,
        token_id: str,
        name: str,
        symbol: str,
        total_supply: TokenAmount | None = None,
    ) -> AllocationResearch | None:
        filepath = self._find_research_file(token_id)
        if filepath is None and symbol:
            filepath = self._find_research_file(symbol)

        if filepath is None:
            logger.debug(f"No manual research file found for {token_id}")
            return None

        research = self.load_from_dict(self._load_file(filepath), total_supply)
        if research.is_empty:
            logger.warning(f"Manual research file {filepath.name} has no allocations")
            return None

        logger.info(f"Loaded {len(research.allocations)} manual allocations for {token_id}")
        return research
