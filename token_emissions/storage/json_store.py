"""
JSON-based durable storage for emissions results and allocation research.

Simple, file-based storage that persists one JSON document per token:

    <data_dir>/emissions/<token_id>.json  {token_id, category, updated_at, data}
    <data_dir>/research/<token_id>.json   {token_id, updated_at, data}

Entries stay valid until explicitly deleted (reseed).
"""

import json
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import StorageError
from ..core.models import AllocationResearch, ProjectEmissionsResult

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^a-z0-9._-]")


class JsonStore:
    """
    One JSON file per key under a data directory.

    Usage:
        store = JsonStore(Path("data/emissions"))
        store.save("arbitrum", {"token_id": "arbitrum"})
        store.load("arbitrum")
        store.list_all()
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _get_path(self, key: str) -> Path:
        """Get file path for a key."""
        safe = _UNSAFE_KEY_CHARS.sub("_", key.strip().lower()).strip(".")
        if not safe:
            raise StorageError(str(self.data_dir), f"Invalid storage key: {key!r}")
        return self.data_dir / f"{safe}.json"

    def save(self, key: str, payload: Dict[str, Any]) -> Path:
        """
        Write a document, replacing any previous version atomically.

        Returns the path to the saved file.
        """
        path = self._get_path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(str(path), f"Write failed: {e}")
        return path

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Read a document.

        Returns None if the file doesn't exist.
        """
        path = self._get_path(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(str(path), f"Read failed: {e}")

        if not isinstance(data, dict):
            raise StorageError(str(path), "Document is not a JSON object")
        return data

    def exists(self, key: str) -> bool:
        """Check if a document exists for key."""
        return self._get_path(key).exists()

    def delete(self, key: str) -> bool:
        """Delete a document. Returns True if deleted."""
        path = self._get_path(key)
        try:
            if path.exists():
                path.unlink()
                return True
        except OSError as e:
            raise StorageError(str(path), f"Delete failed: {e}")
        return False

    def list_all(self) -> List[str]:
        """List all stored keys."""
        if not self.data_dir.exists():
            return []
        return sorted(p.stem for p in self.data_dir.glob("*.json"))


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class EmissionsStore(JsonStore):
    """Durable tier of built emissions results."""

    def __init__(self, data_dir: Path):
        super().__init__(Path(data_dir) / "emissions")

    def save_result(self, result: ProjectEmissionsResult, category: Optional[str] = None) -> Path:
        """Persist a result tagged with its sector category."""
        token_id = result.token.token_id
        return self.save(
            token_id,
            {
                "token_id": token_id,
                "category": category if category is not None else result.token.category,
                "updated_at": _timestamp(),
                "data": result.model_dump(mode="json"),
            },
        )

    def load_result(self, token_id: str) -> Optional[ProjectEmissionsResult]:
        """
        Load a persisted result.

        Returns None if nothing is stored. A document that no longer
        matches the result model raises StorageError.
        """
        document = self.load(token_id)
        if document is None:
            return None

        try:
            return ProjectEmissionsResult.model_validate(document["data"])
        except (KeyError, PydanticValidationError) as e:
            raise StorageError(str(self._get_path(token_id)), f"Corrupt emissions entry: {e}")

    def list_by_category(self, category: str) -> List[str]:
        """List stored token ids tagged with a category."""
        token_ids = []
        for key in self.list_all():
            try:
                document = self.load(key)
            except StorageError as e:
                logger.warning(e.message)
                continue
            if document and document.get("category") == category:
                token_ids.append(document.get("token_id", key))
        return token_ids


class ResearchStore(JsonStore):
    """Durable cache of allocation research, independent of built results."""

    def __init__(self, data_dir: Path):
        super().__init__(Path(data_dir) / "research")

    def save_research(self, token_id: str, research: AllocationResearch) -> Path:
        return self.save(
            token_id,
            {
                "token_id": token_id,
                "updated_at": _timestamp(),
                "data": research.model_dump(mode="json"),
            },
        )

    def load_research(self, token_id: str) -> Optional[AllocationResearch]:
        document = self.load(token_id)
        if document is None:
            return None

        try:
            return AllocationResearch.model_validate(document["data"])
        except (KeyError, PydanticValidationError) as e:
            raise StorageError(str(self._get_path(token_id)), f"Corrupt research entry: {e}")
