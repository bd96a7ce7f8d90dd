"""Tests for durable JSON storage and the in-memory cache."""

import json

import pytest

from token_emissions.cache import MemoryCache
from token_emissions.calculator.emissions import build_project_emissions
from token_emissions.core.exceptions import StorageError
from token_emissions.storage.json_store import EmissionsStore, JsonStore, ResearchStore


@pytest.fixture
def built_result(sample_snapshot, sample_research, fixed_now):
    return build_project_emissions(
        sample_snapshot,
        sample_research,
        horizon_months=120,
        window_months=60,
        now=fixed_now,
        category="Layer 2",
    )


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestJsonStore:
    """Tests for JsonStore."""

    def test_save_and_load(self, tmp_path):
        store = JsonStore(tmp_path / "docs")

        path = store.save("Arbitrum", {"value": 1})

        assert path.name == "arbitrum.json"
        assert store.load("arbitrum") == {"value": 1}
        assert store.exists("ARBITRUM")
        assert store.list_all() == ["arbitrum"]

    def test_missing_key_returns_none(self, tmp_path):
        store = JsonStore(tmp_path)

        assert store.load("nothing") is None
        assert store.delete("nothing") is False

    def test_unsafe_key_is_sanitized(self, tmp_path):
        store = JsonStore(tmp_path)

        path = store.save("../evil/token", {"value": 1})

        assert path.parent == tmp_path
        with pytest.raises(StorageError):
            store.save("   ", {"value": 1})

    def test_corrupt_file_raises(self, tmp_path):
        store = JsonStore(tmp_path)
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        (tmp_path / "listy.json").write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(StorageError):
            store.load("broken")
        with pytest.raises(StorageError):
            store.load("listy")

    def test_delete(self, tmp_path):
        store = JsonStore(tmp_path)
        store.save("alpha", {})

        assert store.delete("alpha") is True
        assert not store.exists("alpha")


class TestEmissionsStore:
    """Tests for EmissionsStore."""

    def test_round_trip(self, tmp_path, built_result):
        store = EmissionsStore(tmp_path)

        store.save_result(built_result)
        loaded = store.load_result("alpha")

        assert loaded.model_dump() == built_result.model_dump()

    def test_document_layout(self, tmp_path, built_result):
        store = EmissionsStore(tmp_path)

        path = store.save_result(built_result)
        document = json.loads(path.read_text(encoding="utf-8"))

        assert path.parent == tmp_path / "emissions"
        assert document["token_id"] == "alpha"
        assert document["category"] == "Layer 2"
        assert "updated_at" in document
        assert document["data"]["token"]["symbol"] == "ALP"

    def test_invalid_document_raises(self, tmp_path):
        store = EmissionsStore(tmp_path)
        store.save("alpha", {"token_id": "alpha", "data": {"token": {}}})
        store.save("beta", {"token_id": "beta"})

        with pytest.raises(StorageError):
            store.load_result("alpha")
        with pytest.raises(StorageError):
            store.load_result("beta")

    def test_list_by_category(self, tmp_path, built_result):
        store = EmissionsStore(tmp_path)
        store.save_result(built_result)
        other = built_result.model_copy(
            update={"token": built_result.token.model_copy(update={"token_id": "beta"})}
        )
        store.save_result(other, category="DeFi")

        assert store.list_by_category("Layer 2") == ["alpha"]
        assert store.list_by_category("DeFi") == ["beta"]


class TestResearchStore:
    """Tests for ResearchStore."""

    def test_round_trip(self, tmp_path, sample_research):
        store = ResearchStore(tmp_path)

        store.save_research("alpha", sample_research)

        assert store.load_research("alpha").model_dump() == sample_research.model_dump()
        assert store.load_research("beta") is None


class TestMemoryCache:
    """Tests for MemoryCache."""

    def test_fresh_entry_returned(self, built_result):
        clock = FakeClock()
        cache = MemoryCache(ttl_seconds=60, clock=clock)

        cache.set("alpha", built_result)
        clock.now += 59

        assert cache.get("alpha") is built_result
        assert "alpha" in cache

    def test_stale_entry_evicted(self, built_result):
        clock = FakeClock()
        cache = MemoryCache(ttl_seconds=60, clock=clock)

        cache.set("alpha", built_result)
        clock.now += 60

        assert cache.get("alpha") is None
        assert len(cache) == 0

    def test_evict_and_clear(self, built_result):
        cache = MemoryCache()
        cache.set("alpha", built_result)
        cache.set("beta", built_result)

        assert cache.evict("alpha") is True
        assert cache.evict("alpha") is False
        cache.clear()
        assert len(cache) == 0
