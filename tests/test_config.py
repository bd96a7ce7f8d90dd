"""Tests for environment-based configuration."""

from pathlib import Path

import pytest

from token_emissions.core.config import EngineConfig
from token_emissions.core.exceptions import ConfigurationError

ENV_VARS = (
    "COINGECKO_API_KEY",
    "CRYPTORANK_API_KEY",
    "EMISSIONS_DATA_DIR",
    "EMISSIONS_MANUAL_DIR",
    "EMISSIONS_GROUP_RULES",
    "EMISSIONS_HORIZON_MONTHS",
    "EMISSIONS_WINDOW_MONTHS",
    "EMISSIONS_CACHE_TTL_SECONDS",
    "EMISSIONS_MARKET_TTL_SECONDS",
    "EMISSIONS_BUILD_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so monkeypatch restores whatever load_dotenv writes
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults():
    config = EngineConfig.from_env()

    assert config.horizon_months == 120
    assert config.window_months == 60
    assert config.cache_ttl_seconds == 1800
    assert config.data_dir is None
    assert not config.has_cryptorank()
    assert config.get_research_sources() == []


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("CRYPTORANK_API_KEY", "secret")
    monkeypatch.setenv("EMISSIONS_DATA_DIR", "/tmp/emissions")
    monkeypatch.setenv("EMISSIONS_MANUAL_DIR", "/tmp/manual")
    monkeypatch.setenv("EMISSIONS_HORIZON_MONTHS", "96")
    monkeypatch.setenv("EMISSIONS_CACHE_TTL_SECONDS", "0")
    monkeypatch.setenv("EMISSIONS_BUILD_TIMEOUT_SECONDS", "2.5")

    config = EngineConfig.from_env()

    assert config.has_cryptorank()
    assert config.data_dir == Path("/tmp/emissions")
    assert config.horizon_months == 96
    assert config.cache_ttl_seconds == 0
    assert config.build_timeout_seconds == 2.5
    assert config.get_research_sources() == ["manual", "cryptorank"]


@pytest.mark.parametrize(
    "name,value",
    [
        ("EMISSIONS_HORIZON_MONTHS", "ten"),
        ("EMISSIONS_WINDOW_MONTHS", "0"),
        ("EMISSIONS_CACHE_TTL_SECONDS", "-1"),
        ("EMISSIONS_BUILD_TIMEOUT_SECONDS", "0"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError) as exc_info:
        EngineConfig.from_env()

    assert exc_info.value.details["config_key"] == name


def test_load_env_file(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("EMISSIONS_WINDOW_MONTHS=24\n", encoding="utf-8")

    config = EngineConfig.load(env_file)

    assert config.window_months == 24
