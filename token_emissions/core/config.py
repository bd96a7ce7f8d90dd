"""Configuration management for API keys and engine settings.

Loads configuration from environment variables or .env file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_HORIZON_MONTHS = 120
DEFAULT_WINDOW_MONTHS = 60
DEFAULT_CACHE_TTL_SECONDS = 30 * 60
DEFAULT_MARKET_TTL_SECONDS = 60
DEFAULT_BUILD_TIMEOUT_SECONDS = 60.0


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(name, f"expected an integer, got {raw!r}")
    if value < minimum:
        raise ConfigurationError(name, f"must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(name, f"expected a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(name, f"must be positive, got {value}")
    return value


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    return Path(raw) if raw else None


@dataclass
class EngineConfig:
    """Settings for providers, cache tiers and the simulation."""

    # CoinGecko (optional - public API works without key)
    coingecko_api_key: Optional[str] = None

    # CryptoRank (allocation research)
    cryptorank_api_key: Optional[str] = None

    # Durable cache root; emissions/ and research/ live underneath
    data_dir: Optional[Path] = None

    # Analyst allocation files ({token_id}.yaml / .json)
    manual_data_dir: Optional[Path] = None

    # YAML file overriding the standard-group mapping rules
    group_rules_path: Optional[Path] = None

    # Simulation
    horizon_months: int = DEFAULT_HORIZON_MONTHS
    window_months: int = DEFAULT_WINDOW_MONTHS

    # Cache tiers
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    market_ttl_seconds: int = DEFAULT_MARKET_TTL_SECONDS

    # Per-key build timeout in batch resolves
    build_timeout_seconds: float = DEFAULT_BUILD_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load configuration from environment variables."""
        return cls(
            coingecko_api_key=os.getenv("COINGECKO_API_KEY"),
            cryptorank_api_key=os.getenv("CRYPTORANK_API_KEY"),
            data_dir=_env_path("EMISSIONS_DATA_DIR"),
            manual_data_dir=_env_path("EMISSIONS_MANUAL_DIR"),
            group_rules_path=_env_path("EMISSIONS_GROUP_RULES"),
            horizon_months=_env_int("EMISSIONS_HORIZON_MONTHS", DEFAULT_HORIZON_MONTHS),
            window_months=_env_int("EMISSIONS_WINDOW_MONTHS", DEFAULT_WINDOW_MONTHS),
            cache_ttl_seconds=_env_int(
                "EMISSIONS_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS, minimum=0
            ),
            market_ttl_seconds=_env_int(
                "EMISSIONS_MARKET_TTL_SECONDS", DEFAULT_MARKET_TTL_SECONDS, minimum=0
            ),
            build_timeout_seconds=_env_float(
                "EMISSIONS_BUILD_TIMEOUT_SECONDS", DEFAULT_BUILD_TIMEOUT_SECONDS
            ),
        )

    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> "EngineConfig":
        """
        Load configuration from .env file and environment variables.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the working directory.

        Returns:
            EngineConfig instance with loaded values
        """
        if env_file:
            load_dotenv(env_file)
        else:
            env_path = Path.cwd() / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        return cls.from_env()

    def has_cryptorank(self) -> bool:
        """Check if CryptoRank API key is configured."""
        return bool(self.cryptorank_api_key)

    def has_coingecko(self) -> bool:
        """Check if CoinGecko API key is configured (optional)."""
        return bool(self.coingecko_api_key)

    def get_research_sources(self) -> list[str]:
        """Get list of configured allocation research sources."""
        sources = []
        if self.manual_data_dir:
            sources.append("manual")
        if self.cryptorank_api_key:
            sources.append("cryptorank")
        return sources


# Global config instance (lazy loaded)
_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = EngineConfig.load()
    return _config


def reload_config(env_file: Optional[Path] = None) -> EngineConfig:
    """Reload configuration from environment."""
    global _config
    _config = EngineConfig.load(env_file)
    return _config
