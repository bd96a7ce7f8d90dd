"""Market data providers."""

from .coingecko_market import CoinGeckoMarketProvider

__all__ = ["CoinGeckoMarketProvider"]
