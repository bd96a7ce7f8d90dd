"""Data providers for the token emissions engine.

This module contains providers for:
- Market data (CoinGecko)
- Allocation research (manual analyst files, CryptoRank)
"""

from .base import BaseProvider, CachedProvider, HttpProvider, ResearchProvider
from .market import CoinGeckoMarketProvider
from .research import CryptoRankResearchProvider, ManualResearchProvider

__all__ = [
    "BaseProvider",
    "CachedProvider",
    "HttpProvider",
    "ResearchProvider",
    "CoinGeckoMarketProvider",
    "CryptoRankResearchProvider",
    "ManualResearchProvider",
]
