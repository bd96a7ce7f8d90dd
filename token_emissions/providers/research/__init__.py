"""Allocation research providers."""

from .manual_research import ManualResearchProvider
from .cryptorank_research import CryptoRankResearchProvider

__all__ = ["ManualResearchProvider", "CryptoRankResearchProvider"]
