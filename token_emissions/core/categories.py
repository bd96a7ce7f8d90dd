"""Sector categories for well-known tokens.

The category is stored next to each durable emissions entry so portfolio
views can group projects without re-fetching metadata.
"""

TOKEN_CATEGORIES: dict[str, list[str]] = {
    "Layer 1": [
        "bitcoin", "ethereum", "solana", "cardano", "avalanche-2",
        "aptos", "sui", "celestia", "near", "polkadot",
    ],
    "Layer 2": [
        "arbitrum", "optimism", "starknet", "polygon-ecosystem-token",
        "mantle", "base-protocol", "zksync", "scroll",
    ],
    "DeFi": [
        "uniswap", "aave", "lido-dao", "maker", "curve-dao-token",
        "compound-governance-token", "gmx", "pendle", "jupiter-exchange-solana",
    ],
    "Perpetuals": [
        "gmx", "dydx-chain", "gains-network", "hyperliquid", "vertex-protocol",
    ],
    "RWA": ["ondo-finance", "centrifuge", "maple-finance", "goldfinch", "clearpool"],
    "Gaming": ["immutable-x", "the-sandbox", "axie-infinity", "gala", "ronin", "beam-2"],
    "AI": [
        "render-token", "fetch-ai", "singularitynet", "ocean-protocol",
        "bittensor", "worldcoin-wld",
    ],
    "Meme": ["dogecoin", "shiba-inu", "pepe", "floki", "bonk", "dogwifcoin"],
}


def get_token_category(token_id: str) -> str | None:
    """Return the first category listing the token, if any."""
    for category, ids in TOKEN_CATEGORIES.items():
        if token_id in ids:
            return category
    return None
