"""EVM chain metadata: display names, block explorers and hash formats."""

import re

CHAIN_NAMES: dict[int, str] = {
    1: "Ethereum",
    137: "Polygon",
    10: "Optimism",
    42161: "Arbitrum",
    8453: "Base",
    56: "BNB Chain",
    43114: "Avalanche",
    324: "zkSync Era",
    100: "Gnosis Chain",
    1101: "Polygon zkEVM",
    314: "Filecoin",
    42220: "Celo",
    11155111: "Sepolia",
    534351: "Scroll Sepolia",
}

EXPLORER_TX_URLS: dict[int, str] = {
    1: "https://etherscan.io/tx/",
    137: "https://polygonscan.com/tx/",
    10: "https://optimistic.etherscan.io/tx/",
    42161: "https://arbiscan.io/tx/",
    8453: "https://basescan.org/tx/",
    11155111: "https://sepolia.etherscan.io/tx/",
}

UNKNOWN_CHAIN = "Unknown Chain"

_TX_HASH_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")


def get_chain_name(network_id: int, default: str | None = None) -> str:
    """
    Display name for a chain id.

    Unknown ids fall back to `default`, or "Chain ID <n>" when none is given.
    """
    name = CHAIN_NAMES.get(network_id)
    if name is not None:
        return name
    if default is not None:
        return default
    return f"Chain ID {network_id}"


def get_explorer_url(network_id: int, tx_hash: str) -> str | None:
    """Block explorer link for a transaction, or None for chains without one."""
    base = EXPLORER_TX_URLS.get(network_id)
    if base is None:
        return None
    return f"{base}{tx_hash}"


def is_valid_tx_hash(tx_hash: str) -> bool:
    return bool(_TX_HASH_RE.match(tx_hash or ""))
