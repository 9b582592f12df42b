"""
Solana cluster names and the numeric chain ids issuers use for them.
"""

from enum import IntEnum
from typing import Optional, Union


SOLANA_CHAINS = ["mainnet-beta", "testnet", "devnet", "localnet"]


class SolanaNetwork(IntEnum):
    MAINNET_BETA = 1
    DEVNET = 2
    TESTNET = 3
    LOCALNET = 1337


_CLUSTER_TO_NETWORK = {
    "mainnet-beta": SolanaNetwork.MAINNET_BETA,
    "devnet": SolanaNetwork.DEVNET,
    "testnet": SolanaNetwork.TESTNET,
    "localnet": SolanaNetwork.LOCALNET,
}

_NETWORK_TO_CLUSTER = {v: k for k, v in _CLUSTER_TO_NETWORK.items()}


def convert_cluster_to_chain_id(cluster: str) -> Optional[SolanaNetwork]:
    """Convert a cluster name to its chain id, or None if unknown."""
    return _CLUSTER_TO_NETWORK.get(cluster)


def convert_chain_id_to_cluster(chain_id: Optional[int]) -> Optional[str]:
    """Convert a chain id to its cluster name, or None if unknown."""
    if chain_id is None:
        return None
    return _NETWORK_TO_CLUSTER.get(chain_id)


def resolve_cluster(value: Union[str, int]) -> str:
    """
    Normalize a configured cluster value.

    Numeric values (int or digit strings) are treated as chain ids and
    mapped to their cluster name. Any other string is returned as-is so
    custom deployment names keep working.
    """
    if isinstance(value, int) or (isinstance(value, str) and value.strip().isdigit()):
        cluster = convert_chain_id_to_cluster(int(value))
        if cluster is None:
            raise ValueError(f"Unknown chain id: {value}")
        return cluster
    return value.strip()
