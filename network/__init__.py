"""
ZKL Access SDK - Network Module

Network registry, address validation, unit conversion and the async chain
client used for RPC and contract reads.
"""

from .networks import NETWORKS, Network, UnsupportedNetworkError, get_network_by_id
from .address import InvalidAddressError, is_ethereum_address
from .client import ChainClient, ChainClientConfig, ChainClientError, ChainRPCError

__all__ = [
    "NETWORKS",
    "Network",
    "UnsupportedNetworkError",
    "get_network_by_id",
    "InvalidAddressError",
    "is_ethereum_address",
    "ChainClient",
    "ChainClientConfig",
    "ChainClientError",
    "ChainRPCError",
]
