"""
ZKL Access SDK - Network Registry

Static registry of the EVM networks supported by the SDK, keyed by chain id.
Infura endpoints are built from the INFURA_PROJECT_ID environment variable.
"""

import os
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

INFURA_PROJECT_ID_ENV = "INFURA_PROJECT_ID"


class UnsupportedNetworkError(ValueError):
    """Raised when a chain id is not present in the registry."""
    pass


class Network(BaseModel):
    """A supported EVM network."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Human readable network name")
    currency: str = Field(..., description="Native currency symbol")
    chain_id: int = Field(..., gt=0, description="EIP-155 chain id")
    rpc_endpoint: str = Field(..., description="JSON-RPC endpoint URL")


def _infura(subdomain: str) -> str:
    project_id = os.getenv(INFURA_PROJECT_ID_ENV, "")
    return f"https://{subdomain}.infura.io/v3/{project_id}"


def _build_networks() -> Dict[int, Network]:
    networks = [
        Network(name="Ethereum", currency="ETH", chain_id=1, rpc_endpoint=_infura("mainnet")),
        Network(name="Ropsten", currency="ROP", chain_id=3, rpc_endpoint=_infura("ropsten")),
        Network(name="Rinkeby", currency="RIN", chain_id=4, rpc_endpoint=_infura("rinkeby")),
        Network(name="Goerli", currency="GOR", chain_id=5, rpc_endpoint=_infura("goerli")),
        Network(name="Gnosis Chain", currency="xDai", chain_id=100, rpc_endpoint="https://rpc.gnosischain.com"),
        Network(name="Polygon", currency="MATIC", chain_id=137, rpc_endpoint=_infura("polygon-mainnet")),
        Network(name="Ganache", currency="LOCAL", chain_id=5777, rpc_endpoint="http://localhost:7545"),
        Network(name="Hardhat", currency="HAT", chain_id=31337, rpc_endpoint="http://localhost:8545"),
        Network(name="Polygon Mumbai", currency="Test-MATIC", chain_id=80001,
                rpc_endpoint=_infura("polygon-mumbai")),
    ]
    return {network.chain_id: network for network in networks}


NETWORKS: Dict[int, Network] = _build_networks()


def get_network_by_id(chain_id: int) -> Network:
    """
    Look up a network by chain id.

    Raises:
        UnsupportedNetworkError: If the chain id is unknown
    """
    try:
        return NETWORKS[int(chain_id)]
    except (KeyError, TypeError, ValueError):
        raise UnsupportedNetworkError("Requested unsupported network id")
