"""
ZKL Access SDK - ERC-20 Read-Only Wrapper

Query support for base ERC-20 functionality. The wrapper is read-only and
currently exposes only ``decimals``, which the access builder needs to scale
ERC-20 minimum balances.
"""

import logging
from typing import Optional

from network.address import is_ethereum_address
from network.client import ChainClient
from network.networks import get_network_by_id

DECIMALS_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    }
]


class ERC20ReadOnly:
    """Read-only view of an ERC-20 token on one network."""

    def __init__(self, address: str, chain_id: int, client: Optional[ChainClient] = None):
        """
        Args:
            address: Token contract address
            chain_id: Network the token lives on
            client: Chain client (created from the environment if None)

        Raises:
            InvalidAddressError: If the address is malformed
            UnsupportedNetworkError: If the chain id is unknown
        """
        self.address = is_ethereum_address(address)
        self.network = get_network_by_id(chain_id)
        self.client = client or ChainClient()
        self.logger = logging.getLogger(__name__)

    async def decimals(self) -> int:
        """Number of decimals used by the token."""
        decimals = await self.client.contract_call(
            self.network.chain_id, self.address, DECIMALS_ABI, "decimals", []
        )
        self.logger.debug(f"{self.address} on chain {self.network.chain_id} uses {decimals} decimals")
        return int(decimals)
