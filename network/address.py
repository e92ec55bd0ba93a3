"""
ZKL Access SDK - Ethereum Address Validation
"""

from typing import Any

from web3 import Web3


class InvalidAddressError(ValueError):
    """Raised when a value is not a well-formed Ethereum address."""
    pass


def is_ethereum_address(address: Any) -> str:
    """
    Validate an Ethereum address.

    Accepts all-lowercase, all-uppercase and correctly checksummed hex
    addresses. Mixed-case addresses with a bad checksum are rejected.

    Args:
        address: Candidate address

    Returns:
        The checksummed form of the address

    Raises:
        InvalidAddressError: If the address is malformed
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidAddressError("Not a valid Eth address")
    return Web3.to_checksum_address(address)
