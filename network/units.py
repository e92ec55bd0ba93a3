"""
ZKL Access SDK - Unit Conversion Helpers

Conversions between ether denominations and token base units. Amounts in
base units are returned as Python integers; callers that persist them
(schema formatters) convert to decimal strings.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from web3 import Web3

Number = Union[int, float, str, Decimal]


def hex_to_decimal(hex_string: str) -> int:
    """Convert a hex string (with or without 0x prefix) to an integer."""
    return int(hex_string, 16)


def to_int(value: Union[Number, bytes]) -> int:
    """
    Coerce a chain return value or schema value to an integer.

    Accepts ints, 0x-prefixed hex strings, decimal strings and raw big-endian
    bytes. Booleans are rejected.

    Raises:
        ValueError: If the value has no integer interpretation
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot compare boolean value {value} numerically")
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith(("0x", "-0x")):
            return int(text, 16)
        return int(text)
    if isinstance(value, (float, Decimal)) and value == int(value):
        return int(value)
    raise ValueError(f"Cannot convert {value!r} to an integer")


def eth_to_wei(eth_amount: Number) -> int:
    """Convert an amount in ether to wei."""
    return Web3.to_wei(eth_amount, "ether")


def wei_to_eth(wei_amount: Number) -> float:
    """Convert an amount in wei to ether, rounded to 9 decimal places."""
    return round(float(Web3.from_wei(to_int(wei_amount), "ether")), 9)


def gwei_to_eth(gwei_amount: Number) -> float:
    """Convert an amount in gwei to ether, rounded to 9 decimal places."""
    return wei_to_eth(to_int(gwei_amount) * 10 ** 9)


def parse_units(amount: Number, decimals: int) -> int:
    """
    Scale a decimal token amount to base units.

    Args:
        amount: Human readable amount, e.g. 1.5
        decimals: Token decimals, e.g. 18

    Returns:
        Amount in base units

    Raises:
        ValueError: If the amount is not numeric or has more fractional
            digits than the token supports
    """
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise ValueError(f"Invalid decimals: {decimals}")

    try:
        scaled = Decimal(str(amount)) * (Decimal(10) ** decimals)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount}")

    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimal places")

    return int(scaled)
