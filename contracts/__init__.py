"""
ZKL Access SDK - Contract Wrappers

Read-only wrappers around standard token contracts.
"""

from .erc20 import ERC20ReadOnly

__all__ = ["ERC20ReadOnly"]
