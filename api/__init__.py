"""
ZKL Access SDK - Backend API

Client for the ZKL REST backend (contract ABIs and mint vouchers).
"""

from .client import ApiRequestError, ZklApiClient

__all__ = ["ApiRequestError", "ZklApiClient"]
