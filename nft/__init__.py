"""
ZKL Access SDK - NFT Asset Storage

IPFS pinning support for NFT media and metadata.
"""

from .ipfs import InfuraIpfs, IpfsError, IpfsFile, IpfsRequestError

__all__ = ["InfuraIpfs", "IpfsError", "IpfsFile", "IpfsRequestError"]
