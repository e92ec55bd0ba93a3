"""
Pytest configuration and fixtures for ZKL Access SDK tests.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from network.client import ChainClient


@pytest.fixture
def chain_client():
    """Chain client double with async rpc_call and contract_call."""
    client = Mock(spec=ChainClient)
    client.rpc_call = AsyncMock()
    client.contract_call = AsyncMock()
    return client
