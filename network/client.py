"""
ZKL Access SDK - Async Chain Client

This module provides the chain client used by the access evaluator and the
read-only contract wrappers: raw JSON-RPC calls and read-only contract calls
against any network in the registry, over web3's async HTTP provider.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from web3 import AsyncWeb3

from network.networks import get_network_by_id
from network.units import to_int

RPC_URL_ENV_PREFIX = "ZKL_RPC_URL_"


class ChainClientError(Exception):
    """Base exception for chain client errors."""
    pass


class ChainRPCError(ChainClientError):
    """Raised when a node answers a JSON-RPC request with an error object."""

    def __init__(self, code: Optional[int], message: str, data: Optional[Any] = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"RPC Error {code}: {message}")


@dataclass
class ChainClientConfig:
    """Configuration for the chain client."""
    timeout: int = 30
    rpc_overrides: Dict[int, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")

    def endpoint_for(self, chain_id: int) -> str:
        """Resolve the RPC endpoint for a chain id, preferring overrides."""
        if chain_id in self.rpc_overrides:
            return self.rpc_overrides[chain_id]
        return get_network_by_id(chain_id).rpc_endpoint

    @classmethod
    def from_env(cls) -> 'ChainClientConfig':
        """Create chain client config from environment variables."""
        overrides = {}
        for name, value in os.environ.items():
            if name.startswith(RPC_URL_ENV_PREFIX) and value:
                suffix = name[len(RPC_URL_ENV_PREFIX):]
                if suffix.isdigit():
                    overrides[int(suffix)] = value

        return cls(
            timeout=int(os.getenv("ZKL_RPC_TIMEOUT", "30")),
            rpc_overrides=overrides
        )


def coerce_integer_arguments(abi: List[Dict[str, Any]], function_name: str,
                             params: Sequence[Any]) -> List[Any]:
    """
    Convert string arguments to ints where the ABI declares an integer input.

    Stored schemas may hold token ids as decimal or hex strings; web3 only
    encodes Python ints for uint/int parameters.

    Raises:
        ValueError: If a string argument for an integer input is not numeric
    """
    params = list(params)
    for entry in abi:
        inputs = entry.get("inputs", [])
        if entry.get("type", "function") != "function" or entry.get("name") != function_name:
            continue
        if len(inputs) != len(params):
            continue
        return [
            to_int(param) if isinstance(param, str) and _is_integer_type(spec.get("type", "")) else param
            for param, spec in zip(params, inputs)
        ]
    return params


def _is_integer_type(abi_type: str) -> bool:
    return abi_type.startswith(("uint", "int")) and not abi_type.endswith("]")


def _default_web3_factory(endpoint: str, timeout: int) -> AsyncWeb3:
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(endpoint, request_kwargs={"timeout": timeout}))


class ChainClient:
    """
    Read-only access to EVM chains by chain id.

    One AsyncWeb3 instance is created lazily per chain id and reused.
    """

    def __init__(self, config: Optional[ChainClientConfig] = None,
                 web3_factory: Optional[Callable[[str, int], Any]] = None):
        """
        Initialize the chain client.

        Args:
            config: Client configuration (uses environment if None)
            web3_factory: Builds a web3 instance from (endpoint, timeout)
        """
        self.config = config or ChainClientConfig.from_env()
        self.logger = logging.getLogger(__name__)
        self._web3_factory = web3_factory or _default_web3_factory
        self._instances: Dict[int, Any] = {}
        self._instances_lock = threading.Lock()

        self._method_stats: Dict[str, Dict[str, Any]] = {}

    def get_web3(self, chain_id: int) -> Any:
        """Get or create the web3 instance for a chain id."""
        with self._instances_lock:
            if chain_id not in self._instances:
                endpoint = self.config.endpoint_for(chain_id)
                self._instances[chain_id] = self._web3_factory(endpoint, self.config.timeout)
                self.logger.debug(f"Created web3 instance for chain {chain_id}")
            return self._instances[chain_id]

    async def rpc_call(self, chain_id: int, method: str, params: Sequence[Any]) -> Any:
        """
        Send a raw JSON-RPC request.

        Args:
            chain_id: Network to query
            method: RPC method name, e.g. eth_getBalance
            params: RPC parameters

        Returns:
            The "result" member of the response

        Raises:
            ChainRPCError: If the node returns an error object
            UnsupportedNetworkError: If the chain id is unknown
        """
        w3 = self.get_web3(chain_id)
        try:
            response = await w3.provider.make_request(method, list(params))
        except Exception as e:
            self._record(method, failed=True)
            self.logger.error(f"RPC call {method} on chain {chain_id} failed: {e}")
            raise

        error = response.get("error")
        if error:
            self._record(method, failed=True)
            if isinstance(error, dict):
                raise ChainRPCError(error.get("code"), error.get("message", ""), error.get("data"))
            raise ChainRPCError(None, str(error))

        self._record(method)
        return response.get("result")

    async def contract_call(self, chain_id: int, contract_address: str, abi: List[Dict[str, Any]],
                            function_name: str, params: Sequence[Any]) -> Any:
        """
        Call a view function on a contract.

        Args:
            chain_id: Network to query
            contract_address: Contract address
            abi: ABI containing at least the called function
            function_name: Function to call
            params: Positional function arguments

        Returns:
            The decoded return value
        """
        w3 = self.get_web3(chain_id)
        contract = w3.eth.contract(address=AsyncWeb3.to_checksum_address(contract_address), abi=abi)
        arguments = coerce_integer_arguments(abi, function_name, params)
        try:
            result = await getattr(contract.functions, function_name)(*arguments).call()
        except Exception as e:
            self._record(function_name, failed=True)
            self.logger.error(f"Contract call {contract_address}.{function_name} on chain {chain_id} failed: {e}")
            raise

        self._record(function_name)
        return result

    def _record(self, method: str, failed: bool = False):
        stats = self._method_stats.setdefault(method, {"calls": 0, "errors": 0, "last_call": None})
        stats["calls"] += 1
        if failed:
            stats["errors"] += 1
        stats["last_call"] = datetime.now(timezone.utc)

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get per-method call statistics."""
        return {method: dict(stats) for method, stats in self._method_stats.items()}
