"""
ZKL Access SDK - Condition Validation Strategies

Each access condition is checked by exactly one of five strategies:

- whitelist: subject address equals the stored address (case-insensitive)
- blacklist: subject address differs from the stored address
- timelock: current time compared with a stored millisecond timestamp
- rpc: raw JSON-RPC call whose result is compared with the stored value
- contract: view function call whose result is compared with the stored value

Strategies are plain async callables grouped in a ConditionStrategies
object so that evaluators can be given substitutes.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from access.exceptions import EvaluationError
from access.schema import USER_ADDRESS, Comparator
from network.client import ChainClient
from network.units import to_int

logger = logging.getLogger(__name__)

StrategyFunc = Callable[[str, Dict[str, Any]], Awaitable[bool]]


def substitute_parameters(parameters: List[Any], address: str) -> List[Any]:
    """Replace every ``:userAddress`` placeholder with the subject address."""
    return [address if param == USER_ADDRESS else param for param in parameters]


def compare_result(result: Any, return_value_test: Dict[str, Any]) -> bool:
    """
    Compare an on-chain result against a returnValueTest.

    ``==`` compares string forms; ``>=`` and ``<=`` compare integers, so
    hex strings, decimal strings and ints may be mixed freely.

    Raises:
        EvaluationError: On an unknown comparator or a non-numeric operand
            for a numeric comparator
    """
    comparator = return_value_test.get("comparator")
    value = return_value_test.get("value")

    if comparator == Comparator.EQ.value:
        return str(value) == str(result)

    if comparator in (Comparator.GTE.value, Comparator.LTE.value):
        try:
            left, right = to_int(result), to_int(value)
        except (TypeError, ValueError) as e:
            raise EvaluationError(f"Cannot compare {result!r} with {value!r}") from e
        return left >= right if comparator == Comparator.GTE.value else left <= right

    raise EvaluationError(f"Unknown comparator {comparator}")


async def validate_whitelist_condition(address: str, access_condition: Dict[str, Any]) -> bool:
    value = (access_condition.get("returnValueTest") or {}).get("value")
    return isinstance(value, str) and address.lower() == value.lower()


async def validate_blacklist_condition(address: str, access_condition: Dict[str, Any]) -> bool:
    value = (access_condition.get("returnValueTest") or {}).get("value")
    return not (isinstance(value, str) and address.lower() == value.lower())


def make_timelock_strategy(clock: Callable[[], float] = time.time) -> StrategyFunc:
    """
    Build a timelock strategy reading the current time from ``clock``.

    ``clock`` returns seconds since the epoch; stored timestamps are in
    milliseconds.
    """

    async def validate_timelock(address: str, access_condition: Dict[str, Any]) -> bool:
        return_value_test = access_condition.get("returnValueTest") or {}
        comparator = return_value_test.get("comparator")
        try:
            value = to_int(return_value_test.get("value"))
        except (TypeError, ValueError):
            logger.warning(f"Timelock value {return_value_test.get('value')!r} is not a timestamp")
            return False

        now = int(clock() * 1000)
        if comparator == Comparator.GTE.value:
            return now >= value
        if comparator == Comparator.LTE.value:
            return now <= value
        return False

    return validate_timelock


def make_rpc_strategy(chain_client: ChainClient) -> StrategyFunc:
    """Build the generic RPC strategy on top of a chain client."""

    async def validate_rpc_condition(address: str, access_condition: Dict[str, Any]) -> bool:
        parameters = substitute_parameters(access_condition.get("parameters", []), address)
        result = await chain_client.rpc_call(
            access_condition["chainId"],
            access_condition["method"],
            parameters
        )
        logger.debug(f"RPC {access_condition['method']} returned {result!r}")
        return compare_result(result, access_condition["returnValueTest"])

    return validate_rpc_condition


def make_contract_strategy(chain_client: ChainClient) -> StrategyFunc:
    """Build the generic contract-call strategy on top of a chain client."""

    async def validate_contract_condition(address: str, access_condition: Dict[str, Any]) -> bool:
        parameters = substitute_parameters(access_condition.get("parameters", []), address)
        result = await chain_client.contract_call(
            access_condition["chainId"],
            access_condition["contractAddress"],
            access_condition["functionAbi"],
            access_condition["functionName"],
            parameters
        )
        logger.debug(f"{access_condition['functionName']} returned {result!r}")
        return compare_result(result, access_condition["returnValueTest"])

    return validate_contract_condition


@dataclass
class ConditionStrategies:
    """The five condition checks used by an evaluator."""
    whitelist: StrategyFunc
    blacklist: StrategyFunc
    timelock: StrategyFunc
    rpc: StrategyFunc
    contract: StrategyFunc

    @classmethod
    def default(cls, chain_client: Optional[ChainClient] = None,
                clock: Callable[[], float] = time.time) -> 'ConditionStrategies':
        """
        Build the standard strategies.

        Args:
            chain_client: Client for RPC and contract checks (created from
                the environment if None)
            clock: Source of the current time in seconds
        """
        chain_client = chain_client or ChainClient()
        return cls(
            whitelist=validate_whitelist_condition,
            blacklist=validate_blacklist_condition,
            timelock=make_timelock_strategy(clock),
            rpc=make_rpc_strategy(chain_client),
            contract=make_contract_strategy(chain_client),
        )
