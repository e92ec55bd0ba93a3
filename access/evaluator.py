"""
ZKL Access SDK - Access Validator

This module provides the AccessValidator class, which evaluates a stored
access schema against a subject address.

Evaluation dispatches every condition to one strategy, runs all checks
concurrently, and combines the results with the single operator stored at
schema index 1:

- no conditions: access granted
- one condition: its result
- "and": granted when no condition failed
- anything else: granted when at least one condition passed

Operators stored at later odd indices do not take part in evaluation.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from access.builder import AccessSchemaBuilder
from access.schema import AccessOperator, ConditionMethod, Schema, split_schema
from access.strategies import ConditionStrategies
from network.address import is_ethereum_address
from network.client import ChainClient

logger = logging.getLogger(__name__)


class AccessValidator(AccessSchemaBuilder):
    """
    Abstraction used for defining, editing and validating access schemas
    for token gates.
    """

    def __init__(self, access_schema: Optional[Schema] = None,
                 chain_client: Optional[ChainClient] = None,
                 strategies: Optional[ConditionStrategies] = None,
                 address_validator: Callable[[str], str] = is_ethereum_address):
        """
        Initialize the validator.

        Args:
            access_schema: Optional pre-existing flat schema
            chain_client: Client used by the default RPC and contract strategies
            strategies: Replacement condition strategies
            address_validator: Returns the normalized subject address or raises
        """
        super().__init__(access_schema)
        self.strategies = strategies or ConditionStrategies.default(chain_client)
        self.address_validator = address_validator

    def _select_strategy(self, access_condition: Dict[str, Any]):
        method = access_condition.get("method")
        if method == ConditionMethod.WHITELIST.value:
            return self.strategies.whitelist
        if method == ConditionMethod.BLACKLIST.value:
            return self.strategies.blacklist
        if method == ConditionMethod.TIMELOCK.value:
            return self.strategies.timelock
        if method:
            return self.strategies.rpc
        if access_condition.get("functionName"):
            return self.strategies.contract
        return None

    async def validate(self, address: str, timeout: Optional[float] = None) -> bool:
        """
        Check whether an address satisfies the stored schema.

        Args:
            address: Subject address
            timeout: Optional limit in seconds for the whole evaluation

        Returns:
            True if access is granted. Malformed addresses are denied
            without any chain calls.

        Raises:
            EvaluationError: If a condition uses an unknown comparator
            asyncio.TimeoutError: If ``timeout`` expires
            Exception: Chain client errors propagate unchanged
        """
        try:
            subject = self.address_validator(address)
        except (TypeError, ValueError):
            logger.debug(f"Rejecting malformed address {address!r}")
            return False

        conditions, access_operator = split_schema(self.access_schema)

        checks: List[Awaitable[bool]] = []
        for index, access_condition in enumerate(conditions):
            strategy = self._select_strategy(access_condition)
            if strategy is None:
                logger.warning(f"Condition {index * 2} has no method or function name, skipping")
                continue
            checks.append(strategy(subject, access_condition))

        gathered = asyncio.gather(*checks)
        if timeout is not None:
            results = await asyncio.wait_for(gathered, timeout)
        else:
            results = await gathered

        logger.debug(f"Condition results for {subject}: {results}")

        if len(results) == 0:
            return True
        if len(results) == 1:
            return results[0]
        if access_operator == AccessOperator.AND.value:
            return False not in results
        return True in results
