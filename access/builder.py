"""
ZKL Access SDK - Access Schema Builder

This module provides the AccessSchemaBuilder class used for defining and
editing token-gate access schemas. A schema is a flat list alternating
condition records and operator records:

    [condition, {"operator": "and"}, condition, {"operator": "and"}, condition]

Every element entering the schema is structurally validated, and every
mutation either completes or leaves the schema untouched.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from access.exceptions import SchemaConstructionError
from access.schema import (
    USER_ADDRESS,
    AccessConditionOptions,
    AccessSchemaKey,
    Comparator,
    ConditionMethod,
    OPERATORS,
    Schema,
    is_operator_record,
    join_schema,
)
from network.address import InvalidAddressError, is_ethereum_address
from network.units import eth_to_wei, parse_units

logger = logging.getLogger(__name__)

# Required option fields per condition key. Timelock conditions do not
# require a chain id.
REQUIRED_FIELDS = {
    AccessSchemaKey.HAS_BALANCE: ("chain_id", "min_balance"),
    AccessSchemaKey.HAS_BALANCE_ERC20: ("chain_id", "contract_address", "min_balance", "decimals"),
    AccessSchemaKey.HAS_ERC721: ("chain_id", "contract_address"),
    AccessSchemaKey.HAS_ERC1155: ("chain_id", "contract_address", "token_id"),
    AccessSchemaKey.IS_WHITELISTED: ("chain_id", "whitelisted_address"),
    AccessSchemaKey.IS_BLACKLISTED: ("chain_id", "blacklisted_address"),
    AccessSchemaKey.TIMELOCK: ("timestamp", "comparator"),
}


def _balance_of_abi(*inputs: str) -> List[Dict[str, Any]]:
    input_types = {"owner": "address", "account": "address", "id": "uint256"}
    return [{
        "name": "balanceOf",
        "inputs": [{"name": name, "type": input_types[name]} for name in inputs],
        "outputs": [{"name": "balance", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    }]


def _checked_address(address: str, label: str) -> str:
    try:
        is_ethereum_address(address)
    except InvalidAddressError:
        raise SchemaConstructionError(f"Invalid {label} address")
    return address


class AccessSchemaBuilder:
    """
    Abstraction used for defining and editing access schemas for token gates.

    The builder exclusively owns its schema list; schemas passed in are deep
    copied after validation.
    """

    def __init__(self, access_schema: Optional[Schema] = None):
        """
        Initialize the builder.

        Args:
            access_schema: Optional pre-existing flat schema

        Raises:
            SchemaConstructionError: If any element fails validation
        """
        self.access_schema: Schema = []
        if access_schema:
            for access_condition in access_schema:
                self.validate_access_condition(access_condition)
            self.access_schema = copy.deepcopy(list(access_schema))

    @classmethod
    def from_conditions(cls, conditions: List[Dict[str, Any]],
                        operator: Optional[str] = None) -> "AccessSchemaBuilder":
        """
        Build a schema from conditions joined by a single operator.

        Raises:
            SchemaConstructionError: If several conditions are given without a
                valid operator, or any condition fails validation
        """
        try:
            access_schema = join_schema(list(conditions), operator)
        except ValueError as e:
            raise SchemaConstructionError(str(e)) from e
        return cls(access_schema)

    def get_access_schema(self) -> Schema:
        """Return the current schema in stored order."""
        return self.access_schema

    def add_access_condition(self, options: Union[AccessConditionOptions, Dict[str, Any]],
                             access_operator: Optional[str] = None):
        """
        Append a condition, joined to the existing schema by an operator.

        Args:
            options: Condition options; ``key`` selects the formatter
            access_operator: "and" or "or", required when the schema is non-empty

        Raises:
            SchemaConstructionError: On a missing or invalid operator, an
                unknown key, a missing required field or invalid formatter input
        """
        if isinstance(options, dict):
            try:
                options = AccessConditionOptions.model_validate(options)
            except ValidationError as e:
                raise SchemaConstructionError(f"Invalid schema options: {e}") from e

        operator_record = None
        if self.access_schema:
            if not access_operator:
                raise SchemaConstructionError(
                    "You are adding multiple access conditions and must specify an access operator"
                )
            operator_record = self.format_access_operator(access_operator)

        access_condition = self._format_condition(options)

        if operator_record:
            self.access_schema.append(operator_record)
        self.access_schema.append(access_condition)
        logger.info(f"Added {options.key} condition, schema length {len(self.access_schema)}")

    def _format_condition(self, options: AccessConditionOptions) -> Dict[str, Any]:
        try:
            key = AccessSchemaKey(options.key)
        except ValueError:
            raise SchemaConstructionError("Unknown schema key")

        if not all(getattr(options, name) for name in REQUIRED_FIELDS[key]):
            raise SchemaConstructionError("Missing required schema parameter")

        if key == AccessSchemaKey.HAS_BALANCE:
            return self.format_has_balance(options.chain_id, options.min_balance)
        if key == AccessSchemaKey.HAS_BALANCE_ERC20:
            return self.format_has_balance_erc20(
                options.chain_id, options.contract_address, options.min_balance, options.decimals
            )
        if key == AccessSchemaKey.HAS_ERC721:
            return self.format_has_erc721(options.chain_id, options.contract_address)
        if key == AccessSchemaKey.HAS_ERC1155:
            return self.format_has_erc1155(options.chain_id, options.contract_address, options.token_id)
        if key == AccessSchemaKey.IS_WHITELISTED:
            return self.format_is_whitelisted(options.chain_id, options.whitelisted_address)
        if key == AccessSchemaKey.IS_BLACKLISTED:
            return self.format_is_blacklisted(options.chain_id, options.blacklisted_address)
        return self.format_timelock(options.chain_id, options.timestamp, options.comparator)

    def update_access_condition(self, access_condition: Dict[str, Any], index: int):
        """
        Replace the element at ``index`` with a validated record.

        Raises:
            SchemaConstructionError: If the index is out of range or the
                record fails validation
        """
        if index < 0 or index >= len(self.access_schema):
            raise SchemaConstructionError("Invalid index")

        self.validate_access_condition(access_condition)
        self.access_schema[index] = copy.deepcopy(access_condition)
        logger.info(f"Updated schema element {index}")

    def delete_access_condition(self, index: int):
        """
        Remove a condition together with one adjacent operator.

        The last condition takes its preceding operator with it; any other
        condition takes the operator that follows it.

        Raises:
            SchemaConstructionError: If the index is odd or out of range
        """
        if index < 0 or index % 2 == 1 or index >= len(self.access_schema):
            raise SchemaConstructionError("Invalid index")

        if len(self.access_schema) == 1:
            self.access_schema = []
        elif index == len(self.access_schema) - 1:
            self.access_schema = self.access_schema[:index - 1]
        else:
            self.access_schema = self.access_schema[:index] + self.access_schema[index + 2:]
        logger.info(f"Deleted condition {index}, schema length {len(self.access_schema)}")

    @staticmethod
    def validate_access_condition(access_condition: Dict[str, Any]) -> bool:
        """
        Structurally validate a schema element.

        Operator records are always valid. Conditions need a string contract
        address, a chain id, a returnValueTest, parameters and either a
        method or a function name with its ABI.

        Raises:
            SchemaConstructionError: Naming the first missing piece
        """
        if not isinstance(access_condition, dict):
            raise SchemaConstructionError("Schema element must be an object")
        if is_operator_record(access_condition):
            return True
        if not isinstance(access_condition.get("contractAddress"), str):
            raise SchemaConstructionError("Schema has incorrectly formatted contract address")
        if not access_condition.get("chainId"):
            raise SchemaConstructionError("Schema has incorrectly formatted chainId")
        if not isinstance(access_condition.get("returnValueTest"), dict):
            raise SchemaConstructionError("Schema has incorrectly formatted returnValueTest")
        if not isinstance(access_condition.get("parameters"), list):
            raise SchemaConstructionError("Schema is missing function or method params")
        if access_condition.get("functionName") and access_condition.get("functionAbi") is None:
            raise SchemaConstructionError("Schema has incorrectly formatted functionAbi")
        if not access_condition.get("functionName") and not access_condition.get("method"):
            raise SchemaConstructionError("Schema is missing function or method name")
        return True

    @staticmethod
    def format_access_operator(operator: str) -> Dict[str, str]:
        if operator not in OPERATORS:
            raise SchemaConstructionError("Invalid operator")
        return {"operator": operator}

    @staticmethod
    def format_has_balance(chain_id: int, min_balance: Union[int, float, str]) -> Dict[str, Any]:
        """Native balance of at least ``min_balance`` ether."""
        try:
            min_wei = eth_to_wei(min_balance)
        except (TypeError, ValueError, ArithmeticError):
            raise SchemaConstructionError("Invalid minimum balance")

        return {
            "key": AccessSchemaKey.HAS_BALANCE.value,
            "contractAddress": "",
            "chainId": chain_id,
            "method": "eth_getBalance",
            "parameters": [USER_ADDRESS, "latest"],
            "returnValueTest": {
                "comparator": Comparator.GTE.value,
                "value": str(min_wei),
            },
        }

    @staticmethod
    def format_has_balance_erc20(chain_id: int, contract_address: str,
                                 min_balance: Union[int, float, str], decimals: int) -> Dict[str, Any]:
        """ERC-20 balance of at least ``min_balance`` whole tokens."""
        _checked_address(contract_address, "contract")
        try:
            min_units = parse_units(min_balance, decimals)
        except ValueError:
            raise SchemaConstructionError("Invalid minimum balance")

        return {
            "key": AccessSchemaKey.HAS_BALANCE_ERC20.value,
            "contractAddress": contract_address,
            "chainId": chain_id,
            "functionName": "balanceOf",
            "parameters": [USER_ADDRESS],
            "functionAbi": _balance_of_abi("owner"),
            "returnValueTest": {
                "comparator": Comparator.GTE.value,
                "value": str(min_units),
            },
        }

    @staticmethod
    def format_has_erc721(chain_id: int, contract_address: str) -> Dict[str, Any]:
        """Ownership of at least one token of an ERC-721 collection."""
        _checked_address(contract_address, "contract")
        return {
            "key": AccessSchemaKey.HAS_ERC721.value,
            "contractAddress": contract_address,
            "chainId": chain_id,
            "functionName": "balanceOf",
            "parameters": [USER_ADDRESS],
            "functionAbi": _balance_of_abi("owner"),
            "returnValueTest": {
                "comparator": Comparator.GTE.value,
                "value": "1",
            },
        }

    @staticmethod
    def format_has_erc1155(chain_id: int, contract_address: str, token_id: Union[int, str]) -> Dict[str, Any]:
        """Ownership of at least one ``token_id`` of an ERC-1155 contract."""
        _checked_address(contract_address, "contract")
        return {
            "key": AccessSchemaKey.HAS_ERC1155.value,
            "contractAddress": contract_address,
            "chainId": chain_id,
            "functionName": "balanceOf",
            "parameters": [USER_ADDRESS, token_id],
            "functionAbi": _balance_of_abi("account", "id"),
            "returnValueTest": {
                "comparator": Comparator.GTE.value,
                "value": "1",
            },
        }

    @staticmethod
    def format_is_whitelisted(chain_id: int, whitelisted_address: str) -> Dict[str, Any]:
        _checked_address(whitelisted_address, "whitelisted")
        return {
            "key": AccessSchemaKey.IS_WHITELISTED.value,
            "contractAddress": "",
            "chainId": chain_id,
            "method": ConditionMethod.WHITELIST.value,
            "parameters": [USER_ADDRESS],
            "returnValueTest": {
                "comparator": Comparator.EQ.value,
                "value": whitelisted_address,
            },
        }

    @staticmethod
    def format_is_blacklisted(chain_id: int, blacklisted_address: str) -> Dict[str, Any]:
        _checked_address(blacklisted_address, "blacklisted")
        return {
            "key": AccessSchemaKey.IS_BLACKLISTED.value,
            "contractAddress": "",
            "chainId": chain_id,
            "method": ConditionMethod.BLACKLIST.value,
            "parameters": [USER_ADDRESS],
            "returnValueTest": {
                "comparator": Comparator.NE.value,
                "value": blacklisted_address,
            },
        }

    @staticmethod
    def format_timelock(chain_id: Optional[int], timestamp: int, comparator: str) -> Dict[str, Any]:
        """Time gate; ``timestamp`` is in milliseconds since the epoch."""
        return {
            "key": AccessSchemaKey.TIMELOCK.value,
            "contractAddress": "",
            "chainId": chain_id,
            "method": ConditionMethod.TIMELOCK.value,
            "parameters": [],
            "returnValueTest": {
                "comparator": comparator,
                "value": timestamp,
            },
        }
