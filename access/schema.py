"""
ZKL Access SDK - Access Schema Types

Schemas travel as flat JSON arrays alternating condition and operator
records. This module holds the shared constants, the options model accepted
by the builder, and the mapping between the flat array and the internal
"conditions plus one operator" form used by the evaluator.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

USER_ADDRESS = ":userAddress"

AccessCondition = Dict[str, Any]
Schema = List[Dict[str, Any]]


class AccessSchemaKey(str, Enum):
    """Condition kinds the builder knows how to format."""
    HAS_BALANCE = "hasBalance"
    HAS_BALANCE_ERC20 = "hasBalanceERC20"
    HAS_ERC721 = "hasERC721"
    HAS_ERC1155 = "hasERC1155"
    IS_WHITELISTED = "isWhitelisted"
    IS_BLACKLISTED = "isBlacklisted"
    TIMELOCK = "timelock"


class AccessOperator(str, Enum):
    """Boolean operators joining conditions."""
    AND = "and"
    OR = "or"


class Comparator(str, Enum):
    """Comparators allowed in a returnValueTest."""
    EQ = "=="
    NE = "!="
    GTE = ">="
    LTE = "<="


class ConditionMethod(str, Enum):
    """Pseudo RPC methods evaluated locally instead of on chain."""
    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"
    TIMELOCK = "timelock"


OPERATORS = frozenset(op.value for op in AccessOperator)


class AccessConditionOptions(BaseModel):
    """
    Options for adding a condition to a schema.

    Field names may be given in camelCase (as stored in schemas) or
    snake_case. Only the fields required by ``key`` are consulted.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str = Field(..., description="Condition kind, see AccessSchemaKey")
    chain_id: Optional[int] = None
    contract_address: Optional[str] = None
    min_balance: Optional[Union[int, float, str]] = None
    decimals: Optional[int] = None
    token_id: Optional[Union[int, str]] = None
    whitelisted_address: Optional[str] = None
    blacklisted_address: Optional[str] = None
    timestamp: Optional[int] = None
    comparator: Optional[str] = None


def is_operator_record(record: Dict[str, Any]) -> bool:
    """Check whether a schema element is an operator separator."""
    return isinstance(record, dict) and record.get("operator") in OPERATORS


def split_schema(schema: Schema) -> Tuple[List[AccessCondition], Optional[str]]:
    """
    Split a flat schema into its conditions and its governing operator.

    Conditions are the elements at even indices. The governing operator is
    the one stored at index 1; operators at later odd indices are kept in
    the flat form but have no effect on evaluation.

    Returns:
        Tuple of (conditions, operator or None)
    """
    conditions = [record for index, record in enumerate(schema) if index % 2 == 0]
    operator = None
    if len(schema) > 1 and isinstance(schema[1], dict):
        operator = schema[1].get("operator")
    return conditions, operator


def join_schema(conditions: List[AccessCondition], operator: Optional[str] = None) -> Schema:
    """
    Build a flat schema from conditions joined by a single operator.

    Raises:
        ValueError: If more than one condition is given without an operator
    """
    if len(conditions) > 1 and operator not in OPERATORS:
        raise ValueError(f"Joining {len(conditions)} conditions requires an operator")

    schema: Schema = []
    for index, condition in enumerate(conditions):
        if index > 0:
            schema.append({"operator": operator})
        schema.append(condition)
    return schema
