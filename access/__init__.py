"""
ZKL Access SDK - Access Schema Module

This module contains the token-gate rule engine: the schema builder used to
compose access conditions and the validator that evaluates them against an
address.
"""

from .exceptions import AccessSchemaError, SchemaConstructionError, EvaluationError
from .schema import (
    USER_ADDRESS,
    AccessConditionOptions,
    AccessOperator,
    AccessSchemaKey,
    Comparator,
    ConditionMethod,
    join_schema,
    split_schema,
)
from .builder import AccessSchemaBuilder
from .strategies import ConditionStrategies
from .evaluator import AccessValidator

__all__ = [
    "AccessSchemaError",
    "SchemaConstructionError",
    "EvaluationError",
    "USER_ADDRESS",
    "AccessConditionOptions",
    "AccessOperator",
    "AccessSchemaKey",
    "Comparator",
    "ConditionMethod",
    "join_schema",
    "split_schema",
    "AccessSchemaBuilder",
    "ConditionStrategies",
    "AccessValidator",
]
