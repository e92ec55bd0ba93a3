"""
ZKL Access SDK - Access Schema Exceptions

This module defines custom exceptions for access schema construction and evaluation.
"""


class AccessSchemaError(Exception):
    """Base exception for all access schema errors."""
    pass


class SchemaConstructionError(AccessSchemaError):
    """Raised when a schema element fails structural validation or a mutation is invalid."""
    pass


class EvaluationError(AccessSchemaError):
    """Raised when a stored schema cannot be evaluated."""
    pass
