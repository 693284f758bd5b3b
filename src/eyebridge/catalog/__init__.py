"""Command catalog for eyebridge.

Public API:
    Operation -- A named operation with its schema and wire mappings
    CATALOG -- All operations, keyed by name
    get_operation -- Look up an operation by name
    list_operations -- Operations available on a transport
"""

from eyebridge.catalog.operations import (
    CATALOG,
    Operation,
    TransportKind,
    UnknownOperationError,
    get_operation,
    list_operations,
    resolve_direction,
)

__all__ = [
    "CATALOG",
    "Operation",
    "TransportKind",
    "UnknownOperationError",
    "get_operation",
    "list_operations",
    "resolve_direction",
]
