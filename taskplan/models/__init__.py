"""Data models for the task planner."""

from .field import (
    FieldDescriptor,
    RelationshipKind,
)
from .schema import SchemaSnapshot
from .migration import (
    Operation,
    DataMediaType,
    OrgConnection,
    MockField,
    FieldPredicate,
    MultiselectPattern,
)

__all__ = [
    "FieldDescriptor",
    "RelationshipKind",
    "SchemaSnapshot",
    "Operation",
    "DataMediaType",
    "OrgConnection",
    "MockField",
    "FieldPredicate",
    "MultiselectPattern",
]
