"""Service layer for the task planner."""

from .describe_client import DescribeClient, SalesforceDescribeClient, StaticDescribeClient
from .field_expander import FieldExpander
from .query_resolver import QueryResolver
from .relationships import RelationshipExtractor
from .validator import FieldValidator, ValidationIssue

__all__ = [
    "DescribeClient",
    "SalesforceDescribeClient",
    "StaticDescribeClient",
    "FieldExpander",
    "QueryResolver",
    "RelationshipExtractor",
    "FieldValidator",
    "ValidationIssue",
]
