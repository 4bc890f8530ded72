"""Exceptions raised while compiling migration tasks."""

from typing import Optional


class TaskPlanError(Exception):
    """Base exception for all task planning errors."""
    pass


class QueryParseError(TaskPlanError):
    """Raised by the query parser when the text is not a valid query."""

    def __init__(self, message: str, text: str = ""):
        self.text = text
        super().__init__(message)


class ConfigurationError(TaskPlanError):
    """
    Raised when an object configuration cannot be processed.

    Covers malformed query text, an empty field list and a missing
    external id field. Always fatal for the single entity it names.
    """

    def __init__(self, message: str, entity: Optional[str] = None, text: Optional[str] = None):
        self.entity = entity
        self.text = text
        super().__init__(message)


class MetadataError(TaskPlanError):
    """Raised when the schema of an entity cannot be retrieved from one side."""

    def __init__(self, message: str, entity: Optional[str] = None, side: Optional[str] = None):
        self.entity = entity
        self.side = side
        super().__init__(message)
