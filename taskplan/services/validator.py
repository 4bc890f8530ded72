"""Validation of query fields against described schemas."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from ..errors import ConfigurationError
from ..models.schema import SchemaSnapshot
from ..resources import get_message
from ..soql import Query

if TYPE_CHECKING:
    from ..task import MigrationTask

logger = logging.getLogger(__name__)

SOURCE_SIDE = "source"
TARGET_SIDE = "target"


@dataclass
class ValidationIssue:
    """A non-fatal problem found while validating a query."""
    entity: str
    field: str
    side: str
    message: str
    severity: str = "warning"  # warning, info

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "entity": self.entity,
            "field": self.field,
            "side": self.side,
            "message": self.message,
            "severity": self.severity,
        }


class FieldValidator:
    """
    Validator for the resolved fields of a task.

    Rules, in order:
    - a query without fields is a configuration error
    - extra objects and special objects skip existence checks
    - a missing external id field is a configuration error
    - any other missing field is reported and pruned from the query

    Computed fields and relationship paths are never checked.
    """

    def validate(
        self,
        task: "MigrationTask",
        snapshot: SchemaSnapshot,
        is_source: bool
    ) -> Tuple[Query, List[ValidationIssue]]:
        """
        Validate the task query against one side's schema.

        Args:
            task: Task owning the query
            snapshot: Described schema of the side being checked
            is_source: True for the source side, False for the target side

        Returns:
            Tuple of the (possibly pruned) query and the issues found

        Raises:
            ConfigurationError: if there are no fields or the external id is missing
        """
        query = task.parsed_query
        issues: List[ValidationIssue] = []
        side = SOURCE_SIDE if is_source else TARGET_SIDE

        if query is None or not query.fields:
            raise ConfigurationError(
                get_message("missingFieldsToProcess", task.name),
                entity=task.name,
            )

        if task.is_extra_object or task.is_special_object:
            return query, issues

        kept = []
        for ref in query.fields:
            if ref.is_complex or snapshot.has_field(ref.field):
                kept.append(ref)
                continue

            if ref.field == task.external_id:
                raise ConfigurationError(
                    get_message("noExternalKey", task.name, get_message(side), task.str_operation),
                    entity=task.name,
                    text=ref.field,
                )

            key = "fieldSourceDoesNotExist" if is_source else "fieldTargetDoesNotExist"
            message = get_message(key, task.name, ref.field)
            logger.warning(message)
            issues.append(ValidationIssue(
                entity=task.name,
                field=ref.field,
                side=side,
                message=message,
            ))

        return query.with_fields(kept), issues
