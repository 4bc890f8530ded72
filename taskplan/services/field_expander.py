"""Expansion of multiselect patterns against a described schema."""

import logging
from typing import Iterable, Optional

from ..constants import DEFAULT_MULTISELECT_DENY_LIST
from ..models.migration import MultiselectPattern
from ..models.schema import SchemaSnapshot
from ..soql import Query, distinct_fields, field_ref

logger = logging.getLogger(__name__)


class FieldExpander:
    """
    Adds the fields selected by a multiselect pattern to a query.

    Fields already in the query are never added twice, so running the
    expansion again with the same snapshot does not change the result.
    Lookups into deny-listed objects are skipped.
    """

    def __init__(self, deny_list: Optional[Iterable[str]] = None):
        """
        Initialize the expander.

        Args:
            deny_list: Objects whose lookups are never pulled in by keywords
        """
        self.deny_list = set(DEFAULT_MULTISELECT_DENY_LIST if deny_list is None else deny_list)

    def expand(
        self,
        query: Query,
        snapshot: SchemaSnapshot,
        pattern: Optional[MultiselectPattern] = None,
        excluded_fields: Iterable[str] = ()
    ) -> Query:
        """
        Build the expanded query.

        Args:
            query: Query resolved from the configuration
            snapshot: Described schema of the object
            pattern: Multiselect pattern, if the query had keywords
            excluded_fields: Field names that must not appear in the result

        Returns:
            New query with the matching fields appended and the excluded
            fields removed
        """
        excluded = set(excluded_fields)
        fields = list(query.fields)

        if pattern is not None and not pattern.is_empty:
            present = set(query.field_names)
            added = 0
            for descriptor in snapshot.fields.values():
                if descriptor.name in present or descriptor.name in excluded:
                    continue
                if not pattern.matches(descriptor):
                    continue
                if descriptor.is_lookup and descriptor.reference_to in self.deny_list:
                    logger.debug(
                        f"{snapshot.entity_name}: skipping {descriptor.name}, "
                        f"lookup to {descriptor.reference_to}"
                    )
                    continue
                fields.append(field_ref(descriptor.name))
                present.add(descriptor.name)
                added += 1
            logger.debug(f"{snapshot.entity_name}: multiselect added {added} fields")

        fields = [f for f in fields if f.field not in excluded]
        return query.with_fields(distinct_fields(fields))
