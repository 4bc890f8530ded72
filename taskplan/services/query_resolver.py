"""Resolution of shorthand query strings into canonical queries."""

import logging
import re
from typing import Optional, Tuple

from ..constants import RECORD_ID_FIELD
from ..errors import ConfigurationError, QueryParseError
from ..models.migration import MultiselectPattern
from ..resources import get_message
from ..soql import Query, compose_query, distinct_fields, field_ref, parse_query

logger = logging.getLogger(__name__)

_FROM_RE = re.compile(r"\bFROM\s+(\w+)", re.IGNORECASE)


class QueryResolver:
    """
    Resolver for the query string of an object configuration.

    The user may write:
    - ordinary field names, kept verbatim and in order
    - "all", selecting every field of the described object
    - "<property>_<value>" keywords (e.g. "creatable_true"), selecting the
      fields whose property has that value

    Keywords are collected into a MultiselectPattern and removed from the
    field list. The record id field is always placed first.
    """

    def __init__(self, entity_name: str = ""):
        """
        Initialize the resolver.

        Args:
            entity_name: Object name used in error messages when known
        """
        self.entity_name = entity_name

    def resolve(self, raw_text: str) -> Tuple[Query, Optional[MultiselectPattern]]:
        """
        Parse and normalize a query string.

        Args:
            raw_text: Query string as written in the configuration

        Returns:
            Tuple of the canonical query and the multiselect pattern, the
            latter None when the query has no keywords

        Raises:
            ConfigurationError: if the query string is malformed
        """
        try:
            parsed = parse_query(raw_text)
        except QueryParseError as e:
            entity = self.entity_name or self._guess_entity(raw_text)
            raise ConfigurationError(
                get_message("malformedQuery", entity, raw_text, e),
                entity=entity,
                text=raw_text,
            ) from e

        pattern: Optional[MultiselectPattern] = None
        fields = [field_ref(RECORD_ID_FIELD)]

        for ref in parsed.fields:
            name = ref.field
            if name.lower() == RECORD_ID_FIELD.lower():
                continue
            if MultiselectPattern.is_keyword(name):
                pattern = pattern or MultiselectPattern()
                pattern.add_keyword(name)
                continue
            fields.append(field_ref(name))

        query = parsed.with_fields(distinct_fields(fields))
        logger.debug(f"Resolved query for {query.sobject}: {compose_query(query)}")
        return query, pattern

    def _guess_entity(self, raw_text: str) -> str:
        match = _FROM_RE.search(raw_text or "")
        return match.group(1) if match else ""
