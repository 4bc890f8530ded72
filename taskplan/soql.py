"""
Parser and composer for the SOQL-like query strings used in object configs.

Supported shape:

    SELECT field[, field...] FROM Object
        [WHERE condition] [ORDER BY expression] [LIMIT n] [OFFSET n]

Field tokens are plain names ("Name"), relationship paths ("Account.Name")
or computed composite fields ("$$Name$Account.Name"). Field order is kept
exactly as written. The WHERE and ORDER BY clauses are carried as opaque
text, so quoted literals and sub-queries inside them are preserved.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional

from .constants import is_complex_field
from .errors import QueryParseError

CLAUSE_ORDER = ["SELECT", "FROM", "WHERE", "ORDER BY", "LIMIT", "OFFSET"]

_CLAUSE_RE = re.compile(r"\b(SELECT|FROM|WHERE|ORDER\s+BY|LIMIT|OFFSET)\b", re.IGNORECASE)
_FIELD_RE = re.compile(r"^[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)*$")
_OBJECT_RE = re.compile(r"^[A-Za-z_]\w*$")


@dataclass(frozen=True)
class FieldRef:
    """A field reference in the SELECT list."""
    field: str

    @property
    def is_complex(self) -> bool:
        return is_complex_field(self.field)


@dataclass
class Query:
    """Structured form of a query string."""
    sobject: str
    fields: List[FieldRef] = field(default_factory=list)
    where: Optional[str] = None
    order_by: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    @property
    def field_names(self) -> List[str]:
        return [f.field for f in self.fields]

    def with_fields(self, fields: Iterable[FieldRef]) -> "Query":
        """Return a copy of the query with another field list."""
        return replace(self, fields=list(fields))

    def with_where(self, where: Optional[str]) -> "Query":
        return replace(self, where=where, fields=list(self.fields))


def field_ref(name: str) -> FieldRef:
    """Build a field reference from a field name."""
    return FieldRef(field=name.strip())


def distinct_fields(fields: Iterable[FieldRef]) -> List[FieldRef]:
    """Drop repeated field names, keeping the first occurrence."""
    seen = set()
    result = []
    for f in fields:
        if f.field in seen:
            continue
        seen.add(f.field)
        result.append(f)
    return result


def _mask(text: str) -> str:
    """Blank out quoted literals and parenthesised parts so keywords inside them are ignored."""
    chars = list(text)
    depth = 0
    in_quote = False
    i = 0
    while i < len(chars):
        ch = text[i]
        if in_quote:
            if ch == "\\" and i + 1 < len(chars):
                chars[i] = chars[i + 1] = " "
                i += 2
                continue
            if ch == "'":
                in_quote = False
            chars[i] = " "
        elif ch == "'":
            in_quote = True
            chars[i] = " "
        elif ch == "(":
            depth += 1
            chars[i] = " "
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise QueryParseError("Unbalanced parentheses", text)
            chars[i] = " "
        elif depth > 0:
            chars[i] = " "
        i += 1

    if in_quote:
        raise QueryParseError("Unterminated string literal", text)
    if depth != 0:
        raise QueryParseError("Unbalanced parentheses", text)
    return "".join(chars)


def _split_fields(select_text: str, text: str) -> List[FieldRef]:
    fields = []
    for token in select_text.split(","):
        token = token.strip()
        if not token:
            raise QueryParseError("Empty field in the SELECT list", text)
        if not _FIELD_RE.match(token):
            raise QueryParseError(f"Unsupported field expression: {token}", text)
        fields.append(field_ref(token))
    return fields


def _parse_int(value: str, clause: str, text: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise QueryParseError(f"{clause} expects an integer, got: {value!r}", text)
    if number < 0:
        raise QueryParseError(f"{clause} must not be negative", text)
    return number


def parse_query(text: str) -> Query:
    """
    Parse a query string.

    Raises:
        QueryParseError: if the text is not a valid query
    """
    if not text or not text.strip():
        raise QueryParseError("Query is empty", text or "")

    masked = _mask(text)
    clauses = []
    for match in _CLAUSE_RE.finditer(masked):
        keyword = re.sub(r"\s+", " ", match.group(1).upper())
        clauses.append((keyword, match.start(), match.end()))

    if not clauses or clauses[0][0] != "SELECT" or masked[:clauses[0][1]].strip():
        raise QueryParseError("Query must start with SELECT", text)

    keywords = [c[0] for c in clauses]
    positions = [CLAUSE_ORDER.index(k) for k in keywords]
    if positions != sorted(set(positions)):
        raise QueryParseError("Clauses are repeated or out of order", text)
    if "FROM" not in keywords:
        raise QueryParseError("Query has no FROM clause", text)

    parts = {}
    for i, (keyword, _, end) in enumerate(clauses):
        stop = clauses[i + 1][1] if i + 1 < len(clauses) else len(text)
        parts[keyword] = text[end:stop].strip()

    sobject = parts["FROM"]
    if not _OBJECT_RE.match(sobject):
        raise QueryParseError(f"Invalid object name: {sobject!r}", text)

    if not parts["SELECT"]:
        raise QueryParseError("SELECT list is empty", text)

    for keyword in ("WHERE", "ORDER BY"):
        if keyword in parts and not parts[keyword]:
            raise QueryParseError(f"{keyword} clause is empty", text)

    return Query(
        sobject=sobject,
        fields=_split_fields(parts["SELECT"], text),
        where=parts.get("WHERE"),
        order_by=parts.get("ORDER BY"),
        limit=_parse_int(parts["LIMIT"], "LIMIT", text) if "LIMIT" in parts else None,
        offset=_parse_int(parts["OFFSET"], "OFFSET", text) if "OFFSET" in parts else None,
    )


def compose_query(query: Query) -> str:
    """Serialize a structured query into its canonical string form."""
    text = f"SELECT {', '.join(query.field_names)} FROM {query.sobject}"
    if query.where:
        text += f" WHERE {query.where}"
    if query.order_by:
        text += f" ORDER BY {query.order_by}"
    if query.limit is not None:
        text += f" LIMIT {query.limit}"
    if query.offset is not None:
        text += f" OFFSET {query.offset}"
    return text


def compose_where_clause(
    where: Optional[str],
    field_name: str,
    value: str,
    operator: str = "=",
    literal_type: str = "BOOLEAN",
    logical: str = "AND"
) -> str:
    """
    Append a condition to an existing WHERE clause.

    String literals are quoted, every other literal type is written as is.
    """
    literal = value
    if literal_type.upper() == "STRING":
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        literal = f"'{escaped}'"

    condition = f"{field_name} {operator} {literal}"
    if not where:
        return condition
    return f"({where}) {logical} {condition}"
