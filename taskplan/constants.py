"""Shared constants and field-name helpers."""

RECORD_ID_FIELD = "Id"
DEFAULT_EXTERNAL_ID_FIELD = "Name"
RECORD_TYPE_ID_FIELD = "RecordTypeId"
PERSON_ACCOUNT_FIELD = "IsPersonAccount"
PERSON_ACCOUNT_OBJECTS = ("Account", "Contact")

# Composite external ids are written as "Field1;Field2" in the configuration
# and queried as a computed "$$Field1$Field2" field.
COMPLEX_FIELDS_SEPARATOR = ";"
COMPLEX_FIELDS_QUERY_PREFIX = "$$"
COMPLEX_FIELDS_QUERY_SEPARATOR = "$"
RELATIONSHIP_PATH_SEPARATOR = "."

# Objects that are processed without field existence checks
SPECIAL_OBJECTS = (
    "User",
    "Group",
    "RecordType",
)

# Lookups into these objects are never pulled in by multiselect keywords
DEFAULT_MULTISELECT_DENY_LIST = (
    "BusinessHours",
    "CallCenter",
    "DandBCompany",
    "Individual",
    "OperatingHours",
    "Profile",
    "UserRole",
)

# Declared field types usable in "type_<name>" multiselect keywords
KNOWN_FIELD_TYPES = frozenset({
    "address",
    "base64",
    "boolean",
    "combobox",
    "currency",
    "date",
    "datetime",
    "double",
    "email",
    "encryptedstring",
    "id",
    "int",
    "location",
    "long",
    "multipicklist",
    "percent",
    "phone",
    "picklist",
    "reference",
    "string",
    "textarea",
    "time",
    "url",
})


def is_complex_field(field_name: str) -> bool:
    """Check if a field name is a composite or relationship path expression."""
    if not field_name:
        return False
    return (
        RELATIONSHIP_PATH_SEPARATOR in field_name
        or COMPLEX_FIELDS_SEPARATOR in field_name
        or field_name.startswith(COMPLEX_FIELDS_QUERY_PREFIX)
    )


def complex_field(field_name: str) -> str:
    """
    Convert a configured field name into the name used in the query.

    "Name;Account.Name" becomes "$$Name$Account.Name". Plain names and
    relationship paths are returned unchanged.
    """
    if not field_name or COMPLEX_FIELDS_SEPARATOR not in field_name:
        return field_name
    parts = [part.strip() for part in field_name.split(COMPLEX_FIELDS_SEPARATOR) if part.strip()]
    return COMPLEX_FIELDS_QUERY_PREFIX + COMPLEX_FIELDS_QUERY_SEPARATOR.join(parts)
