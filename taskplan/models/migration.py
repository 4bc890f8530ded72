"""Migration configuration models."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union
from enum import Enum

from ..constants import KNOWN_FIELD_TYPES

if TYPE_CHECKING:
    from .field import FieldDescriptor


class Operation(str, Enum):
    """Operation performed on the target records of an object."""
    INSERT = "Insert"
    UPDATE = "Update"
    UPSERT = "Upsert"
    READONLY = "Readonly"
    DELETE = "Delete"

    @classmethod
    def normalize(cls, value: Union["Operation", str, int]) -> "Operation":
        """
        Convert the configured operation into an Operation.

        Accepts the enum itself, its name in any letter case, or its
        numeric position (0 = Insert ... 4 = Delete).

        Raises:
            ValueError: if the value names no operation
        """
        if isinstance(value, cls):
            return value

        members = list(cls)
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value < len(members):
                return members[value]
        elif isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.normalize(int(text))
            for member in members:
                if member.value.lower() == text.lower():
                    return member

        raise ValueError(f"Unknown operation: {value!r}")


class DataMediaType(str, Enum):
    """Kind of medium backing one side of a migration."""
    ORG = "org"  # Describable system
    FILE = "file"  # Static file, mirrors the other side's schema

    @classmethod
    def from_value(cls, value: Optional[str]) -> "DataMediaType":
        if not value:
            return cls.ORG
        text = str(value).lower()
        if text in ("file", "csvfile", "csv"):
            return cls.FILE
        return cls(text)


@dataclass
class OrgConnection:
    """Connection settings for the source or the target side."""
    name: str  # "source" or "target"
    media: DataMediaType = DataMediaType.ORG
    instance_url: Optional[str] = None
    access_token: Optional[str] = None
    api_version: str = "59.0"

    @property
    def is_describable(self) -> bool:
        return self.media == DataMediaType.ORG

    @property
    def is_file(self) -> bool:
        return self.media == DataMediaType.FILE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (without credentials)."""
        return {
            "name": self.name,
            "media": self.media.value,
            "instance_url": self.instance_url,
            "api_version": self.api_version,
        }

    @classmethod
    def from_dict(cls, name: str, data: Optional[Dict[str, Any]]) -> "OrgConnection":
        """Create from dictionary representation."""
        data = data or {}
        return cls(
            name=name,
            media=DataMediaType.from_value(data.get("media")),
            instance_url=data.get("instanceUrl", data.get("instance_url")),
            access_token=data.get("accessToken", data.get("access_token")),
            api_version=str(data.get("apiVersion", data.get("api_version", "59.0"))),
        )


@dataclass
class MockField:
    """Mock data settings for one field, used with updateWithMockData."""
    name: str
    pattern: str = ""
    excluded_regex: str = ""
    included_regex: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "pattern": self.pattern,
            "excludedRegex": self.excluded_regex,
            "includedRegex": self.included_regex,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MockField":
        return cls(
            name=data.get("name", ""),
            pattern=data.get("pattern", ""),
            excluded_regex=data.get("excludedRegex", ""),
            included_regex=data.get("includedRegex", ""),
        )


class FieldPredicate(str, Enum):
    """Boolean field properties selectable by multiselect keywords."""
    READONLY = "readonly"
    CREATABLE = "creatable"
    UPDATEABLE = "updateable"
    CUSTOM = "custom"
    STANDARD = "standard"
    LOOKUP = "lookup"
    MASTERDETAIL = "masterdetail"
    AUTONUMBER = "autonumber"


PREDICATE_ALIASES = {
    "createable": FieldPredicate.CREATABLE,
    "updatable": FieldPredicate.UPDATEABLE,
}

PREDICATE_CHECKS: Dict[FieldPredicate, Callable[["FieldDescriptor"], bool]] = {
    FieldPredicate.READONLY: lambda f: f.readonly,
    FieldPredicate.CREATABLE: lambda f: f.creatable,
    FieldPredicate.UPDATEABLE: lambda f: f.updateable,
    FieldPredicate.CUSTOM: lambda f: f.custom,
    FieldPredicate.STANDARD: lambda f: not f.custom,
    FieldPredicate.LOOKUP: lambda f: f.is_lookup,
    FieldPredicate.MASTERDETAIL: lambda f: f.is_master_detail,
    FieldPredicate.AUTONUMBER: lambda f: f.auto_number,
}

ALL_KEYWORD = "all"
TYPE_KEYWORD = "type"


@dataclass
class MultiselectPattern:
    """
    Field selection built from multiselect keywords in the query.

    "all" selects every field. "<property>_<true|false>" keywords select
    fields by writability and kind, "type_<name>" keywords by declared type.
    All given predicates must hold for a field to match.
    """
    all: bool = False
    predicates: Dict[FieldPredicate, bool] = field(default_factory=dict)
    types: List[str] = field(default_factory=list)

    @staticmethod
    def is_keyword(token: str) -> bool:
        """Check if a field token is a recognised multiselect keyword."""
        return MultiselectPattern._parse_keyword(token) is not None

    @staticmethod
    def _parse_keyword(token: str):
        text = (token or "").strip().lower()
        if text == ALL_KEYWORD:
            return (ALL_KEYWORD, True)

        prop, sep, value = text.partition("_")
        if not sep or not value:
            return None
        if prop == TYPE_KEYWORD:
            return (TYPE_KEYWORD, value) if value in KNOWN_FIELD_TYPES else None
        if value not in ("true", "false"):
            return None

        predicate = PREDICATE_ALIASES.get(prop)
        if predicate is None:
            try:
                predicate = FieldPredicate(prop)
            except ValueError:
                return None
        return (predicate, value == "true")

    def add_keyword(self, token: str) -> bool:
        """
        Record a keyword into the pattern.

        Returns:
            True if the token was a keyword, False if it is an ordinary field
        """
        parsed = self._parse_keyword(token)
        if parsed is None:
            return False

        key, value = parsed
        if key == ALL_KEYWORD:
            self.all = True
        elif key == TYPE_KEYWORD:
            if value not in self.types:
                self.types.append(value)
        else:
            self.predicates[key] = value
        return True

    def matches(self, descriptor: "FieldDescriptor") -> bool:
        """Check if a field satisfies the pattern."""
        if self.all:
            return True

        for predicate, expected in self.predicates.items():
            if PREDICATE_CHECKS[predicate](descriptor) != expected:
                return False

        if self.types and (descriptor.type or "").lower() not in self.types:
            return False

        return True

    @property
    def is_empty(self) -> bool:
        return not self.all and not self.predicates and not self.types

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.all:
            result["all"] = True
        for predicate, expected in self.predicates.items():
            result[predicate.value] = expected
        if self.types:
            result["type"] = list(self.types)
        return result
