"""Schema snapshot model for one entity on one side of a migration."""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional
import json

from .field import FieldDescriptor


@dataclass(frozen=True)
class SchemaSnapshot:
    """
    Described schema of an entity (e.g. Account, Contact).

    Snapshots are immutable once fetched. The same snapshot may be placed in
    both the source and the target slot of a task when one side is a file
    medium mirroring the other.
    """
    entity_name: str
    label: str = ""
    fields: Mapping[str, FieldDescriptor] = field(default_factory=lambda: MappingProxyType({}))
    custom: bool = False
    queryable: bool = True

    def __post_init__(self):
        if not isinstance(self.fields, MappingProxyType):
            object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def field_names(self) -> List[str]:
        return list(self.fields.keys())

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        return self.fields.get(name)

    def bind(self, owner_name: str) -> "SchemaSnapshot":
        """Return a copy whose field descriptors reference the owning task by name."""
        bound = {name: replace(f, owner_name=owner_name) for name, f in self.fields.items()}
        return replace(self, fields=MappingProxyType(bound))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.entity_name,
            "label": self.label,
            "custom": self.custom,
            "queryable": self.queryable,
            "fields": {k: v.to_dict() for k, v in self.fields.items()},
        }

    @classmethod
    def from_describe(cls, data: Dict[str, Any]) -> "SchemaSnapshot":
        """Create from a describe payload ({"name": ..., "fields": [...]})."""
        fields: Dict[str, FieldDescriptor] = {}
        raw_fields = data.get("fields", [])
        if isinstance(raw_fields, dict):
            raw_fields = [{**v, "name": k} for k, v in raw_fields.items()]

        for field_data in raw_fields:
            if isinstance(field_data, dict) and field_data.get("name"):
                descriptor = FieldDescriptor.from_describe(field_data)
                fields[descriptor.name] = descriptor

        return cls(
            entity_name=data.get("name", ""),
            label=data.get("label", data.get("name", "")),
            fields=fields,
            custom=data.get("custom", False),
            queryable=data.get("queryable", True),
        )

    @classmethod
    def from_json_file(cls, file_path: str) -> "SchemaSnapshot":
        """Load a snapshot from a describe JSON file."""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls.from_describe(data)
