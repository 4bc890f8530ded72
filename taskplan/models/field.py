"""Field descriptor model for a single schema field."""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import Enum

from ..constants import is_complex_field


class RelationshipKind(str, Enum):
    """Kind of relationship a field holds to another entity."""
    NONE = "none"
    LOOKUP = "lookup"
    MASTER_DETAIL = "master_detail"


@dataclass
class FieldDescriptor:
    """Definition of a field in an entity schema."""
    name: str
    label: str = ""
    type: str = "string"
    creatable: bool = False
    updateable: bool = False
    auto_number: bool = False
    formula: bool = False
    custom: bool = False
    nillable: bool = True
    reference_to: Optional[str] = None
    relationship_name: Optional[str] = None
    cascade_delete: bool = False
    relationship_order: Optional[int] = None
    owner_name: Optional[str] = None  # Entity name of the owning task, set after fetch

    @property
    def readonly(self) -> bool:
        """Field cannot be written on insert."""
        return not self.creatable or self.formula or self.auto_number

    @property
    def is_lookup(self) -> bool:
        return bool(self.reference_to)

    @property
    def is_master_detail(self) -> bool:
        return self.is_lookup and self.relationship_order is not None

    @property
    def is_complex(self) -> bool:
        return is_complex_field(self.name)

    @property
    def is_simple_reference(self) -> bool:
        """Plain lookup field, not master-detail and not a relationship path."""
        return self.is_lookup and not self.is_master_detail and not self.is_complex

    @property
    def relationship_kind(self) -> RelationshipKind:
        if self.is_master_detail:
            return RelationshipKind.MASTER_DETAIL
        if self.is_lookup:
            return RelationshipKind.LOOKUP
        return RelationshipKind.NONE

    @property
    def is_dynamic(self) -> bool:
        return self.type == "dynamic"

    def owner_task(self, registry: Dict[str, Any]) -> Optional[Any]:
        """Look up the task that owns this field in a name-keyed registry."""
        if not self.owner_name:
            return None
        return registry.get(self.owner_name)

    def parent_task(self, registry: Dict[str, Any]) -> Optional[Any]:
        """Look up the task of the referenced entity in a name-keyed registry."""
        if not self.is_lookup:
            return None
        return registry.get(self.reference_to)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result = {
            "name": self.name,
            "label": self.label,
            "type": self.type,
            "creatable": self.creatable,
            "updateable": self.updateable,
            "readonly": self.readonly,
            "relationship_kind": self.relationship_kind.value,
        }
        if self.reference_to:
            result["reference_to"] = self.reference_to
        if self.auto_number:
            result["auto_number"] = True
        if self.custom:
            result["custom"] = True
        return result

    @classmethod
    def from_describe(cls, data: Dict[str, Any]) -> "FieldDescriptor":
        """Create from a field entry of a describe payload."""
        reference_to = data.get("referenceTo") or None
        if isinstance(reference_to, list):
            # Polymorphic lookups keep their first target
            reference_to = reference_to[0] if reference_to else None

        return cls(
            name=data.get("name", ""),
            label=data.get("label", data.get("name", "")),
            type=data.get("type", "string"),
            creatable=data.get("createable", data.get("creatable", False)),
            updateable=data.get("updateable", False),
            auto_number=data.get("autoNumber", False),
            formula=data.get("calculated", False),
            custom=data.get("custom", False),
            nillable=data.get("nillable", True),
            reference_to=reference_to,
            relationship_name=data.get("relationshipName"),
            cascade_delete=data.get("cascadeDelete", False),
            relationship_order=data.get("relationshipOrder"),
        )

    @classmethod
    def dynamic(cls, name: str) -> "FieldDescriptor":
        """Placeholder for a computed field that has no schema entry."""
        return cls(name=name, label=name, type="dynamic")
