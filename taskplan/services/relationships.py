"""Derivation of the entities a task references through its fields."""

from typing import TYPE_CHECKING, Iterable, List, Mapping, Tuple

from ..models.field import FieldDescriptor

if TYPE_CHECKING:
    from ..task import MigrationTask


def _distinct(names: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for name in names:
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


class RelationshipExtractor:
    """
    Relationship summaries computed from a field map.

    Nothing is cached: every call reflects the current fields of the task,
    after expansions and exclusions.
    """

    @staticmethod
    def parent_lookup_entities(field_map: Mapping[str, FieldDescriptor]) -> List[str]:
        """Objects referenced by simple lookup fields, in first-seen order."""
        return _distinct(f.reference_to for f in field_map.values() if f.is_simple_reference)

    @staticmethod
    def parent_master_detail_entities(field_map: Mapping[str, FieldDescriptor]) -> List[str]:
        """Objects referenced by master-detail fields, in first-seen order."""
        return _distinct(f.reference_to for f in field_map.values() if f.is_master_detail)

    @staticmethod
    def has_parent_relationships(field_map: Mapping[str, FieldDescriptor]) -> bool:
        return any(f.is_lookup and not f.is_complex for f in field_map.values())

    @staticmethod
    def has_child_relationships(entity_name: str, registry: Mapping[str, "MigrationTask"]) -> bool:
        """Check if another registered task holds a reference to this object."""
        for name, task in registry.items():
            if name == entity_name:
                continue
            for descriptor in task.fields_in_query_map.values():
                if descriptor.is_lookup and descriptor.reference_to == entity_name:
                    return True
        return False

    @classmethod
    def has_no_relationships(
        cls,
        entity_name: str,
        field_map: Mapping[str, FieldDescriptor],
        registry: Mapping[str, "MigrationTask"]
    ) -> bool:
        return (not cls.has_parent_relationships(field_map)
                and not cls.has_child_relationships(entity_name, registry))

    @classmethod
    def dependency_edges(cls, registry: Mapping[str, "MigrationTask"]) -> List[Tuple[str, str]]:
        """
        List (parent, child) pairs between registered tasks.

        Only parents that are themselves registered are included and
        self references are left out. The order of the edges follows the
        registry order.
        """
        edges: List[Tuple[str, str]] = []
        seen = set()
        for name, task in registry.items():
            field_map = task.fields_in_query_map
            parents = (cls.parent_master_detail_entities(field_map)
                       + cls.parent_lookup_entities(field_map))
            for parent in parents:
                edge = (parent, name)
                if parent == name or parent not in registry or edge in seen:
                    continue
                seen.add(edge)
                edges.append(edge)
        return edges
