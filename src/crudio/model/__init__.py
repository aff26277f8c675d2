"""Entity types, instances, tables and the type registry."""

from .entity_type import EntityType, Field, Relationship, SingularAssignment, table_name_for
from .instance import EntityInstance, InstanceRef, Table
from .registry import TypeRegistry, build_registry

__all__ = [
    "EntityType",
    "Field",
    "Relationship",
    "SingularAssignment",
    "table_name_for",
    "EntityInstance",
    "InstanceRef",
    "Table",
    "TypeRegistry",
    "build_registry",
]
