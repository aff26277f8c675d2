"""Input schema document models."""

from .document import (
    AssignmentSpec,
    EntitySpec,
    FieldSpec,
    GeneratorSpec,
    RelationshipSpec,
    SchemaDocument,
    SingularSpec,
    TriggerSpec,
)

__all__ = [
    "AssignmentSpec",
    "EntitySpec",
    "FieldSpec",
    "GeneratorSpec",
    "RelationshipSpec",
    "SchemaDocument",
    "SingularSpec",
    "TriggerSpec",
]
