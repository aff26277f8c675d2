"""Entity type definitions: fields, relationships and row-count policy."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Union

from crudio.generation.errors import SchemaError


@dataclass
class Field:
    """A field of an entity type."""

    name: str
    field_type: str = "string"
    is_key: bool = False
    is_unique: bool = False
    is_required: bool = False
    generator: Optional[str] = None
    default_value: Any = None
    sensitive: bool = False

    def copy(self) -> "Field":
        return replace(self)


@dataclass
class SingularAssignment:
    """Per enumerated row, connect one related row to each listed target."""

    enumerate: str
    field: str
    values: List[str]


@dataclass
class Relationship:
    """A one-to-many or many-to-many relationship between entity types."""

    relationship_type: str  # "one" or "many"
    from_entity: str
    to_entity: str
    name: str = ""
    count: Optional[int] = None
    required: bool = False
    from_column: Optional[str] = None
    to_column: Optional[str] = None
    default_query: Optional[str] = None
    singular: Optional[SingularAssignment] = None
    pointer: Optional[str] = None

    def __post_init__(self):
        if self.relationship_type not in ("one", "many"):
            raise SchemaError(
                f"relationship type must be 'one' or 'many', got '{self.relationship_type}'"
            )
        if not self.name:
            self.name = self.from_entity + self.to_entity
        if not self.from_column:
            self.from_column = self.to_entity

    @property
    def pointer_key(self) -> str:
        """Key of the forward InstanceRef in the source row's values."""
        return self.pointer or self.to_entity

    @property
    def is_named(self) -> bool:
        """Named relationships are connected after token expansion."""
        return self.default_query is not None or self.singular is not None

    def default_target(self) -> tuple[str, str]:
        """Split the "field:value" default query."""
        field_name, sep, value = (self.default_query or "").partition(":")
        if not sep or not field_name.strip():
            raise SchemaError(
                f"default query must have the form field:value, got '{self.default_query}'",
                table=self.from_entity,
            )
        return field_name.strip(), value.strip()


def table_name_for(entity_name: str) -> str:
    """Pluralise an entity name into its table name."""
    lower = entity_name.lower()
    if re.search(r"[^aeiou]y$", lower):
        return entity_name[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", lower):
        return entity_name + "es"
    return entity_name + "s"


@dataclass
class EntityType:
    """A record kind declared in the schema."""

    name: str
    table_name: str = ""
    abstract: bool = False
    is_join: bool = False
    fields: List[Field] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    # int, "[generator]" or None for the default
    row_count: Optional[Union[int, str]] = None
    source_relationship: Optional[Relationship] = None

    def __post_init__(self):
        if not self.table_name:
            self.table_name = table_name_for(self.name)

    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def field(self, name: str, required: bool = False) -> Optional[Field]:
        for f in self.fields:
            if f.name == name:
                return f
        if required:
            raise SchemaError(
                f"'{name}' is not a valid field on entity '{self.name}'",
                table=self.table_name,
                field=name,
            )
        return None

    def key_field(self) -> Optional[Field]:
        for f in self.fields:
            if f.is_key:
                return f
        return None

    def unique_fields(self) -> List[Field]:
        return [f for f in self.fields if f.is_unique]

    def add_field(self, new_field: Field) -> "EntityType":
        if self.field(new_field.name) is not None:
            raise SchemaError(
                f"'{new_field.name}' is already defined on entity '{self.name}'",
                table=self.table_name,
                field=new_field.name,
            )
        if new_field.is_key and self.key_field() is not None:
            raise SchemaError(
                f"a key field is already defined on entity '{self.name}'",
                table=self.table_name,
                field=new_field.name,
            )
        self.fields.append(new_field)
        return self

    def add_key(self, name: str, field_type: str = "number", generator: Optional[str] = None) -> "EntityType":
        return self.add_field(
            Field(name=name, field_type=field_type, is_key=True, is_required=True, generator=generator)
        )

    def add_relationship(self, relationship: Relationship) -> "EntityType":
        self.relationships.append(relationship)
        return self
