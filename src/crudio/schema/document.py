"""Input schema document models."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FieldSpec(BaseModel):
    """Declared field of an entity."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    type: str = "string"
    key: bool = False
    unique: bool = False
    required: bool = False
    generator: Optional[str] = None
    default: Any = None
    sensitive: bool = False


class SingularSpec(BaseModel):
    """Assign each listed target to exactly one row per enumerated parent."""

    enumerate: str
    field: str
    values: str  # "CEO;Head of Sales;"

    def value_list(self) -> List[str]:
        return [v.strip() for v in self.values.strip(";").split(";") if v.strip()]


class RelationshipSpec(BaseModel):
    """Relationship declared on an entity."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["one", "many"] = "one"
    to: str
    name: Optional[str] = None
    count: Optional[int] = None
    required: bool = False
    from_column: Optional[str] = None
    to_column: Optional[str] = None
    default: Optional[str] = None  # "field:value"
    singular: Optional[SingularSpec] = None

    @field_validator("count")
    @classmethod
    def validate_count(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("relationship count must not be negative")
        return v


class EntitySpec(BaseModel):
    """Declared entity type."""

    model_config = ConfigDict(extra="ignore")

    table: Optional[str] = None
    abstract: bool = False
    count: Optional[Union[int, str]] = None
    inherits: Optional[Union[str, List[str]]] = None
    snippets: List[str] = Field(default_factory=list)
    fields: Dict[str, FieldSpec] = Field(default_factory=dict)
    relationships: List[RelationshipSpec] = Field(default_factory=list)

    @field_validator("count")
    @classmethod
    def validate_count(cls, v: Optional[Union[int, str]]) -> Optional[Union[int, str]]:
        """A count is either a positive integer or a "[generator]" reference."""
        if isinstance(v, str) and not re.fullmatch(r"\[[^\[\]]+\]", v.strip()):
            raise ValueError(f"count must be an integer or a [generator] reference, got '{v}'")
        return v

    def base_names(self) -> List[str]:
        if self.inherits is None:
            return []
        if isinstance(self.inherits, str):
            return [self.inherits]
        return list(self.inherits)


class GeneratorSpec(BaseModel):
    """Named value template."""

    name: str
    values: str


class TriggerSpec(BaseModel):
    """Scripts executed for every new instance of an entity."""

    entity: str
    scripts: List[str] = Field(default_factory=list)


class AssignmentSpec(BaseModel):
    """Literal field overrides applied to an addressed instance."""

    target: str
    fields: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def parse_instruction(cls, data: Any) -> Any:
        """Accept the shorthand form "Path(0).field=value"."""
        if isinstance(data, str):
            target, sep, value = data.partition("=")
            if not sep or "." not in target:
                raise ValueError(f"invalid assignment syntax in '{data}'")
            path, _, field = target.strip().rpartition(".")
            return {"target": path, "fields": {field: value}}
        return data


class SchemaDocument(BaseModel):
    """Complete schema document after includes have been merged."""

    model_config = ConfigDict(extra="ignore")

    include: List[str] = Field(default_factory=list)
    generators: List[GeneratorSpec] = Field(default_factory=list)
    snippets: Dict[str, FieldSpec] = Field(default_factory=dict)
    entities: Dict[str, EntitySpec] = Field(default_factory=dict)
    triggers: List[TriggerSpec] = Field(default_factory=list)
    assign: List[AssignmentSpec] = Field(default_factory=list)
