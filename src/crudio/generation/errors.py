"""Exception hierarchy for schema processing and data generation."""

from typing import Optional


class CrudioError(Exception):
    """Base class for every fatal build error."""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        field: Optional[str] = None,
        script: Optional[str] = None,
    ):
        self.table = table
        self.field = field
        self.script = script
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.table:
            parts.append(f"table={self.table}")
        if self.field:
            parts.append(f"field={self.field}")
        if self.script:
            parts.append(f"script={self.script}")
        return " | ".join(parts)


class SchemaError(CrudioError):
    """The schema document can not be turned into entity types."""


class GenerationError(CrudioError):
    """A value could not be generated."""


class DetokenizationError(GenerationError):
    """Placeholders remain after expansion."""


class UniqueValueError(GenerationError):
    """The uniqueness retry budget was exhausted."""


class RelationshipError(CrudioError):
    """Rows could not be connected."""


class ScriptError(CrudioError):
    """A trigger script or assignment path could not be executed."""
