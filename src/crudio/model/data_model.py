"""Populated data model: registry, tables and the operations stages share."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

import pandas as pd

from crudio.config.logging import get_logger
from crudio.generation.context import GenerationContext
from crudio.generation.errors import GenerationError, RelationshipError, ScriptError
from crudio.generation.tokens import TokenEngine
from crudio.generation.uniqueness import resolve_unique_row
from crudio.generation.engine import populator, triggers
from crudio.schema.document import AssignmentSpec, SchemaDocument
from .entity_type import EntityType, Relationship
from .instance import EntityInstance, InstanceRef, Table
from .registry import TypeRegistry

logger = get_logger(__name__)


class DataModel:
    """
    In-memory object graph built from a schema document.

    Tables own every instance; relationship values hold InstanceRef ids.
    Accessors that need a target table's rows populate it on first use.
    """

    def __init__(
        self,
        document: SchemaDocument,
        registry: TypeRegistry,
        context: GenerationContext,
    ):
        self.document = document
        self.registry = registry
        self.context = context
        self.tokens = TokenEngine(context, self)
        self.triggers: Dict[str, List[str]] = {t.entity: list(t.scripts) for t in document.triggers}
        self.assignments: List[AssignmentSpec] = list(document.assign)
        self.tables: List[Table] = [Table(e) for e in registry.concrete()]
        self._by_name: Dict[str, Table] = {t.name: t for t in self.tables}
        self._by_entity: Dict[str, Table] = {t.entity_type.name: t for t in self.tables}
        self._in_progress: Set[InstanceRef] = set()

    # Lookup

    def entity_type(self, name: str) -> EntityType:
        return self.registry.get(name)

    def table(self, name: str) -> Table:
        table = self._by_name.get(name)
        if table is None:
            raise RelationshipError(f"Table '{name}' not found", table=name)
        return table

    def table_for_entity(self, name: str, auto_populate: bool = False) -> Table:
        """
        Table holding an entity type's rows.

        With auto_populate, an empty table is filled and expanded before it
        is returned, so a lookup never observes a half-built table.
        """
        table = self._by_entity.get(name)
        if table is None:
            raise RelationshipError(f"Table for entity '{name}' not found", table=name)
        if auto_populate and len(table) == 0:
            logger.debug(f"Lazily populating table '{table.name}'")
            self.populate(table)
        return table

    def rows(self, table_name: str) -> List[EntityInstance]:
        return self.table(table_name).rows

    def deref(self, ref: InstanceRef) -> EntityInstance:
        try:
            return self.table(ref.table)[ref.index]
        except IndexError as e:
            raise RelationshipError(f"Reference {ref} does not exist", table=ref.table) from e

    def query(self, entity_name: str, query: Optional[str]) -> List[EntityInstance]:
        """
        Rows of an entity type matching "field=value"; "*" or empty returns all rows.

        Rows are expanded before matching, since a table filled earlier in
        the same pass still holds unresolved generator expressions.
        """
        table = self.table_for_entity(entity_name, auto_populate=True)
        if len(table) == 0:
            raise ScriptError(
                f"Source table {entity_name} has no rows, executing query {query or '*'}",
                table=table.name,
            )
        for row in list(table):
            self.resolve_instance(row)
        if not query or query.strip() in ("", "*"):
            return list(table.rows)

        field_name, sep, value = query.partition("=")
        if not sep or not field_name.strip() or not value.strip():
            raise ScriptError(
                f"Querying entity type: {entity_name}. Syntax error in query: {query}. "
                f"Format is ?fieldname=value",
                table=table.name,
            )
        field_name, value = field_name.strip(), value.strip()
        return [
            row for row in table
            if row.values.get(field_name) is not None and str(row.values[field_name]) == value
        ]

    def value_at_path(self, instance: EntityInstance, path: str) -> Any:
        return self.tokens.value_at_path(path, instance)

    # Stage operations

    def create_instance(self, entity_type: EntityType) -> EntityInstance:
        return populator.create_instance(self, entity_type)

    def run_triggers(self, instance: EntityInstance) -> None:
        triggers.run_triggers(self, instance)

    def fill_table(self, table: Table) -> None:
        populator.fill_table(self, table)

    def populate(self, table: Table) -> None:
        """Fill a table and expand the tokens of its rows."""
        self.fill_table(table)
        self.process_table_tokens(table)

    def resolve_instance(self, instance: EntityInstance) -> None:
        if instance.resolved:
            return
        if instance.ref in self._in_progress:
            raise GenerationError(
                f"circular reference: {instance.ref} is needed while it is being generated",
                table=instance.entity_type.table_name,
            )
        self._in_progress.add(instance.ref)
        try:
            resolve_unique_row(instance, self.tokens, self.context)
        finally:
            self._in_progress.discard(instance.ref)

    def process_table_tokens(self, table: Table) -> None:
        # rows appended while iterating (by lookups into this table) are resolved as well
        index = 0
        while index < len(table):
            self.resolve_instance(table[index])
            index += 1

    def process_all_tokens(self) -> None:
        for table in self.tables:
            self.process_table_tokens(table)

    # Output

    def to_frames(self) -> Dict[str, pd.DataFrame]:
        """
        One DataFrame per table.

        Forward references are rendered as the target's to_column value,
        defaulting to its key field (or its row index when the target has no
        key); child lists are omitted.
        """
        frames: Dict[str, pd.DataFrame] = {}
        for table in self.tables:
            entity_type = table.entity_type
            columns = list(dict.fromkeys(
                entity_type.field_names()
                + [r.from_column for r in entity_type.relationships if r.relationship_type == "one"]
            ))
            records = []
            for row in table:
                record = {f: row.values.get(f) for f in entity_type.field_names()}
                for r in entity_type.relationships:
                    if r.relationship_type == "one":
                        record[r.from_column] = self._key_of(row.values.get(r.pointer_key), r)
                records.append(record)
            frames[table.name] = pd.DataFrame(records, columns=columns)
        return frames

    def _key_of(self, ref: Any, relationship: Relationship) -> Any:
        if not isinstance(ref, InstanceRef):
            return None
        target = self.deref(ref)
        if relationship.to_column:
            return target.values.get(relationship.to_column)
        key = target.entity_type.key_field()
        return target.values.get(key.name) if key else ref.index

    def summary(self) -> Dict[str, int]:
        return {t.name: len(t) for t in self.tables}
