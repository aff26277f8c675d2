"""Relationship connector: one-to-many, many-to-many and named passes."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, List, Optional, Set

from crudio.config.logging import get_logger
from crudio.generation.errors import RelationshipError
from crudio.model.entity_type import EntityType, Relationship
from crudio.model.instance import EntityInstance, InstanceRef

if TYPE_CHECKING:
    from crudio.model.data_model import DataModel

logger = get_logger(__name__)


def connect_rows(
    model: "DataModel",
    source: EntityInstance,
    target: EntityInstance,
    pointer_key: Optional[str] = None,
) -> None:
    """
    Connect a child row to a parent row.

    The source gets a forward pointer under pointer_key and the target lists
    the source under the source table's name. Without an explicit key the
    pointer is chosen by pointer_key_for. A source that already pointed at
    another row under that key is detached from it first.
    """
    if source is None:
        raise RelationshipError("source row must be specified")
    if target is None:
        raise RelationshipError("target row must be specified")

    if pointer_key is None:
        pointer_key = pointer_key_for(source, target.entity_type.name)
    back_key = source.entity_type.table_name

    previous = source.values.get(pointer_key)
    if isinstance(previous, InstanceRef):
        if previous == target.ref:
            return
        old_children = model.deref(previous).values.get(back_key)
        if isinstance(old_children, list) and source.ref in old_children:
            old_children.remove(source.ref)

    source.values[pointer_key] = target.ref
    target.children(back_key).append(source.ref)


def pointer_key_for(source: EntityInstance, target_entity: str) -> str:
    """
    Pointer key of the source's relationship to target_entity.

    A self join has two relationships to the same entity; the first one
    still unconnected is used, then the last.
    """
    keys = [
        r.pointer_key
        for r in source.entity_type.relationships
        if r.relationship_type == "one" and r.to_entity == target_entity
    ]
    if not keys:
        return target_entity
    for key in keys:
        if not is_connected(source, key):
            return key
    return keys[-1]


def is_connected(source: EntityInstance, pointer_key: str) -> bool:
    return isinstance(source.values.get(pointer_key), InstanceRef)


def join_one_to_many(model: "DataModel", relationship: Relationship) -> None:
    """
    Connect every source row to a target row.

    Source rows take target rows in order until targets run out, then pick
    uniformly random targets, so every target gets at least one source row
    when there are enough sources. Rows already connected (by a trigger
    script) keep their connection.
    """
    source_table = model.table_for_entity(relationship.from_entity)
    target_table = model.table_for_entity(relationship.to_entity, auto_populate=True)

    if len(target_table) == 0:
        raise RelationshipError(
            f"Can not connect '{relationship.name}': target table {target_table.name} is empty",
            table=target_table.name,
        )

    index = 0
    for source_row in list(source_table):
        if is_connected(source_row, relationship.pointer_key):
            continue
        if index < len(target_table):
            row_num = index
            index += 1
        else:
            row_num = model.context.random_int(0, len(target_table))
        connect_rows(model, source_row, target_table[row_num], relationship.pointer_key)

    logger.debug(
        f"Connected {len(source_table)} {source_table.name} row(s) to "
        f"{len(target_table)} {target_table.name} row(s) via '{relationship.name}'"
    )


def connect_one_to_many_relationships(model: "DataModel") -> None:
    """Pass 1: default one-to-many connection for every plain relationship."""
    for entity_type in model.registry:
        if entity_type.is_join or entity_type.abstract:
            continue
        for relationship in entity_type.relationships:
            if relationship.relationship_type == "one" and not relationship.is_named:
                join_one_to_many(model, relationship)


def join_many_to_many(model: "DataModel", join_type: EntityType) -> None:
    """
    Create join rows for a many-to-many relationship.

    For each source row, min(count, target rows) distinct target rows are
    chosen at random without replacement.
    """
    relationship = join_type.source_relationship
    join_table = model.table_for_entity(join_type.name)
    source_table = model.table_for_entity(relationship.from_entity, auto_populate=True)
    target_table = model.table_for_entity(relationship.to_entity, auto_populate=True)

    configured = relationship.count if relationship.count is not None else model.context.default_many_count
    per_source = min(configured, len(target_table))
    source_end, target_end = [r for r in join_type.relationships if r.relationship_type == "one"]

    for source_row in list(source_table):
        choices = model.context.rng.choice(len(target_table), size=per_source, replace=False)
        for target_index in choices:
            row = model.create_instance(join_type)
            connect_rows(model, row, source_row, source_end.pointer_key)
            connect_rows(model, row, target_table[int(target_index)], target_end.pointer_key)
            model.resolve_instance(row)

    logger.debug(
        f"Created {len(join_table)} join row(s) in {join_table.name} "
        f"({per_source} per {source_table.name} row)"
    )


def connect_many_to_many_relationships(model: "DataModel") -> None:
    """Pass 2: join row synthesis."""
    for join_type in [e for e in model.registry if e.is_join]:
        join_many_to_many(model, join_type)


def matches(row: EntityInstance, field_name: str, value: str) -> bool:
    current = row.values.get(field_name)
    return current is not None and str(current) == value


def find_first(model: "DataModel", entity_name: str, field_name: str, value: str) -> EntityInstance:
    table = model.table_for_entity(entity_name, auto_populate=True)
    for row in table:
        if matches(row, field_name, value):
            return row
    raise RelationshipError(
        f"Failed to find {entity_name} where {field_name}={value}",
        table=table.name,
        field=field_name,
    )


def join_named_relationship(model: "DataModel", relationship: Relationship) -> None:
    """
    Connect singular and default targets.

    For every row of the enumerated table (e.g. each Organisation) the
    listed singular values (e.g. CEO, Head of Sales) are each given to one
    of that row's related source rows, in order. All remaining source rows
    are connected to the row matching the default "field:value" query.
    """
    source_table = model.table_for_entity(relationship.from_entity)
    target_table = model.table_for_entity(relationship.to_entity, auto_populate=True)
    consumed: Set[InstanceRef] = set()

    singular = relationship.singular
    if singular is not None:
        enumerated_table = model.table_for_entity(singular.enumerate, auto_populate=True)
        for parent in enumerated_table:
            related: List[InstanceRef] = parent.values.get(source_table.name) or []
            if len(singular.values) > len(related):
                raise RelationshipError(
                    f"Singular relationship involving Enumerated:{enumerated_table.name} "
                    f"Source:{source_table.name} Target:{target_table.name} - the number of "
                    f"singular values exceeds the number of rows in {source_table.name}",
                    table=source_table.name,
                )
            for source_ref, singular_value in zip(related, singular.values):
                target_row = find_first(model, relationship.to_entity, singular.field, singular_value)
                connect_rows(model, model.deref(source_ref), target_row, relationship.pointer_key)
                consumed.add(source_ref)

    if relationship.default_query is not None:
        field_name, value = relationship.default_target()
        default_row = find_first(model, relationship.to_entity, field_name, value)
        for source_row in list(source_table):
            if source_row.ref in consumed or is_connected(source_row, relationship.pointer_key):
                continue
            connect_rows(model, source_row, default_row, relationship.pointer_key)

    logger.debug(
        f"Connected named relationship '{relationship.name}': "
        f"{len(consumed)} singular, {len(source_table) - len(consumed)} other row(s)"
    )


def connect_named_relationships(model: "DataModel") -> None:
    """Pass 3: runs after token expansion, since lookups filter on generated values."""
    start = time.time()
    for relationship in model.registry.relationships():
        if relationship.relationship_type == "one" and relationship.is_named:
            join_named_relationship(model, relationship)
    logger.debug(f"Named relationships connected in {time.time() - start:.3f}s")
