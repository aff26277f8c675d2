"""Instance populator: fills tables with instances carrying unresolved generators."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from crudio.config.logging import get_logger
from crudio.generation.errors import SchemaError
from crudio.generation.generators import count_from_generator
from crudio.model.entity_type import EntityType
from crudio.model.instance import EntityInstance, Table

if TYPE_CHECKING:
    from crudio.model.data_model import DataModel

logger = get_logger(__name__)


def row_count(model: "DataModel", table: Table) -> int:
    """Resolve the number of rows to create for a table."""
    count = table.entity_type.row_count
    if count is None:
        return model.context.default_row_count
    if isinstance(count, str):
        return count_from_generator(count, model.context, table.name)
    if count <= 0:
        raise SchemaError(f"Row count for {table.name} must be positive, got {count}", table=table.name)
    return count


def setup_generators(instance: EntityInstance) -> None:
    """Initialise every field to its unresolved generator expression."""
    for f in instance.entity_type.fields:
        instance.values[f.name] = f.generator if f.generator is not None else f.default_value


def create_instance(model: "DataModel", entity_type: EntityType) -> EntityInstance:
    """
    Append a new instance to its table and run the entity's triggers.

    The instance is placed in the table before its scripts execute so that
    children created by a script can point back at it.
    """
    table = model.table_for_entity(entity_type.name)
    instance = table.new_instance()
    setup_generators(instance)
    model.run_triggers(instance)
    return instance


def fill_table(model: "DataModel", table: Table) -> None:
    """
    Create the required number of instances for a table.

    Tables that already hold rows (populated lazily or by trigger scripts)
    are never re-filled.
    """
    if len(table) > 0:
        logger.debug(f"Table '{table.name}' already holds {len(table)} rows, not refilling")
        return

    start = time.time()
    count = row_count(model, table)
    for _ in range(count):
        create_instance(model, table.entity_type)

    logger.debug(
        f"Filled table '{table.name}' with {len(table)} rows "
        f"(requested {count}) in {time.time() - start:.3f}s"
    )
