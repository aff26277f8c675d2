"""Trigger interpreter: scripts that build indexed sub-graphs on instance creation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from crudio.config.logging import get_logger
from crudio.generation.errors import SchemaError, ScriptError
from crudio.model.instance import EntityInstance
from .connector import connect_rows

if TYPE_CHECKING:
    from crudio.model.data_model import DataModel

logger = get_logger(__name__)

# Users(0).OrganisationRole?name=CEO  /  Users(6-10).OrganisationRole?name=Staff
SCRIPT_PATTERN = re.compile(
    r"^\s*(?P<field>\w+)\((?P<start>\d+)(?:\s*-\s*(?P<end>\d+))?\)"
    r"\.(?P<entity>\w+)\?(?P<query>.*)$"
)


@dataclass(frozen=True)
class Script:
    """Parsed trigger script."""

    field: str
    start: int
    end: int
    entity: str
    query: Optional[str]


def parse_script(script: str) -> Script:
    match = SCRIPT_PATTERN.match(script)
    if not match:
        raise ScriptError(
            "Syntax error - expected Field(index|start-end).Entity?field=value",
            script=script,
        )
    start = int(match.group("start"))
    end = int(match.group("end")) if match.group("end") is not None else start
    if end < start:
        raise ScriptError(f"Syntax error - invalid row range {start}-{end}", script=script)
    return Script(
        field=match.group("field"),
        start=start,
        end=end,
        entity=match.group("entity"),
        query=match.group("query").strip() or None,
    )


def connect_child(
    model: "DataModel",
    parent: EntityInstance,
    field_name: str,
    row_index: int,
    target: EntityInstance,
) -> None:
    """
    Connect the parent's child at row_index with a target row.

    When the parent's list of children (e.g. an Organisation's Users) is too
    short, new children are created until it is long enough; each new child
    is connected to both the parent and the target, then expanded.
    """
    try:
        child_type = model.registry.for_table(field_name)
    except SchemaError as e:
        raise ScriptError(f"'{field_name}' is not a table name", table=field_name) from e
    children = parent.children(field_name)

    if len(children) > row_index:
        connect_rows(model, model.deref(children[row_index]), target)
        return

    while len(children) < row_index + 1:
        before = len(children)
        child = model.create_instance(child_type)
        connect_rows(model, child, parent)
        connect_rows(model, child, target)
        model.resolve_instance(child)
        if len(children) == before:
            raise ScriptError(
                f"Failed to generate entity for index {row_index} in {parent.entity_type.name}",
                table=field_name,
            )


def execute_script(model: "DataModel", parent: EntityInstance, script: str) -> None:
    """Run one script against a newly created parent instance."""
    parsed = parse_script(model.tokens.resolve(script))

    rows = model.query(parsed.entity, parsed.query)
    if not rows:
        raise ScriptError(
            f"Failed to find {parsed.entity} matching query: {parsed.query}",
            script=script,
        )
    target = rows[0]

    for row_index in range(parsed.start, parsed.end + 1):
        connect_child(model, parent, parsed.field, row_index, target)


def run_triggers(model: "DataModel", instance: EntityInstance) -> None:
    """Execute, in order, every script registered for the instance's entity type."""
    for script in model.triggers.get(instance.entity_type.name, []):
        logger.debug(f"Running trigger on {instance.ref}: {script}")
        execute_script(model, instance, script)
