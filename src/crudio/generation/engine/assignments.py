"""Assignment processor: literal overrides applied after all generation."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List, Optional, Tuple

from crudio.config.logging import get_logger
from crudio.generation.errors import CrudioError, ScriptError
from crudio.model.instance import EntityInstance, InstanceRef
from crudio.schema.document import AssignmentSpec

if TYPE_CHECKING:
    from crudio.model.data_model import DataModel

logger = get_logger(__name__)

SEGMENT_PATTERN = re.compile(r"^(?P<name>\w+)(?:\((?P<start>\d+)(?:\s*-\s*(?P<end>\d+))?\))?$")


def parse_segment(segment: str, path: str) -> Tuple[str, Optional[range]]:
    match = SEGMENT_PATTERN.match(segment.strip())
    if not match:
        raise ScriptError(f"invalid path segment '{segment}'", script=path)
    if match.group("start") is None:
        return match.group("name"), None
    start = int(match.group("start"))
    end = int(match.group("end")) if match.group("end") is not None else start
    return match.group("name"), range(start, end + 1)


def _select(refs: List[InstanceRef], indexes: Optional[range], name: str, path: str) -> List[InstanceRef]:
    if indexes is None:
        return list(refs)
    if indexes.stop > len(refs):
        raise ScriptError(
            f"index {indexes.stop - 1} is out of range for '{name}' ({len(refs)} rows)",
            script=path,
        )
    return [refs[i] for i in indexes]


def resolve_path(model: "DataModel", path: str) -> List[EntityInstance]:
    """
    Resolve an indexed path such as Organisations(0).Users(1-3) to instances.

    The first segment names a table; later segments follow a child list
    (indexed) or a forward pointer of the instances reached so far.
    """
    segments = [s for s in path.split(".") if s.strip()]
    if not segments:
        raise ScriptError("empty assignment path", script=path)

    name, indexes = parse_segment(segments[0], path)
    try:
        table = model.table(name)
    except CrudioError as e:
        raise ScriptError(f"can not resolve table '{name}'", script=path) from e
    current = _select([row.ref for row in table], indexes, name, path)

    for segment in segments[1:]:
        name, indexes = parse_segment(segment, path)
        reached: List[InstanceRef] = []
        for ref in current:
            value = model.deref(ref).values.get(name)
            if isinstance(value, InstanceRef) and indexes is None:
                reached.append(value)
            elif isinstance(value, list):
                reached.extend(_select(value, indexes, name, path))
            else:
                raise ScriptError(
                    f"'{name}' is not a relationship of {ref}",
                    table=ref.table,
                    script=path,
                )
        current = reached

    return [model.deref(ref) for ref in current]


def apply_assignment(model: "DataModel", assignment: AssignmentSpec) -> int:
    """Overwrite fields on every addressed instance; returns the instance count."""
    instances = resolve_path(model, assignment.target)
    if not instances:
        raise ScriptError(f"can not retrieve the target object specified in '{assignment.target}'")

    for instance in instances:
        for field_name, value in assignment.fields.items():
            if instance.entity_type.field(field_name) is None:
                raise ScriptError(
                    f"can not retrieve the target field '{field_name}' on {instance.entity_type.name}",
                    table=instance.entity_type.table_name,
                    field=field_name,
                    script=assignment.target,
                )
            instance.values[field_name] = value
    return len(instances)


def process_assignments(model: "DataModel") -> None:
    for assignment in model.assignments:
        count = apply_assignment(model, assignment)
        logger.debug(f"Assigned {list(assignment.fields)} on {count} instance(s) at {assignment.target}")
