"""Row-level token expansion with unique-value enforcement."""

from typing import Any, Dict, List

from crudio.config.logging import get_logger
from crudio.model.instance import EntityInstance
from .context import GenerationContext
from .errors import UniqueValueError
from .tokens import TokenEngine, is_placeholder

logger = get_logger(__name__)


def normalise_unique(value: Any) -> str:
    return str(value).strip().lower()


def unique_collisions(
    instance: EntityInstance,
    values: Dict[str, Any],
    context: GenerationContext,
) -> List[str]:
    """Names of unique fields whose value is already used in the entity type."""
    type_name = instance.entity_type.name
    return [
        f.name
        for f in instance.entity_type.unique_fields()
        if values.get(f.name) is not None
        and context.has_unique(type_name, f.name, normalise_unique(values[f.name]))
    ]


def expand_row(instance: EntityInstance, engine: TokenEngine) -> Dict[str, Any]:
    """Resolve every placeholder of an instance into a scratch copy."""
    scratch = dict(instance.values)
    for field_name in list(scratch.keys()):
        if is_placeholder(scratch[field_name]):
            scratch[field_name] = engine.resolve(scratch[field_name], instance, scratch)
    return scratch


def resolve_unique_row(
    instance: EntityInstance,
    engine: TokenEngine,
    context: GenerationContext,
) -> None:
    """
    Expand all tokens of an instance, re-rolling the whole row on a unique collision.

    Fields may be derived from each other (an email built from a name), so
    a collision discards the complete scratch copy rather than a single
    field. Values are committed only once every unique field is free.

    Args:
        instance: Instance to expand in place
        engine: Token engine bound to the data model
        context: Generation context holding unique-value sets

    Raises:
        UniqueValueError: If no unique combination is found within the budget
    """
    if instance.resolved:
        return

    type_name = instance.entity_type.name
    for attempt in range(1, context.max_unique_attempts + 1):
        scratch = expand_row(instance, engine)
        collisions = unique_collisions(instance, scratch, context)
        if not collisions:
            for f in instance.entity_type.unique_fields():
                if scratch.get(f.name) is not None:
                    context.add_unique(type_name, f.name, normalise_unique(scratch[f.name]))
            instance.values.update(
                {k: v for k, v in scratch.items() if is_placeholder(instance.values.get(k))}
            )
            instance.resolved = True
            if attempt > 1:
                logger.debug(f"Resolved unique values for {instance.ref} after {attempt} attempts")
            return

    raise UniqueValueError(
        f"Failed to create unique value for {instance.entity_type.table_name} after "
        f"{context.max_unique_attempts} attempts. Try to define a generator that will "
        f"create more random values. Adding a random number component can help.",
        table=instance.entity_type.table_name,
        field=", ".join(collisions),
    )
