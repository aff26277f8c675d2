"""Evaluation of named generators and built-in values."""

import re
import uuid
from datetime import datetime, timezone
from typing import Any, List

import numpy as np

from crudio.config.logging import get_logger
from .constants import BUILTIN_GENERATORS, DATE_FORMAT, LIST_SEPARATOR, RANGE_SEPARATOR, TIME_FORMAT
from .context import GenerationContext
from .errors import GenerationError, SchemaError
from .providers import get_provider, is_provider_name

logger = get_logger(__name__)

RANGE_PATTERN = re.compile(rf"^\s*(-?\d+)\s*{re.escape(RANGE_SEPARATOR)}\s*(-?\d+)\s*$")


def list_values(template: str) -> List[str]:
    """Split a ";" list, ignoring leading and trailing separators."""
    return template.strip(LIST_SEPARATOR).split(LIST_SEPARATOR)


def pick_from_list(template: str, context: GenerationContext) -> str:
    words = list_values(template)
    index = int(len(words) * context.random())
    return words[index]


def builtin_value(name: str) -> Any:
    """Return the engine-native value for a built-in generator, or None."""
    lowered = name.lower()
    if lowered not in BUILTIN_GENERATORS:
        return None
    if lowered == "uuid":
        return str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    if lowered == "date":
        return now.strftime(DATE_FORMAT)
    if lowered == "time":
        return now.strftime(TIME_FORMAT)
    return now.replace(tzinfo=None).isoformat(timespec="milliseconds")


def provider_value(name: str, context: GenerationContext) -> Any:
    """Draw a single value from a named value provider, cached per build."""
    provider = context.providers.get(name)
    if provider is None:
        seed = int(context.rng.integers(0, 2**32 - 1))
        provider = get_provider(name, {"seed": seed})
        context.providers[name] = provider
        logger.debug(f"Created value provider '{name}'")
    value = provider.sample(1).iloc[0]
    # numpy scalars (faker.pyint, ...) become plain Python values
    return value.item() if isinstance(value, np.generic) else value


def generate_value(name: str, context: GenerationContext) -> Any:
    """
    Produce a value from a generator name.

    Built-ins (uuid, date, time, timestamp) and provider names bypass the
    generator table. Otherwise the generator template is a ";" list (one
    element chosen uniformly), a "low>high" range (integer in [low, high),
    high excluded) or a literal which may hold further tokens.

    Args:
        name: Generator name, without brackets
        context: Generation context

    Returns:
        Generated value (str, or int for ranges)
    """
    if not name:
        raise GenerationError("generator name must specify a standard or custom generator")

    value = builtin_value(name)
    if value is not None:
        return value

    if name not in context.generators and is_provider_name(name):
        return provider_value(name, context)

    template = context.generator(name)

    if LIST_SEPARATOR in template:
        return pick_from_list(template, context)

    match = RANGE_PATTERN.match(template)
    if match:
        return context.random_int(int(match.group(1)), int(match.group(2)))

    return template


def count_from_generator(reference: str, context: GenerationContext, table_name: str) -> int:
    """Number of distinct literal values a "[generator]" row count refers to."""
    name = reference.strip().strip("[]")
    template = context.generator(name)
    count = len({v for v in list_values(template) if v.strip()})
    if count == 0:
        raise SchemaError(
            f"Unable to determine entity count for {table_name} using \"{template}\"",
            table=table_name,
        )
    return count
