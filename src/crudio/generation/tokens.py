"""Token engine: recursive expansion of [placeholder] expressions."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Dict, Optional, Set, Tuple

from crudio.config.logging import get_logger
from crudio.model.instance import EntityInstance, InstanceRef
from .constants import CLEAN_MODIFIER, LOOKUP_MODIFIER, QUERY_MODIFIER, TOKEN_MODIFIERS
from .context import GenerationContext
from .errors import DetokenizationError, GenerationError
from .generators import generate_value

if TYPE_CHECKING:
    from crudio.model.data_model import DataModel

logger = get_logger(__name__)

# Innermost bracketed token
TOKEN_PATTERN = re.compile(r"\[([^\[\]]*)\]")


def is_placeholder(value: Any) -> bool:
    return isinstance(value, str) and "[" in value


def clean(value: Any) -> str:
    """Remove all spaces and lowercase, for slugs such as email domains."""
    return str(value).strip().replace(" ", "").lower()


def split_modifiers(token: str) -> Tuple[str, str]:
    """Split the leading ?, ! and ~ modifiers from a token name."""
    index = 0
    while index < len(token) and token[index] in TOKEN_MODIFIERS:
        index += 1
    return token[:index], token[index:]


class TokenEngine:
    """
    Expands placeholder expressions into literal values.

    The graph is used to follow relationship pointers in lookup paths and
    to resolve related instances that have not been expanded yet.
    """

    def __init__(self, context: GenerationContext, graph: Optional["DataModel"] = None):
        self.context = context
        self.graph = graph
        self._resolving: Set[Tuple[Optional[InstanceRef], str]] = set()

    def resolve(
        self,
        expression: Any,
        instance: Optional[EntityInstance] = None,
        values: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Resolve every token in an expression.

        Tokens are substituted round by round until none remain. An
        expression made of a single token keeps the generated value's type
        (ranges yield ints); anything else is built as a string.

        Args:
            expression: Value to resolve; non-strings are returned unchanged
            instance: Context instance for ! and ? tokens
            values: Scratch copy of the instance values being generated

        Returns:
            Literal value
        """
        if not is_placeholder(expression):
            return expression

        if values is None and instance is not None:
            values = instance.values

        rounds = 0
        while True:
            tokens = TOKEN_PATTERN.findall(expression)
            if not tokens:
                break

            rounds += 1
            if rounds > self.context.max_expansion_rounds:
                raise DetokenizationError(
                    f"Token expansion did not converge after {self.context.max_expansion_rounds} rounds: {expression}",
                    table=instance.entity_type.table_name if instance else None,
                )

            for token in tokens:
                value = self._token_value(token, instance, values)
                if expression == f"[{token}]" and not isinstance(value, str):
                    return value
                expression = expression.replace(f"[{token}]", str(value), 1)

        if "[" in expression:
            raise DetokenizationError(
                f"Detokenisation failed: {expression}",
                table=instance.entity_type.table_name if instance else None,
            )
        return expression

    def _token_value(
        self,
        token: str,
        instance: Optional[EntityInstance],
        values: Optional[Dict[str, Any]],
    ) -> Any:
        modifiers, name = split_modifiers(token)

        if LOOKUP_MODIFIER in modifiers:
            value = self.lookup(name, instance, values)
        elif QUERY_MODIFIER in modifiers:
            value = f"[{self.value_at_path(name, instance, values)}]"
        else:
            value = generate_value(name, self.context)

        if CLEAN_MODIFIER in modifiers and value is not None:
            value = clean(value)
        return value

    def lookup(
        self,
        name: str,
        instance: Optional[EntityInstance],
        values: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Read a field (or dotted path) from the context instance."""
        if instance is None:
            raise GenerationError(f"an instance is required to look up '[!{name}]'")
        if "." in name:
            return self.value_at_path(name, instance, values)

        if values is None:
            values = instance.values
        return self._field_value(instance, values, name)

    def _field_value(self, instance: EntityInstance, values: Dict[str, Any], name: str) -> Any:
        value = values.get(name)
        if is_placeholder(value):
            key = (instance.ref, name)
            if key in self._resolving:
                raise GenerationError(
                    f"circular reference while resolving '{name}'",
                    table=instance.entity_type.table_name,
                    field=name,
                )
            self._resolving.add(key)
            try:
                value = self.resolve(value, instance, values)
            finally:
                self._resolving.discard(key)
            values[name] = value

        if value is None:
            raise GenerationError(
                f"no value for '{name}' on {instance.entity_type.name}",
                table=instance.entity_type.table_name,
                field=name,
            )
        return value

    def value_at_path(
        self,
        path: str,
        instance: Optional[EntityInstance],
        values: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Follow forward relationship pointers, e.g. Device.DeviceType.name.

        Every segment but the last names a forward pointer; the last names
        the field to read. Related instances are expanded on demand.
        """
        if instance is None:
            raise GenerationError(f"an instance is required to resolve path '{path}'")

        parts = path.split(".")
        source = instance
        source_values = values if values is not None else instance.values

        for part in parts[:-1]:
            pointer = source_values.get(part)
            if not isinstance(pointer, InstanceRef) or self.graph is None:
                raise GenerationError(
                    f"can not follow '{part}' in path '{path}' from {source.entity_type.name}",
                    table=source.entity_type.table_name,
                    field=part,
                )
            source = self.graph.deref(pointer)
            if not source.resolved:
                self.graph.resolve_instance(source)
            source_values = source.values

        return self._field_value(source, source_values, parts[-1])
