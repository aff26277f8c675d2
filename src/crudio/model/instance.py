"""Entity instances and the in-memory tables that own them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, NamedTuple

from .entity_type import EntityType


class InstanceRef(NamedTuple):
    """Address of an instance: owning table name and row index."""

    table: str
    index: int

    def __str__(self) -> str:
        return f"{self.table}({self.index})"


@dataclass
class EntityInstance:
    """
    One record of an entity type.

    Values hold literals, unresolved placeholder strings, a forward
    InstanceRef (child to parent) or a list of InstanceRef (parent to
    children). Instances never hold other instances directly.
    """

    entity_type: EntityType
    ref: InstanceRef
    values: Dict[str, Any] = field(default_factory=dict)
    resolved: bool = False

    @property
    def type_name(self) -> str:
        return self.entity_type.name

    def children(self, table_name: str) -> List[InstanceRef]:
        """Back-reference list for a child table, created on first use."""
        refs = self.values.get(table_name)
        if not isinstance(refs, list):
            refs = []
            self.values[table_name] = refs
        return refs


class Table:
    """Ordered store of the instances of one entity type."""

    def __init__(self, entity_type: EntityType):
        self.entity_type = entity_type
        self.rows: List[EntityInstance] = []

    @property
    def name(self) -> str:
        return self.entity_type.table_name

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[EntityInstance]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> EntityInstance:
        return self.rows[index]

    def new_instance(self) -> EntityInstance:
        """Append an empty instance; its position is its identity."""
        instance = EntityInstance(
            entity_type=self.entity_type,
            ref=InstanceRef(self.name, len(self.rows)),
        )
        self.rows.append(instance)
        return instance

    def clear(self) -> None:
        self.rows = []

    def __repr__(self) -> str:
        return f"Table({self.name!r}, rows={len(self.rows)})"
