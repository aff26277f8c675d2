"""Generation context threaded through every pipeline stage."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set, Tuple

import numpy as np

from crudio.config.settings import Settings, get_settings
from crudio.schema.document import GeneratorSpec
from .errors import GenerationError


@dataclass
class GenerationContext:
    """
    Holds the generator table, per-type unique-value sets and the RNG.

    Nothing in the engine keeps module-level state; everything mutable
    during a build lives here.
    """

    generators: Dict[str, str] = field(default_factory=dict)
    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    default_row_count: int = 50
    default_many_count: int = 1
    max_unique_attempts: int = 1000
    max_expansion_rounds: int = 50
    unique_values: Dict[Tuple[str, str], Set[str]] = field(default_factory=dict)
    providers: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(
        cls,
        generators: Optional[list[GeneratorSpec]] = None,
        settings: Optional[Settings] = None,
        seed: Optional[int] = None,
    ) -> "GenerationContext":
        settings = settings or get_settings()
        if seed is None:
            seed = settings.seed
        return cls(
            generators={g.name: g.values for g in (generators or [])},
            rng=np.random.default_rng(seed),
            default_row_count=settings.default_row_count,
            default_many_count=settings.default_many_count,
            max_unique_attempts=settings.max_unique_attempts,
            max_expansion_rounds=settings.max_expansion_rounds,
        )

    def generator(self, name: str) -> str:
        if name not in self.generators:
            raise GenerationError(f"Generator name is invalid '{name}'")
        return self.generators[name]

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return float(self.rng.random())

    def random_int(self, low: int, high: int) -> int:
        """Integer in [low, high): floor((high - low) * random()) + low."""
        return int(math.floor((high - low) * self.random())) + low

    # Unique-value tracking

    def has_unique(self, type_name: str, field_name: str, value: str) -> bool:
        return value in self.unique_values.get((type_name, field_name), set())

    def add_unique(self, type_name: str, field_name: str, value: str) -> None:
        self.unique_values.setdefault((type_name, field_name), set()).add(value)

    def clear_unique(self, type_name: str) -> None:
        for key in [k for k in self.unique_values if k[0] == type_name]:
            del self.unique_values[key]
