"""Values drawn from Faker, one attribute per provider."""

from typing import Any, Callable, Optional
import pandas as pd
from faker import Faker

from crudio.generation.errors import GenerationError


class FakerProvider:
    """
    Serves a single Faker attribute, e.g. ``faker.email`` -> ``Faker().email()``.

    Each provider owns its Faker instance so a seeded build reproduces the
    same names and addresses regardless of what other providers drew.
    """

    def __init__(self, field: str, locale: str = "en_US", seed: Optional[int] = None, **kwargs):
        faker = Faker(locale)
        if seed is not None:
            faker.seed_instance(seed)

        attribute = getattr(faker, field, None)
        if not callable(attribute):
            raise GenerationError(f"Faker field '{field}' not available")

        self.field = field
        self.locale = locale
        self.options = kwargs
        self._draw: Callable[..., Any] = attribute

    def sample(self, n: int, **kwargs) -> pd.Series:
        """Draw n values; call-time kwargs override the ones given at construction."""
        options = {**self.options, **kwargs}
        return pd.Series([self._draw(**options) for _ in range(n)], name=self.field)

    def __repr__(self) -> str:
        return f"FakerProvider(field={self.field!r}, locale={self.locale!r})"
