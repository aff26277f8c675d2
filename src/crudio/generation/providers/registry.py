"""Lookup of value providers by token name."""

from typing import Any, Callable, Dict, Optional

from crudio.config.logging import get_logger
from crudio.generation.errors import GenerationError
from .base import ValueProvider
from .faker_provider import FakerProvider

logger = get_logger(__name__)

FAKER_PREFIX = "faker."

ProviderFactory = Callable[[Dict[str, Any]], ValueProvider]


def _faker_factory(attribute: str) -> ProviderFactory:
    return lambda cfg: FakerProvider(field=attribute, **cfg)


# Listed names; any other faker.<attribute> is resolved on demand
PROVIDERS: Dict[str, ProviderFactory] = {
    FAKER_PREFIX + attribute: _faker_factory(attribute)
    for attribute in (
        "name",
        "first_name",
        "last_name",
        "email",
        "phone_number",
        "address",
        "city",
        "country",
        "company",
        "job",
    )
}


def is_provider_name(name: str) -> bool:
    """True when a token name should be served by a provider rather than a generator."""
    return name in PROVIDERS or name.startswith(FAKER_PREFIX)


def get_provider(name: str, config: Optional[Dict[str, Any]] = None) -> ValueProvider:
    """
    Build the provider registered under name.

    Args:
        name: Token name such as "faker.email"
        config: Keyword arguments for the factory (e.g. seed, locale)

    Returns:
        ValueProvider instance

    Raises:
        GenerationError: If the name is neither registered nor a faker attribute
    """
    factory = PROVIDERS.get(name)
    if factory is None and name.startswith(FAKER_PREFIX):
        factory = _faker_factory(name[len(FAKER_PREFIX):])
    if factory is None:
        raise GenerationError(f"Provider '{name}' not found. Known providers: {', '.join(list_providers())}")
    return factory(dict(config or {}))


def register_provider(name: str, factory: ProviderFactory) -> None:
    """Add or replace the factory for name."""
    if name in PROVIDERS:
        logger.warning(f"Replacing provider '{name}'")
    PROVIDERS[name] = factory
    logger.debug(f"Registered provider '{name}'")


def list_providers() -> list[str]:
    return sorted(PROVIDERS)
