"""Value providers for generating realistic data values."""

from .base import ValueProvider
from .faker_provider import FakerProvider
from .registry import PROVIDERS, get_provider, is_provider_name, list_providers, register_provider

__all__ = [
    "ValueProvider",
    "FakerProvider",
    "PROVIDERS",
    "get_provider",
    "is_provider_name",
    "list_providers",
    "register_provider",
]
