"""Shared fixtures for Crudio tests."""

import numpy as np
import pytest

from crudio.config.settings import Settings
from crudio.generation.context import GenerationContext
from crudio.generation.engine.pipeline import build_data_model
from crudio.schema.document import SchemaDocument


@pytest.fixture
def settings():
    """Settings with a fixed seed and quiet logging."""
    return Settings(seed=1234, log_level="WARNING")


@pytest.fixture
def make_context():
    """Factory for a seeded generation context over a generator table."""

    def _make(generators=None, seed=7, **kwargs):
        return GenerationContext(generators=dict(generators or {}), rng=np.random.default_rng(seed), **kwargs)

    return _make


@pytest.fixture
def build_model(settings):
    """Factory building a populated model from an inline schema dict."""

    def _build(schema, seed=None, **overrides):
        run_settings = settings.model_copy(update=overrides) if overrides else settings
        return build_data_model(SchemaDocument.model_validate(schema), settings=run_settings, seed=seed)

    return _build


@pytest.fixture
def org_schema():
    """Organisations with users and a many-to-many tag relationship."""
    return {
        "generators": [
            {"name": "organisation", "values": "Acme;Globex;Initech;Umbrella"},
            {"name": "first", "values": "Ann;Bob;Cat;Dan;Eve;Fay"},
            {"name": "last", "values": "Smith;Jones;Brown;Green"},
            {"name": "tag", "values": "cars;pets;food"},
        ],
        "entities": {
            "Organisation": {
                "count": "[organisation]",
                "fields": {
                    "id": {"type": "uuid", "key": True, "generator": "[uuid]"},
                    "name": {"generator": "[organisation]", "unique": True},
                },
                "relationships": [{"type": "many", "to": "Tag", "count": 2}],
            },
            "Tag": {
                "count": "[tag]",
                "fields": {"name": {"generator": "[tag]", "unique": True}},
            },
            "User": {
                "count": 10,
                "fields": {
                    "firstname": {"generator": "[first]"},
                    "lastname": {"generator": "[last]"},
                    "email": {"generator": "[~!firstname].[~!lastname]@[~!Organisation.name].com"},
                },
                "relationships": [{"type": "one", "to": "Organisation"}],
            },
        },
    }
