"""Tests for generator evaluation."""

import json
import re
import uuid
from datetime import datetime

import pytest

from crudio.generation.errors import GenerationError, SchemaError
from crudio.generation.generators import count_from_generator, generate_value, list_values
from crudio.generation.providers import FakerProvider, get_provider, list_providers, register_provider
from crudio.generation.tokens import TokenEngine

HEX = "00;0A;1B;2C;3D;4E;5F;7F;A0;FF"


def test_list_values_ignores_outer_separators():
    """Test that leading and trailing ';' do not produce empty choices."""
    assert list_values(";cars;pets;food;") == ["cars", "pets", "food"]
    assert list_values("cars;pets") == ["cars", "pets"]


def test_list_generator_picks_listed_value(make_context):
    """Test uniform choice from a list generator."""
    context = make_context({"tag": "cars;pets;food"})
    drawn = {generate_value("tag", context) for _ in range(200)}
    assert drawn == {"cars", "pets", "food"}


def test_range_generator_excludes_high_bound(make_context):
    """Test that a range is an int in [low, high)."""
    context = make_context({"octet": "1>255", "coin": "0>2"})
    octets = [generate_value("octet", context) for _ in range(500)]
    assert all(isinstance(v, int) for v in octets)
    assert all(1 <= v < 255 for v in octets)
    assert {generate_value("coin", context) for _ in range(200)} == {0, 1}


def test_literal_generator(make_context):
    """Test that a plain template is returned as-is."""
    context = make_context({"greeting": "hello world"})
    assert generate_value("greeting", context) == "hello world"


def test_hex_generator_composition(make_context):
    """Test that two byte tokens give four upper-case hex digits."""
    context = make_context({"hex": HEX})
    engine = TokenEngine(context)
    for _ in range(20):
        assert re.fullmatch(r"[0-9A-F]{4}", engine.resolve("[hex][hex]"))


def test_builtin_generators(make_context):
    """Test uuid, date, time and timestamp built-ins."""
    context = make_context()
    uuid.UUID(generate_value("uuid", context))
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", generate_value("date", context))
    assert re.fullmatch(r"\d{2}:\d{2}:\d{2}", generate_value("time", context))
    stamp = datetime.fromisoformat(generate_value("timestamp", context))
    assert stamp.tzinfo is None


def test_faker_provider_generator(make_context):
    """Test that faker.<attr> names draw from Faker."""
    context = make_context()
    value = generate_value("faker.first_name", context)
    assert isinstance(value, str) and value
    assert "faker.first_name" in context.providers


def test_numeric_provider_values_are_native(make_context):
    """Test that numeric Faker values come back as plain ints."""
    context = make_context()
    value = generate_value("faker.pyint", context)
    assert type(value) is int
    assert json.loads(json.dumps({"value": value})) == {"value": value}


def test_declared_generator_shadows_provider(make_context):
    """Test that a declared generator wins over a provider of the same name."""
    context = make_context({"faker.first_name": "Zed"})
    assert generate_value("faker.first_name", context) == "Zed"


def test_unknown_generator(make_context):
    """Test the invalid generator error."""
    with pytest.raises(GenerationError, match="Generator name is invalid"):
        generate_value("missing", make_context())


def test_count_from_generator(make_context):
    """Test deriving a row count from a generator's value list."""
    context = make_context({"tag": "cars;pets;food", "dup": "a;a;b;", "empty": ";"})
    assert count_from_generator("[tag]", context, "Tags") == 3
    assert count_from_generator("[dup]", context, "Dups") == 2
    with pytest.raises(SchemaError, match="Unable to determine entity count for Empties"):
        count_from_generator("[empty]", context, "Empties")


def test_provider_registry():
    """Test provider lookup and registration."""
    assert "faker.email" in list_providers()
    assert get_provider("faker.city", {"seed": 1}).sample(3).size == 3
    with pytest.raises(GenerationError, match="Faker field 'no_such_thing' not available"):
        get_provider("faker.no_such_thing")
    with pytest.raises(GenerationError, match="Provider 'bogus' not found"):
        get_provider("bogus")

    register_provider("faker.company_email", lambda cfg: FakerProvider(field="company_email", **cfg))
    assert "faker.company_email" in list_providers()
