"""Tests for schema document models."""

import pytest
from pydantic import ValidationError

from crudio.schema.document import EntitySpec, RelationshipSpec, SchemaDocument, SingularSpec


def test_entity_count_forms():
    """Test integer and generator-reference counts."""
    assert EntitySpec(count=5).count == 5
    assert EntitySpec(count="[tag]").count == "[tag]"
    with pytest.raises(ValidationError):
        EntitySpec(count="many")


def test_inherits_forms():
    """Test single and multiple bases."""
    assert EntitySpec(inherits="Base").base_names() == ["Base"]
    assert EntitySpec(inherits=["A", "B"]).base_names() == ["A", "B"]
    assert EntitySpec().base_names() == []


def test_relationship_validation():
    """Test relationship type and count checks."""
    assert RelationshipSpec(to="Tag").type == "one"
    with pytest.raises(ValidationError):
        RelationshipSpec(to="Tag", type="several")
    with pytest.raises(ValidationError):
        RelationshipSpec(to="Tag", type="many", count=-1)


def test_singular_value_list():
    """Test singular value splitting."""
    assert SingularSpec(enumerate="Organisation", field="name", values="CEO;Head of Sales;").value_list() == [
        "CEO",
        "Head of Sales",
    ]


def test_invalid_assignment_shorthand():
    """Test that an assignment needs a path, a field and a value."""
    with pytest.raises(ValidationError):
        SchemaDocument.model_validate({"assign": ["Organisations(0)"]})


def test_empty_document_defaults():
    """Test that every section is optional."""
    document = SchemaDocument.model_validate({})
    assert document.entities == {}
    assert document.generators == []
    assert document.assign == []
