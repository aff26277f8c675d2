"""Tests for literal assignments."""

import pytest

from crudio.generation.engine.assignments import parse_segment, process_assignments, resolve_path
from crudio.generation.errors import ScriptError
from crudio.schema.document import AssignmentSpec


def test_assignment_shorthand():
    """Test parsing of the "Path.field=value" form."""
    spec = AssignmentSpec.model_validate("Organisations(0).Users(1).email=admin@example.com")
    assert spec.target == "Organisations(0).Users(1)"
    assert spec.fields == {"email": "admin@example.com"}


def test_parse_segment():
    """Test path segments with and without indexes."""
    assert parse_segment("Users", "p") == ("Users", None)
    assert parse_segment("Users(2)", "p") == ("Users", range(2, 3))
    assert parse_segment("Users(1-3)", "p") == ("Users", range(1, 4))
    with pytest.raises(ScriptError, match="invalid path segment"):
        parse_segment("Users[0]", "p")


def test_assignments_override_generated_values(build_model, org_schema):
    """Test that assignments run last and address rows through relationships."""
    org_schema["assign"] = [
        "Organisations(0).name=Crudio",
        {"target": "Organisations(1).Users(0)", "fields": {"firstname": "Root", "lastname": "Admin"}},
    ]
    model = build_model(org_schema)

    assert model.table("Organisations")[0].values["name"] == "Crudio"
    user = model.deref(model.table("Organisations")[1].values["Users"][0])
    assert user.values["firstname"] == "Root"
    assert user.values["lastname"] == "Admin"


def test_assignments_are_idempotent(build_model, org_schema):
    """Test that re-applying assignments changes nothing."""
    org_schema["assign"] = ["Users(0-2).lastname=Tester"]
    model = build_model(org_schema)
    before = [dict(row.values) for row in model.table("Users")]

    process_assignments(model)

    assert [dict(row.values) for row in model.table("Users")] == before
    assert all(row.values["lastname"] == "Tester" for row in model.table("Users").rows[:3])


def test_forward_pointer_segment(build_model, org_schema):
    """Test following a user's organisation pointer."""
    model = build_model(org_schema)
    [organisation] = resolve_path(model, "Users(4).Organisation")
    assert organisation.ref == model.table("Users")[4].values["Organisation"]


def test_unknown_field(build_model, org_schema):
    """Test that assigning an undeclared field is fatal."""
    org_schema["assign"] = ["Organisations(0).revenue=100"]
    with pytest.raises(ScriptError, match="can not retrieve the target field 'revenue'"):
        build_model(org_schema)


def test_index_out_of_range(build_model, org_schema):
    """Test that an index past the table end is fatal."""
    org_schema["assign"] = ["Organisations(9).name=Nowhere"]
    with pytest.raises(ScriptError, match="out of range"):
        build_model(org_schema)
