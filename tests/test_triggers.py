"""Tests for trigger scripts."""

import pytest

from crudio.generation.engine.triggers import Script, execute_script, parse_script
from crudio.generation.errors import ScriptError


@pytest.fixture
def trigger_schema():
    """Organisations whose users and roles are created by scripts."""
    return {
        "generators": [
            {"name": "organisation", "values": "Acme;Globex;Initech;Umbrella"},
            {"name": "role", "values": "CEO;CFO;Staff"},
            {"name": "first", "values": "Ann;Bob;Cat;Dan"},
        ],
        "entities": {
            "OrganisationRole": {"count": "[role]", "fields": {"name": {"generator": "[role]", "unique": True}}},
            "Organisation": {
                "count": "[organisation]",
                "fields": {"name": {"generator": "[organisation]", "unique": True}},
            },
            "User": {
                "count": 5,
                "fields": {
                    "firstname": {"generator": "[first]"},
                    "email": {"generator": "[~!firstname]@[~!Organisation.name].com"},
                },
                "relationships": [
                    {"to": "Organisation"},
                    {"to": "OrganisationRole", "default": "name:Staff"},
                ],
            },
        },
        "triggers": [
            {
                "entity": "Organisation",
                "scripts": ["Users(0).OrganisationRole?name=CEO", "Users(6-10).OrganisationRole?name=Staff"],
            }
        ],
    }


def test_parse_script():
    """Test script parsing for single indexes and ranges."""
    assert parse_script("Users(0).OrganisationRole?name=CEO") == Script("Users", 0, 0, "OrganisationRole", "name=CEO")
    assert parse_script("Users(6-10).OrganisationRole?name=Staff") == Script(
        "Users", 6, 10, "OrganisationRole", "name=Staff"
    )
    assert parse_script("Users(2).OrganisationRole?").query is None


@pytest.mark.parametrize(
    "script",
    ["Users.OrganisationRole?name=CEO", "Users(0)OrganisationRole?name=CEO", "Users(0).OrganisationRole", "Users(5-2).Role?x=y"],
)
def test_parse_script_syntax_errors(script):
    """Test malformed scripts."""
    with pytest.raises(ScriptError, match="Syntax error"):
        parse_script(script)


def test_index_zero_is_ceo_for_every_organisation(build_model, trigger_schema):
    """Test that each organisation's first user holds the CEO role."""
    model = build_model(trigger_schema)
    roles = {row.values["name"]: row.ref for row in model.table("OrganisationRoles")}

    organisations = model.table("Organisations")
    assert len(organisations) == 4
    for organisation in organisations:
        first_user = model.deref(organisation.values["Users"][0])
        assert first_user.values["OrganisationRole"] == roles["CEO"]
        assert first_user.values["Organisation"] == organisation.ref
        assert first_user.ref in model.deref(roles["CEO"]).values["Users"]


def test_index_range_creates_missing_children(build_model, trigger_schema):
    """Test that Users(6-10) fills the list up to index 10."""
    model = build_model(trigger_schema)
    roles = {row.values["name"]: row.ref for row in model.table("OrganisationRoles")}

    for organisation in model.table("Organisations"):
        users = [model.deref(ref) for ref in organisation.values["Users"]]
        assert len(users) == 11
        for user in users[6:11]:
            assert user.values["OrganisationRole"] == roles["Staff"]
        domain = organisation.values["name"].lower()
        assert all(u.values["email"].endswith(f"@{domain}.com") for u in users)

    # trigger-created rows fill the table, so it is not filled again
    assert len(model.table("Users")) == 4 * 11
    assert sum(1 for u in model.table("Users") if u.values["OrganisationRole"] == roles["CEO"]) == 4


def test_existing_index_is_reconnected(build_model, trigger_schema):
    """Test that a script on an existing index only changes the connection."""
    model = build_model(trigger_schema)
    roles = {row.values["name"]: row.ref for row in model.table("OrganisationRoles")}
    organisation = model.table("Organisations")[0]
    user_count = len(model.table("Users"))

    execute_script(model, organisation, "Users(3).OrganisationRole?name=CFO")

    user = model.deref(organisation.values["Users"][3])
    assert user.values["OrganisationRole"] == roles["CFO"]
    assert user.ref not in model.deref(roles["Staff"]).values["Users"]
    assert len(model.table("Users")) == user_count


def test_query_without_match(build_model, trigger_schema):
    """Test that a script whose query matches nothing is fatal."""
    trigger_schema["triggers"][0]["scripts"] = ["Users(0).OrganisationRole?name=Janitor"]
    with pytest.raises(ScriptError, match="Failed to find OrganisationRole matching query: name=Janitor"):
        build_model(trigger_schema)


def test_unknown_child_table(build_model, trigger_schema):
    """Test that the indexed field must name a table."""
    trigger_schema["triggers"][0]["scripts"] = ["Members(0).OrganisationRole?name=CEO"]
    with pytest.raises(ScriptError, match="'Members' is not a table name"):
        build_model(trigger_schema)
