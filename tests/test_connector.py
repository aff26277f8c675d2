"""Tests for relationship connection passes."""

import uuid
from collections import Counter

import pytest

from crudio.generation.engine.connector import connect_rows
from crudio.generation.errors import RelationshipError


def _role_schema(users, singular_values="CEO;CFO"):
    return {
        "generators": [
            {"name": "organisation", "values": "Acme;Globex;Initech;Umbrella"},
            {"name": "role", "values": "CEO;CFO;Staff"},
        ],
        "entities": {
            "OrganisationRole": {"count": "[role]", "fields": {"name": {"generator": "[role]", "unique": True}}},
            "Organisation": {
                "count": "[organisation]",
                "fields": {"name": {"generator": "[organisation]", "unique": True}},
            },
            "User": {
                "count": users,
                "fields": {"email": {"generator": "user[uuid]@example.com", "unique": True}},
                "relationships": [
                    {"to": "Organisation"},
                    {
                        "to": "OrganisationRole",
                        "default": "name:Staff",
                        "singular": {"enumerate": "Organisation", "field": "name", "values": singular_values},
                    },
                ],
            },
        },
    }


def test_one_to_many_covers_every_target(build_model, org_schema):
    """Test that sources take targets in order, then at random."""
    model = build_model(org_schema)
    organisations = model.table("Organisations")
    users = model.table("Users")

    for index in range(len(organisations)):
        assert users[index].values["Organisation"].index == index

    for user in users:
        organisation = model.deref(user.values["Organisation"])
        assert user.ref in organisation.values["Users"]
    assert sum(len(o.values["Users"]) for o in organisations) == len(users)
    assert all(o.values["Users"] for o in organisations)


def test_token_lookup_follows_connection(build_model, org_schema):
    """Test that tokens see relationships connected before expansion."""
    model = build_model(org_schema)
    for user in model.table("Users"):
        organisation = model.deref(user.values["Organisation"])
        domain = organisation.values["name"].lower()
        assert user.values["email"] == (
            f"{user.values['firstname'].lower()}.{user.values['lastname'].lower()}@{domain}.com"
        )


def test_many_to_many_without_replacement(build_model, org_schema):
    """Test join rows: count per source, no repeated target."""
    model = build_model(org_schema)
    joins = model.table("OrganisationTags")
    assert len(joins) == 4 * 2

    per_organisation = {}
    for row in joins:
        uuid.UUID(row.values["id"])
        per_organisation.setdefault(row.values["Organisation"], []).append(row.values["Tag"])
    assert len(per_organisation) == 4
    for tags in per_organisation.values():
        assert len(tags) == 2
        assert len(set(tags)) == 2

    for organisation in model.table("Organisations"):
        assert len(organisation.values["OrganisationTags"]) == 2


def test_many_to_many_count_capped_by_targets(build_model, org_schema):
    """Test that a count above the target row count takes every target once."""
    org_schema["entities"]["Organisation"]["relationships"][0]["count"] = 10
    model = build_model(org_schema)
    assert len(model.table("OrganisationTags")) == 4 * 3


def test_singular_then_default(build_model):
    """Test one CEO and one CFO per organisation, everybody else Staff."""
    model = build_model(_role_schema(users=60))
    roles = {row.values["name"]: row.ref for row in model.table("OrganisationRoles")}

    for organisation in model.table("Organisations"):
        members = [model.deref(ref) for ref in organisation.values["Users"]]
        assigned = [m.values["OrganisationRole"] for m in members]
        assert assigned[0] == roles["CEO"]
        assert assigned[1] == roles["CFO"]
        assert all(role == roles["Staff"] for role in assigned[2:])

    counts = Counter(user.values["OrganisationRole"] for user in model.table("Users"))
    assert counts[roles["CEO"]] == 4
    assert counts[roles["CFO"]] == 4
    assert counts[roles["Staff"]] == 52


def test_singular_values_exceed_related_rows(build_model):
    """Test the error when an enumerated row has too few related rows."""
    with pytest.raises(RelationshipError, match="number of singular values exceeds"):
        build_model(_role_schema(users=4))


def test_default_target_must_exist(build_model):
    """Test that a default query with no matching row is fatal."""
    schema = _role_schema(users=60)
    relationship = schema["entities"]["User"]["relationships"][1]
    relationship["default"] = "name:Intern"
    with pytest.raises(RelationshipError, match="Failed to find OrganisationRole where name=Intern"):
        build_model(schema)


def test_connect_rows_moves_child(build_model, org_schema):
    """Test that reconnecting a child detaches it from its previous parent."""
    model = build_model(org_schema)
    user = model.table("Users")[0]
    first, second = model.table("Organisations")[0], model.table("Organisations")[1]
    assert user.values["Organisation"] == first.ref

    connect_rows(model, user, second)
    assert user.values["Organisation"] == second.ref
    assert user.ref not in first.values["Users"]
    assert second.values["Users"].count(user.ref) == 1

    connect_rows(model, user, second)
    assert second.values["Users"].count(user.ref) == 1


def test_self_join_keeps_both_endpoints(build_model):
    """Test a many-to-many relationship from an entity to itself."""
    model = build_model({
        "entities": {
            "Person": {
                "count": 5,
                "fields": {"id": {"type": "uuid", "key": True, "generator": "[uuid]"}},
                "relationships": [{"type": "many", "to": "Person", "name": "Friendship", "count": 2}],
            },
        },
    })
    joins = model.table("Friendships")
    assert len(joins) == 5 * 2
    for row in joins:
        assert set(row.values) >= {"id", "PersonFrom", "PersonTo"}

    frame = model.to_frames()["Friendships"]
    assert list(frame.columns) == ["id", "PersonFrom", "PersonTo"]
    person_ids = [row.values["id"] for row in model.table("People")]
    assert Counter(frame["PersonFrom"]) == {person_id: 2 for person_id in person_ids}
    for _, friends in frame.groupby("PersonFrom")["PersonTo"]:
        assert friends.nunique() == 2

    # every join row is listed once per endpoint
    assert sum(len(p.values["Friendships"]) for p in model.table("People")) == 2 * len(joins)
