"""Tests for persona records and adoption references."""

from character_chat import storage


def _fields(**overrides) -> dict:
    fields = {
        "name": " Nova ",
        "description": "An astronomer who explains the night sky.",
        "voice_tone": "inspiring",
        "mood": "calm",
        "skills": ["science", " stargazing "],
        "emoji": "🔭",
        "is_public": False,
    }
    fields.update(overrides)
    return fields


def test_create_and_get():
    persona = storage.create_persona("alice", _fields())
    assert persona["user_id"] == "alice"
    assert persona["name"] == "Nova"
    assert persona["skills"] == ["science", "stargazing"]
    assert persona["created_at"] == persona["updated_at"]
    assert storage.get_persona(persona["id"]) == persona


def test_get_missing():
    assert storage.get_persona("nope") is None


def test_default_emoji():
    persona = storage.create_persona("alice", _fields(emoji=""))
    assert persona["emoji"] == "🤖"


def test_list_is_owner_scoped_newest_first():
    first = storage.create_persona("alice", _fields(name="First"))
    second = storage.create_persona("alice", _fields(name="Second"))
    storage.create_persona("bob", _fields(name="Bobs"))
    assert [p["id"] for p in storage.list_personas("alice")] == [second["id"], first["id"]]


def test_update_owned():
    persona = storage.create_persona("alice", _fields())
    updated = storage.update_persona("alice", persona["id"], {"mood": "quirky", "user_id": "mallory"})
    assert updated["mood"] == "quirky"
    assert updated["user_id"] == "alice"
    assert storage.get_persona(persona["id"])["mood"] == "quirky"


def test_update_strips_like_create():
    persona = storage.create_persona("alice", _fields())
    updated = storage.update_persona("alice", persona["id"], {"name": "  Bob ", "skills": [" math "]})
    assert updated["name"] == "Bob"
    assert updated["skills"] == ["math"]
    assert storage.get_persona(persona["id"])["name"] == "Bob"


def test_update_not_owned():
    persona = storage.create_persona("alice", _fields())
    assert storage.update_persona("bob", persona["id"], {"mood": "dark"}) is None
    assert storage.get_persona(persona["id"])["mood"] == "calm"


def test_delete_owned_removes_references():
    persona = storage.create_persona("alice", _fields(is_public=True))
    storage.save_persona_reference("bob", persona["id"])
    assert storage.delete_persona("alice", persona["id"]) is True
    assert storage.get_persona(persona["id"]) is None
    assert storage.list_referenced_personas("bob") == []


def test_delete_not_owned():
    persona = storage.create_persona("alice", _fields())
    assert storage.delete_persona("bob", persona["id"]) is False
    assert storage.get_persona(persona["id"]) is not None


# ── Public listing ───────────────────────────────────────


def test_public_listing_pages():
    ids = [storage.create_persona("alice", _fields(name=f"P{i}", is_public=True))["id"] for i in range(3)]
    storage.create_persona("alice", _fields(name="Private"))
    assert [p["id"] for p in storage.list_public_personas(limit=2)] == [ids[2], ids[1]]
    assert [p["id"] for p in storage.list_public_personas(limit=2, offset=2)] == [ids[0]]


def test_search_matches_name_or_description():
    storage.create_persona("alice", _fields(name="Chef Remy", description="Cooks French food every day.", is_public=True))
    storage.create_persona("bob", _fields(name="Nova", is_public=True))
    storage.create_persona("bob", _fields(name="Secret chef", is_public=False))
    assert [p["name"] for p in storage.search_public_personas("CHEF")] == ["Chef Remy"]
    assert [p["name"] for p in storage.search_public_personas("night sky")] == ["Nova"]


# ── References ───────────────────────────────────────────


def test_reference_idempotent():
    persona = storage.create_persona("alice", _fields(is_public=True))
    first = storage.save_persona_reference("bob", persona["id"])
    second = storage.save_persona_reference("bob", persona["id"])
    assert first["id"] == second["id"]
    assert [p["id"] for p in storage.list_referenced_personas("bob")] == [persona["id"]]


def test_delete_reference():
    persona = storage.create_persona("alice", _fields(is_public=True))
    storage.save_persona_reference("bob", persona["id"])
    assert storage.delete_persona_reference("bob", persona["id"]) is True
    assert storage.delete_persona_reference("bob", persona["id"]) is False
    assert storage.list_referenced_personas("bob") == []
