"""Tests for per-user preferences."""

from character_chat import storage


def test_defaults():
    prefs = storage.get_preferences("alice")
    assert prefs == {
        "default_instruction": "",
        "pinned_personas": [],
        "voice": {"language": "en-US", "pitch": 1.0, "rate": 1.0},
    }


def test_update_is_partial():
    storage.update_preferences("alice", {"default_instruction": "Be brief."})
    prefs = storage.update_preferences("alice", {"voice": {"rate": 1.5}})
    assert prefs["default_instruction"] == "Be brief."
    assert prefs["voice"] == {"language": "en-US", "pitch": 1.0, "rate": 1.5}


def test_pinned_replaced_and_deduped():
    storage.update_preferences("alice", {"pinned_personas": ["a", "b"]})
    prefs = storage.update_preferences("alice", {"pinned_personas": ["c", "c", "a"]})
    assert prefs["pinned_personas"] == ["c", "a"]
    assert storage.get_preferences("alice")["pinned_personas"] == ["c", "a"]


def test_unknown_voice_keys_ignored():
    prefs = storage.update_preferences("alice", {"voice": {"volume": 11}})
    assert "volume" not in prefs["voice"]


def test_users_are_separate():
    storage.update_preferences("alice", {"default_instruction": "Alice's"})
    assert storage.get_preferences("bob")["default_instruction"] == ""


def test_clear_default_instruction():
    storage.update_preferences("alice", {"default_instruction": "Be brief.", "pinned_personas": ["a"]})
    prefs = storage.clear_default_instruction("alice")
    assert prefs["default_instruction"] == ""
    assert storage.get_preferences("alice")["pinned_personas"] == ["a"]
