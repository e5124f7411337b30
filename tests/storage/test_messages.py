"""Tests for chat message storage."""

import pytest

from character_chat import storage


def test_get_messages_empty():
    """Returns [] when no messages file exists."""
    assert storage.get_messages("alice", "default-ai") == []


def test_create_and_get_messages():
    storage.create_message("alice", "p1", "Hello", "user")
    storage.create_message("alice", "p1", "Hi there.", "bot")
    result = storage.get_messages("alice", "p1")
    assert [m["content"] for m in result] == ["Hello", "Hi there."]
    assert result[0]["sender"] == "user"
    assert result[0]["character_id"] == "p1"
    assert result[0]["user_id"] == "alice"


def test_buckets_are_separate():
    storage.create_message("alice", "p1", "to p1", "user")
    storage.create_message("alice", "default-ai", "to default", "user")
    storage.create_message("bob", "p1", "bob to p1", "user")
    assert [m["content"] for m in storage.get_messages("alice", "p1")] == ["to p1"]
    assert [m["content"] for m in storage.get_messages("alice", "default-ai")] == ["to default"]


def test_unknown_sender():
    with pytest.raises(ValueError):
        storage.create_message("alice", "p1", "x", "narrator")


def test_delete_messages():
    storage.create_message("alice", "p1", "one", "user")
    storage.create_message("alice", "p1", "two", "bot")
    assert storage.delete_messages("alice", "p1") == 2
    assert storage.get_messages("alice", "p1") == []
    assert storage.delete_messages("alice", "p1") == 0


def test_unsafe_owner_name():
    storage.create_message("user@example.com", "p1", "hi", "user")
    assert (storage.messages_dir() / "user-example-com" / "p1.json").is_file()
