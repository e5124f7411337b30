"""Chat message storage (append-only log per user and persona bucket)."""

from pathlib import Path
from typing import Any, Literal

from .core import messages_dir, new_id, now, read_json, safe_name, write_json

Sender = Literal["user", "bot"]


def _messages_path(owner: str, bucket: str) -> Path:
    return messages_dir() / safe_name(owner) / f"{safe_name(bucket)}.json"


def get_messages(owner: str, bucket: str) -> list[dict[str, Any]]:
    """Messages for one persona bucket, oldest first. Returns [] if none exist."""
    messages = read_json(_messages_path(owner, bucket), [])
    return sorted(messages, key=lambda m: m["created_at"])


def create_message(owner: str, bucket: str, content: str, sender: Sender) -> dict[str, Any]:
    if sender not in ("user", "bot"):
        raise ValueError(f"Unknown sender {sender!r}")
    message = {
        "id": new_id(),
        "user_id": owner,
        "character_id": bucket,
        "content": content,
        "sender": sender,
        "created_at": now(),
    }
    path = _messages_path(owner, bucket)
    existing = read_json(path, [])
    existing.append(message)
    write_json(path, existing)
    return message


def delete_messages(owner: str, bucket: str) -> int:
    """Delete every message in a bucket. Returns how many were removed."""
    path = _messages_path(owner, bucket)
    if not path.is_file():
        return 0
    count = len(read_json(path, []))
    path.unlink()
    return count
