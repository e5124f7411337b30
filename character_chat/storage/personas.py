"""Persona records and persona references (adoption of public personas).

Personas live in one personas.json list. Owner-scoped operations (update,
delete) only touch records whose user_id matches. References link a user to
someone else's public persona without copying it; the pair is unique.
"""

from pathlib import Path
from typing import Any

from .core import data_dir, new_id, now, read_json, write_json

EDITABLE_FIELDS = ("name", "description", "voice_tone", "mood", "skills", "emoji", "is_public")
_TEXT_FIELDS = ("name", "description", "voice_tone", "mood")


def _personas_path() -> Path:
    return data_dir() / "personas.json"


def _references_path() -> Path:
    return data_dir() / "persona-references.json"


def _load() -> list[dict[str, Any]]:
    return read_json(_personas_path(), [])


def _save(personas: list[dict[str, Any]]) -> None:
    write_json(_personas_path(), personas)


def _newest_first(personas: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(personas, key=lambda p: p["created_at"], reverse=True)


def _normalise(fields: dict[str, Any]) -> dict[str, Any]:
    """Editable fields only, with text and skills stripped the same way on create and update."""
    clean = {key: fields[key] for key in EDITABLE_FIELDS if fields.get(key) is not None}
    for key in _TEXT_FIELDS:
        if key in clean:
            clean[key] = clean[key].strip()
    if "skills" in clean:
        clean["skills"] = [s.strip() for s in clean["skills"]]
    return clean


def create_persona(owner: str, fields: dict[str, Any]) -> dict[str, Any]:
    """Write a new persona in one step. Fields must already be validated."""
    clean = _normalise(fields)
    stamp = now()
    persona = {
        "id": new_id(),
        "user_id": owner,
        "name": clean["name"],
        "description": clean["description"],
        "voice_tone": clean["voice_tone"],
        "mood": clean["mood"],
        "skills": clean["skills"],
        "emoji": fields.get("emoji") or "🤖",
        "is_public": bool(fields.get("is_public", False)),
        "created_at": stamp,
        "updated_at": stamp,
    }
    personas = _load()
    personas.append(persona)
    _save(personas)
    return persona


def get_persona(persona_id: str) -> dict[str, Any] | None:
    for p in _load():
        if p["id"] == persona_id:
            return p
    return None


def list_personas(owner: str) -> list[dict[str, Any]]:
    """Personas created by `owner`, newest first."""
    return _newest_first([p for p in _load() if p["user_id"] == owner])


def update_persona(owner: str, persona_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
    """Apply editable fields to an owned persona. Returns None if not found or not owned."""
    personas = _load()
    for p in personas:
        if p["id"] == persona_id and p["user_id"] == owner:
            p.update(_normalise(fields))
            p["updated_at"] = now()
            _save(personas)
            return p
    return None


def delete_persona(owner: str, persona_id: str) -> bool:
    """Delete an owned persona and every reference to it."""
    personas = _load()
    remaining = [p for p in personas if not (p["id"] == persona_id and p["user_id"] == owner)]
    if len(remaining) == len(personas):
        return False
    _save(remaining)
    refs = read_json(_references_path(), [])
    write_json(_references_path(), [r for r in refs if r["persona_id"] != persona_id])
    return True


def list_public_personas(limit: int = 10, offset: int = 0) -> list[dict[str, Any]]:
    public = _newest_first([p for p in _load() if p.get("is_public")])
    return public[offset:offset + limit]


def search_public_personas(query: str, limit: int = 10, offset: int = 0) -> list[dict[str, Any]]:
    """Case-insensitive substring match on name or description."""
    needle = query.strip().lower()
    matches = [
        p for p in _load()
        if p.get("is_public")
        and (needle in p["name"].lower() or needle in p["description"].lower())
    ]
    return _newest_first(matches)[offset:offset + limit]


# ── References ───────────────────────────────────────────


def save_persona_reference(owner: str, persona_id: str) -> dict[str, Any]:
    """Adopt a persona by reference. Idempotent on (owner, persona_id)."""
    refs = read_json(_references_path(), [])
    for r in refs:
        if r["user_id"] == owner and r["persona_id"] == persona_id:
            return r
    stamp = now()
    ref = {
        "id": new_id(),
        "user_id": owner,
        "persona_id": persona_id,
        "created_at": stamp,
        "updated_at": stamp,
    }
    refs.append(ref)
    write_json(_references_path(), refs)
    return ref


def list_referenced_personas(owner: str) -> list[dict[str, Any]]:
    """Personas the owner adopted, joined against the persona records."""
    ids = {r["persona_id"] for r in read_json(_references_path(), []) if r["user_id"] == owner}
    if not ids:
        return []
    return _newest_first([p for p in _load() if p["id"] in ids])


def delete_persona_reference(owner: str, persona_id: str) -> bool:
    refs = read_json(_references_path(), [])
    remaining = [r for r in refs if not (r["user_id"] == owner and r["persona_id"] == persona_id)]
    if len(remaining) == len(refs):
        return False
    write_json(_references_path(), remaining)
    return True
