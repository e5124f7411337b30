"""Persona CRUD and character hub (public listing, search, adopt by reference)."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from character_chat import storage
from character_chat.characters import (
    DEFAULT_PERSONA,
    DEFAULT_PERSONA_ID,
    compile_instruction,
    resolve_instruction,
    validate_persona,
)

from .deps import current_user, get_session
from .models import CreatePersona, UpdatePersona

router = APIRouter()


def find_visible_persona(owner: str, persona_id: str) -> dict[str, Any] | None:
    """The default persona, an owned persona, or a public one; None otherwise."""
    if persona_id == DEFAULT_PERSONA_ID:
        return dict(DEFAULT_PERSONA)
    persona = storage.get_persona(persona_id)
    if persona and (persona["user_id"] == owner or persona.get("is_public")):
        return persona
    return None


def _refresh_session(request: Request, owner: str, persona: dict[str, Any]) -> None:
    """Restart the caller's chat if it is talking to this persona."""
    manager = get_session(request, owner)
    if manager.persona_id == persona["id"]:
        manager.start_new_session(compile_instruction(persona), persona["id"])


# ── Own + adopted personas ───────────────────────────────


@router.get("/personas")
async def list_personas(owner: str = Depends(current_user)):
    """Default persona first, then pinned, then own and adopted personas (newest first)."""
    pinned = storage.get_preferences(owner)["pinned_personas"]
    own = storage.list_personas(owner)
    own_ids = {p["id"] for p in own}
    adopted = [
        p for p in storage.list_referenced_personas(owner)
        if p["id"] not in own_ids and p.get("is_public")
    ]
    personas = own + adopted
    rank = {pid: i for i, pid in enumerate(pinned)}
    personas.sort(key=lambda p: rank.get(p["id"], len(rank)))
    return [dict(DEFAULT_PERSONA)] + [
        {**p, "pinned": p["id"] in rank, "adopted": p["user_id"] != owner} for p in personas
    ]


@router.post("/personas", status_code=201)
async def create_persona(body: CreatePersona, owner: str = Depends(current_user)):
    """Create a persona after validating every builder step."""
    fields = body.model_dump()
    errors = validate_persona(fields)
    if errors:
        raise HTTPException(400, errors)
    return storage.create_persona(owner, fields)


@router.get("/personas/{persona_id}")
async def get_persona(persona_id: str, owner: str = Depends(current_user)):
    persona = find_visible_persona(owner, persona_id)
    if not persona:
        raise HTTPException(404, "Persona not found")
    return persona


@router.get("/personas/{persona_id}/instruction")
async def get_persona_instruction(persona_id: str, owner: str = Depends(current_user)):
    """System instruction a chat with this persona starts with."""
    persona = find_visible_persona(owner, persona_id)
    if not persona:
        raise HTTPException(404, "Persona not found")
    default = storage.get_preferences(owner)["default_instruction"]
    return {"instruction": resolve_instruction(persona, default)}


@router.patch("/personas/{persona_id}")
async def update_persona(
    persona_id: str, body: UpdatePersona, request: Request, owner: str = Depends(current_user)
):
    """Edit an owned persona. The merged result must pass the same validation as create."""
    existing = storage.get_persona(persona_id)
    if not existing or existing["user_id"] != owner:
        raise HTTPException(404, "Persona not found")
    changes = body.model_dump(exclude_none=True)
    errors = validate_persona({**existing, **changes})
    if errors:
        raise HTTPException(400, errors)
    updated = storage.update_persona(owner, persona_id, changes)
    if not updated:
        raise HTTPException(404, "Persona not found")
    _refresh_session(request, owner, updated)
    return updated


@router.delete("/personas/{persona_id}")
async def delete_persona(persona_id: str, request: Request, owner: str = Depends(current_user)):
    """Delete an owned persona and its chat log."""
    if not storage.delete_persona(owner, persona_id):
        raise HTTPException(404, "Persona not found")
    storage.delete_messages(owner, persona_id)
    manager = get_session(request, owner)
    if manager.persona_id == persona_id:
        manager.start_new_session()
    return {"ok": True}


# ── Character hub ────────────────────────────────────────


@router.get("/hub")
async def list_public(query: str = "", limit: int = 10, offset: int = 0):
    """Public personas, newest first; filtered by name/description when query is set."""
    limit = max(1, min(limit, 50))
    offset = max(0, offset)
    if query.strip():
        return storage.search_public_personas(query, limit, offset)
    return storage.list_public_personas(limit, offset)


@router.post("/hub/{persona_id}/adopt", status_code=201)
async def adopt_persona(persona_id: str, owner: str = Depends(current_user)):
    """Save a reference to someone else's public persona."""
    persona = storage.get_persona(persona_id)
    if not persona or not persona.get("is_public"):
        raise HTTPException(404, "Persona not found")
    if persona["user_id"] == owner:
        raise HTTPException(409, "You already own this persona")
    storage.save_persona_reference(owner, persona_id)
    return persona


@router.delete("/hub/{persona_id}/adopt")
async def release_persona(persona_id: str, owner: str = Depends(current_user)):
    """Remove an adopted persona from the caller's list."""
    if not storage.delete_persona_reference(owner, persona_id):
        raise HTTPException(404, "Persona not adopted")
    return {"ok": True}
