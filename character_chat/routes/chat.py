"""Chat endpoints: activate a persona, send messages, attachments, history."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from character_chat import storage
from character_chat.characters import resolve_instruction
from character_chat.session import ConversationSessionManager, SessionError

from .deps import FAILURE_STATUS, current_user, get_session
from .models import AttachmentBody, ChatBody
from .personas import find_visible_persona

router = APIRouter()


def _persona_or_404(owner: str, persona_id: str) -> dict[str, Any]:
    persona = find_visible_persona(owner, persona_id)
    if not persona:
        raise HTTPException(404, "Persona not found")
    return persona


def _activate(manager: ConversationSessionManager, owner: str, persona: dict[str, Any]) -> None:
    default = storage.get_preferences(owner)["default_instruction"]
    manager.start_new_session(resolve_instruction(persona, default), persona["id"])


def _ensure_active(manager: ConversationSessionManager, owner: str, persona: dict[str, Any]) -> None:
    """Switch the single active session over to `persona` if it is talking to someone else."""
    if manager.in_flight:
        raise HTTPException(409, "A reply is still on its way")
    if manager.persona_id != persona["id"]:
        _activate(manager, owner, persona)


@router.post("/chat/{persona_id}/activate")
async def activate_persona(persona_id: str, request: Request, owner: str = Depends(current_user)):
    """Start a fresh session for a persona and return its stored messages."""
    persona = _persona_or_404(owner, persona_id)
    _activate(get_session(request, owner), owner, persona)
    return {"persona_id": persona_id, "messages": storage.get_messages(owner, persona_id)}


@router.get("/chat/{persona_id}/messages")
async def list_messages(persona_id: str, owner: str = Depends(current_user)):
    _persona_or_404(owner, persona_id)
    return storage.get_messages(owner, persona_id)


@router.post("/chat/{persona_id}/messages")
async def send_message(
    persona_id: str, body: ChatBody, request: Request, owner: str = Depends(current_user)
):
    """Store the user's message, get the persona's reply, store that too."""
    persona = _persona_or_404(owner, persona_id)
    if not body.message.strip():
        raise HTTPException(400, "Message cannot be empty")
    manager = get_session(request, owner)
    _ensure_active(manager, owner, persona)

    user_msg = storage.create_message(owner, persona_id, body.message, "user")
    try:
        reply = await manager.send(body.message)
    except SessionError as e:
        raise HTTPException(FAILURE_STATUS[e.reason], str(e))
    if reply is None:
        raise HTTPException(409, "The conversation was switched before the reply arrived")
    bot_msg = storage.create_message(owner, persona_id, reply, "bot")
    return {"messages": [user_msg, bot_msg]}


@router.delete("/chat/{persona_id}/messages")
async def clear_messages(persona_id: str, request: Request, owner: str = Depends(current_user)):
    """Delete a persona's chat log; an active session with it starts over."""
    persona = _persona_or_404(owner, persona_id)
    deleted = storage.delete_messages(owner, persona_id)
    manager = get_session(request, owner)
    if manager.persona_id == persona_id:
        _activate(manager, owner, persona)
    return {"deleted": deleted}


@router.post("/chat/{persona_id}/attachments")
async def ask_about_attachment(
    persona_id: str, body: AttachmentBody, request: Request, owner: str = Depends(current_user)
):
    """One-shot question about an image or PDF, logged in the persona's chat."""
    _persona_or_404(owner, persona_id)
    if not (body.mime_type.startswith("image/") or body.mime_type == "application/pdf"):
        raise HTTPException(400, "Please attach an image or PDF file.")
    manager = get_session(request, owner)
    try:
        reply = await manager.ask_about_attachment(body.data, body.mime_type, body.prompt)
    except SessionError as e:
        raise HTTPException(FAILURE_STATUS[e.reason], str(e))
    label = f"[{body.filename}]"
    user_msg = storage.create_message(
        owner, persona_id, f"{label} {body.prompt}".strip(), "user"
    )
    bot_msg = storage.create_message(owner, persona_id, reply, "bot")
    return {"messages": [user_msg, bot_msg]}


@router.get("/chat/history")
async def session_history(request: Request, owner: str = Depends(current_user)):
    """Turns held by the active model session (not the stored chat log)."""
    manager = get_session(request, owner)
    return {"persona_id": manager.persona_id, "history": manager.get_history()}
