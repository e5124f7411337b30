"""Health check, user preferences and logout."""

from fastapi import APIRouter, Depends, Request

from character_chat import storage
from character_chat.characters import DEFAULT_PERSONA_ID

from .deps import current_user, drop_session, get_quizzes, get_session
from .models import UpdatePreferences

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Health check; reports whether the model API key is configured."""
    gateway = request.app.state.gateway
    return {"status": "ok", "ai_configured": bool(getattr(gateway, "configured", True))}


@router.get("/preferences")
async def get_preferences(owner: str = Depends(current_user)):
    return storage.get_preferences(owner)


@router.patch("/preferences")
async def update_preferences(body: UpdatePreferences, request: Request, owner: str = Depends(current_user)):
    """Partial update. A new default instruction restarts a default-persona chat."""
    fields = body.model_dump(exclude_none=True)
    prefs = storage.update_preferences(owner, fields)
    if "default_instruction" in fields:
        manager = get_session(request, owner)
        if manager.persona_id == DEFAULT_PERSONA_ID:
            manager.start_new_session(prefs["default_instruction"], DEFAULT_PERSONA_ID)
    return prefs


@router.post("/logout")
async def logout(request: Request, owner: str = Depends(current_user)):
    """Discard the caller's chat session and quiz attempt, forget their default instruction."""
    drop_session(request, owner)
    quizzes = get_quizzes(request)
    for quiz_id in [qid for qid, e in quizzes.items() if e.owner == owner]:
        del quizzes[quiz_id]
    storage.clear_default_instruction(owner)
    return {"ok": True}
