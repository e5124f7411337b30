"""FastAPI API endpoints under /api.

Endpoint groups: health + preferences + logout, personas + character hub,
chat (single active model session per user), challenges + quiz attempts.
Every endpoint except /health and /hub reads the caller from X-User-Id.
"""

from fastapi import APIRouter

from .challenges import router as challenges_router
from .chat import router as chat_router
from .personas import router as personas_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(personas_router)
router.include_router(chat_router)
router.include_router(challenges_router)
