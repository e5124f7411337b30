"""Shared request dependencies: caller identity, gateway, chat sessions, quizzes."""

import logging
from collections import OrderedDict
from dataclasses import dataclass

from fastapi import Header, HTTPException, Request

from character_chat.llm import Gateway
from character_chat.quiz import QuizAttempt
from character_chat.session import ConversationSessionManager

logger = logging.getLogger(__name__)

# reason → HTTP status for SessionError / ChallengeError
FAILURE_STATUS = {"input": 400, "configuration": 503, "generation": 502}

# Chat session managers kept in memory before the least recently used idle one is dropped
MAX_SESSIONS = 500


@dataclass
class QuizEntry:
    owner: str
    title: str
    attempt: QuizAttempt


def current_user(x_user_id: str = Header(default="")) -> str:
    """Caller id, supplied by the identity provider in front of this service."""
    if not x_user_id.strip():
        raise HTTPException(401, "Missing X-User-Id header")
    return x_user_id.strip()


def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway


def get_session(request: Request, owner: str) -> ConversationSessionManager:
    """The caller's chat session manager, created on first use.

    The registry is bounded by app.state.max_sessions. Past the cap the least
    recently used manager without a send in flight is dropped; its user
    starts a fresh session on the next request (stored messages are kept).
    """
    sessions: OrderedDict[str, ConversationSessionManager] = request.app.state.sessions
    manager = sessions.get(owner)
    if manager is not None:
        sessions.move_to_end(owner)
        return manager
    manager = ConversationSessionManager(request.app.state.gateway)
    sessions[owner] = manager
    _evict_idle_sessions(sessions, request.app.state.max_sessions, keep=owner)
    return manager


def _evict_idle_sessions(
    sessions: OrderedDict[str, ConversationSessionManager], limit: int, keep: str
) -> None:
    idle = [key for key, m in sessions.items() if key != keep and not m.in_flight]
    for key in idle[: max(0, len(sessions) - limit)]:
        del sessions[key]
        logger.debug("dropped idle chat session for %s", key)


def drop_session(request: Request, owner: str) -> bool:
    return request.app.state.sessions.pop(owner, None) is not None


def get_quizzes(request: Request) -> dict[str, QuizEntry]:
    return request.app.state.quizzes
