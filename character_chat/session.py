"""Conversation session manager: the single owner of the active chat session.

Legal state transitions:
  start_new_session(instruction, persona_id)
      Drop the current chat (history discarded) and open a fresh one. Bumps
      the session generation.
  set_instruction(instruction)
      Replace the pending instruction. History is kept; turns that were
      already sent are not affected. Callers normally pair this with
      start_new_session().

send(text) prepends the instruction to the first turn of a session:

    "<instruction>\n\nUser: <text>"

Every send is tagged with the generation it started in. If the session is
replaced while the reply is in flight, the reply is dropped and send()
returns None so a persona A reply never shows up in persona B's chat. A
send that fails after the session was replaced also returns None.

Callers must not overlap sends on one manager; `in_flight` lets them refuse
input while a send is pending.
"""

from __future__ import annotations

import logging
from typing import Any

from character_chat.llm import CHAT_GENERATION_CONFIG, Chat, Gateway, MissingAPIKeyError, inline_part

logger = logging.getLogger(__name__)

SEND_FAILED = "Failed to get response from AI. Please try again."
ATTACHMENT_FAILED = "Failed to process attachment. Please try again."
NOT_CONFIGURED = "AI service is not configured. Set GEMINI_API_KEY and try again."


class SessionError(RuntimeError):
    """User-facing chat failure. The underlying error is logged, not shown."""

    def __init__(self, message: str, reason: str = "generation") -> None:
        super().__init__(message)
        self.reason = reason  # "input" | "configuration" | "generation"


class ConversationSessionManager:
    def __init__(self, gateway: Gateway, generation_config: dict[str, Any] | None = None) -> None:
        self._gateway = gateway
        self._generation_config = dict(generation_config or CHAT_GENERATION_CONFIG)
        self._instruction = ""
        self._persona_id: str | None = None
        self._generation = 0
        self._pending = 0
        self._chat: Chat = gateway.start_chat(history=[], generation_config=self._generation_config)

    @property
    def instruction(self) -> str:
        return self._instruction

    @property
    def persona_id(self) -> str | None:
        return self._persona_id

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> bool:
        return self._pending > 0

    def start_new_session(self, instruction: str | None = None, persona_id: str | None = None) -> None:
        self._generation += 1
        self._chat = self._gateway.start_chat(history=[], generation_config=self._generation_config)
        self._instruction = instruction or ""
        self._persona_id = persona_id
        logger.debug("new chat session generation=%d persona=%s", self._generation, persona_id)

    def set_instruction(self, instruction: str) -> None:
        self._instruction = instruction

    async def send(self, text: str) -> str | None:
        """Send one user turn. Returns the reply, or None if the session was replaced."""
        if not text.strip():
            raise SessionError("Message cannot be empty", reason="input")

        generation = self._generation
        chat = self._chat
        outgoing = text
        if self._instruction and not chat.history():
            outgoing = f"{self._instruction}\n\nUser: {text}"

        self._pending += 1
        try:
            reply = await chat.send(outgoing)
        except Exception as e:
            if generation != self._generation:
                logger.info("dropping stale failure from generation %d (now %d): %s", generation, self._generation, e)
                return None
            if isinstance(e, MissingAPIKeyError):
                logger.error("chat send refused: %s", e)
                raise SessionError(NOT_CONFIGURED, reason="configuration") from e
            logger.exception("chat send failed")
            raise SessionError(SEND_FAILED) from e
        finally:
            self._pending -= 1

        if generation != self._generation:
            logger.info("dropping stale reply from generation %d (now %d)", generation, self._generation)
            return None
        return reply

    def get_history(self) -> list[dict[str, str]]:
        """Turns of the active session; [] if the gateway cannot provide them."""
        try:
            return [{"role": t["role"], "text": t["text"]} for t in self._chat.history()]
        except Exception:
            logger.exception("could not read chat history")
            return []

    async def ask_about_attachment(self, data: bytes, mime_type: str, prompt: str = "") -> str:
        """One-shot question about an image or PDF. Does not touch the chat history."""
        if not prompt.strip():
            prompt = "What's in this PDF?" if mime_type == "application/pdf" else "What's in this image?"
        try:
            return await self._gateway.generate([prompt, inline_part(data, mime_type)])
        except MissingAPIKeyError as e:
            logger.error("attachment question refused: %s", e)
            raise SessionError(NOT_CONFIGURED, reason="configuration") from e
        except Exception as e:
            logger.exception("attachment question failed")
            raise SessionError(ATTACHMENT_FAILED) from e
