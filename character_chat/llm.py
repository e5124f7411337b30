"""Model gateway: HTTP connection to the Gemini generateContent API.

Two call shapes are used by the rest of the package:

    await client.generate(parts) -> str
        One-shot generation. `parts` is an ordered list of plain strings or
        part dicts built with text_part() / inline_part().

    chat = client.start_chat(history=[], generation_config={...})
    await chat.send(text) -> str
    chat.history() -> [{"role": "user"|"model", "text": ...}]
        Multi-turn session. The REST API is stateless, so ChatSession keeps
        the turn history and sends all of it on every call. A turn is only
        recorded once the model has replied.

Safety settings are fixed at BLOCK_NONE for all four harm categories on every
request. This is a product decision; do not relax it to the API default.

The API key is read from GEMINI_API_KEY when not passed explicitly. A missing
key raises MissingAPIKeyError before any network call is made.
"""

from __future__ import annotations

import base64
import logging
import os
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash-lite"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

SAFETY_SETTINGS: list[dict[str, str]] = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]

CHAT_GENERATION_CONFIG: dict[str, Any] = {
    "maxOutputTokens": 2048,
    "temperature": 0.7,
    "topP": 0.8,
    "topK": 40,
}

Part = dict[str, Any]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the model API cannot be reached or returns an error."""


class MissingAPIKeyError(LLMError):
    """Raised before any request when no API key is configured."""


# ---------------------------------------------------------------------------
# Protocols: what the session manager and the challenge pipeline depend on
# ---------------------------------------------------------------------------

class Chat(Protocol):
    async def send(self, text: str) -> str: ...

    def history(self) -> list[dict[str, str]]: ...


class Gateway(Protocol):
    async def generate(self, parts: list[str | Part]) -> str: ...

    def start_chat(
        self,
        history: list[dict[str, str]] | None = None,
        generation_config: dict[str, Any] | None = None,
    ) -> Chat: ...


# ---------------------------------------------------------------------------
# Part helpers
# ---------------------------------------------------------------------------

def text_part(text: str) -> Part:
    return {"text": text}


def inline_part(data: bytes | str, mime_type: str) -> Part:
    """Binary payload part. Raw bytes are base64-encoded; str is assumed encoded."""
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("ascii")
    return {"inlineData": {"mimeType": mime_type, "data": data}}


def _normalise_parts(parts: list[str | Part]) -> list[Part]:
    return [text_part(p) if isinstance(p, str) else p for p in parts]


# ---------------------------------------------------------------------------
# GeminiClient
# ---------------------------------------------------------------------------

class GeminiClient:
    """Async HTTP client for the Gemini generateContent endpoint.

    Request:  POST {base_url}/models/{model}:generateContent
              {"contents": [...], "safetySettings": [...], "generationConfig"?: {...}}
    Response: {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}

    Args:
        api_key:  API key. Defaults to the GEMINI_API_KEY environment variable.
        model:    Model id. Defaults to GEMINI_MODEL or DEFAULT_MODEL.
        base_url: API root. Defaults to GEMINI_BASE_URL or DEFAULT_BASE_URL.
        timeout:  HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.getenv("GEMINI_API_KEY", "")
        self._model = model or os.getenv("GEMINI_MODEL", "") or DEFAULT_MODEL
        self._base_url = (base_url or os.getenv("GEMINI_BASE_URL", "") or DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout

    @property
    def model(self) -> str:
        return self._model

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def require_api_key(self) -> None:
        if not self._api_key:
            raise MissingAPIKeyError(
                "Gemini API key not found. Set GEMINI_API_KEY in your environment."
            )

    def _url(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", "x-goog-api-key": self._api_key}

    def _parse_response(self, data: dict) -> str:
        if not isinstance(data, dict):
            raise LLMError("Unexpected response format from Gemini")
        candidates = data.get("candidates")
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason")
            if reason:
                raise LLMError(f"Request blocked by Gemini: {reason}")
            raise LLMError("Unexpected response format from Gemini")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        texts = [p["text"] for p in parts if "text" in p]
        if not texts:
            raise LLMError("Unexpected response format from Gemini")
        return "".join(texts)

    async def generate_content(
        self,
        contents: list[dict[str, Any]],
        generation_config: dict[str, Any] | None = None,
    ) -> str:
        """Send raw `contents` (role + parts entries) and return the reply text."""
        self.require_api_key()
        body: dict[str, Any] = {"contents": contents, "safetySettings": SAFETY_SETTINGS}
        if generation_config:
            body["generationConfig"] = generation_config
        logger.debug("gemini call model=%s turns=%d", self._model, len(contents))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._url(), json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to Gemini at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(f"Gemini returned HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise LLMError(f"Gemini timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"Gemini request failed: {type(e).__name__}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("Unexpected response format from Gemini") from e
        text = self._parse_response(data)
        logger.debug("gemini response model=%s len=%d", self._model, len(text))
        return text

    async def generate(self, parts: list[str | Part]) -> str:
        """One-shot generation from text and/or inline binary parts."""
        contents = [{"role": "user", "parts": _normalise_parts(parts)}]
        return await self.generate_content(contents)

    def start_chat(
        self,
        history: list[dict[str, str]] | None = None,
        generation_config: dict[str, Any] | None = None,
    ) -> ChatSession:
        return ChatSession(self, history or [], generation_config or dict(CHAT_GENERATION_CONFIG))


# ---------------------------------------------------------------------------
# ChatSession: client-side history for one conversation
# ---------------------------------------------------------------------------

class ChatSession:
    """One conversation with the model. History entries are {"role", "text"}."""

    def __init__(
        self,
        client: GeminiClient,
        history: list[dict[str, str]],
        generation_config: dict[str, Any],
    ) -> None:
        self._client = client
        self._turns = [dict(turn) for turn in history]
        self._generation_config = generation_config

    @property
    def generation_config(self) -> dict[str, Any]:
        return dict(self._generation_config)

    def _contents(self, text: str) -> list[dict[str, Any]]:
        contents = [
            {"role": turn["role"], "parts": [text_part(turn["text"])]}
            for turn in self._turns
        ]
        contents.append({"role": "user", "parts": [text_part(text)]})
        return contents

    async def send(self, text: str) -> str:
        reply = await self._client.generate_content(self._contents(text), self._generation_config)
        self._turns.append({"role": "user", "text": text})
        self._turns.append({"role": "model", "text": reply})
        return reply

    def history(self) -> list[dict[str, str]]:
        return [dict(turn) for turn in self._turns]
