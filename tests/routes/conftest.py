from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from character_chat.app import create_app

TEST_DATA_DIR = Path("data-tests")


class StubChat:
    def __init__(self, gateway: "StubGateway") -> None:
        self._gateway = gateway
        self._turns: list[dict[str, str]] = []

    async def send(self, text: str) -> str:
        self._gateway.sent.append(text)
        if self._gateway.error is not None:
            raise self._gateway.error
        reply = f"echo: {text.splitlines()[-1]}"
        self._turns += [{"role": "user", "text": text}, {"role": "model", "text": reply}]
        return reply

    def history(self) -> list[dict[str, str]]:
        return list(self._turns)


class StubGateway:
    """Echoing chats; generate() pops queued replies."""

    configured = True

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.replies: list[str] = []
        self.generated: list[list] = []
        self.error: Exception | None = None

    async def generate(self, parts):
        self.generated.append(parts)
        if self.error is not None:
            raise self.error
        return self.replies.pop(0)

    def start_chat(self, history=None, generation_config=None):
        return StubChat(self)


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture
def client(gateway) -> TestClient:
    return TestClient(create_app(data_dir=TEST_DATA_DIR, gateway=gateway))


@pytest.fixture
def alice() -> dict[str, str]:
    return {"X-User-Id": "alice"}


@pytest.fixture
def bob() -> dict[str, str]:
    return {"X-User-Id": "bob"}


@pytest.fixture
def persona_body() -> dict:
    return {
        "name": "Captain Byte",
        "description": "A retired space pilot who loves explaining code.",
        "voice_tone": "casual",
        "mood": "friendly",
        "skills": ["coding"],
        "emoji": "🚀",
        "is_public": True,
    }
