"""Tests for the challenge generation paths (document and topic)."""

import base64
import json

import pytest
from unittest.mock import AsyncMock

from character_chat.challenges import ChallengeError, build_challenge, generate_challenge
from character_chat.challenges.core import DOCUMENT_FAILED, NOT_CONFIGURED, TOPIC_FAILED
from character_chat.llm import LLMError, MissingAPIKeyError
from character_chat.models import ChallengeConfig, DocumentUpload

QUESTIONS = {
    "questions": [
        {
            "id": 1,
            "text": "What is 2 + 2?",
            "type": "objective",
            "marks": 5,
            "options": [
                {"id": "a", "text": "3"},
                {"id": "b", "text": "4"},
                {"id": "c", "text": "5"},
                {"id": "d", "text": "22"},
            ],
            "correctAnswer": "b",
            "explanation": "Two plus two is four.",
        }
    ]
}
QUESTIONS_JSON = json.dumps(QUESTIONS)


class StubGateway:
    """Returns queued replies from generate() and records every call's parts."""

    def __init__(self, *replies) -> None:
        self.generate = AsyncMock(side_effect=list(replies))

    def start_chat(self, history=None, generation_config=None):
        raise AssertionError("challenge generation never opens a chat")

    def parts(self, call: int) -> list:
        return self.generate.call_args_list[call][0][0]


def _document_config(filename: str, mime: str, data: bytes = b"data", **overrides) -> ChallengeConfig:
    doc = DocumentUpload(filename=filename, mime_type=mime, data=data)
    return ChallengeConfig(source="document", document=doc, **overrides)


# ---------------------------------------------------------------------------
# Document path
# ---------------------------------------------------------------------------

class TestDocumentChallenge:
    async def test_pdf_sends_prompt_and_inline_part(self) -> None:
        gateway = StubGateway(QUESTIONS_JSON)
        result = await generate_challenge(gateway, _document_config("paper.pdf", "application/pdf", b"%PDF-1.4"))
        assert json.loads(result) == QUESTIONS
        assert gateway.generate.await_count == 1
        prompt, part = gateway.parts(0)
        assert "Analyze the PDF document provided" in prompt
        assert part["inlineData"]["mimeType"] == "application/pdf"
        assert base64.b64decode(part["inlineData"]["data"]) == b"%PDF-1.4"

    async def test_image_uses_image_prompt(self) -> None:
        gateway = StubGateway(QUESTIONS_JSON)
        await generate_challenge(gateway, _document_config("chart.png", "image/png"))
        prompt, part = gateway.parts(0)
        assert "Analyze the image provided" in prompt
        assert part["inlineData"]["mimeType"] == "image/png"

    async def test_text_file_embedded_as_content(self) -> None:
        gateway = StubGateway(QUESTIONS_JSON)
        config = _document_config("notes.txt", "text/plain", b"Mitochondria make ATP.")
        await generate_challenge(gateway, config)
        parts = gateway.parts(0)
        assert len(parts) == 1
        assert "Content:\nMitochondria make ATP." in parts[0]

    async def test_fenced_response_accepted(self) -> None:
        gateway = StubGateway(f"```json\n{QUESTIONS_JSON}\n```")
        result = await generate_challenge(gateway, _document_config("paper.pdf", "application/pdf"))
        assert json.loads(result) == QUESTIONS

    async def test_unsupported_file_is_input_error(self) -> None:
        gateway = StubGateway()
        with pytest.raises(ChallengeError) as exc:
            await generate_challenge(gateway, _document_config("song.mp3", "audio/mpeg"))
        assert exc.value.reason == "input"
        gateway.generate.assert_not_awaited()

    async def test_invalid_json_maps_to_kind_message(self) -> None:
        gateway = StubGateway("not json at all")
        with pytest.raises(ChallengeError) as exc:
            await generate_challenge(gateway, _document_config("paper.pdf", "application/pdf"))
        assert str(exc.value) == DOCUMENT_FAILED["pdf"]
        assert exc.value.reason == "generation"

    async def test_gateway_error_maps_to_kind_message(self) -> None:
        gateway = StubGateway(LLMError("down"))
        with pytest.raises(ChallengeError, match=DOCUMENT_FAILED["image"]):
            await generate_challenge(gateway, _document_config("chart.png", "image/png"))

    async def test_missing_key_is_configuration_error(self) -> None:
        gateway = StubGateway(MissingAPIKeyError("no key"))
        with pytest.raises(ChallengeError) as exc:
            await generate_challenge(gateway, _document_config("paper.pdf", "application/pdf"))
        assert str(exc.value) == NOT_CONFIGURED
        assert exc.value.reason == "configuration"


# ---------------------------------------------------------------------------
# Topic path
# ---------------------------------------------------------------------------

class TestTopicChallenge:
    async def test_two_calls_in_order(self) -> None:
        gateway = StubGateway("Key areas: addition, carrying.", QUESTIONS_JSON)
        config = ChallengeConfig(source="topic", topic="  Arithmetic  ", custom_instruction="Keep it simple")
        result = await generate_challenge(gateway, config)

        assert json.loads(result) == QUESTIONS
        assert gateway.generate.await_count == 2
        analysis_prompt = gateway.parts(0)[0]
        assert "Topic: Arithmetic" in analysis_prompt
        question_prompt = gateway.parts(1)[0]
        assert "Content:\nTopic Analysis:\nKey areas: addition, carrying." in question_prompt
        assert "Keep it simple" in question_prompt
        assert "Additional Guidelines:" in question_prompt
        assert question_prompt.index("Keep it simple") < question_prompt.index("Additional Guidelines:")

    async def test_guidelines_added_without_custom_instruction(self) -> None:
        gateway = StubGateway("analysis", QUESTIONS_JSON)
        await generate_challenge(gateway, ChallengeConfig(source="topic", topic="Arithmetic"))
        assert "Additional Instructions:\nAdditional Guidelines:" in gateway.parts(1)[0]

    async def test_analysis_failure_stops_before_second_call(self) -> None:
        gateway = StubGateway(LLMError("down"))
        with pytest.raises(ChallengeError, match=TOPIC_FAILED):
            await generate_challenge(gateway, ChallengeConfig(source="topic", topic="Arithmetic"))
        assert gateway.generate.await_count == 1

    async def test_invalid_questions_rejected(self) -> None:
        gateway = StubGateway("analysis", '{"questions": [{"id": 1}]}')
        with pytest.raises(ChallengeError, match=TOPIC_FAILED):
            await generate_challenge(gateway, ChallengeConfig(source="topic", topic="Arithmetic"))


# ---------------------------------------------------------------------------
# build_challenge
# ---------------------------------------------------------------------------

async def test_build_challenge_carries_title_and_timing():
    gateway = StubGateway("analysis", QUESTIONS_JSON)
    config = ChallengeConfig(source="topic", topic="Arithmetic", answer_timing="at_final")
    challenge = await build_challenge(gateway, config)
    assert challenge.title == "Challenge: Arithmetic"
    assert challenge.answer_timing == "at_final"
    assert [q.correct_answer for q in challenge.questions] == ["b"]


async def test_build_challenge_rejects_empty_set():
    gateway = StubGateway("analysis", '{"questions": []}')
    with pytest.raises(ChallengeError, match="no questions"):
        await build_challenge(gateway, ChallengeConfig(source="topic", topic="Arithmetic"))
