"""Challenge generation entry points.

Document path (one generate call):
  pdf / image  → modality prompt + inline base64 part
  text         → decoded text embedded in the content prompt

Topic path (two sequential generate calls, the second needs the first):
  1. topic analysis prompt → free-text analysis
  2. content prompt with "Topic Analysis:\n<analysis>" as content, topic
     guidelines appended to any custom instruction

Every path ends in validate_questions(). Failures are logged with detail and
re-raised as ChallengeError carrying one short user-facing message. Nothing
is retried here; the user re-runs the whole flow.
"""

import logging
from dataclasses import dataclass
from typing import Literal

from character_chat.llm import Gateway, MissingAPIKeyError, inline_part
from character_chat.models import AnswerTiming, ChallengeConfig, DocumentUpload, Question
from character_chat.prompts import TOPIC_GUIDELINES, challenge_prompt, topic_analysis_prompt

from .documents import DocumentError, check_document, document_text
from .validation import parse_questions, validate_questions

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "AI service is not configured. Set GEMINI_API_KEY and try again."
TOPIC_FAILED = "Failed to process topic challenge. Please try again."
DOCUMENT_FAILED = {
    "pdf": "Failed to process PDF document. Please try again.",
    "image": "Failed to process image document. Please try again.",
    "text": "Failed to process text document. Please try again.",
}

FailureReason = Literal["input", "configuration", "generation"]


class ChallengeError(RuntimeError):
    """User-facing challenge failure; `reason` tells callers which kind."""

    def __init__(self, message: str, reason: FailureReason = "generation") -> None:
        super().__init__(message)
        self.reason = reason


@dataclass(frozen=True)
class Challenge:
    """A generated, validated question set ready for a quiz attempt."""

    title: str
    answer_timing: AnswerTiming
    questions: list[Question]
    raw: str


async def generate_document_challenge(gateway: Gateway, doc: DocumentUpload, config: ChallengeConfig) -> str:
    try:
        kind = check_document(doc)
    except DocumentError as e:
        raise ChallengeError(str(e), reason="input") from e

    try:
        if kind == "text":
            prompt = challenge_prompt(config, "content", content=document_text(doc))
            response = await gateway.generate([prompt])
        else:
            prompt = challenge_prompt(config, kind)
            response = await gateway.generate([prompt, inline_part(doc.data, doc.mime_type)])
        return validate_questions(response)
    except MissingAPIKeyError as e:
        logger.error("document challenge refused: %s", e)
        raise ChallengeError(NOT_CONFIGURED, reason="configuration") from e
    except Exception as e:
        logger.exception("document challenge failed (%s, %s)", kind, doc.filename)
        raise ChallengeError(DOCUMENT_FAILED[kind]) from e


async def generate_topic_challenge(gateway: Gateway, topic: str, config: ChallengeConfig) -> str:
    try:
        analysis = await gateway.generate([topic_analysis_prompt(topic)])
        logger.debug("topic analysis len=%d", len(analysis))

        custom = f"{config.custom_instruction or ''}\n\n{TOPIC_GUIDELINES}"
        prompt = challenge_prompt(
            config, "content",
            content=f"Topic Analysis:\n{analysis}",
            custom_instruction=custom,
        )
        response = await gateway.generate([prompt])
        return validate_questions(response)
    except MissingAPIKeyError as e:
        logger.error("topic challenge refused: %s", e)
        raise ChallengeError(NOT_CONFIGURED, reason="configuration") from e
    except Exception as e:
        logger.exception("topic challenge failed (%s)", topic)
        raise ChallengeError(TOPIC_FAILED) from e


async def generate_challenge(gateway: Gateway, config: ChallengeConfig) -> str:
    """Run the path matching config.source and return validated question JSON."""
    if config.source == "document" and config.document is not None:
        return await generate_document_challenge(gateway, config.document, config)
    if config.source == "topic" and (config.topic or "").strip():
        return await generate_topic_challenge(gateway, config.topic.strip(), config)
    raise ChallengeError("Please provide either a document or topic", reason="input")


async def build_challenge(gateway: Gateway, config: ChallengeConfig) -> Challenge:
    raw = await generate_challenge(gateway, config)
    try:
        questions = parse_questions(raw)
    except ValueError as e:
        logger.exception("validated question set could not be loaded")
        failed = TOPIC_FAILED if config.source == "topic" else "Failed to process document challenge. Please try again."
        raise ChallengeError(failed) from e
    if not questions:
        raise ChallengeError("The generated challenge has no questions. Please try again.")
    return Challenge(
        title=config.title,
        answer_timing=config.answer_timing,
        questions=questions,
        raw=raw,
    )
