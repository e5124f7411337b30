"""Pydantic request models for API endpoints."""

from pydantic import Base64Bytes, BaseModel, Field

from character_chat.models import AnswerTiming, ChallengeSource, QuestionType


class CreatePersona(BaseModel):
    name: str
    description: str
    voice_tone: str
    mood: str
    skills: list[str]
    emoji: str = "🤖"
    is_public: bool = False


class UpdatePersona(BaseModel):
    name: str | None = None
    description: str | None = None
    voice_tone: str | None = None
    mood: str | None = None
    skills: list[str] | None = None
    emoji: str | None = None
    is_public: bool | None = None


class VoiceSettings(BaseModel):
    language: str | None = None
    pitch: float | None = Field(default=None, ge=0.5, le=2.0)
    rate: float | None = Field(default=None, ge=0.5, le=2.0)


class UpdatePreferences(BaseModel):
    default_instruction: str | None = None
    pinned_personas: list[str] | None = None
    voice: VoiceSettings | None = None


class ChatBody(BaseModel):
    message: str


class UploadedFile(BaseModel):
    filename: str
    mime_type: str = ""
    data: Base64Bytes


class AttachmentBody(UploadedFile):
    prompt: str = ""


class StartChallenge(BaseModel):
    source: ChallengeSource
    document: UploadedFile | None = None
    topic: str | None = None
    question_type: QuestionType = "objective"
    number_of_questions: int = 3
    answer_timing: AnswerTiming = "after_each"
    custom_instruction: str | None = None


class AnswerBody(BaseModel):
    option: str | None = None
    text: str | None = None


class DraftBody(BaseModel):
    text: str


class SubmitTextBody(BaseModel):
    text: str | None = None
