"""Challenge and question models.

Pydantic validates challenge configuration on the way in and turns the
validated question JSON into immutable Question objects for the quiz.
Field aliases follow the wire schema (correctAnswer, markingScheme,
marksPerPoint); Python code uses the snake_case names.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

QuestionType = Literal["objective", "subjective"]
AnswerTiming = Literal["after_each", "at_final"]
ChallengeSource = Literal["document", "topic"]
OptionId = Literal["a", "b", "c", "d"]


class DocumentUpload(BaseModel):
    """A file handed to the document challenge path."""

    filename: str
    mime_type: str = ""
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class ChallengeConfig(BaseModel):
    source: ChallengeSource
    document: DocumentUpload | None = None
    topic: str | None = None
    question_type: QuestionType = "objective"
    number_of_questions: int = Field(default=3, ge=1, le=25)
    answer_timing: AnswerTiming = "after_each"
    custom_instruction: str | None = None

    @model_validator(mode="after")
    def _source_matches_input(self) -> ChallengeConfig:
        if self.source == "document":
            if self.document is None:
                raise ValueError("Please upload a document to continue.")
            if self.topic:
                raise ValueError("A document challenge cannot also have a topic")
        else:
            if not (self.topic or "").strip():
                raise ValueError("Please enter a topic to continue.")
            if self.document is not None:
                raise ValueError("A topic challenge cannot also have a document")
        return self

    @property
    def title(self) -> str:
        if self.source == "document" and self.document is not None:
            return f"Challenge: {self.document.filename or 'Document'}"
        return f"Challenge: {self.topic}"


class Option(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: OptionId
    text: str


class MarkingScheme(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    points: list[str]
    marks_per_point: list[int | float] = Field(alias="marksPerPoint")


class Question(BaseModel):
    """One generated question. Objective questions carry options; subjective a marking scheme."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    text: str
    type: QuestionType
    marks: int | float
    options: list[Option] | None = None
    correct_answer: OptionId | None = Field(default=None, alias="correctAnswer")
    explanation: str | None = None
    marking_scheme: MarkingScheme | None = Field(default=None, alias="markingScheme")

    @property
    def is_objective(self) -> bool:
        return self.type == "objective"

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
