"""Quiz attempt state machine.

Attempt states:
  active     index moves with next/previous/jump_to
  submitted  terminal; retry() starts a fresh attempt at index 0
  abandoned  quit() was called; every further transition is refused

Per-question states:
  unanswered → answered → revealed   (after_each)
  unanswered → answered              (at_final, everything is revealed on submit)

Scoring:
  after_each  objective answers are scored the moment they are chosen
  at_final    one pass over every objective question at submit time
  Subjective questions never add to the score: they are marked by a person
  against the displayed marking scheme. Their marks still count towards
  total_possible, so a mixed question set cannot reach 100%.

Dot navigation may jump backwards freely and forwards only onto questions
that already have an answer.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from typing import Any

from character_chat.models import AnswerTiming, Question


class QuizError(RuntimeError):
    """Raised for a transition the current attempt state does not allow."""


class AttemptState(enum.Enum):
    ACTIVE = "active"
    SUBMITTED = "submitted"
    ABANDONED = "abandoned"


class QuestionState(enum.Enum):
    UNANSWERED = "unanswered"
    ANSWERED = "answered"
    REVEALED = "revealed"


class QuizAttempt:
    def __init__(self, questions: Sequence[Question], answer_timing: AnswerTiming = "after_each") -> None:
        if not questions:
            raise QuizError("A quiz needs at least one question")
        if len({q.id for q in questions}) != len(questions):
            raise QuizError("Question ids must be unique")
        if answer_timing not in ("after_each", "at_final"):
            raise QuizError(f"Unknown answer timing {answer_timing!r}")
        self._questions = tuple(questions)
        self.answer_timing = answer_timing
        self._reset()

    def _reset(self) -> None:
        self.index = 0
        self.answers: dict[int, str] = {}
        self.revealed: set[int] = set()
        self.score: int | float = 0
        self.draft = ""
        self.state = AttemptState.ACTIVE

    # ── Read-only views ──────────────────────────────────

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def current(self) -> Question:
        return self._questions[self.index]

    @property
    def is_last(self) -> bool:
        return self.index == len(self._questions) - 1

    @property
    def submitted(self) -> bool:
        return self.state is AttemptState.SUBMITTED

    @property
    def total_possible(self) -> int | float:
        return sum(q.marks for q in self._questions)

    def question_state(self, question_id: int) -> QuestionState:
        if question_id in self.revealed or self.submitted:
            return QuestionState.REVEALED
        if question_id in self.answers:
            return QuestionState.ANSWERED
        return QuestionState.UNANSWERED

    def is_revealed(self, question_id: int) -> bool:
        return self.question_state(question_id) is QuestionState.REVEALED

    def can_jump_to(self, index: int) -> bool:
        if not 0 <= index < len(self._questions):
            return False
        return index <= self.index or self._questions[index].id in self.answers

    def progress(self) -> float:
        return (self.index + 1) / len(self._questions) * 100

    # ── Guards ───────────────────────────────────────────

    def _require_active(self) -> None:
        if self.state is AttemptState.ABANDONED:
            raise QuizError("This quiz was quit")
        if self.state is AttemptState.SUBMITTED:
            raise QuizError("This quiz has already been submitted")

    def _is_correct(self, q: Question) -> bool:
        return q.is_objective and self.answers.get(q.id) == q.correct_answer

    # ── Transitions ──────────────────────────────────────

    def choose_option(self, option_id: str) -> None:
        """Record an objective answer for the current question."""
        self._require_active()
        q = self.current
        if not q.is_objective:
            raise QuizError("Options can only be chosen on objective questions")
        if option_id not in {o.id for o in q.options or []}:
            raise QuizError(f"Unknown option {option_id!r}")
        if self.answer_timing == "after_each":
            if q.id in self.revealed:
                raise QuizError("This question has already been answered")
            self.answers[q.id] = option_id
            self.revealed.add(q.id)
            if self._is_correct(q):
                self.score += q.marks
        else:
            self.answers[q.id] = option_id
        self.draft = option_id

    def update_draft(self, text: str) -> None:
        """Free-text buffer for the current subjective question; not yet an answer."""
        self._require_active()
        self.draft = text

    def submit_text(self, text: str | None = None) -> None:
        """Commit the free-text answer for the current subjective question."""
        self._require_active()
        q = self.current
        if q.is_objective:
            raise QuizError("Objective questions are answered by choosing an option")
        if text is not None:
            self.draft = text
        if not self.draft.strip():
            raise QuizError("Answer cannot be empty")
        if self.answer_timing == "after_each" and q.id in self.revealed:
            raise QuizError("This question has already been answered")
        self.answers[q.id] = self.draft
        if self.answer_timing == "after_each":
            self.revealed.add(q.id)

    def _move_to(self, index: int) -> None:
        self.index = index
        self.draft = self.answers.get(self.current.id, "")

    def next(self) -> None:
        """Advance one question; on the last question this submits the quiz."""
        self._require_active()
        q = self.current
        if self.answer_timing == "at_final" and not q.is_objective and self.draft.strip():
            self.answers[q.id] = self.draft
        if self.is_last:
            self.submit()
        else:
            self._move_to(self.index + 1)

    def previous(self) -> None:
        self._require_active()
        if self.index > 0:
            self._move_to(self.index - 1)

    def jump_to(self, index: int) -> None:
        self._require_active()
        if not self.can_jump_to(index):
            raise QuizError(f"Question {index + 1} cannot be opened yet")
        self._move_to(index)

    def submit(self) -> None:
        """Final submit. Under at_final the score is computed here in one pass."""
        self._require_active()
        if self.answer_timing == "at_final":
            self.score = sum(q.marks for q in self._questions if self._is_correct(q))
        self.state = AttemptState.SUBMITTED

    def retry(self) -> None:
        """Start over with the same questions: answers, score and index cleared."""
        if self.state is not AttemptState.SUBMITTED:
            raise QuizError("Only a submitted quiz can be retried")
        self._reset()

    def quit(self) -> None:
        self._require_active()
        self.state = AttemptState.ABANDONED

    # ── Results ──────────────────────────────────────────

    def stats(self) -> dict[str, Any]:
        objective = [q for q in self._questions if q.is_objective]
        correct = sum(1 for q in objective if self._is_correct(q))
        total_possible = self.total_possible
        return {
            "total_questions": len(self._questions),
            "objective_questions": len(objective),
            "subjective_questions": len(self._questions) - len(objective),
            "correct_answers": correct,
            "incorrect_answers": len(objective) - correct,
            "score": self.score,
            "total_possible": total_possible,
            "accuracy": round(correct / len(objective) * 100) if objective else 0,
            "percentage": round(self.score / total_possible * 100) if total_possible else 0,
        }

    def snapshot(self) -> dict[str, Any]:
        """JSON-safe view. Answers and explanations only appear once revealed."""
        questions = []
        for q in self._questions:
            entry: dict[str, Any] = {
                "id": q.id,
                "text": q.text,
                "type": q.type,
                "marks": q.marks,
                "state": self.question_state(q.id).value,
                "answer": self.answers.get(q.id),
            }
            if q.options is not None:
                entry["options"] = [o.model_dump() for o in q.options]
            if self.is_revealed(q.id):
                if q.is_objective:
                    entry["correctAnswer"] = q.correct_answer
                    entry["explanation"] = q.explanation
                    entry["correct"] = self._is_correct(q)
                elif q.marking_scheme is not None:
                    entry["markingScheme"] = q.marking_scheme.model_dump(by_alias=True)
            questions.append(entry)
        return {
            "state": self.state.value,
            "answer_timing": self.answer_timing,
            "index": self.index,
            "draft": self.draft,
            "score": self.score,
            "total_possible": self.total_possible,
            "progress": self.progress(),
            "questions": questions,
            "stats": self.stats() if self.submitted else None,
        }
