"""Challenge generation and quiz attempt endpoints.

Quiz attempts are in-memory only and each user holds at most one: a newly
generated challenge replaces the previous attempt, quitting discards it, and
restarting the server discards all of them.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from character_chat import storage
from character_chat.challenges import ChallengeError, build_challenge
from character_chat.models import ChallengeConfig, DocumentUpload
from character_chat.quiz import QuizAttempt, QuizError

from .deps import FAILURE_STATUS, QuizEntry, current_user, get_gateway, get_quizzes
from .models import AnswerBody, DraftBody, StartChallenge, SubmitTextBody

router = APIRouter()


def _config_from_body(body: StartChallenge) -> ChallengeConfig:
    document = None
    if body.document is not None:
        document = DocumentUpload(
            filename=body.document.filename,
            mime_type=body.document.mime_type,
            data=body.document.data,
        )
    try:
        return ChallengeConfig(
            source=body.source,
            document=document,
            topic=body.topic,
            question_type=body.question_type,
            number_of_questions=body.number_of_questions,
            answer_timing=body.answer_timing,
            custom_instruction=(body.custom_instruction or "").strip() or None,
        )
    except ValidationError as e:
        message = e.errors()[0]["msg"].removeprefix("Value error, ")
        raise HTTPException(400, message)


def _entry_or_404(request: Request, owner: str, quiz_id: str) -> QuizEntry:
    entry = get_quizzes(request).get(quiz_id)
    if entry is None or entry.owner != owner:
        raise HTTPException(404, "Quiz not found")
    return entry


def _view(quiz_id: str, entry: QuizEntry) -> dict:
    return {"id": quiz_id, "title": entry.title, **entry.attempt.snapshot()}


@router.post("/challenges", status_code=201)
async def start_challenge(body: StartChallenge, request: Request, owner: str = Depends(current_user)):
    """Generate a question set and open a quiz attempt for it."""
    config = _config_from_body(body)
    try:
        challenge = await build_challenge(get_gateway(request), config)
    except ChallengeError as e:
        raise HTTPException(FAILURE_STATUS[e.reason], str(e))

    quizzes = get_quizzes(request)
    for old_id in [qid for qid, e in quizzes.items() if e.owner == owner]:
        del quizzes[old_id]

    quiz_id = storage.new_id()
    entry = QuizEntry(
        owner=owner,
        title=challenge.title,
        attempt=QuizAttempt(challenge.questions, challenge.answer_timing),
    )
    quizzes[quiz_id] = entry
    return _view(quiz_id, entry)


@router.get("/quizzes/{quiz_id}")
async def get_quiz(quiz_id: str, request: Request, owner: str = Depends(current_user)):
    return _view(quiz_id, _entry_or_404(request, owner, quiz_id))


def _apply(request: Request, owner: str, quiz_id: str, action) -> dict:
    entry = _entry_or_404(request, owner, quiz_id)
    try:
        action(entry.attempt)
    except QuizError as e:
        raise HTTPException(409, str(e))
    return _view(quiz_id, entry)


@router.post("/quizzes/{quiz_id}/answer")
async def answer(quiz_id: str, body: AnswerBody, request: Request, owner: str = Depends(current_user)):
    """Choose an option (objective) or commit free text (subjective)."""
    if body.option is not None:
        return _apply(request, owner, quiz_id, lambda a: a.choose_option(body.option))
    if body.text is not None:
        return _apply(request, owner, quiz_id, lambda a: a.submit_text(body.text))
    raise HTTPException(400, "Provide an option or an answer text")


@router.post("/quizzes/{quiz_id}/draft")
async def update_draft(quiz_id: str, body: DraftBody, request: Request, owner: str = Depends(current_user)):
    return _apply(request, owner, quiz_id, lambda a: a.update_draft(body.text))


@router.post("/quizzes/{quiz_id}/submit-text")
async def submit_text(quiz_id: str, body: SubmitTextBody, request: Request, owner: str = Depends(current_user)):
    """Commit the draft (or the given text) as the answer to the current subjective question."""
    return _apply(request, owner, quiz_id, lambda a: a.submit_text(body.text))


@router.post("/quizzes/{quiz_id}/next")
async def next_question(quiz_id: str, request: Request, owner: str = Depends(current_user)):
    return _apply(request, owner, quiz_id, lambda a: a.next())


@router.post("/quizzes/{quiz_id}/previous")
async def previous_question(quiz_id: str, request: Request, owner: str = Depends(current_user)):
    return _apply(request, owner, quiz_id, lambda a: a.previous())


@router.post("/quizzes/{quiz_id}/goto/{index}")
async def jump_to_question(quiz_id: str, index: int, request: Request, owner: str = Depends(current_user)):
    return _apply(request, owner, quiz_id, lambda a: a.jump_to(index))


@router.post("/quizzes/{quiz_id}/submit")
async def submit_quiz(quiz_id: str, request: Request, owner: str = Depends(current_user)):
    return _apply(request, owner, quiz_id, lambda a: a.submit())


@router.post("/quizzes/{quiz_id}/retry")
async def retry_quiz(quiz_id: str, request: Request, owner: str = Depends(current_user)):
    return _apply(request, owner, quiz_id, lambda a: a.retry())


@router.delete("/quizzes/{quiz_id}")
async def quit_quiz(quiz_id: str, request: Request, owner: str = Depends(current_user)):
    """Quit (or close a finished quiz). Nothing is saved."""
    entry = _entry_or_404(request, owner, quiz_id)
    if not entry.attempt.submitted:
        entry.attempt.quit()
    del get_quizzes(request)[quiz_id]
    return {"ok": True}
