"""Tests for generated question JSON validation."""

import json

import pytest

from character_chat.challenges import (
    QuestionFormatError,
    QuestionValidationError,
    parse_questions,
    strip_code_fence,
    validate_questions,
)


def _objective(**overrides) -> dict:
    q = {
        "id": 1,
        "text": "Which gas do plants absorb?",
        "type": "objective",
        "marks": 5,
        "options": [
            {"id": "a", "text": "Oxygen"},
            {"id": "b", "text": "Carbon dioxide"},
            {"id": "c", "text": "Nitrogen"},
            {"id": "d", "text": "Helium"},
        ],
        "correctAnswer": "b",
        "explanation": "Plants take in CO2 for photosynthesis.",
    }
    q.update(overrides)
    return q


def _subjective(**overrides) -> dict:
    q = {
        "id": 2,
        "text": "Explain the light reactions.",
        "type": "subjective",
        "marks": 5,
        "markingScheme": {"points": ["Mentions ATP", "Mentions NADPH"], "marksPerPoint": [3, 2]},
    }
    q.update(overrides)
    return q


def _payload(*questions) -> str:
    return json.dumps({"questions": list(questions)}, indent=2)


class TestValidQuestions:
    def test_returns_compact_json(self) -> None:
        result = validate_questions(_payload(_objective(), _subjective()))
        assert "\n" not in result
        assert json.loads(result)["questions"][1]["markingScheme"]["marksPerPoint"] == [3, 2]

    def test_fenced_json_recovered(self) -> None:
        raw = "```json\n" + _payload(_objective()) + "\n```"
        assert json.loads(validate_questions(raw))["questions"][0]["correctAnswer"] == "b"

    def test_bare_fence_recovered(self) -> None:
        raw = "```\n" + _payload(_objective()) + "\n```"
        assert validate_questions(raw).startswith('{"questions":')

    def test_empty_list_is_valid(self) -> None:
        assert validate_questions('{"questions": []}') == '{"questions":[]}'

    def test_non_ascii_kept(self) -> None:
        result = validate_questions(_payload(_objective(text="Qu'est-ce que la photosynthèse?")))
        assert "photosynthèse" in result


class TestInvalidQuestions:
    def test_not_json(self) -> None:
        with pytest.raises(QuestionFormatError, match="Invalid JSON format in response"):
            validate_questions("Here are your questions: ...")

    def test_prose_around_json_not_repaired(self) -> None:
        with pytest.raises(QuestionFormatError):
            validate_questions("Sure! " + _payload(_objective()))

    def test_missing_questions_array(self) -> None:
        with pytest.raises(QuestionValidationError, match="missing questions array"):
            validate_questions('{"items": []}')

    def test_missing_required_field(self) -> None:
        q = _objective()
        del q["text"]
        with pytest.raises(QuestionValidationError, match="Question 1 is missing required fields"):
            validate_questions(_payload(q))

    def test_zero_marks_counts_as_missing(self) -> None:
        with pytest.raises(QuestionValidationError, match="missing required fields"):
            validate_questions(_payload(_objective(marks=0)))

    def test_wrong_option_count(self) -> None:
        q = _objective()
        q["options"] = q["options"][:3]
        with pytest.raises(QuestionValidationError, match="must have exactly 4 options"):
            validate_questions(_payload(q))

    def test_missing_explanation(self) -> None:
        with pytest.raises(QuestionValidationError, match="missing correctAnswer or explanation"):
            validate_questions(_payload(_objective(explanation="")))

    def test_missing_marking_scheme(self) -> None:
        q = _subjective()
        del q["markingScheme"]
        with pytest.raises(QuestionValidationError, match="invalid marking scheme"):
            validate_questions(_payload(q))

    def test_mismatched_scheme_arrays(self) -> None:
        q = _subjective(markingScheme={"points": ["one"], "marksPerPoint": [3, 2]})
        with pytest.raises(QuestionValidationError, match="mismatched points and marks arrays"):
            validate_questions(_payload(q))

    def test_unknown_type(self) -> None:
        with pytest.raises(QuestionValidationError, match="unknown type"):
            validate_questions(_payload(_objective(type="essay")))

    def test_duplicate_id_rejected(self) -> None:
        with pytest.raises(QuestionValidationError, match="Question 2 has a duplicate id 1"):
            validate_questions(_payload(_objective(), _subjective(id=1)))

    def test_one_bad_question_rejects_batch(self) -> None:
        with pytest.raises(QuestionValidationError, match="Question 2"):
            validate_questions(_payload(_objective(), _objective(id=2, options=[])))


def test_strip_code_fence():
    assert strip_code_fence("```json\n{}\n```") == "{}"
    assert strip_code_fence("  {}  ") == "{}"


def test_parse_questions():
    questions = parse_questions(validate_questions(_payload(_objective(), _subjective())))
    assert [q.id for q in questions] == [1, 2]
    assert questions[0].options[1].text == "Carbon dioxide"
    assert questions[1].marking_scheme.points == ["Mentions ATP", "Mentions NADPH"]


def test_parse_questions_rejects_bad_option_id():
    q = _objective(correctAnswer="e")
    with pytest.raises(QuestionValidationError, match="Question 1 is malformed"):
        parse_questions(validate_questions(_payload(q)))
