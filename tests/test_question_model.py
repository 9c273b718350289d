"""Tests for the Question model invariants."""

import pytest
from pydantic import ValidationError

from exam_master.models.question_model import Question


def _record(**overrides):
    data = {
        "id": 1,
        "text": "Capital of France?",
        "options": ["Paris", "Lyon", "Nice", "Lille"],
        "correctAnswer": "Paris",
    }
    data.update(overrides)
    return data


class TestQuestionValidation:
    """Tests for Question field and model validators."""

    def test_valid_question(self):
        q = Question(**_record(explanation="Paris is the capital."))
        assert q.correct_answer == "Paris"
        assert q.explanation == "Paris is the capital."

    def test_explanation_optional(self):
        assert Question(**_record()).explanation is None

    def test_accepts_field_name(self):
        data = _record()
        data["correct_answer"] = data.pop("correctAnswer")
        assert Question(**data).correct_answer == "Paris"

    def test_dump_by_alias(self):
        dumped = Question(**_record()).model_dump(by_alias=True)
        assert dumped["correctAnswer"] == "Paris"

    def test_rejects_blank_text(self):
        with pytest.raises(ValidationError):
            Question(**_record(text="   "))

    def test_rejects_single_option(self):
        with pytest.raises(ValidationError):
            Question(**_record(options=["Paris"]))

    def test_rejects_duplicate_options(self):
        with pytest.raises(ValidationError):
            Question(**_record(options=["Paris", "Paris", "Lyon"]))

    def test_rejects_blank_option(self):
        with pytest.raises(ValidationError):
            Question(**_record(options=["Paris", ""]))

    def test_rejects_answer_outside_options(self):
        with pytest.raises(ValidationError):
            Question(**_record(correctAnswer="Marseille"))

    def test_two_options_allowed(self):
        q = Question(**_record(options=["Paris", "Lyon"]))
        assert len(q.options) == 2

    def test_missing_id_rejected(self):
        data = _record()
        del data["id"]
        with pytest.raises(ValidationError):
            Question(**data)

    @pytest.mark.parametrize("bad_id", ["3", True, 3.0])
    def test_id_must_be_integer(self, bad_id):
        with pytest.raises(ValidationError):
            Question(**_record(id=bad_id))

    def test_frozen(self):
        q = Question(**_record())
        with pytest.raises(ValidationError):
            q.text = "changed"
