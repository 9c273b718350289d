"""Tests for ExamController (single-writer session holder with async ingestion)."""

import asyncio
import threading

import pytest

from exam_master.errors import (
    EmptyResultError,
    GenerationError,
    InvalidInputError,
    InvalidTransitionError,
)
from exam_master.models.session_state import Phase
from exam_master.services.exam_controller import ExamController
from tests.helpers import PDF_BYTES, make_questions

FIRST_PDF = PDF_BYTES + b"first"
SECOND_PDF = PDF_BYTES + b"second"


def _fixed_ingest(questions):
    def _ingest(file_bytes, api_key):
        return questions
    return _ingest


def _failing_ingest(error):
    def _ingest(file_bytes, api_key):
        raise error
    return _ingest


async def _wait_for_token(controller, token):
    for _ in range(500):
        if controller.session.ingestion_token >= token:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("ingestion never started")


class TestIngest:
    """Tests for ExamController.ingest()."""

    @pytest.mark.asyncio
    async def test_success_starts_exam(self):
        controller = ExamController(ingest=_fixed_ingest(make_questions(4)))
        token, session = await controller.ingest(PDF_BYTES, "application/pdf")
        assert token == 1
        assert session.phase == Phase.ACTIVE
        assert session.total == 4
        assert controller.session is session

    @pytest.mark.asyncio
    async def test_passes_api_key(self):
        seen = {}

        def _ingest(file_bytes, api_key):
            seen["key"] = api_key
            return make_questions(2)

        controller = ExamController(ingest=_ingest)
        await controller.ingest(PDF_BYTES, api_key="sk-test")
        assert seen["key"] == "sk-test"

    @pytest.mark.asyncio
    async def test_ingestion_error_recovered(self):
        controller = ExamController(ingest=_failing_ingest(GenerationError("quota exceeded")))
        _, session = await controller.ingest(PDF_BYTES)
        assert session.phase == Phase.IDLE
        assert session.last_error == "quota exceeded"
        assert session.questions == []

    @pytest.mark.asyncio
    async def test_empty_result_recovered(self):
        controller = ExamController(ingest=_failing_ingest(EmptyResultError()))
        _, session = await controller.ingest(PDF_BYTES)
        assert session.phase == Phase.IDLE
        assert session.last_error

    @pytest.mark.asyncio
    async def test_empty_list_recovered(self):
        controller = ExamController(ingest=_fixed_ingest([]))
        _, session = await controller.ingest(PDF_BYTES)
        assert session.phase == Phase.IDLE
        assert session.last_error

    @pytest.mark.asyncio
    async def test_unexpected_error_recovered(self):
        controller = ExamController(ingest=_failing_ingest(KeyError("boom")))
        _, session = await controller.ingest(PDF_BYTES)
        assert session.phase == Phase.IDLE
        assert session.last_error

    @pytest.mark.asyncio
    async def test_invalid_input_raises_without_change(self):
        controller = ExamController(ingest=_fixed_ingest(make_questions(2)))
        before = controller.session
        with pytest.raises(InvalidInputError):
            await controller.ingest(b"GIF89a", "image/gif")
        assert controller.session is before

    @pytest.mark.asyncio
    async def test_stale_result_discarded(self):
        """A slow first upload finishing after a second one is ignored."""
        release_first = threading.Event()
        first_questions = make_questions(3, start=100)
        second_questions = make_questions(2, start=1)

        def _ingest(file_bytes, api_key):
            if file_bytes == FIRST_PDF:
                release_first.wait(5)
                return first_questions
            return second_questions

        controller = ExamController(ingest=_ingest)
        first = asyncio.create_task(controller.ingest(FIRST_PDF))
        await _wait_for_token(controller, 1)

        second_token, second_session = await controller.ingest(SECOND_PDF)
        assert second_token == 2
        assert second_session.phase == Phase.ACTIVE

        release_first.set()
        first_token, final_session = await first

        assert first_token == 1
        assert final_session.ingestion_token == 2
        assert sorted(q.id for q in controller.session.questions) == [1, 2]
        assert controller.session.phase == Phase.ACTIVE

    @pytest.mark.asyncio
    async def test_stale_failure_discarded(self):
        release_first = threading.Event()

        def _ingest(file_bytes, api_key):
            if file_bytes == FIRST_PDF:
                release_first.wait(5)
                raise GenerationError("late failure")
            return make_questions(2)

        controller = ExamController(ingest=_ingest)
        first = asyncio.create_task(controller.ingest(FIRST_PDF))
        await _wait_for_token(controller, 1)
        await controller.ingest(SECOND_PDF)

        release_first.set()
        await first
        assert controller.session.phase == Phase.ACTIVE
        assert controller.session.last_error is None

    @pytest.mark.asyncio
    async def test_restart_during_ingestion(self):
        release = threading.Event()

        def _ingest(file_bytes, api_key):
            release.wait(5)
            return make_questions(3)

        controller = ExamController(ingest=_ingest)
        pending = asyncio.create_task(controller.ingest(PDF_BYTES))
        await _wait_for_token(controller, 1)

        with pytest.raises(InvalidTransitionError):
            controller.advance()
        controller.restart()
        release.set()
        await pending

        assert controller.session.phase == Phase.IDLE
        assert controller.session.questions == []


class TestExamFlow:
    """Tests for the synchronous exam operations."""

    @pytest.mark.asyncio
    async def test_full_attempt_and_retake(self):
        controller = ExamController(ingest=_fixed_ingest(make_questions(3)))
        await controller.ingest(PDF_BYTES)

        controller.select_answer(controller.session.current_question.correct_answer)
        controller.advance()
        controller.retreat()
        assert controller.session.cursor == 0
        controller.advance()
        for _ in range(2):
            controller.select_answer(controller.session.current_question.correct_answer)
            controller.advance()

        assert controller.session.phase == Phase.COMPLETED
        result = controller.score()
        assert result.percentage == 100
        assert result.total_points == 6

        session = controller.retake()
        assert session.phase == Phase.ACTIVE
        assert session.answers == {}
        assert session.attempt == 2

    def test_score_before_completion_rejected(self):
        with pytest.raises(InvalidTransitionError):
            ExamController().score()

    def test_failed_operation_keeps_session(self):
        controller = ExamController()
        before = controller.session
        with pytest.raises(InvalidTransitionError):
            controller.select_answer("x")
        assert controller.session is before
