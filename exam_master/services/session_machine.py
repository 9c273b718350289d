"""
services/session_machine.py

시험 세션 상태 머신.

  idle → ingesting → active → completed
  - begin_ingestion        : 모든 상태 → ingesting
  - on_ingestion_succeeded : ingesting → active
  - on_ingestion_failed    : ingesting → idle
  - advance (마지막 문제)  : active → completed
  - retake                 : completed → active
  - restart                : 모든 상태 → idle

모든 함수는 (ExamSession, 인자) → 새 ExamSession 형태의 순수 함수다.
허용되지 않는 조작은 예외를 던지며 입력 세션은 그대로 남는다.
"""

import logging
import random
import time
from typing import Optional, Sequence

from exam_master.config import MAX_PDF_SIZE
from exam_master.errors import (
    EmptyResultError,
    InvalidAnswerError,
    InvalidInputError,
    InvalidTransitionError,
    UnansweredQuestionError,
)
from exam_master.models.question_model import Question
from exam_master.models.session_state import ExamSession, Phase
from exam_master.services.shuffle import shuffle_exam

logger = logging.getLogger(__name__)

SUPPORTED_CONTENT_TYPES = ("application/pdf",)
PDF_SIGNATURE = b"%PDF-"


# ── 가드 ─────────────────────────────────────────────────────────────────────

def _require_phase(session: ExamSession, operation: str, *allowed: Phase) -> None:
    if session.phase not in allowed:
        raise InvalidTransitionError(operation, session.phase.value)


def _is_stale(session: ExamSession, token: int, operation: str) -> bool:
    if token != session.ingestion_token:
        logger.info(
            f"{operation}: 이전 업로드 결과 무시 (token={token}, 현재={session.ingestion_token})"
        )
        return True
    return False


def _assert_cursor(session: ExamSession) -> None:
    if session.phase == Phase.ACTIVE and not (0 <= session.cursor < session.total):
        raise InvalidTransitionError(
            "cursor", session.phase.value, f"cursor {session.cursor} 가 범위를 벗어났습니다."
        )


def validate_source(source_bytes: bytes, content_type: Optional[str] = None) -> None:
    """업로드 원본 검사. 비동기 작업 전에 동기적으로 실패해야 한다."""
    if not source_bytes:
        raise InvalidInputError("파일이 비어 있습니다.")
    if len(source_bytes) > MAX_PDF_SIZE:
        raise InvalidInputError(
            f"PDF 파일이 너무 큽니다 (최대 {MAX_PDF_SIZE // (1024 * 1024)}MB)."
        )
    if content_type and content_type.split(";")[0].strip().lower() not in SUPPORTED_CONTENT_TYPES:
        raise InvalidInputError("PDF 파일만 업로드할 수 있습니다.")
    if not source_bytes.startswith(PDF_SIGNATURE):
        raise InvalidInputError("PDF 형식의 파일이 아닙니다.")


# ── 전이 ─────────────────────────────────────────────────────────────────────

def begin_ingestion(
    session: ExamSession,
    source_bytes: bytes,
    content_type: Optional[str] = None,
) -> ExamSession:
    """새 업로드 시작. 어느 상태에서든 가능하며 진행 중인 응시/업로드를 버린다."""
    validate_source(source_bytes, content_type)
    token = session.ingestion_token + 1
    logger.info(f"업로드 시작 (token={token}, 이전 상태={session.phase.value})")
    return ExamSession(phase=Phase.INGESTING, ingestion_token=token)


def on_ingestion_succeeded(
    session: ExamSession,
    token: int,
    questions: Sequence[Question],
    rng: Optional[random.Random] = None,
) -> ExamSession:
    """문제 생성 완료. 문제 순서와 보기 순서를 섞어 시험을 시작한다."""
    if _is_stale(session, token, "on_ingestion_succeeded"):
        return session
    _require_phase(session, "on_ingestion_succeeded", Phase.INGESTING)

    if not questions:
        logger.warning("on_ingestion_succeeded: 빈 문제 리스트 → idle")
        return on_ingestion_failed(session, token, str(EmptyResultError()))

    shuffled = shuffle_exam(questions, rng)
    logger.info(f"시험 시작: {len(shuffled)}문제 (token={token})")
    return session.model_copy(update={
        "phase": Phase.ACTIVE,
        "questions": shuffled,
        "cursor": 0,
        "answers": {},
        "last_error": None,
        "attempt": 1,
        "started_at": time.time(),
    })


def on_ingestion_failed(session: ExamSession, token: int, message: str) -> ExamSession:
    """문제 생성 실패. 부분 데이터 없이 idle로 돌아간다."""
    if _is_stale(session, token, "on_ingestion_failed"):
        return session
    _require_phase(session, "on_ingestion_failed", Phase.INGESTING)

    logger.warning(f"업로드 실패 (token={token}): {message}")
    return ExamSession(
        phase=Phase.IDLE,
        last_error=message,
        ingestion_token=session.ingestion_token,
    )


def select_answer(session: ExamSession, option: str) -> ExamSession:
    """현재 문제에 답을 기록한다. cursor는 움직이지 않는다."""
    _require_phase(session, "select_answer", Phase.ACTIVE)
    _assert_cursor(session)

    position = session.cursor
    if option not in session.questions[position].options:
        raise InvalidAnswerError(option, position)
    if session.answers.get(position) == option:
        return session

    answers = dict(session.answers)
    answers[position] = option
    return session.model_copy(update={"answers": answers})


def advance(session: ExamSession) -> ExamSession:
    """
    다음 문제로 이동. 현재 문제가 미응답이면 거부한다.
    마지막 문제에서 호출하면 completed로 전이 (마지막 문제도 답해야 한다).
    """
    _require_phase(session, "advance", Phase.ACTIVE)
    _assert_cursor(session)

    if not session.is_answered(session.cursor):
        raise UnansweredQuestionError(session.cursor)

    if session.cursor < session.total - 1:
        return session.model_copy(update={"cursor": session.cursor + 1})

    logger.info(f"시험 완료: {session.answered_count}/{session.total} 응답")
    return session.model_copy(update={"phase": Phase.COMPLETED})


def retreat(session: ExamSession) -> ExamSession:
    """이전 문제로 이동. 답안은 건드리지 않는다."""
    _require_phase(session, "retreat", Phase.ACTIVE)
    _assert_cursor(session)

    if session.cursor == 0:
        raise InvalidTransitionError("retreat", session.phase.value, "첫 번째 문제입니다.")
    return session.model_copy(update={"cursor": session.cursor - 1})


def retake(session: ExamSession, rng: Optional[random.Random] = None) -> ExamSession:
    """같은 문제 세트로 다시 응시. 순서를 새로 섞고 답안을 비운다."""
    _require_phase(session, "retake", Phase.COMPLETED)

    logger.info(f"재응시: {session.attempt + 1}회차")
    return session.model_copy(update={
        "phase": Phase.ACTIVE,
        "questions": shuffle_exam(session.questions, rng),
        "cursor": 0,
        "answers": {},
        "last_error": None,
        "attempt": session.attempt + 1,
        "started_at": time.time(),
    })


def restart(session: ExamSession) -> ExamSession:
    """모든 상태를 버리고 idle로. 진행 중인 업로드 결과도 무효화한다."""
    logger.info(f"세션 초기화 (이전 상태={session.phase.value})")
    return ExamSession(ingestion_token=session.ingestion_token + 1)
