"""
api/routes.py — FastAPI 엔드포인트
"""

import logging
from typing import Callable

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

import api.session as session
from exam_master.errors import (
    ExamError,
    InvalidAnswerError,
    InvalidInputError,
    InvalidTransitionError,
)
from exam_master.models.session_state import ExamSession
from exam_master.services.exam_controller import ExamController

logger = logging.getLogger(__name__)

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class ApiKeyBody(BaseModel):
    api_key: str

class AnswerBody(BaseModel):
    option: str


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def _sid(request: Request) -> str:
    return request.state.session_id


def _controller(request: Request) -> ExamController:
    return session.get_controller(_sid(request))


def _state_to_dict(s: ExamSession) -> dict:
    """화면이 읽는 세션 상태. 정답은 포함하지 않는다."""
    current = s.current_question
    return {
        "phase": s.phase.value,
        "cursor": s.cursor,
        "total": s.total,
        "answered_count": s.answered_count,
        "answers": {str(k): v for k, v in s.answers.items()},
        "attempt": s.attempt,
        "started_at": s.started_at,
        "last_error": s.last_error,
        "question": {
            "id": current.id,
            "text": current.text,
            "options": current.options,
            "selected": s.answers.get(s.cursor),
        } if current else None,
    }


def _apply(request: Request, operation: Callable[[ExamController], ExamSession]) -> dict:
    """상태 전이를 실행하고 코어 예외를 HTTP 오류로 바꾼다."""
    try:
        new_state = operation(_controller(request))
    except InvalidAnswerError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ExamError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _state_to_dict(new_state)


# ── 엔드포인트 ───────────────────────────────────────────────────────────────

@router.post("/api/set-api-key")
async def set_api_key(request: Request, body: ApiKeyBody):
    key = body.api_key.strip()
    if not key:
        raise HTTPException(status_code=400, detail="API 키가 비어 있습니다.")
    if not key.startswith("sk-"):
        raise HTTPException(status_code=400, detail="올바른 OpenAI API 키 형식이 아닙니다 (sk-... 형식).")
    session.set_api_key(_sid(request), key)
    return {"ok": True}


@router.post("/api/upload")
async def upload(request: Request, file: UploadFile = File(...)):
    controller = _controller(request)
    file_bytes = await file.read()
    api_key = session.get_api_key(_sid(request))

    try:
        token, state = await controller.ingest(file_bytes, file.content_type, api_key)
    except InvalidInputError as e:
        raise HTTPException(status_code=415, detail=str(e))

    if state.ingestion_token != token:
        raise HTTPException(status_code=409, detail="더 최근의 업로드로 대체되었습니다.")
    if state.last_error:
        raise HTTPException(status_code=422, detail=state.last_error)

    logger.info(f"upload: {file.filename} → {state.total}문제")
    return _state_to_dict(state)


@router.get("/api/state")
async def get_state(request: Request):
    return _state_to_dict(_controller(request).session)


@router.post("/api/answer")
async def select_answer(request: Request, body: AnswerBody):
    return _apply(request, lambda c: c.select_answer(body.option))


@router.post("/api/next")
async def next_question(request: Request):
    return _apply(request, lambda c: c.advance())


@router.post("/api/prev")
async def prev_question(request: Request):
    return _apply(request, lambda c: c.retreat())


@router.post("/api/retake")
async def retake(request: Request):
    return _apply(request, lambda c: c.retake())


@router.post("/api/restart")
async def restart(request: Request):
    return _apply(request, lambda c: c.restart())


@router.get("/api/results")
async def get_results(request: Request):
    try:
        result = _controller(request).score()
    except InvalidTransitionError:
        raise HTTPException(status_code=400, detail="시험이 아직 끝나지 않았습니다.")
    return result.model_dump(mode="json")
