"""
api/session.py — 멀티유저 인메모리 세션 (쿠키 기반)

각 사용자에게 UUID 세션 ID를 발급하고, 세션별로 독립된 ExamController를 유지.
TTL(기본 1시간) 경과 시 자동 만료.
"""

import threading
import time
import uuid
from typing import Any

from exam_master.config import SESSION_TTL
from exam_master.services.exam_controller import ExamController

_lock = threading.Lock()
_sessions: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _new_state() -> dict[str, Any]:
    return {
        "api_key": "",
        "controller": ExamController(),
    }


def create_session() -> str:
    """새 세션을 생성하고 세션 ID를 반환."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    return sid


def touch(sid: str) -> bool:
    """살아 있는 세션이면 접근 시각을 갱신하고 True. 만료되었거나 없으면 False."""
    with _lock:
        if sid not in _sessions:
            return False
        if time.time() - _timestamps[sid] > SESSION_TTL:
            del _sessions[sid]
            del _timestamps[sid]
            return False
        _timestamps[sid] = time.time()
        return True


def _entry(sid: str) -> dict[str, Any]:
    """락 안에서 호출. 세션이 사라졌으면 빈 상태로 다시 만든다."""
    state = _sessions.setdefault(sid, _new_state())
    _timestamps[sid] = time.time()
    return state


def get_api_key(sid: str) -> str:
    with _lock:
        return _entry(sid)["api_key"]


def set_api_key(sid: str, key: str) -> None:
    with _lock:
        _entry(sid)["api_key"] = key


def get_controller(sid: str) -> ExamController:
    """세션의 시험 컨트롤러. 세션이 사라졌으면 새로 만든다."""
    with _lock:
        return _entry(sid)["controller"]


def cleanup_expired() -> int:
    """만료된 세션을 정리. 제거된 수 반환."""
    now = time.time()
    removed = 0
    with _lock:
        expired = [sid for sid, ts in _timestamps.items() if now - ts > SESSION_TTL]
        for sid in expired:
            del _sessions[sid]
            del _timestamps[sid]
            removed += 1
    return removed
