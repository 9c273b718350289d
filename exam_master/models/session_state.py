"""
models/session_state.py

한 번의 시험 응시 상태 전체를 담는 세션 모델.
Pydantic BaseModel 기반, frozen. 모든 상태 전이는 새 ExamSession을 반환한다.
UI 코드 없음.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from exam_master.models.question_model import Question


class Phase(str, Enum):
    IDLE = "idle"
    INGESTING = "ingesting"
    ACTIVE = "active"
    COMPLETED = "completed"


class ExamSession(BaseModel):
    """
    시험 세션의 단일 진실 공급원.

    Attributes:
        phase:           상태 머신의 현재 단계.
        questions:       현재 출제 순서대로 정렬된 문제 (세션마다 셔플된 순서).
        cursor:          현재 보고 있는 문제의 위치 (0-based). active일 때만 의미가 있다.
        answers:         답안지. {문제 위치: 선택한 보기 문자열}. 키가 없으면 미응답.
        last_error:      사용자에게 보여줄 마지막 오류 메시지.
        ingestion_token: 업로드 시도마다 증가하는 토큰. 늦게 도착한 이전 결과를 버리는 데 쓴다.
        attempt:         같은 문제 세트로 몇 번째 응시인지 (1부터, 재응시마다 +1).
        started_at:      현재 응시가 시작된 시각 (Unix timestamp, 표시용).
    """

    model_config = ConfigDict(frozen=True)

    phase: Phase = Field(
        default=Phase.IDLE,
        description="현재 단계"
    )
    questions: List[Question] = Field(
        default_factory=list,
        description="출제 순서대로 정렬된 문제 리스트"
    )
    cursor: int = Field(
        default=0,
        ge=0,
        description="현재 문제 위치 (0-based)"
    )
    answers: Dict[int, str] = Field(
        default_factory=dict,
        description="답안지. key: 문제 위치, value: 선택한 보기 문자열"
    )
    last_error: Optional[str] = Field(
        default=None,
        description="마지막 오류 메시지"
    )
    ingestion_token: int = Field(
        default=0,
        ge=0,
        description="현재 업로드 시도 토큰 (단조 증가)"
    )
    attempt: int = Field(
        default=0,
        ge=0,
        description="응시 회차"
    )
    started_at: Optional[float] = Field(
        default=None,
        description="응시 시작 시각 (Unix timestamp)"
    )

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    @property
    def current_question(self) -> Optional[Question]:
        """active 상태에서 cursor가 가리키는 문제. 그 외에는 None."""
        if self.phase != Phase.ACTIVE or not self.questions:
            return None
        return self.questions[self.cursor]

    def is_answered(self, position: int) -> bool:
        return position in self.answers
