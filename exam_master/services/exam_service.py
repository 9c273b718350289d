"""
services/exam_service.py

시험 채점 및 결과 분석 비즈니스 로직.
순수 Python 함수로 구성. UI 코드나 전역 상태 변경 없음.
같은 세션으로 두 번 호출하면 같은 결과를 돌려준다.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from exam_master.config import PASS_SCORE, POINTS_PER_QUESTION
from exam_master.errors import InvalidTransitionError
from exam_master.models.session_state import ExamSession, Phase


class AnswerStatus(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"


class QuestionResult(BaseModel):
    """문제 한 개의 채점 결과 (오답 노트 한 줄)."""

    position: int
    question_id: int
    text: str
    options: List[str]
    user_answer: Optional[str] = None
    status: AnswerStatus
    is_correct: bool
    correct_answer: str
    explanation: Optional[str] = None


class ExamResult(BaseModel):
    total: int
    correct_count: int
    incorrect_count: int
    unanswered_count: int
    total_points: int
    max_points: int
    percentage: int
    passed: bool
    items: List[QuestionResult]


def calculate_percentage(correct_count: int, total: int) -> int:
    """
    정답률을 정수 백분율로 반환한다 (0.5는 올림).

    total이 0이면 0을 반환.
    """
    if total <= 0:
        return 0
    return (200 * correct_count + total) // (2 * total)


def is_passed(percentage: int, pass_score: int = PASS_SCORE) -> bool:
    """
    합격 여부를 반환한다.

    Args:
        percentage: calculate_percentage()가 반환한 백분율 (0 ~ 100).
        pass_score: 합격 기준 백분율 (기본값 60).
    """
    return percentage >= pass_score


def score_exam(
    session: ExamSession,
    points_per_question: int = POINTS_PER_QUESTION,
    pass_score: int = PASS_SCORE,
) -> ExamResult:
    """
    완료된 세션을 채점한다.

    정답 판정 기준: session.answers.get(위치) == questions[위치].correct_answer
    응답하지 않은 문제(키 없음)는 오답으로 처리하며 예외를 던지지 않는다.
    correct_answer는 정오와 관계없이 항상 채워 넣는다. 표시 여부는 화면이 정한다.

    Raises:
        InvalidTransitionError: session이 completed 상태가 아닌 경우.
    """
    if session.phase != Phase.COMPLETED:
        raise InvalidTransitionError("score", session.phase.value)

    items: List[QuestionResult] = []
    for position, q in enumerate(session.questions):
        user_answer = session.answers.get(position)
        if user_answer is None:
            status = AnswerStatus.UNANSWERED
        elif user_answer == q.correct_answer:
            status = AnswerStatus.CORRECT
        else:
            status = AnswerStatus.INCORRECT

        items.append(QuestionResult(
            position=position,
            question_id=q.id,
            text=q.text,
            options=list(q.options),
            user_answer=user_answer,
            status=status,
            is_correct=status == AnswerStatus.CORRECT,
            correct_answer=q.correct_answer,
            explanation=q.explanation,
        ))

    total = len(items)
    correct_count = sum(1 for item in items if item.status == AnswerStatus.CORRECT)
    unanswered_count = sum(1 for item in items if item.status == AnswerStatus.UNANSWERED)
    percentage = calculate_percentage(correct_count, total)

    return ExamResult(
        total=total,
        correct_count=correct_count,
        incorrect_count=total - correct_count - unanswered_count,
        unanswered_count=unanswered_count,
        total_points=correct_count * points_per_question,
        max_points=total * points_per_question,
        percentage=percentage,
        passed=is_passed(percentage, pass_score),
        items=items,
    )
