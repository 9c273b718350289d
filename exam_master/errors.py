"""
errors.py

시험 코어의 예외 계층.

  ExamError
  ├── InvalidInputError          : 비동기 작업 전에 걸러지는 잘못된 업로드
  ├── IngestionError             : 문서 → 문제 변환 실패 (세션은 idle로 복구)
  │   ├── ExtractionError
  │   ├── GenerationError
  │   └── EmptyResultError
  ├── InvalidTransitionError     : 현재 phase에서 허용되지 않는 조작
  │   └── UnansweredQuestionError
  └── InvalidAnswerError         : 현재 문제의 보기에 없는 답
"""

from __future__ import annotations

from typing import Optional


class ExamError(Exception):
    """시험 코어 예외의 기반 클래스."""


class InvalidInputError(ExamError):
    """업로드된 원본이 지원하지 않는 형식이거나 비어 있음."""


class IngestionError(ExamError):
    """문제 추출 파이프라인 실패."""


class ExtractionError(IngestionError):
    """PDF에서 텍스트를 읽지 못함."""


class GenerationError(IngestionError):
    """생성 모델 호출 실패 또는 응답 형식 오류."""


class EmptyResultError(IngestionError):
    """유효한 문제가 하나도 남지 않음."""

    def __init__(self, message: str = "문서에서 문제를 찾지 못했습니다."):
        super().__init__(message)


class InvalidTransitionError(ExamError):
    """현재 phase에서 수행할 수 없는 조작."""

    def __init__(self, operation: str, phase: str, detail: Optional[str] = None):
        self.operation = operation
        self.phase = phase
        message = f"'{operation}'은(는) '{phase}' 상태에서 수행할 수 없습니다."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class UnansweredQuestionError(InvalidTransitionError):
    """현재 문제에 답하지 않은 채 다음으로 넘어가려 함."""

    def __init__(self, position: int, phase: str = "active"):
        self.position = position
        super().__init__(
            "advance", phase, f"{position + 1}번 문제에 먼저 답해야 합니다."
        )


class InvalidAnswerError(ExamError):
    """선택한 값이 현재 문제의 보기 목록에 없음."""

    def __init__(self, option: str, position: int):
        self.option = option
        self.position = position
        super().__init__(f"{position + 1}번 문제의 보기에 없는 답입니다: {option!r}")
