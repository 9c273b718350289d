from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Question(BaseModel):
    """
    객관식 시험 문제 모델
    Pydantic v2 적용. 생성 이후 변경 불가(frozen). 보기 순서 셔플은 새 객체를 만든다.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(
        ...,
        strict=True,
        description="생성 시점에 부여된 문제 번호. 셔플해도 바뀌지 않는 표시용 값"
    )
    text: str = Field(
        ...,
        min_length=1,
        description="문제 본문"
    )
    options: List[str] = Field(
        ...,
        description="보기 리스트 (객관식 선지)"
    )
    correct_answer: str = Field(
        ...,
        alias="correctAnswer",
        description="정답. options 중 하나와 정확히 일치해야 한다."
    )
    explanation: Optional[str] = Field(
        None,
        description="해설 (표시 전용)"
    )

    @field_validator('text')
    @classmethod
    def validate_text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("문제 본문(text)이 비어 있습니다.")
        return v

    @field_validator('options')
    @classmethod
    def validate_options(cls, v: List[str]) -> List[str]:
        """
        검증 로직 1: 보기는 서로 다른 비어 있지 않은 값 2개 이상이어야 한다.
        """
        if len(v) < 2:
            raise ValueError("보기(options)는 최소 2개 이상의 항목이 필요합니다.")
        if any(not opt.strip() for opt in v):
            raise ValueError("빈 보기가 포함되어 있습니다.")
        if len(set(v)) != len(v):
            raise ValueError(f"중복된 보기가 있습니다: {v}")
        return v

    @model_validator(mode='after')
    def validate_answer_in_options(self) -> 'Question':
        """
        검증 로직 2: 정답은 반드시 보기 리스트 안에 있어야 한다.
        """
        if self.correct_answer not in self.options:
            raise ValueError(
                f"정답('{self.correct_answer}')이 보기 리스트({self.options})에 존재하지 않습니다."
            )
        return self
