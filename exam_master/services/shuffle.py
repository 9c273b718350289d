"""
services/shuffle.py

출제 순서 무작위화 유틸리티.
Fisher–Yates 셔플: 모든 순열이 같은 확률로 나온다.
테스트에서는 시드가 고정된 random.Random을 주입한다.
"""

import random
from typing import List, Optional, Sequence, TypeVar

from exam_master.models.question_model import Question

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    items의 원소를 무작위 순서로 담은 새 리스트를 반환한다. 입력은 변경하지 않는다.

    Args:
        items: 임의의 유한 시퀀스 (빈 시퀀스, 원소 1개도 허용).
        rng:   난수 소스. 없으면 호출마다 새로 시드된 random.Random을 쓴다.
    """
    source = rng if rng is not None else random.Random()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = source.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def shuffle_options(question: Question, rng: Optional[random.Random] = None) -> Question:
    """보기 순서만 섞은 문제 사본."""
    return question.model_copy(update={"options": shuffle(question.options, rng)})


def shuffle_exam(questions: Sequence[Question], rng: Optional[random.Random] = None) -> List[Question]:
    """문제 순서를 섞고, 각 문제의 보기 순서도 독립적으로 섞는다."""
    return [shuffle_options(q, rng) for q in shuffle(questions, rng)]
