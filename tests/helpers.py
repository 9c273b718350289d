"""Builders shared by the test modules."""

import random
from typing import List, Optional

from exam_master.models.question_model import Question
from exam_master.models.session_state import ExamSession, Phase
from exam_master.services import session_machine as machine

PDF_BYTES = b"%PDF-1.4\n% test document\n"


def make_question(qid: int, n_options: int = 4, explanation: Optional[str] = None) -> Question:
    """Question whose correct option is always 'right-<id>'."""
    options = [f"right-{qid}"] + [f"wrong-{qid}-{i}" for i in range(1, n_options)]
    return Question(
        id=qid,
        text=f"Question {qid}?",
        options=options,
        correctAnswer=f"right-{qid}",
        explanation=explanation,
    )


def make_questions(count: int, start: int = 1) -> List[Question]:
    return [make_question(i) for i in range(start, start + count)]


def correct_option(session: ExamSession) -> str:
    return session.current_question.correct_answer


def wrong_option(session: ExamSession) -> str:
    q = session.current_question
    return next(opt for opt in q.options if opt != q.correct_answer)


def start_exam(questions: List[Question], rng: Optional[random.Random] = None) -> ExamSession:
    """Idle → ingesting → active."""
    ingesting = machine.begin_ingestion(ExamSession(), PDF_BYTES)
    return machine.on_ingestion_succeeded(
        ingesting, ingesting.ingestion_token, questions, rng
    )


def complete_exam(session: ExamSession) -> ExamSession:
    """Answer every question correctly and finish."""
    while session.phase == Phase.ACTIVE:
        session = machine.select_answer(session, correct_option(session))
        session = machine.advance(session)
    return session
