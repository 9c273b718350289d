"""
services/exam_controller.py

브라우저 세션 하나가 소유하는 시험 컨트롤러.
현재 ExamSession 값을 들고 있으며, session_machine의 순수 전이 함수를 적용해 교체한다.
쓰기는 한 번에 하나(단일 작성자)이므로 락은 없다. 비동기 경계는 ingest() 하나뿐이다.
"""

import asyncio
import logging
import random
from typing import Callable, List, Optional, Tuple

from exam_master.errors import IngestionError
from exam_master.models.question_model import Question
from exam_master.models.session_state import ExamSession
from exam_master.services import session_machine as machine
from exam_master.services.exam_service import ExamResult, score_exam
from exam_master.services.ingestion import ingest_document

logger = logging.getLogger(__name__)

IngestFn = Callable[[bytes, str], List[Question]]


def _default_ingest(file_bytes: bytes, api_key: str) -> List[Question]:
    return ingest_document(file_bytes, api_key=api_key)


class ExamController:
    def __init__(
        self,
        ingest: IngestFn = _default_ingest,
        rng: Optional[random.Random] = None,
    ):
        self._ingest = ingest
        self._rng = rng
        self._session = ExamSession()

    @property
    def session(self) -> ExamSession:
        return self._session

    # ── 업로드 ────────────────────────────────────────────────────────────

    def begin_ingestion(self, source_bytes: bytes, content_type: Optional[str] = None) -> int:
        """업로드 시작. 이번 시도의 토큰을 반환한다."""
        self._session = machine.begin_ingestion(self._session, source_bytes, content_type)
        return self._session.ingestion_token

    def complete_ingestion(self, token: int, questions: List[Question]) -> ExamSession:
        self._session = machine.on_ingestion_succeeded(self._session, token, questions, self._rng)
        return self._session

    def fail_ingestion(self, token: int, message: str) -> ExamSession:
        self._session = machine.on_ingestion_failed(self._session, token, message)
        return self._session

    async def ingest(
        self,
        source_bytes: bytes,
        content_type: Optional[str] = None,
        api_key: str = "",
    ) -> Tuple[int, ExamSession]:
        """
        업로드부터 시험 시작(또는 실패)까지 수행한다.
        InvalidInputError는 그대로 전파되고, 추출/생성 실패는 last_error로 복구된다.

        Returns:
            (이번 시도의 토큰, 완료 후 세션). 토큰이 세션의 토큰과 다르면 더 새 업로드에 밀린 것이다.
        """
        token = self.begin_ingestion(source_bytes, content_type)
        try:
            questions = await asyncio.to_thread(self._ingest, source_bytes, api_key)
        except IngestionError as e:
            self.fail_ingestion(token, str(e))
        except Exception as e:
            logger.error(f"ingest: 예상치 못한 오류 (token={token}): {type(e).__name__}: {e}")
            self.fail_ingestion(token, "문서를 처리하는 중 오류가 발생했습니다. 다른 파일로 시도해 주세요.")
        else:
            self.complete_ingestion(token, questions)
        return token, self._session

    # ── 시험 진행 ─────────────────────────────────────────────────────────

    def select_answer(self, option: str) -> ExamSession:
        self._session = machine.select_answer(self._session, option)
        return self._session

    def advance(self) -> ExamSession:
        self._session = machine.advance(self._session)
        return self._session

    def retreat(self) -> ExamSession:
        self._session = machine.retreat(self._session)
        return self._session

    def retake(self) -> ExamSession:
        self._session = machine.retake(self._session, self._rng)
        return self._session

    def restart(self) -> ExamSession:
        self._session = machine.restart(self._session)
        return self._session

    def score(self) -> ExamResult:
        return score_exam(self._session)
