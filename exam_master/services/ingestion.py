"""
services/ingestion.py

업로드된 PDF → 검증된 Question 리스트.
텍스트 추출(document_extractor) → 문제 생성(question_generator, 길이 제한 포함).
동기 함수. 호출 측에서 asyncio.to_thread로 실행한다.
"""

import logging
import time
from typing import List, Optional

from openai import OpenAI

from exam_master.models.question_model import Question
from exam_master.services.document_extractor import extract_text
from exam_master.services.question_generator import generate_questions

logger = logging.getLogger(__name__)


def ingest_document(
    file_bytes: bytes,
    api_key: str = "",
    client: Optional[OpenAI] = None,
) -> List[Question]:
    """
    Raises:
        ExtractionError, GenerationError, EmptyResultError
    """
    started = time.time()
    text = extract_text(file_bytes)
    logger.info(f"ingest_document: 텍스트 {len(text)}자 → 문제 생성 요청")

    questions = generate_questions(text, api_key=api_key, client=client)
    logger.info(f"ingest_document: {len(questions)}문제 ({time.time() - started:.1f}초)")
    return questions
