"""
services/document_extractor.py

PDF → 평문 텍스트 변환 (PyMuPDF).
페이지 순서를 유지하며 각 페이지 앞에 '--- Page N ---' 구분선을 붙인다.
"""

import logging
from typing import List

import fitz  # PyMuPDF

from exam_master.config import MAX_PDF_PAGES
from exam_master.errors import ExtractionError

logger = logging.getLogger(__name__)


def extract_text(file_bytes: bytes, max_pages: int = MAX_PDF_PAGES) -> str:
    """
    PDF 바이트에서 페이지 구분 텍스트를 추출한다.

    Raises:
        ExtractionError: 손상/암호화된 PDF, 페이지 수 초과, 추출 가능한 텍스트 없음.
    """
    if not file_bytes:
        raise ExtractionError("PDF 파일이 비어 있습니다.")

    try:
        doc = fitz.open(stream=file_bytes, filetype="pdf")
    except Exception as e:
        logger.error(f"extract_text: PDF 열기 실패 - {e}")
        raise ExtractionError("PDF 파일을 읽을 수 없습니다.") from e

    try:
        if doc.needs_pass:
            raise ExtractionError("암호로 보호된 PDF는 지원하지 않습니다.")
        if len(doc) > max_pages:
            raise ExtractionError(
                f"PDF 페이지가 너무 많습니다 ({len(doc)}페이지). 최대 {max_pages}페이지까지 지원합니다."
            )

        parts: List[str] = []
        empty_pages = 0
        for i in range(len(doc)):
            page_text = doc.load_page(i).get_text().strip()
            if not page_text:
                empty_pages += 1
            parts.append(f"--- Page {i + 1} ---\n{page_text}\n")

        if empty_pages == len(doc):
            raise ExtractionError("PDF에서 텍스트를 찾지 못했습니다 (스캔 문서일 수 있습니다).")

        logger.info(f"extract_text: {len(doc)}페이지 추출 완료 (빈 페이지 {empty_pages}개)")
        return "\n".join(parts)
    finally:
        doc.close()
