"""
services/question_generator.py

텍스트 → 객관식 문제 후보 생성 (OpenAI).
Public API:
  - generate_questions(text, api_key, client) -> List[Question]
  - validate_candidates(items) -> List[Question]
  - cap_source_text(text) -> str

설계 원칙:
- 모델 응답은 신뢰하지 않는다: 후보마다 Question 검증을 거치고 실패한 후보만 버린다.
- 정답 텍스트가 보기와 정확히 일치하지 않으면 보기 번호/접두어로 느슨하게 매칭한다.
- 출력 순서는 의미 없음. 출제 순서는 상태 머신이 정한다.
"""

import json
import logging
import re
import time
from typing import Any, List, Optional

from openai import APIError, OpenAI, RateLimitError
from pydantic import ValidationError

from exam_master.config import (
    GENERATION_TIMEOUT,
    MAX_SOURCE_CHARS,
    MODEL_NAME,
    OPENAI_API_KEY,
    TARGET_QUESTION_COUNT,
)
from exam_master.errors import EmptyResultError, GenerationError
from exam_master.models.question_model import Question

logger = logging.getLogger(__name__)

# ── 상수 ─────────────────────────────────────────────────────────────────────
_MAX_API_RETRIES = 3
_BACKOFF_BASE = 1.0
_RATE_LIMIT_MAX_RETRIES = 5
_RATE_LIMIT_BACKOFF_BASE = 2.0

_OPTION_LETTERS = "ABCDEFGH"
_OPTION_LABEL_RE = re.compile(r"^[A-Ha-h1-9](?:\)|[.:](?=\s))\s*")


# ── OpenAI 클라이언트 (요청별 생성) ──────────────────────────────────────────

def _make_client(api_key: str) -> Optional[OpenAI]:
    """API 키로 OpenAI 클라이언트를 생성. 키가 없으면 환경변수 키를 쓴다."""
    key = api_key or OPENAI_API_KEY
    if not key:
        logger.warning("API 키가 제공되지 않았습니다.")
        return None
    try:
        return OpenAI(api_key=key, timeout=GENERATION_TIMEOUT)
    except Exception as e:
        logger.error(f"OpenAI 클라이언트 초기화 실패: {e}")
        return None


# ══════════════════════════════════════════════════════════════════════════════
# Public API
# ══════════════════════════════════════════════════════════════════════════════

def cap_source_text(text: str, limit: Optional[int] = None) -> str:
    """생성 모델로 보내는 텍스트 길이를 제한한다 (비용/지연 상한)."""
    if limit is None:
        limit = MAX_SOURCE_CHARS
    if len(text) <= limit:
        return text
    logger.info(f"원문 {len(text)}자 → {limit}자로 잘라냄")
    return text[:limit]


def generate_questions(
    text: str,
    api_key: str = "",
    client: Optional[OpenAI] = None,
    target_count: int = TARGET_QUESTION_COUNT,
) -> List[Question]:
    """
    텍스트에서 문제를 추출해 검증된 Question 리스트로 반환한다.

    Raises:
        GenerationError:  API 키 없음, API 호출 실패, JSON이 아닌 응답.
        EmptyResultError: 검증을 통과한 문제가 하나도 없음.
    """
    if not text or not text.strip():
        raise EmptyResultError("문제를 만들 텍스트가 없습니다.")

    client = client or _make_client(api_key)
    if client is None:
        raise GenerationError("OpenAI API 키가 설정되지 않았거나 클라이언트 초기화에 실패했습니다.")

    system_prompt = _build_system_prompt(target_count)
    user_prompt = f"다음 문서에서 문제를 추출하라.\n\n{cap_source_text(text)}"

    raw = _call_openai(system_prompt, user_prompt, client)
    if raw is None:
        raise GenerationError("AI 서비스 오류가 발생했습니다. 잠시 후 다시 시도해 주세요.")

    candidates = _parse_candidates(raw)
    if candidates is None:
        # 재시도
        raw = _call_openai(
            system_prompt + "\n\n⚠️ 반드시 유효한 JSON 객체만 반환하세요.",
            user_prompt, client,
        )
        candidates = _parse_candidates(raw) if raw else None
    if candidates is None:
        raise GenerationError("AI 응답을 해석하지 못했습니다.")

    questions = validate_candidates(candidates)
    if not questions:
        raise EmptyResultError()

    logger.info(f"generate_questions: 후보 {len(candidates)}개 중 {len(questions)}개 채택")
    return questions


def validate_candidates(items: List[Any]) -> List[Question]:
    """
    후보 레코드를 검증해 Question 리스트로 변환한다.
    검증에 실패한 후보는 경고 로그를 남기고 버린다.
    """
    questions: List[Question] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning(f"item[{idx}]: dict가 아님, 건너뜀")
            continue

        record = _normalize_candidate(item)
        try:
            questions.append(Question(**record))
        except (ValidationError, TypeError) as e:
            logger.warning(f"item[{idx}]: Question 생성 실패: {e}")
            continue

    return questions


# ══════════════════════════════════════════════════════════════════════════════
# 내부 함수
# ══════════════════════════════════════════════════════════════════════════════

def _build_system_prompt(target_count: int) -> str:
    return (
        "너는 시험 문서에서 객관식 문제를 추출하는 전문가다.\n"
        "\n"
        "[임무]\n"
        f"제공된 문서에서 시험 문제를 정확히 {target_count}개 추출하라. "
        "문서에 이미 정답이 표시되어 있으니 찾아서 넣어라.\n"
        f"문제가 {target_count}개보다 적으면 있는 것만 모두 반환하라. 없는 문제를 지어내지 마라.\n"
        "\n"
        "[출력 형식]\n"
        '반드시 {"questions": [...]} 형태의 JSON 객체로만 응답하라.\n'
        "마크다운, 설명, 인사말 금지.\n"
        "\n"
        "[각 문제 객체의 필드]\n"
        "{\n"
        '  "id": (int) 문제 번호,\n'
        '  "text": (str) 문제 본문. 보기를 포함하지 마라,\n'
        '  "options": (list[str]) 보기 목록. 보통 4개,\n'
        '  "correctAnswer": (str) 정답. options 안의 전체 텍스트와 정확히 같아야 한다,\n'
        '  "explanation": (str) 이 답이 맞는 이유에 대한 짧은 해설\n'
        "}\n"
        "\n"
        "[규칙]\n"
        '1. 문제가 없으면 {"questions": []}을 반환하라.\n'
        "2. 보기 텍스트는 원문 그대로 옮겨라.\n"
        "3. 같은 문제 안에 똑같은 보기를 두 번 넣지 마라.\n"
        "4. 문서의 언어를 그대로 유지하라."
    )


def _normalize_candidate(item: dict) -> dict:
    """모델마다 다른 키 이름과 정답 표기를 Question 필드에 맞춘다."""
    record = dict(item)

    if "text" not in record:
        record["text"] = record.get("question_text") or record.get("question") or ""
    if "correctAnswer" not in record and "correct_answer" in record:
        record["correctAnswer"] = record.pop("correct_answer")

    options = record.get("options")
    if isinstance(options, list):
        record["options"] = [str(opt).strip() for opt in options]
        answer = record.get("correctAnswer")
        if answer is not None:
            record["correctAnswer"] = _match_answer_to_option(str(answer), record["options"])

    if record.get("explanation") == "":
        record["explanation"] = None
    return record


def _match_answer_to_option(answer_text: str, options: List[str]) -> str:
    """
    정답 텍스트를 보기와 매칭. 후보가 정확히 하나일 때만 받아들인다.
    실패하거나 모호하면 원문을 그대로 돌려준다 (검증 단계에서 탈락).
    """
    answer = answer_text.strip()
    if not answer:
        return answer_text

    # 1. Exact match
    if answer in options:
        return answer

    # 2. 대소문자 무시
    folded = answer.casefold()
    match = _single([opt for opt in options if opt.casefold() == folded])
    if match is not None:
        return match

    # 3. 보기 기호/번호 (e.g., "B", "b)", "2"). 모든 보기에 기호가 붙어 있을 때만
    if all(_OPTION_LABEL_RE.match(opt) for opt in options):
        label = answer.rstrip(").:").strip().upper()
        pos = -1
        if len(label) == 1 and label in _OPTION_LETTERS:
            pos = _OPTION_LETTERS.index(label)
        elif label.isdigit():
            pos = int(label) - 1
        if 0 <= pos < len(options):
            return options[pos]

    # 4. 기호를 뗀 본문 (e.g., "Paris" → "B) Paris")
    match = _single([
        opt for opt in options
        if _OPTION_LABEL_RE.sub("", opt).casefold() == folded
    ])
    if match is not None:
        return match

    # 5. 단어 경계까지의 접두어 (e.g., "Paris" → "Paris, France")
    match = _single([opt for opt in options if _is_word_prefix(folded, opt.casefold())])
    if match is not None:
        return match

    logger.debug(f"매칭 실패 또는 모호: answer={answer_text!r}")
    return answer_text


def _single(matches: List[str]) -> Optional[str]:
    return matches[0] if len(matches) == 1 else None


def _is_word_prefix(prefix: str, text: str) -> bool:
    if len(text) <= len(prefix) or not text.startswith(prefix):
        return False
    return not text[len(prefix)].isalnum()


def _parse_candidates(raw_response: str) -> Optional[List[Any]]:
    """LLM JSON → 후보 리스트. 파싱 실패 시 None."""
    cleaned = _clean_json_response(raw_response)
    if not cleaned:
        return None

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return None

    if isinstance(data, dict):
        data = data.get("questions", data.get("items", []))
    if not isinstance(data, list):
        return None
    return data


def _clean_json_response(response_text: str) -> str:
    """LLM 응답에서 순수 JSON을 추출."""
    if not response_text:
        return ""

    text = re.sub(r"```(?:json)?\s*", "", response_text, flags=re.IGNORECASE)
    text = re.sub(r"```", "", text)
    text = text.strip()

    if text.startswith("{") or text.startswith("["):
        return text

    match = re.search(r"[{[].*[}\]]", text, re.DOTALL)
    if match:
        return match.group(0).strip()

    return ""


# ══════════════════════════════════════════════════════════════════════════════
# OpenAI API 호출
# ══════════════════════════════════════════════════════════════════════════════

def _call_openai(
    system_prompt: str,
    user_content: str,
    client: Optional[OpenAI] = None,
    max_retries: int = _MAX_API_RETRIES,
) -> Optional[str]:
    """OpenAI Chat API 호출 + 지수 백오프 재시도."""
    if client is None:
        return None

    last_exception: Optional[Exception] = None
    effective_retries = max_retries
    attempt = 0

    # Rate Limit이 나면 한도가 _RATE_LIMIT_MAX_RETRIES로 늘어나므로 매 회 다시 비교한다
    while attempt < effective_retries:
        attempt += 1
        try:
            response = client.chat.completions.create(
                model=MODEL_NAME,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                temperature=0.1,
                response_format={"type": "json_object"},
            )
            return response.choices[0].message.content
        except RateLimitError as e:
            last_exception = e
            effective_retries = _RATE_LIMIT_MAX_RETRIES
            if attempt < effective_retries:
                wait = _RATE_LIMIT_BACKOFF_BASE * (2 ** (attempt - 1))
                logger.warning(f"Rate Limit, {wait:.1f}초 후 재시도 ({attempt}/{effective_retries})")
                time.sleep(wait)
            else:
                logger.error("Rate Limit 최대 재시도 초과.")
                break
        except APIError as e:
            last_exception = e
            error_str = str(e).lower()
            is_transient = any(
                k in error_str
                for k in ("timeout", "connection", "unavailable")
            )
            if getattr(e, "status_code", None) in (500, 502, 503, 504):
                is_transient = True
            if attempt < effective_retries and is_transient:
                wait = _BACKOFF_BASE * (2 ** (attempt - 1))
                logger.warning(f"API 오류, {wait:.1f}초 후 재시도 ({attempt}/{effective_retries})")
                time.sleep(wait)
            else:
                logger.error(f"API 오류: {e}")
                break
        except Exception as e:
            last_exception = e
            logger.error(f"예상치 못한 오류: {type(e).__name__}: {e}")
            break

    logger.error(f"API 최종 실패: {last_exception}")
    return None
