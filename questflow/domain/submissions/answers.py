"""
답안 값 타입 — 스키마 없는 answers 문서를 태그된 variant로 해석

answers 문서: {question_id: "문자열" | ["문자열", ...]}
- ScalarAnswer: single_choice / judgment / text_input
- ChoiceListAnswer: multi_choice

해석 규칙
- decode_answers: 저장된 문서 해석 (관대함). 문서 자체가 mapping이 아니면 MalformedAnswersError,
  개별 항목 형식이 틀리면 해당 항목만 버린다.
- validate_answers: producer 입력 검증 (엄격함). 항목 하나라도 틀리면 MalformedSubmissionError.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from questflow.domain.submissions.errors import MalformedAnswersError, MalformedSubmissionError


@dataclass(frozen=True)
class ScalarAnswer:
    value: str


@dataclass(frozen=True)
class ChoiceListAnswer:
    values: tuple[str, ...]


AnswerValue = Union[ScalarAnswer, ChoiceListAnswer]
Answers = Mapping[str, AnswerValue]


def decode_answer_value(raw: Any) -> Optional[AnswerValue]:
    """문자열 → ScalarAnswer, 문자열 리스트 → ChoiceListAnswer, 그 외 None."""
    if isinstance(raw, str):
        return ScalarAnswer(raw)
    if isinstance(raw, (list, tuple)) and all(isinstance(v, str) for v in raw):
        return ChoiceListAnswer(tuple(raw))
    return None


def _load_document(raw: Any) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="strict")
    if isinstance(raw, str):
        return json.loads(raw)
    return raw


def decode_answers(raw: Any) -> dict[str, AnswerValue]:
    """
    저장된 answers 문서 해석.

    Raises:
        MalformedAnswersError: 문서가 JSON object가 아님
    """
    try:
        document = _load_document(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedAnswersError(f"answers is not valid JSON: {e}") from e
    if not isinstance(document, Mapping):
        raise MalformedAnswersError(f"answers must be an object, got {type(document).__name__}")

    decoded: dict[str, AnswerValue] = {}
    for question_id, value in document.items():
        answer = decode_answer_value(value)
        if answer is not None:
            decoded[str(question_id)] = answer
    return decoded


def validate_answers(raw: Any) -> dict[str, AnswerValue]:
    """producer 입력 검증. 형식 오류는 모두 MalformedSubmissionError."""
    try:
        document = _load_document(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedSubmissionError(f"answers is not valid JSON: {e}") from e
    if not isinstance(document, Mapping):
        raise MalformedSubmissionError("answers must be an object")

    validated: dict[str, AnswerValue] = {}
    for question_id, value in document.items():
        if not isinstance(question_id, str) or not question_id:
            raise MalformedSubmissionError(f"invalid question id: {question_id!r}")
        answer = decode_answer_value(value)
        if answer is None:
            raise MalformedSubmissionError(
                f"answer for {question_id} must be a string or a list of strings"
            )
        validated[question_id] = answer
    return validated


def encode_answers(answers: Answers) -> dict[str, Any]:
    """AnswerValue mapping → JSON 직렬화 가능한 dict (wire/DB 저장 형식)."""
    encoded: dict[str, Any] = {}
    for question_id, answer in answers.items():
        if isinstance(answer, ScalarAnswer):
            encoded[question_id] = answer.value
        else:
            encoded[question_id] = list(answer.values)
    return encoded
