"""
Submission 도메인 엔티티 — 순수 파이썬 (Django/redis 미사용)

- SubmissionEnvelope: producer → stream → consumer 로 흐르는 불변 메시지
- SubmissionRecord: 저장된 제출 (envelope 필드 + 저장소가 부여한 id/생성시각)
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from questflow.domain.submissions.answers import (
    AnswerValue,
    decode_answers,
    encode_answers,
)
from questflow.domain.submissions.errors import MalformedAnswersError, MalformedMessageError


def _require_int(data: dict, key: str) -> int:
    value = data.get(key)
    # bool은 int의 하위형이므로 별도 차단
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedMessageError(f"envelope.{key} must be an integer, got {value!r}")
    return value


def _require_str(data: dict, key: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedMessageError(f"envelope.{key} must be a string")
    return value


@dataclass(frozen=True)
class SubmissionEnvelope:
    form_id: int
    answers: dict[str, AnswerValue]
    client_ip: str
    user_agent: str
    submitted_at: datetime
    submitter_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "form_id": self.form_id,
            "answers": encode_answers(self.answers),
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
            "submitter_id": self.submitter_id,
            # 마이크로초 + UTC offset 포함 ISO-8601
            "submitted_at": self.submitted_at.isoformat(timespec="microseconds"),
        }

    def to_payload(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_payload(cls, payload: Any) -> "SubmissionEnvelope":
        """
        Stream payload → envelope.

        Raises:
            MalformedMessageError: JSON/필드/타입 어느 하나라도 해석 불가
        """
        if payload is None:
            raise MalformedMessageError("envelope payload is missing")
        if isinstance(payload, (bytes, bytearray)):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedMessageError(f"envelope payload is not utf-8: {e}") from e
        if not isinstance(payload, str):
            raise MalformedMessageError(f"envelope payload must be text, got {type(payload).__name__}")

        try:
            data = json.loads(payload)
        except ValueError as e:
            raise MalformedMessageError(f"envelope payload is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedMessageError("envelope payload must be a JSON object")

        form_id = _require_int(data, "form_id")

        submitter_id = data.get("submitter_id")
        if submitter_id is not None:
            submitter_id = _require_int(data, "submitter_id")

        raw_submitted_at = data.get("submitted_at")
        if not isinstance(raw_submitted_at, str):
            raise MalformedMessageError("envelope.submitted_at must be an ISO-8601 string")
        try:
            submitted_at = datetime.fromisoformat(raw_submitted_at.replace("Z", "+00:00"))
        except ValueError as e:
            raise MalformedMessageError(f"envelope.submitted_at is invalid: {e}") from e

        try:
            answers = decode_answers(data.get("answers"))
        except MalformedAnswersError as e:
            raise MalformedMessageError(f"envelope.answers is invalid: {e}") from e

        return cls(
            form_id=form_id,
            answers=answers,
            client_ip=_require_str(data, "client_ip"),
            user_agent=_require_str(data, "user_agent"),
            submitted_at=submitted_at,
            submitter_id=submitter_id,
        )


@dataclass(frozen=True)
class SubmissionRecord:
    """
    저장된 제출 1건. 생성 후 불변.
    answers는 저장된 원본 문서 그대로 (해석은 decoded_answers에서).
    """
    envelope_id: str
    form_id: int
    answers: Any
    client_ip: str
    user_agent: str
    submitted_at: datetime
    created_at: Optional[datetime] = None
    submitter_id: Optional[int] = None
    record_id: Optional[int] = None

    @classmethod
    def from_envelope(
        cls,
        envelope_id: str,
        envelope: SubmissionEnvelope,
        created_at: Optional[datetime] = None,
    ) -> "SubmissionRecord":
        return cls(
            envelope_id=envelope_id,
            form_id=envelope.form_id,
            answers=encode_answers(envelope.answers),
            client_ip=envelope.client_ip,
            user_agent=envelope.user_agent,
            submitted_at=envelope.submitted_at,
            created_at=created_at,
            submitter_id=envelope.submitter_id,
        )

    def decoded_answers(self) -> dict[str, AnswerValue]:
        """
        answers 해석 결과.

        Raises:
            MalformedAnswersError: 문서 자체가 해석 불가
        """
        return decode_answers(self.answers)
