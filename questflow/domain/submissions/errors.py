"""
Submission 도메인 오류 — 순수 파이썬
"""
from __future__ import annotations

from questflow.domain.shared.errors import QuestflowError, ValidationError


class MalformedSubmissionError(ValidationError):
    """제출 answers 형식 오류 (producer 검증 단계)."""
    pass


class MalformedAnswersError(QuestflowError):
    """저장된 answers 문서를 해석할 수 없음. 집계/필터에서는 해당 레코드만 건너뜀."""
    pass


class MalformedMessageError(QuestflowError):
    """
    Stream envelope 디코딩 실패 (poison message).
    ACK 하지 않고 남겨 두며, 재전달 한도 초과 시 dead-letter stream으로 이동.
    """
    pass


class NoSubmissionsFoundError(QuestflowError):
    """조건에 맞는 제출이 없음 (export 요청)."""
    pass
