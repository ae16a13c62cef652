"""
도메인 공통 오류 — 순수 파이썬

- ValidationError: 호출자에게 동기적으로 반환, 재시도 없음
- TransientInfraError: 브로커/DB 일시 장애, 발생 지점에서 고정 백오프 재시도
"""
from __future__ import annotations

from typing import Optional


class QuestflowError(Exception):
    """questflow 최상위 오류."""
    pass


class ValidationError(QuestflowError):
    """요청 자체가 받아들일 수 없는 상태 (재시도 무의미)."""
    pass


class TransientInfraError(QuestflowError):
    """브로커/저장소 일시 불가. 워커는 잡고 백오프 후 재시도."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class BrokerUnavailableError(TransientInfraError):
    """Redis Stream 접근 불가 (연결 끊김/타임아웃)."""
    pass


class PersistenceUnavailableError(TransientInfraError):
    """DB 접근 불가 (연결 끊김/락 타임아웃)."""
    pass
