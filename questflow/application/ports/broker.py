"""
Broker 포트 — 제출 Stream append/read/ack/dead-letter (redis 미사용)
"""
from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Protocol


@dataclass(frozen=True)
class StreamEntry:
    """
    stream 항목 1건.
    payload가 None이면 payload 필드 없음/삭제된 항목 (decode 단계에서 poison 처리).
    deliveries: group 내 전달 횟수 (최초 전달 = 1).
    """
    entry_id: str
    payload: Optional[Any]
    deliveries: int = 1


class SubmissionBrokerPort(Protocol):
    """제출 envelope 로그. ACK 전 항목은 group 내 두 워커에 동시에 전달되지 않는다."""

    @abstractmethod
    def append(self, payload: str) -> str:
        """payload 1건 append → broker가 부여한 id. 장애 시 BrokerUnavailableError."""
        ...

    @abstractmethod
    def ensure_group(self) -> None:
        """consumer group 생성 (시작 위치 "0", 이미 있으면 성공)."""
        ...

    @abstractmethod
    def read_new(self, consumer: str, count: int, block_ms: Optional[int]) -> list[StreamEntry]:
        """아직 group에 전달되지 않은 항목 최대 count건. block_ms=0이면 무기한 대기."""
        ...

    @abstractmethod
    def claim_stale(self, consumer: str, min_idle_ms: int, count: int) -> list[StreamEntry]:
        """min_idle_ms 이상 ACK 없이 남은 항목을 consumer 소유로 재할당 (delivery count 증가)."""
        ...

    @abstractmethod
    def ack(self, entry_id: str) -> None:
        """group pending 목록에서 제거."""
        ...

    @abstractmethod
    def dead_letter(self, entry: StreamEntry, reason: str) -> str:
        """dead-letter stream으로 복사 후 원래 stream에서 ACK. dead-letter 항목 id 반환."""
        ...
