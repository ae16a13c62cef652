"""
제출 Consumer — stream group 워커 1개 (도메인/포트만 사용, Django/redis 미사용)

워커 상태: IDLE → FETCHING → PROCESSING → ACKNOWLEDGING → IDLE (종료 신호 후 STOPPED)

- 수신: 오래 방치된 pending 항목 재할당(claim) 우선, 없으면 새 항목 read (block_ms 대기)
- 수신 오류: error_backoff_seconds 대기 후 재시도 (치명적이지 않음)
- decode 실패: 로그 후 ACK 안 함 (poison, pending 유지 → 재전달)
- persist 일시 장애(TransientInfraError): ACK 안 함, dead-letter 안 함. 배치 후 error_backoff_seconds 대기 (복구될 때까지 재전달)
- persist 기타 예외: 로그 후 ACK 안 함 (재전달로 자동 재시도)
- persist 성공/중복: ACK. ACK가 내구성 경계 (ACK 전 crash → 재전달, insert는 멱등)
- decode 실패 또는 기타 예외로 전달 횟수가 max_deliveries에 도달하면 dead-letter stream 이동 + ACK
- 종료 신호는 배치 사이에서만 확인 (처리 중인 배치의 ACK는 끝까지 수행)
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from questflow.application.ports.broker import StreamEntry, SubmissionBrokerPort
from questflow.application.ports.unit_of_work import UnitOfWork
from questflow.application.use_cases.submissions.persist_submission import persist_submission
from questflow.domain.shared.errors import TransientInfraError
from questflow.domain.submissions.entities import SubmissionEnvelope
from questflow.domain.submissions.errors import MalformedMessageError

logger = logging.getLogger(__name__)


class WorkerState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PROCESSING = "processing"
    ACKNOWLEDGING = "acknowledging"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ConsumerSettings:
    batch_size: int = 10
    # None/0 = 무기한 대기. 기본은 종료 신호 확인을 위해 5초 상한
    block_ms: Optional[int] = 5000
    error_backoff_seconds: float = 2.0
    # 0 이하이면 dead-letter 비활성 (실패 항목은 pending에 무기한 유지)
    max_deliveries: int = 5
    claim_min_idle_ms: int = 60_000
    claim_interval_seconds: float = 30.0


@dataclass
class BatchOutcome:
    fetched: int = 0
    persisted: int = 0
    duplicates: int = 0
    malformed: int = 0
    failed: int = 0
    # failed 중 일시 장애 (pending 유지, dead-letter 대상 아님)
    deferred: int = 0
    dead_lettered: int = 0


class SubmissionConsumer:
    def __init__(
        self,
        broker: SubmissionBrokerPort,
        uow_factory: Callable[[], UnitOfWork],
        consumer_name: str,
        settings: Optional[ConsumerSettings] = None,
        stop_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.broker = broker
        self.consumer_name = consumer_name
        self.settings = settings or ConsumerSettings()
        self.state = WorkerState.IDLE
        self._uow_factory = uow_factory
        self._stop_event = stop_event or threading.Event()
        self._sleep = sleep
        self._clock = clock
        self._last_claim_at: Optional[float] = None

    # ==================================================
    # lifecycle
    # ==================================================

    def prepare(self) -> None:
        """group 보장. 실패는 치명적 (호출부에서 프로세스 종료)."""
        self.broker.ensure_group()
        logger.info("SUBMISSION_GROUP_READY | consumer=%s", self.consumer_name)

    def stop(self) -> None:
        self._stop_event.set()

    def run_forever(self) -> None:
        logger.info("SUBMISSION_CONSUMER_STARTED | consumer=%s", self.consumer_name)
        while not self._stop_event.is_set():
            self.run_once()
        self.state = WorkerState.STOPPED
        logger.info("SUBMISSION_CONSUMER_STOPPED | consumer=%s", self.consumer_name)

    def run_once(self) -> BatchOutcome:
        """배치 1회: fetch → 항목별 process/ack. 예외를 밖으로 던지지 않는다."""
        outcome = BatchOutcome()
        self.state = WorkerState.FETCHING
        try:
            entries = self._fetch()
        except TransientInfraError as e:
            logger.warning(
                "SUBMISSION_FETCH_RETRY | consumer=%s | backoff=%ss | %s",
                self.consumer_name, self.settings.error_backoff_seconds, e,
            )
            self.state = WorkerState.IDLE
            self._sleep(self.settings.error_backoff_seconds)
            return outcome
        except Exception:
            logger.exception(
                "SUBMISSION_FETCH_ERROR | consumer=%s | backoff=%ss",
                self.consumer_name, self.settings.error_backoff_seconds,
            )
            self.state = WorkerState.IDLE
            self._sleep(self.settings.error_backoff_seconds)
            return outcome

        outcome.fetched = len(entries)
        for entry in entries:
            self._handle(entry, outcome)

        self.state = WorkerState.IDLE
        if outcome.deferred:
            logger.warning(
                "SUBMISSION_PERSIST_BACKOFF | consumer=%s | deferred=%s | backoff=%ss",
                self.consumer_name, outcome.deferred, self.settings.error_backoff_seconds,
            )
            self._sleep(self.settings.error_backoff_seconds)
        return outcome

    # ==================================================
    # internals
    # ==================================================

    def _claim_due(self) -> bool:
        now = self._clock()
        if self._last_claim_at is None or now - self._last_claim_at >= self.settings.claim_interval_seconds:
            self._last_claim_at = now
            return True
        return False

    def _fetch(self) -> list[StreamEntry]:
        if self._claim_due():
            claimed = self.broker.claim_stale(
                self.consumer_name,
                self.settings.claim_min_idle_ms,
                self.settings.batch_size,
            )
            if claimed:
                logger.info(
                    "SUBMISSION_CLAIMED | consumer=%s | count=%s",
                    self.consumer_name, len(claimed),
                )
                return claimed
        return self.broker.read_new(
            self.consumer_name,
            self.settings.batch_size,
            self.settings.block_ms,
        )

    def _handle(self, entry: StreamEntry, outcome: BatchOutcome) -> None:
        self.state = WorkerState.PROCESSING
        logger.debug("SUBMISSION_PROCESSING | entry_id=%s | deliveries=%s", entry.entry_id, entry.deliveries)

        try:
            envelope = SubmissionEnvelope.from_payload(entry.payload)
        except MalformedMessageError as e:
            outcome.malformed += 1
            logger.error(
                "SUBMISSION_MALFORMED | entry_id=%s | deliveries=%s | %s",
                entry.entry_id, entry.deliveries, e,
            )
            self._dead_letter_if_exhausted(entry, f"malformed: {e}", outcome)
            return

        try:
            created = persist_submission(self._uow_factory(), entry.entry_id, envelope)
        except TransientInfraError as e:
            outcome.failed += 1
            outcome.deferred += 1
            logger.warning(
                "SUBMISSION_PERSIST_DEFERRED | entry_id=%s | deliveries=%s | %s",
                entry.entry_id, entry.deliveries, e,
            )
            return
        except Exception as e:
            outcome.failed += 1
            logger.exception(
                "SUBMISSION_PERSIST_ERROR | entry_id=%s | deliveries=%s",
                entry.entry_id, entry.deliveries,
            )
            self._dead_letter_if_exhausted(entry, f"persist_error: {e}", outcome)
            return

        if created:
            outcome.persisted += 1
        else:
            outcome.duplicates += 1

        self.state = WorkerState.ACKNOWLEDGING
        try:
            self.broker.ack(entry.entry_id)
        except Exception as e:
            # pending 유지 → 재전달 시 insert no-op 후 다시 ACK
            logger.warning("SUBMISSION_ACK_FAILED | entry_id=%s | %s", entry.entry_id, e)
            return
        logger.info("SUBMISSION_ACKED | entry_id=%s | created=%s", entry.entry_id, created)

    def _dead_letter_if_exhausted(self, entry: StreamEntry, reason: str, outcome: BatchOutcome) -> None:
        max_deliveries = self.settings.max_deliveries
        if max_deliveries <= 0 or entry.deliveries < max_deliveries:
            return
        self.state = WorkerState.ACKNOWLEDGING
        try:
            dead_id = self.broker.dead_letter(entry, reason)
        except Exception as e:
            logger.warning("SUBMISSION_DEAD_LETTER_FAILED | entry_id=%s | %s", entry.entry_id, e)
            return
        outcome.dead_lettered += 1
        logger.error(
            "SUBMISSION_DEAD_LETTERED | entry_id=%s | dead_id=%s | deliveries=%s | reason=%s",
            entry.entry_id, dead_id, entry.deliveries, reason,
        )
