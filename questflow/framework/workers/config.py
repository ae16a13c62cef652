# PATH: questflow/framework/workers/config.py
"""제출 consumer 워커 설정 — 환경변수만 사용 (Django 불필요)"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from questflow.application.use_cases.submissions.submission_consumer import ConsumerSettings

T = TypeVar("T")

DEFAULT_STREAM_KEY = "questflow:submissions"
DEFAULT_GROUP_NAME = "submission-persisters"
DEFAULT_CONSUMER_PREFIX = "submission-worker"


def _parse(name: str, default: str, cast: Callable[[str], T]) -> T:
    raw = os.environ.get(name, default).strip()
    try:
        return cast(raw)
    except ValueError:
        raise RuntimeError(f"Invalid env {name}={raw!r}") from None


def _positive(name: str, default: str, cast: Callable[[str], T]) -> T:
    value = _parse(name, default, cast)
    if value <= 0:
        raise RuntimeError(f"Invalid env {name}={value!r} (must be > 0)")
    return value


@dataclass(frozen=True)
class WorkerConfig:
    SUBMISSION_STREAM_KEY: str
    SUBMISSION_GROUP_NAME: str
    SUBMISSION_DEAD_LETTER_KEY: Optional[str]
    SUBMISSION_BATCH_SIZE: int
    # 0 = 무기한 대기 (종료 신호는 다음 항목 도착 후 확인)
    SUBMISSION_BLOCK_MS: int
    SUBMISSION_ERROR_BACKOFF_SECONDS: float
    # 0 이하 = dead-letter 비활성
    SUBMISSION_MAX_DELIVERIES: int
    SUBMISSION_CLAIM_MIN_IDLE_MS: int
    SUBMISSION_CLAIM_INTERVAL_SECONDS: float
    SUBMISSION_WORKER_COUNT: int
    SUBMISSION_CONSUMER_PREFIX: str

    def consumer_settings(self) -> ConsumerSettings:
        return ConsumerSettings(
            batch_size=self.SUBMISSION_BATCH_SIZE,
            block_ms=self.SUBMISSION_BLOCK_MS or None,
            error_backoff_seconds=self.SUBMISSION_ERROR_BACKOFF_SECONDS,
            max_deliveries=self.SUBMISSION_MAX_DELIVERIES,
            claim_min_idle_ms=self.SUBMISSION_CLAIM_MIN_IDLE_MS,
            claim_interval_seconds=self.SUBMISSION_CLAIM_INTERVAL_SECONDS,
        )


def load_config() -> WorkerConfig:
    """
    Raises:
        RuntimeError: 숫자 env 해석 불가 / 범위 밖 (변수 이름 포함)
    """
    block_ms = _parse("SUBMISSION_BLOCK_MS", "5000", int)
    if block_ms < 0:
        raise RuntimeError(f"Invalid env SUBMISSION_BLOCK_MS={block_ms!r} (must be >= 0)")
    backoff = _parse("SUBMISSION_ERROR_BACKOFF_SECONDS", "2", float)
    if backoff < 0:
        raise RuntimeError(f"Invalid env SUBMISSION_ERROR_BACKOFF_SECONDS={backoff!r} (must be >= 0)")

    return WorkerConfig(
        SUBMISSION_STREAM_KEY=os.environ.get("SUBMISSION_STREAM_KEY", DEFAULT_STREAM_KEY).strip() or DEFAULT_STREAM_KEY,
        SUBMISSION_GROUP_NAME=os.environ.get("SUBMISSION_GROUP_NAME", DEFAULT_GROUP_NAME).strip() or DEFAULT_GROUP_NAME,
        SUBMISSION_DEAD_LETTER_KEY=os.environ.get("SUBMISSION_DEAD_LETTER_KEY", "").strip() or None,
        SUBMISSION_BATCH_SIZE=_positive("SUBMISSION_BATCH_SIZE", "10", int),
        SUBMISSION_BLOCK_MS=block_ms,
        SUBMISSION_ERROR_BACKOFF_SECONDS=backoff,
        SUBMISSION_MAX_DELIVERIES=_parse("SUBMISSION_MAX_DELIVERIES", "5", int),
        SUBMISSION_CLAIM_MIN_IDLE_MS=_positive("SUBMISSION_CLAIM_MIN_IDLE_MS", "60000", int),
        SUBMISSION_CLAIM_INTERVAL_SECONDS=_positive("SUBMISSION_CLAIM_INTERVAL_SECONDS", "30", float),
        SUBMISSION_WORKER_COUNT=_positive("SUBMISSION_WORKER_COUNT", "1", int),
        SUBMISSION_CONSUMER_PREFIX=(
            os.environ.get("SUBMISSION_CONSUMER_PREFIX", DEFAULT_CONSUMER_PREFIX).strip() or DEFAULT_CONSUMER_PREFIX
        ),
    )
