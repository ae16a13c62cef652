"""
Submission Stream Worker — Hexagonal 프레임워크 계층 (thin)

- Use Case + Adapter만 호출.
- consumer group 보장(1회, 실패 시 종료) → N개 스레드가 각자 SubmissionConsumer 실행.
- SIGTERM/SIGINT → 공유 stop event set → 각 스레드는 현재 배치의 ACK까지 끝내고 종료.
- 스레드마다 Django DB 연결을 따로 쓰고 종료 시 닫는다. redis 클라이언트는 공유.
- HTTP 요청 주기가 없으므로 항목마다 close_old_connections() (DB 재시작 후 끊긴 연결 폐기 → 재연결).
"""
from __future__ import annotations

import logging
import os
import signal
import sys
import threading
from typing import Callable, Optional

import redis
from django.db import close_old_connections

from questflow.adapters.broker.redis_streams.submission_stream import RedisSubmissionStream
from questflow.adapters.db.django.uow import DjangoUnitOfWork
from questflow.application.ports.unit_of_work import UnitOfWork
from questflow.application.use_cases.submissions.submission_consumer import SubmissionConsumer
from questflow.domain.shared.ids import generate_consumer_name
from questflow.framework.workers.config import WorkerConfig, load_config

logger = logging.getLogger("questflow.submission_worker")


def fresh_django_uow() -> DjangoUnitOfWork:
    """오류가 난 연결이나 CONN_MAX_AGE 지난 연결을 닫고 새 UoW."""
    close_old_connections()
    return DjangoUnitOfWork()


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def _handle_signal(sig, frame) -> None:
        logger.info("Received signal %s, graceful shutdown (finishing current batch)", sig)
        stop_event.set()

    signal.signal(signal.SIGTERM, _handle_signal)
    signal.signal(signal.SIGINT, _handle_signal)


def _run_consumer_thread(consumer: SubmissionConsumer) -> None:
    try:
        consumer.run_forever()
    except Exception:
        logger.exception("SUBMISSION_CONSUMER_CRASHED | consumer=%s", consumer.consumer_name)
    finally:
        from django.db import connection
        connection.close()


def run_submission_worker_pool(
    config: Optional[WorkerConfig] = None,
    worker_count: Optional[int] = None,
    client: Optional[redis.Redis] = None,
    uow_factory: Callable[[], UnitOfWork] = fresh_django_uow,
    stop_event: Optional[threading.Event] = None,
    install_signals: bool = True,
) -> int:
    """메인 루프. 0 정상 종료, 1 group 초기화 실패."""
    config = config or load_config()
    worker_count = worker_count or config.SUBMISSION_WORKER_COUNT
    stop_event = stop_event or threading.Event()

    if client is None:
        from libs.redis import create_redis_client
        client = create_redis_client()

    broker = RedisSubmissionStream(
        client,
        stream_key=config.SUBMISSION_STREAM_KEY,
        group_name=config.SUBMISSION_GROUP_NAME,
        dead_letter_key=config.SUBMISSION_DEAD_LETTER_KEY,
    )
    settings = config.consumer_settings()

    consumers = [
        SubmissionConsumer(
            broker,
            uow_factory,
            consumer_name=generate_consumer_name(config.SUBMISSION_CONSUMER_PREFIX, index),
            settings=settings,
            stop_event=stop_event,
        )
        for index in range(worker_count)
    ]

    try:
        consumers[0].prepare()
    except Exception:
        logger.exception(
            "SUBMISSION_GROUP_INIT_FAILED | stream=%s | group=%s",
            config.SUBMISSION_STREAM_KEY, config.SUBMISSION_GROUP_NAME,
        )
        return 1

    if install_signals:
        _install_signal_handlers(stop_event)

    logger.info(
        "SUBMISSION_WORKER_POOL_STARTED | stream=%s | group=%s | workers=%s",
        config.SUBMISSION_STREAM_KEY, config.SUBMISSION_GROUP_NAME, worker_count,
    )

    threads = [
        threading.Thread(
            target=_run_consumer_thread,
            args=(consumer,),
            name=consumer.consumer_name,
            daemon=True,
        )
        for consumer in consumers
    ]
    for t in threads:
        t.start()

    # join(timeout) 반복: 메인 스레드가 시그널을 받을 수 있도록
    while any(t.is_alive() for t in threads):
        for t in threads:
            t.join(timeout=1.0)

    logger.info("SUBMISSION_WORKER_POOL_STOPPED | workers=%s", worker_count)
    return 0


def main() -> int:
    import django

    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "apps.api.config.settings.worker")
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [SUBMISSION-WORKER] %(levelname)s %(threadName)s %(message)s",
    )
    django.setup()
    return run_submission_worker_pool()


if __name__ == "__main__":
    sys.exit(main())
