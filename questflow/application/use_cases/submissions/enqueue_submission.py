"""
제출 Producer Use Case — 도메인/포트만 사용 (Django/redis 미사용)

요청 처리 흐름 안에서 동기 실행:
published 검증 → envelope 생성 → stream append 1회 → broker id 즉시 반환.
DB 쓰기 없음. 영속화 완료를 기다리지 않는다.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from questflow.application.ports.broker import SubmissionBrokerPort
from questflow.application.ports.unit_of_work import UnitOfWork
from questflow.domain.forms.entities import Form
from questflow.domain.forms.errors import FormNotFoundError, FormNotPublishedError
from questflow.domain.shared.errors import BrokerUnavailableError
from questflow.domain.submissions.answers import validate_answers
from questflow.domain.submissions.entities import SubmissionEnvelope

logger = logging.getLogger(__name__)

# append 일시 장애 재시도 (요청 지연 상한 = attempts * backoff + append 시간)
DEFAULT_APPEND_ATTEMPTS = 3
DEFAULT_APPEND_BACKOFF_SECONDS = 0.2


def enqueue_submission(
    broker: SubmissionBrokerPort,
    form: Form,
    answers: Any,
    client_ip: str,
    user_agent: str,
    submitter_id: Optional[int] = None,
    now: Optional[datetime] = None,
    append_attempts: int = DEFAULT_APPEND_ATTEMPTS,
    append_backoff_seconds: float = DEFAULT_APPEND_BACKOFF_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    제출 1건을 stream에 적재.

    Returns:
        broker가 부여한 envelope id
    Raises:
        FormNotPublishedError: form.status != PUBLISHED
        MalformedSubmissionError: answers 형식 오류
        BrokerUnavailableError: 재시도 후에도 append 실패
    """
    if not form.is_published():
        raise FormNotPublishedError(form.form_id, int(form.status))

    envelope = SubmissionEnvelope(
        form_id=form.form_id,
        answers=validate_answers(answers),
        client_ip=client_ip or "",
        user_agent=user_agent or "",
        submitter_id=submitter_id,
        submitted_at=now or datetime.now(timezone.utc),
    )
    payload = envelope.to_payload()

    attempt = 0
    while True:
        attempt += 1
        try:
            envelope_id = broker.append(payload)
        except BrokerUnavailableError as e:
            if attempt >= append_attempts:
                logger.error(
                    "SUBMISSION_ENQUEUE_FAILED | form_id=%s | attempts=%s | %s",
                    form.form_id, attempt, e,
                )
                raise
            logger.warning(
                "SUBMISSION_ENQUEUE_RETRY | form_id=%s | attempt=%s | %s",
                form.form_id, attempt, e,
            )
            sleep(append_backoff_seconds)
            continue

        logger.info("SUBMISSION_ENQUEUED | form_id=%s | envelope_id=%s", form.form_id, envelope_id)
        return envelope_id


def submit_by_form_key(
    uow: UnitOfWork,
    broker: SubmissionBrokerPort,
    form_key: str,
    answers: Any,
    client_ip: str,
    user_agent: str,
    submitter_id: Optional[int] = None,
    **kwargs: Any,
) -> str:
    """공개 form_key로 form 조회 후 enqueue_submission."""
    with uow:
        form = uow.forms.get_by_key(form_key)
    if form is None:
        raise FormNotFoundError(f"form not found: key={form_key}")
    return enqueue_submission(
        broker,
        form,
        answers,
        client_ip=client_ip,
        user_agent=user_agent,
        submitter_id=submitter_id,
        **kwargs,
    )
