"""
제출 영속화 Use Case — envelope → SubmissionRecord insert (멱등)

at-least-once 전달이므로 같은 envelope_id가 두 번 올 수 있다.
envelope_id 유니크 제약으로 두 번째 insert는 no-op (중복 행 없음).
"""
from __future__ import annotations

import logging

from questflow.application.ports.unit_of_work import UnitOfWork
from questflow.domain.submissions.entities import SubmissionEnvelope, SubmissionRecord

logger = logging.getLogger(__name__)


def persist_submission(uow: UnitOfWork, envelope_id: str, envelope: SubmissionEnvelope) -> bool:
    """
    Returns:
        True 새로 저장, False 이미 저장된 envelope (중복 전달)
    Raises:
        PersistenceUnavailableError: 저장소 일시 장애 (호출부는 ACK 하지 않음)
    """
    record = SubmissionRecord.from_envelope(envelope_id, envelope)
    with uow:
        created = uow.submissions.insert(record)
    if not created:
        logger.info("SUBMISSION_IDEMPOTENT_SKIP | envelope_id=%s", envelope_id)
    return created
