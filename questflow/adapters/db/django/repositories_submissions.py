"""
Submission Repository — Django ORM 구현 (메서드 내부에서만 apps.domains.submissions import)

insert는 envelope_id 유니크 기준 멱등: 같은 envelope이 다시 와도 행은 1개.
DB 연결 계열 오류는 PersistenceUnavailableError로 변환 (consumer가 ack 보류 → 재전달).
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from django.db import IntegrityError, InterfaceError, OperationalError, transaction

from questflow.adapters.db.django.predicate_query import predicate_to_filters
from questflow.domain.filters.predicate import Predicate
from questflow.domain.shared.errors import PersistenceUnavailableError
from questflow.domain.submissions.answers import ChoiceListAnswer, ScalarAnswer, decode_answers
from questflow.domain.submissions.entities import SubmissionRecord
from questflow.domain.submissions.errors import MalformedAnswersError

logger = logging.getLogger(__name__)

_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError)


def _model_to_entity(m) -> Optional[SubmissionRecord]:
    if m is None:
        return None
    return SubmissionRecord(
        envelope_id=m.envelope_id,
        form_id=int(m.form_id),
        answers=m.answers,
        client_ip=m.client_ip or "",
        user_agent=m.user_agent or "",
        submitted_at=m.submitted_at,
        created_at=m.created_at,
        submitter_id=m.submitter_id,
        record_id=m.id,
    )


def build_answer_index_rows(submission, answers_document: Any) -> list:
    """
    answers 문서 → SubmissionAnswer 색인 행 (저장 전 인스턴스).
    해석 불가 문서는 색인 없음 (모든 문항 미응답과 동일하게 필터링됨).
    색인 컬럼보다 긴 문항 id는 건너뜀 (form에 없는 문항, 필터 대상도 아님).
    """
    from apps.domains.submissions.models import SubmissionAnswer
    from apps.domains.submissions.models.submission_answer import QUESTION_ID_MAX_LENGTH

    try:
        answers = decode_answers(answers_document)
    except MalformedAnswersError:
        logger.warning("SUBMISSION_INDEX_SKIPPED | envelope=%s", submission.envelope_id)
        return []

    rows = []
    for question_id, answer in answers.items():
        if len(question_id) > QUESTION_ID_MAX_LENGTH:
            logger.warning(
                "SUBMISSION_INDEX_QUESTION_SKIPPED | envelope=%s | question_len=%s",
                submission.envelope_id, len(question_id),
            )
            continue
        if isinstance(answer, ScalarAnswer):
            rows.append(
                SubmissionAnswer(
                    submission=submission,
                    question_id=question_id,
                    kind=SubmissionAnswer.Kind.SCALAR,
                    value=answer.value,
                )
            )
        elif isinstance(answer, ChoiceListAnswer):
            rows.append(
                SubmissionAnswer(
                    submission=submission,
                    question_id=question_id,
                    kind=SubmissionAnswer.Kind.LIST,
                    size=len(answer.values),
                )
            )
            rows.extend(
                SubmissionAnswer(
                    submission=submission,
                    question_id=question_id,
                    kind=SubmissionAnswer.Kind.ITEM,
                    value=value,
                )
                for value in answer.values
            )
    return rows


class DjangoSubmissionRepository:
    """SubmissionRepository 구현."""

    def insert(self, record: SubmissionRecord) -> bool:
        from django.utils import timezone
        from apps.domains.submissions.models import Submission, SubmissionAnswer

        try:
            with transaction.atomic():
                if Submission.objects.filter(envelope_id=record.envelope_id).exists():
                    return False
                submission = Submission.objects.create(
                    envelope_id=record.envelope_id,
                    form_id=record.form_id,
                    submitter_id=record.submitter_id,
                    answers=record.answers,
                    client_ip=record.client_ip or "",
                    user_agent=record.user_agent or "",
                    submitted_at=record.submitted_at,
                    created_at=record.created_at or timezone.now(),
                )
                SubmissionAnswer.objects.bulk_create(
                    build_answer_index_rows(submission, record.answers)
                )
        except IntegrityError:
            # 동시 consumer가 같은 envelope을 먼저 저장
            if Submission.objects.filter(envelope_id=record.envelope_id).exists():
                return False
            raise
        except _UNAVAILABLE_ERRORS as e:
            raise PersistenceUnavailableError(
                f"submission insert failed: envelope={record.envelope_id}: {e}", cause=e
            ) from e
        return True

    def find_by_form(self, form_id: int) -> list[SubmissionRecord]:
        from apps.domains.submissions.models import Submission

        try:
            rows = list(Submission.objects.filter(form_id=form_id).order_by("created_at", "id"))
        except _UNAVAILABLE_ERRORS as e:
            raise PersistenceUnavailableError(f"submission query failed: form={form_id}: {e}", cause=e) from e
        return [_model_to_entity(m) for m in rows]

    def find_matching(self, predicate: Predicate) -> list[SubmissionRecord]:
        from apps.domains.submissions.models import Submission

        try:
            rows = list(
                Submission.objects.filter(*predicate_to_filters(predicate)).order_by("created_at", "id")
            )
        except _UNAVAILABLE_ERRORS as e:
            raise PersistenceUnavailableError(
                f"submission query failed: form={predicate.form_id}: {e}", cause=e
            ) from e
        return [_model_to_entity(m) for m in rows]

