"""
Form 조회 Use Case — 작성자 확인 → 필터 컴파일 → 저장소 조회 → (통계 집계)

actor_id는 인증 계층이 검증해 넘긴 값 (인증 자체는 범위 밖).
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from questflow.application.ports.unit_of_work import UnitOfWork
from questflow.domain.filters.predicate import FilterCondition, compile_filters
from questflow.domain.forms.entities import Form, FormDefinition
from questflow.domain.forms.errors import FormAccessDeniedError, FormNotFoundError
from questflow.domain.stats.aggregation import FormStats, aggregate_submissions
from questflow.domain.submissions.entities import SubmissionRecord
from questflow.domain.submissions.errors import NoSubmissionsFoundError


def _get_owned_form(uow: UnitOfWork, form_id: int, actor_id: int) -> Form:
    form = uow.forms.get_by_id(form_id)
    if form is None:
        raise FormNotFoundError(f"form not found: id={form_id}")
    if not form.is_owned_by(actor_id):
        raise FormAccessDeniedError(f"access denied: form={form_id} actor={actor_id}")
    return form


def _find_records(
    uow: UnitOfWork,
    form: Form,
    definition: FormDefinition,
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    conditions: Sequence[FilterCondition],
) -> list[SubmissionRecord]:
    predicate = compile_filters(
        form.form_id,
        start_time=start_time,
        end_time=end_time,
        conditions=conditions,
        definition=definition,
    )
    if predicate.is_identity:
        return uow.submissions.find_by_form(form.form_id)
    return uow.submissions.find_matching(predicate)


def get_form_statistics(
    uow: UnitOfWork,
    form_id: int,
    actor_id: int,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    conditions: Sequence[FilterCondition] = (),
) -> FormStats:
    """
    문항별 통계. 조건이 없으면 form의 전체 제출 기준.

    Raises:
        FormNotFoundError / FormAccessDeniedError / InvalidFilterError / InvalidFormDefinitionError
    """
    with uow:
        form = _get_owned_form(uow, form_id, actor_id)
        definition = form.definition()
        records = _find_records(uow, form, definition, start_time, end_time, conditions)
    return aggregate_submissions(definition, records)


def find_submissions_for_export(
    uow: UnitOfWork,
    form_id: int,
    actor_id: int,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    conditions: Sequence[FilterCondition] = (),
) -> tuple[Form, list[SubmissionRecord]]:
    """
    export 렌더러 입력 (form + created_at 오름차순 레코드).

    Raises:
        NoSubmissionsFoundError: 조건에 맞는 제출 없음
    """
    with uow:
        form = _get_owned_form(uow, form_id, actor_id)
        records = _find_records(uow, form, form.definition(), start_time, end_time, conditions)
    if not records:
        raise NoSubmissionsFoundError(f"no submissions found for form={form_id}")
    return form, records
