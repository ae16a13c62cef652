"""
Predicate → Django ORM 필터 식 (store-native 푸시다운)

SubmissionAnswer 색인 행에 대한 EXISTS 서브쿼리로 번역.
메모리 평가(Predicate.matches)와 모든 입력에서 같은 결과여야 한다.

- ScalarEquals       EXISTS(scalar, value=v)
- ScalarNotEquals    NOT EXISTS(scalar, value=v)          (미응답/리스트 답도 참)
- ChoiceContainsAny  EXISTS(item, value IN values)
- ChoiceContainsNone NOT EXISTS(item, value IN values)    (미응답/문자열 답도 참)
- ChoiceSetEquals    EXISTS(list, size=len(values)) AND 각 v에 대해 EXISTS(item, value=v)
"""
from __future__ import annotations

from typing import Any, Callable

from django.db.models import Exists, OuterRef, Q

from questflow.domain.filters.predicate import (
    AnswerClause,
    ChoiceContainsAny,
    ChoiceContainsNone,
    ChoiceSetEquals,
    Predicate,
    ScalarEquals,
    ScalarNotEquals,
)


def _answer_rows(question_id: str, kind: str, **lookups: Any):
    from apps.domains.submissions.models import SubmissionAnswer

    return SubmissionAnswer.objects.filter(
        submission=OuterRef("pk"),
        question_id=question_id,
        kind=kind,
        **lookups,
    )


def _scalar_equals(clause: ScalarEquals):
    from apps.domains.submissions.models import SubmissionAnswer

    return Exists(_answer_rows(clause.question_id, SubmissionAnswer.Kind.SCALAR, value=clause.value))


def _scalar_not_equals(clause: ScalarNotEquals):
    from apps.domains.submissions.models import SubmissionAnswer

    return ~Exists(_answer_rows(clause.question_id, SubmissionAnswer.Kind.SCALAR, value=clause.value))


def _contains_any(clause: ChoiceContainsAny):
    from apps.domains.submissions.models import SubmissionAnswer

    return Exists(_answer_rows(clause.question_id, SubmissionAnswer.Kind.ITEM, value__in=list(clause.values)))


def _contains_none(clause: ChoiceContainsNone):
    from apps.domains.submissions.models import SubmissionAnswer

    return ~Exists(_answer_rows(clause.question_id, SubmissionAnswer.Kind.ITEM, value__in=list(clause.values)))


def _set_equals(clause: ChoiceSetEquals):
    from apps.domains.submissions.models import SubmissionAnswer

    expr = Q(Exists(_answer_rows(clause.question_id, SubmissionAnswer.Kind.LIST, size=len(clause.values))))
    for value in dict.fromkeys(clause.values):
        expr &= Q(Exists(_answer_rows(clause.question_id, SubmissionAnswer.Kind.ITEM, value=value)))
    return expr


_TRANSLATORS: dict[type, Callable[[Any], Any]] = {
    ScalarEquals: _scalar_equals,
    ScalarNotEquals: _scalar_not_equals,
    ChoiceContainsAny: _contains_any,
    ChoiceContainsNone: _contains_none,
    ChoiceSetEquals: _set_equals,
}


def clause_to_expression(clause: AnswerClause):
    return _TRANSLATORS[type(clause)](clause)


def predicate_to_filters(predicate: Predicate) -> list:
    """Submission.objects.filter(*predicate_to_filters(p)) 형태로 사용."""
    filters: list = [Q(form_id=predicate.form_id)]
    if predicate.start_time is not None:
        filters.append(Q(created_at__gte=predicate.start_time))
    if predicate.end_time is not None:
        filters.append(Q(created_at__lte=predicate.end_time))
    filters.extend(clause_to_expression(c) for c in predicate.clauses)
    return filters
