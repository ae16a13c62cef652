"""
Filter Compiler — 필터 조건 목록 + 기간 → Predicate AST

Predicate는 절(clause)들의 AND.
- 메모리 평가: Predicate.matches(record)
- 저장소 푸시다운: adapters.db.django.predicate_query 가 같은 AST를 ORM 식으로 번역

문항 유형별 의미
- single_choice / judgment / text_input (문자열 답)
  - equals: 답 == values[0]
  - not_equals: 답 없음 OR 답 != values[0]  (미응답은 "같지 않음"으로 취급)
- multi_choice (문자열 리스트 답)
  - contains: 답 ∩ values ≠ ∅
  - not_contains: 답 ∩ values = ∅
  - equals: len(답) == len(values) AND values의 모든 원소가 답에 포함 (순서 무시)
형식이 다른 답(리스트 문항에 문자열 등)은 "답 없음"과 같다.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional, Sequence, Union

from questflow.domain.filters.errors import InvalidFilterError
from questflow.domain.forms.entities import FormDefinition, QuestionType
from questflow.domain.submissions.answers import AnswerValue, ChoiceListAnswer, ScalarAnswer
from questflow.domain.submissions.entities import SubmissionRecord
from questflow.domain.submissions.errors import MalformedAnswersError


class FilterOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"


@dataclass(frozen=True)
class FilterCondition:
    question_id: str
    question_type: QuestionType
    operator: FilterOperator
    values: tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Mapping) -> "FilterCondition":
        """{"questionId"|"question_id", "questionType"|"question_type", "operator", "value"|"values"}"""
        try:
            question_type = QuestionType(data.get("question_type") or data.get("questionType"))
            operator = FilterOperator(data.get("operator"))
        except ValueError as e:
            raise InvalidFilterError(str(e)) from e
        values = data.get("values", data.get("value")) or ()
        if isinstance(values, str):
            values = (values,)
        return cls(
            question_id=str(data.get("question_id") or data.get("questionId") or ""),
            question_type=question_type,
            operator=operator,
            values=tuple(str(v) for v in values),
        )


# ==================================================
# Clauses (AST 노드)
# ==================================================

@dataclass(frozen=True)
class ScalarEquals:
    question_id: str
    value: str


@dataclass(frozen=True)
class ScalarNotEquals:
    question_id: str
    value: str


@dataclass(frozen=True)
class ChoiceContainsAny:
    question_id: str
    values: tuple[str, ...]


@dataclass(frozen=True)
class ChoiceContainsNone:
    question_id: str
    values: tuple[str, ...]


@dataclass(frozen=True)
class ChoiceSetEquals:
    question_id: str
    values: tuple[str, ...]


AnswerClause = Union[ScalarEquals, ScalarNotEquals, ChoiceContainsAny, ChoiceContainsNone, ChoiceSetEquals]


def _scalar(answer: Optional[AnswerValue]) -> Optional[str]:
    return answer.value if isinstance(answer, ScalarAnswer) else None


def _choices(answer: Optional[AnswerValue]) -> Optional[tuple[str, ...]]:
    return answer.values if isinstance(answer, ChoiceListAnswer) else None


def _eval_scalar_equals(clause: ScalarEquals, answer: Optional[AnswerValue]) -> bool:
    return _scalar(answer) == clause.value


def _eval_scalar_not_equals(clause: ScalarNotEquals, answer: Optional[AnswerValue]) -> bool:
    return _scalar(answer) != clause.value


def _eval_contains_any(clause: ChoiceContainsAny, answer: Optional[AnswerValue]) -> bool:
    selected = _choices(answer)
    if selected is None:
        return False
    return any(v in selected for v in clause.values)


def _eval_contains_none(clause: ChoiceContainsNone, answer: Optional[AnswerValue]) -> bool:
    selected = _choices(answer)
    if selected is None:
        return True
    return not any(v in selected for v in clause.values)


def _eval_set_equals(clause: ChoiceSetEquals, answer: Optional[AnswerValue]) -> bool:
    selected = _choices(answer)
    if selected is None:
        return False
    # 길이 + 포함 검사 (중복 원소를 구분하는 multiset 비교가 아님)
    return len(selected) == len(clause.values) and all(v in selected for v in clause.values)


_CLAUSE_EVALUATORS: dict[type, Callable] = {
    ScalarEquals: _eval_scalar_equals,
    ScalarNotEquals: _eval_scalar_not_equals,
    ChoiceContainsAny: _eval_contains_any,
    ChoiceContainsNone: _eval_contains_none,
    ChoiceSetEquals: _eval_set_equals,
}


def evaluate_clause(clause: AnswerClause, answers: Mapping[str, AnswerValue]) -> bool:
    return _CLAUSE_EVALUATORS[type(clause)](clause, answers.get(clause.question_id))


@dataclass(frozen=True)
class Predicate:
    """form_id 일치 AND created_at ∈ [start, end] AND 모든 절."""
    form_id: int
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    clauses: tuple[AnswerClause, ...] = ()

    @property
    def is_identity(self) -> bool:
        """form 일치 외 조건이 없는지."""
        return self.start_time is None and self.end_time is None and not self.clauses

    def matches(self, record: SubmissionRecord) -> bool:
        if record.form_id != self.form_id:
            return False
        if self.start_time is not None and (record.created_at is None or record.created_at < self.start_time):
            return False
        if self.end_time is not None and (record.created_at is None or record.created_at > self.end_time):
            return False
        if not self.clauses:
            return True
        try:
            answers = record.decoded_answers()
        except MalformedAnswersError:
            # 해석 불가 문서는 모든 문항 미응답과 동일
            answers = {}
        return all(evaluate_clause(c, answers) for c in self.clauses)

    def filter(self, records: Iterable[SubmissionRecord]) -> list[SubmissionRecord]:
        return [r for r in records if self.matches(r)]


# ==================================================
# Compile
# ==================================================

def _compile_scalar(cond: FilterCondition) -> AnswerClause:
    value = cond.values[0]
    if cond.operator == FilterOperator.EQUALS:
        return ScalarEquals(cond.question_id, value)
    if cond.operator == FilterOperator.NOT_EQUALS:
        return ScalarNotEquals(cond.question_id, value)
    raise InvalidFilterError(
        f"operator {cond.operator.value} is not applicable to {cond.question_type.value} ({cond.question_id})"
    )


def _compile_multi(cond: FilterCondition) -> AnswerClause:
    if cond.operator == FilterOperator.CONTAINS:
        return ChoiceContainsAny(cond.question_id, cond.values)
    if cond.operator == FilterOperator.NOT_CONTAINS:
        return ChoiceContainsNone(cond.question_id, cond.values)
    if cond.operator == FilterOperator.EQUALS:
        return ChoiceSetEquals(cond.question_id, cond.values)
    raise InvalidFilterError(
        f"operator {cond.operator.value} is not applicable to multi_choice ({cond.question_id})"
    )


_COMPILERS: dict[QuestionType, Callable[[FilterCondition], AnswerClause]] = {
    QuestionType.SINGLE_CHOICE: _compile_scalar,
    QuestionType.JUDGMENT: _compile_scalar,
    QuestionType.TEXT_INPUT: _compile_scalar,
    QuestionType.MULTI_CHOICE: _compile_multi,
}

# 새 QuestionType 추가 시 컴파일러 누락은 import 시점에 실패
_missing = set(QuestionType) - set(_COMPILERS)
if _missing:
    raise RuntimeError(f"filter compiler missing question types: {sorted(t.value for t in _missing)}")


def compile_filters(
    form_id: int,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    conditions: Sequence[FilterCondition] = (),
    definition: Optional[FormDefinition] = None,
) -> Predicate:
    """
    필터 조건 → Predicate.

    definition이 주어지면 정의에 없는 question_id 조건은 무시한다 (오류 아님).

    Raises:
        InvalidFilterError: values 비어 있음 / 유형에 맞지 않는 연산자
    """
    clauses: list[AnswerClause] = []
    for cond in conditions:
        if definition is not None and cond.question_id not in definition:
            continue
        if not cond.values:
            raise InvalidFilterError(f"condition on {cond.question_id} has no values")
        clauses.append(_COMPILERS[cond.question_type](cond))
    return Predicate(
        form_id=form_id,
        start_time=start_time,
        end_time=end_time,
        clauses=tuple(clauses),
    )
