# PATH: questflow/domain/stats/aggregation.py
"""
Aggregation Engine — FormDefinition + 제출 레코드 → 문항별 통계

단일 진실:
- total_submissions: 입력 레코드 수 (answers 해석 성공 여부와 무관)
- 선택형(single_choice / multi_choice / judgment): 정의 순서대로 option별 count, 0으로 초기화
  - multi_choice 레코드는 선택한 option마다 +1
  - 정의에 없는 option id는 무시
- text_input: 비어 있지 않은 답을 레코드 순회 순서대로 나열
  (시간순이 필요하면 호출부에서 정렬된 레코드를 넘긴다)
- answers 해석 불가 레코드는 집계에서만 제외
- 정의에 없는 question id는 무시

반환(고정):
{
  "total_submissions": int,
  "question_stats": [
    {"question_id", "question_type", "title", "option_stats": [{"option_id", "text", "count"}], "text_answers": [str]}
  ]
}
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from questflow.domain.forms.entities import FormDefinition, Question, QuestionType
from questflow.domain.submissions.answers import AnswerValue, ChoiceListAnswer, ScalarAnswer
from questflow.domain.submissions.entities import SubmissionRecord
from questflow.domain.submissions.errors import MalformedAnswersError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptionStat:
    option_id: str
    text: str
    count: int


@dataclass(frozen=True)
class QuestionStat:
    question_id: str
    question_type: QuestionType
    title: str
    option_stats: tuple[OptionStat, ...] = ()
    text_answers: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "question_type": self.question_type.value,
            "title": self.title,
            "option_stats": [
                {"option_id": o.option_id, "text": o.text, "count": o.count}
                for o in self.option_stats
            ],
            "text_answers": list(self.text_answers),
        }


@dataclass(frozen=True)
class FormStats:
    total_submissions: int
    question_stats: tuple[QuestionStat, ...] = field(default_factory=tuple)

    def get(self, question_id: str) -> Optional[QuestionStat]:
        for s in self.question_stats:
            if s.question_id == question_id:
                return s
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_submissions": self.total_submissions,
            "question_stats": [s.to_dict() for s in self.question_stats],
        }


class _QuestionTally:
    """문항 1개의 집계 상태 (aggregate 호출마다 새로 생성)."""

    def __init__(self, question: Question) -> None:
        self.question = question
        self.counts: dict[str, int] = {o.id: 0 for o in question.options}
        self.texts: list[str] = []

    def count_option(self, option_id: str) -> None:
        if option_id in self.counts:
            self.counts[option_id] += 1

    def result(self) -> QuestionStat:
        q = self.question
        if q.is_choice:
            return QuestionStat(
                question_id=q.id,
                question_type=q.type,
                title=q.title,
                option_stats=tuple(
                    OptionStat(option_id=o.id, text=o.text, count=self.counts[o.id])
                    for o in q.options
                ),
            )
        return QuestionStat(
            question_id=q.id,
            question_type=q.type,
            title=q.title,
            text_answers=tuple(self.texts),
        )


def _tally_single(tally: _QuestionTally, answer: AnswerValue) -> None:
    if isinstance(answer, ScalarAnswer):
        tally.count_option(answer.value)


def _tally_multi(tally: _QuestionTally, answer: AnswerValue) -> None:
    if isinstance(answer, ChoiceListAnswer):
        for option_id in answer.values:
            tally.count_option(option_id)


def _tally_text(tally: _QuestionTally, answer: AnswerValue) -> None:
    if isinstance(answer, ScalarAnswer) and answer.value:
        tally.texts.append(answer.value)


_TALLIES: dict[QuestionType, Callable[[_QuestionTally, AnswerValue], None]] = {
    QuestionType.SINGLE_CHOICE: _tally_single,
    QuestionType.JUDGMENT: _tally_single,
    QuestionType.MULTI_CHOICE: _tally_multi,
    QuestionType.TEXT_INPUT: _tally_text,
}

_missing = set(QuestionType) - set(_TALLIES)
if _missing:
    raise RuntimeError(f"aggregation missing question types: {sorted(t.value for t in _missing)}")


def aggregate_submissions(
    definition: FormDefinition,
    records: Iterable[SubmissionRecord],
) -> FormStats:
    tallies = {q.id: _QuestionTally(q) for q in definition.questions}
    total = 0
    skipped = 0

    for record in records:
        total += 1
        try:
            answers = record.decoded_answers()
        except MalformedAnswersError as e:
            skipped += 1
            logger.warning("STATS_SKIP_MALFORMED | envelope_id=%s | %s", record.envelope_id, e)
            continue

        for question_id, answer in answers.items():
            tally = tallies.get(question_id)
            if tally is None:
                continue
            _TALLIES[tally.question.type](tally, answer)

    if skipped:
        logger.info("STATS_AGGREGATED | total=%s skipped=%s", total, skipped)

    return FormStats(
        total_submissions=total,
        question_stats=tuple(tallies[q.id].result() for q in definition.questions),
    )
