from datetime import timedelta

import pytest

from questflow.application.use_cases.forms.form_statistics import (
    find_submissions_for_export,
    get_form_statistics,
)
from questflow.domain.filters.errors import InvalidFilterError
from questflow.domain.forms.errors import FormAccessDeniedError, FormNotFoundError
from questflow.domain.submissions.errors import NoSubmissionsFoundError
from tests.fakes import BASE_TIME, make_record
from tests.predicate_cases import cond


@pytest.fixture
def seeded(submissions):
    documents = [
        {"q1": ["a", "b"], "q2": "x", "q4": "첫"},
        {"q1": ["b"], "q2": "y"},
        {"q1": [], "q4": "셋"},
    ]
    for i, answers in enumerate(documents):
        submissions.insert(make_record(f"e{i}", answers, created_at=BASE_TIME + timedelta(hours=i)))
    submissions.insert(make_record("other", {"q1": ["c"]}, form_id=2, created_at=BASE_TIME))
    return submissions


def _counts(stats, question_id):
    return {o.option_id: o.count for o in stats.get(question_id).option_stats}


class TestGetFormStatistics:
    def test_all_submissions(self, uow, seeded):
        stats = get_form_statistics(uow, form_id=1, actor_id=100)
        assert stats.total_submissions == 3
        assert _counts(stats, "q1") == {"a": 1, "b": 2, "c": 0}
        assert stats.get("q4").text_answers == ("첫", "셋")

    def test_filtered_subset(self, uow, seeded):
        stats = get_form_statistics(
            uow, form_id=1, actor_id=100, conditions=[cond("q1", "multi_choice", "contains", "b")]
        )
        assert stats.total_submissions == 2
        assert _counts(stats, "q2") == {"x": 1, "y": 1}

    def test_time_range(self, uow, seeded):
        stats = get_form_statistics(uow, form_id=1, actor_id=100, start_time=BASE_TIME + timedelta(hours=1))
        assert stats.total_submissions == 2

    def test_condition_on_removed_question_ignored(self, uow, seeded):
        stats = get_form_statistics(
            uow, form_id=1, actor_id=100, conditions=[cond("removed", "single_choice", "equals", "x")]
        )
        assert stats.total_submissions == 3

    def test_definition_parsed_once(self, uow, seeded, monkeypatch):
        from questflow.domain.forms.entities import Form

        calls = []
        original = Form.definition

        def counting_definition(form):
            calls.append(form.form_id)
            return original(form)

        monkeypatch.setattr(Form, "definition", counting_definition)
        get_form_statistics(uow, form_id=1, actor_id=100, conditions=[cond("q2", "single_choice", "equals", "x")])
        assert calls == [1]

    def test_invalid_filter(self, uow, seeded):
        with pytest.raises(InvalidFilterError):
            get_form_statistics(uow, form_id=1, actor_id=100, conditions=[cond("q2", "single_choice", "contains", "x")])

    def test_not_owner(self, uow, seeded):
        with pytest.raises(FormAccessDeniedError):
            get_form_statistics(uow, form_id=1, actor_id=5)

    def test_missing_form(self, uow):
        with pytest.raises(FormNotFoundError):
            get_form_statistics(uow, form_id=404, actor_id=100)


class TestFindSubmissionsForExport:
    def test_returns_form_and_ordered_records(self, uow, seeded):
        form, records = find_submissions_for_export(uow, form_id=1, actor_id=100)
        assert form.form_id == 1
        assert [r.envelope_id for r in records] == ["e0", "e1", "e2"]

    def test_empty_result(self, uow, seeded):
        with pytest.raises(NoSubmissionsFoundError):
            find_submissions_for_export(
                uow, form_id=1, actor_id=100, conditions=[cond("q2", "single_choice", "equals", "none")]
            )

    def test_not_owner(self, uow, seeded):
        with pytest.raises(FormAccessDeniedError):
            find_submissions_for_export(uow, form_id=1, actor_id=1)
