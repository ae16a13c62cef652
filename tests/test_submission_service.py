from unittest import mock

import pytest
from rest_framework.exceptions import ValidationError as DRFValidationError

from apps.domains.forms.models import Form as FormModel
from apps.domains.submissions.services.submission_service import SubmissionService
from questflow.adapters.db.django.uow import DjangoUnitOfWork
from questflow.application.use_cases.submissions.submission_consumer import ConsumerSettings, SubmissionConsumer
from questflow.domain.forms.errors import FormAccessDeniedError, FormNotPublishedError
from tests.fakes import SURVEY_DEFINITION

pytestmark = pytest.mark.django_db


@pytest.fixture
def published_form():
    return FormModel.objects.create(
        creator_id=100,
        title="만족도 조사",
        definition=SURVEY_DEFINITION,
        status=FormModel.Status.PUBLISHED,
    )


def _drain(stream):
    consumer = SubmissionConsumer(
        stream,
        DjangoUnitOfWork,
        consumer_name="test-consumer",
        settings=ConsumerSettings(claim_interval_seconds=0),
        sleep=lambda _s: None,
    )
    consumer.run_once()


class TestSubmissionService:
    def test_submit_consume_and_aggregate(self, published_form, stream):
        for answers in ({"q1": ["a", "b"], "q2": "x"}, {"q1": ["b"], "q2": "y"}, {"q1": []}):
            SubmissionService.submit(
                published_form.form_key,
                {"answers": answers},
                client_ip="127.0.0.1",
                user_agent="pytest",
                broker=stream,
            )
        _drain(stream)

        stats = SubmissionService.statistics(published_form.id, actor_id=100)
        assert stats.total_submissions == 3
        assert {o.option_id: o.count for o in stats.get("q1").option_stats} == {"a": 1, "b": 2, "c": 0}

        filtered = SubmissionService.statistics(
            published_form.id,
            actor_id=100,
            query={
                "conditions": [
                    {"question_id": "q1", "question_type": "multi_choice", "operator": "contains", "values": ["b"]},
                    {"question_id": "q2", "question_type": "single_choice", "operator": "not_equals", "values": ["x"]},
                ]
            },
        )
        assert filtered.total_submissions == 1

        form, records = SubmissionService.export_rows(published_form.id, actor_id=100)
        assert form.form_key == published_form.form_key
        assert len(records) == 3
        created = [r.created_at for r in records]
        assert created == sorted(created)

    def test_submit_rejects_malformed_payload(self, published_form, stream):
        with pytest.raises(DRFValidationError):
            SubmissionService.submit(published_form.form_key, {"answers": [1]}, "", "", broker=stream)
        assert stream.entries == []

    def test_submit_to_draft_form(self, stream):
        draft = FormModel.objects.create(creator_id=1, title="draft", definition=SURVEY_DEFINITION)
        with pytest.raises(FormNotPublishedError):
            SubmissionService.submit(draft.form_key, {"answers": {}}, "", "", broker=stream)

    def test_statistics_checks_owner(self, published_form):
        with pytest.raises(FormAccessDeniedError):
            SubmissionService.statistics(published_form.id, actor_id=7)

    def test_statistics_rejects_bad_query(self, published_form):
        with pytest.raises(DRFValidationError):
            SubmissionService.statistics(
                published_form.id,
                actor_id=100,
                query={"start_time": "2024-02-01T00:00:00Z", "end_time": "2024-01-01T00:00:00Z"},
            )


class TestSubmissionStreamHandle:
    def test_stream_built_once_per_process(self):
        from apps.domains.submissions.services import submission_service

        submission_service.get_submission_stream.cache_clear()
        try:
            with mock.patch("libs.redis.create_redis_client") as create_client:
                first = submission_service.get_submission_stream()
                second = submission_service.get_submission_stream()
                submission_service.get_submission_stream()

            assert first is second
            assert create_client.call_count == 1
        finally:
            submission_service.get_submission_stream.cache_clear()
