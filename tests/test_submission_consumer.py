import threading
from datetime import datetime, timezone

import pytest

from questflow.application.use_cases.submissions.enqueue_submission import enqueue_submission
from questflow.application.use_cases.submissions.submission_consumer import (
    ConsumerSettings,
    SubmissionConsumer,
    WorkerState,
)
from tests.fakes import InMemorySubmissionRepository, InMemoryUnitOfWork, make_form

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _enqueue(stream, count=1, form=None):
    form = form or make_form()
    return [
        enqueue_submission(stream, form, {"q2": "x", "q1": [str(i)]}, client_ip="", user_agent="", now=NOW)
        for i in range(count)
    ]


def _consumer(stream, submissions, name="c-1", sleeps=None, clock=None, **settings):
    settings.setdefault("claim_interval_seconds", 0)
    kwargs = {}
    if clock is not None:
        kwargs["clock"] = clock
    return SubmissionConsumer(
        stream,
        lambda: InMemoryUnitOfWork(submissions=submissions),
        consumer_name=name,
        settings=ConsumerSettings(**settings),
        sleep=(sleeps.append if sleeps is not None else (lambda _s: None)),
        **kwargs,
    )


class _ExplodingRepository(InMemorySubmissionRepository):
    def insert(self, record):
        raise ValueError("unexpected bug")


class TestSubmissionConsumer:
    def test_prepare_ensures_group(self, stream, submissions):
        _consumer(stream, submissions).prepare()
        assert stream.group_created

    def test_persist_then_ack(self, stream, submissions):
        ids = _enqueue(stream, 2)
        consumer = _consumer(stream, submissions)

        outcome = consumer.run_once()

        assert outcome.fetched == 2
        assert outcome.persisted == 2
        assert stream.acked == ids
        assert stream.pending == {}
        assert set(submissions.records) == set(ids)
        assert consumer.state == WorkerState.IDLE

    def test_persist_failure_leaves_entry_pending_then_retries(self, stream, submissions):
        [entry_id] = _enqueue(stream)
        submissions.fail_inserts = 1
        consumer = _consumer(stream, submissions)

        first = consumer.run_once()
        assert first.failed == 1
        assert stream.acked == []
        assert entry_id in stream.pending

        second = consumer.run_once()
        assert second.persisted == 1
        assert stream.acked == [entry_id]
        assert submissions.records[entry_id].envelope_id == entry_id

    def test_unexpected_persist_error_not_acked(self, stream):
        _enqueue(stream)
        consumer = _consumer(stream, _ExplodingRepository())
        outcome = consumer.run_once()
        assert outcome.failed == 1
        assert stream.acked == []
        assert len(stream.pending) == 1

    def test_malformed_entry_not_acked_until_dead_lettered(self, stream, submissions):
        entry_id = stream.append("{broken")
        consumer = _consumer(stream, submissions, max_deliveries=3)

        for _ in range(2):
            outcome = consumer.run_once()
            assert outcome.malformed == 1
            assert outcome.dead_lettered == 0
            assert entry_id in stream.pending

        outcome = consumer.run_once()
        assert outcome.dead_lettered == 1
        assert stream.pending == {}
        assert stream.dead[0]["source_id"] == entry_id
        assert stream.dead[0]["deliveries"] == 3
        assert stream.dead[0]["reason"].startswith("malformed")
        assert submissions.records == {}

    def test_persist_errors_dead_lettered_after_max_deliveries(self, stream):
        [entry_id] = _enqueue(stream)
        consumer = _consumer(stream, _ExplodingRepository(), max_deliveries=2)

        consumer.run_once()
        outcome = consumer.run_once()

        assert outcome.dead_lettered == 1
        assert stream.dead[0]["reason"].startswith("persist_error")
        assert stream.acked == [entry_id]

    def test_unavailable_store_never_dead_letters(self, stream, submissions):
        ids = _enqueue(stream, 3)
        # 10 배치 동안 DB 장애 (배치마다 3건 실패)
        submissions.fail_inserts = 30
        sleeps = []
        consumer = _consumer(stream, submissions, sleeps=sleeps, max_deliveries=2, error_backoff_seconds=0.5)

        for _ in range(10):
            outcome = consumer.run_once()
            assert outcome.deferred == 3
            assert outcome.dead_lettered == 0

        assert stream.dead == []
        assert stream.acked == []
        assert sorted(stream.pending) == sorted(ids)
        assert sleeps == [0.5] * 10

        # 복구 후 모두 저장
        outcome = consumer.run_once()
        assert outcome.persisted == 3
        assert sorted(submissions.records) == sorted(ids)
        assert stream.pending == {}
        assert stream.dead == []
        assert len(sleeps) == 10

    def test_dead_letter_disabled(self, stream, submissions):
        stream.append("{broken")
        consumer = _consumer(stream, submissions, max_deliveries=0)
        for _ in range(10):
            consumer.run_once()
        assert stream.dead == []
        assert len(stream.pending) == 1

    def test_duplicate_delivery_persists_once(self, stream, submissions):
        [entry_id] = _enqueue(stream)
        consumer = _consumer(stream, submissions)

        # 저장 후 ACK 전에 장애 → 재전달
        stream.fail_acks = True
        first = consumer.run_once()
        assert first.persisted == 1
        assert entry_id in stream.pending

        stream.fail_acks = False
        second = consumer.run_once()
        assert second.duplicates == 1
        assert stream.acked == [entry_id]
        assert len(submissions.records) == 1

    def test_fetch_failure_backs_off(self, stream, submissions):
        stream.fail_reads = 1
        sleeps = []
        consumer = _consumer(stream, submissions, sleeps=sleeps, error_backoff_seconds=1.5)

        outcome = consumer.run_once()

        assert outcome.fetched == 0
        assert sleeps == [1.5]
        assert consumer.state == WorkerState.IDLE

    def test_unexpected_fetch_error_backs_off(self, submissions):
        class BrokenBroker:
            def claim_stale(self, consumer, min_idle_ms, count):
                raise RuntimeError("boom")

        sleeps = []
        consumer = _consumer(BrokenBroker(), submissions, sleeps=sleeps)
        assert consumer.run_once().fetched == 0
        assert sleeps == [2.0]

    def test_claim_runs_only_on_interval(self, stream, submissions):
        now = [0.0]
        [entry_id] = _enqueue(stream)
        submissions.fail_inserts = 1
        consumer = _consumer(stream, submissions, clock=lambda: now[0], claim_interval_seconds=30)

        consumer.run_once()
        assert entry_id in stream.pending

        # 간격 전: 새 항목만 읽음 (재할당 없음)
        assert consumer.run_once().fetched == 0

        now[0] = 31.0
        outcome = consumer.run_once()
        assert outcome.fetched == 1
        assert outcome.persisted == 1

    def test_workers_share_backlog(self, stream, submissions):
        ids = _enqueue(stream, 4)
        c1 = _consumer(stream, submissions, name="c-1", batch_size=2)
        c2 = _consumer(stream, submissions, name="c-2", batch_size=2)

        assert c1.run_once().persisted == 2
        assert c2.run_once().persisted == 2
        assert sorted(submissions.records) == sorted(ids)
        assert sorted(stream.acked) == sorted(ids)

    def test_run_forever_stops_on_event(self, stream, submissions):
        stop_event = threading.Event()
        consumer = SubmissionConsumer(
            stream,
            lambda: InMemoryUnitOfWork(submissions=submissions),
            consumer_name="c-1",
            stop_event=stop_event,
            sleep=lambda _s: None,
        )
        _enqueue(stream, 3)

        original = consumer.run_once

        def run_once_then_stop():
            outcome = original()
            consumer.stop()
            return outcome

        consumer.run_once = run_once_then_stop
        consumer.run_forever()

        assert consumer.state == WorkerState.STOPPED
        assert len(submissions.records) == 3


class TestAtLeastOnce:
    @pytest.mark.parametrize("failures", [0, 3, 7])
    def test_every_enqueued_envelope_persisted_exactly_once(self, stream, failures):
        submissions = InMemorySubmissionRepository()
        submissions.fail_inserts = failures
        ids = _enqueue(stream, 12)
        consumers = [_consumer(stream, submissions, name=f"c-{i}", batch_size=5) for i in range(2)]

        for _ in range(30):
            for consumer in consumers:
                consumer.run_once()
            if not stream.pending and len(stream.acked) == len(ids):
                break

        assert sorted(submissions.records) == sorted(ids)
        assert stream.pending == {}
        assert stream.dead == []
