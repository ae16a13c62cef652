# apps/domains/submissions/services/submission_service.py
from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping, Optional

import redis
from django.conf import settings

from apps.domains.submissions.serializers import SubmissionCreateSerializer, SubmissionQuerySerializer
from questflow.adapters.broker.redis_streams.submission_stream import RedisSubmissionStream
from questflow.adapters.db.django.uow import DjangoUnitOfWork
from questflow.application.ports.broker import SubmissionBrokerPort
from questflow.application.use_cases.forms.form_statistics import (
    find_submissions_for_export,
    get_form_statistics,
)
from questflow.application.use_cases.submissions.enqueue_submission import submit_by_form_key
from questflow.domain.stats.aggregation import FormStats


def build_submission_stream(client: Optional[redis.Redis] = None) -> RedisSubmissionStream:
    """settings 기준 stream 어댑터. client 미지정 시 REDIS_URL로 새 연결."""
    if client is None:
        from libs.redis import create_redis_client
        client = create_redis_client(settings.REDIS_URL)
    return RedisSubmissionStream(
        client,
        stream_key=settings.SUBMISSION_STREAM_KEY,
        group_name=settings.SUBMISSION_GROUP_NAME,
        dead_letter_key=settings.SUBMISSION_DEAD_LETTER_KEY,
    )


@lru_cache(maxsize=1)
def get_submission_stream() -> RedisSubmissionStream:
    """프로세스당 1개 (redis 연결 풀 공유). 제출 요청마다 새 클라이언트/PING 없음."""
    return build_submission_stream()


class SubmissionService:
    """
    submissions 진입점 (HTTP 계층이 호출)
    - 요청 검증(serializer) → questflow use case 호출
    - 제출은 stream 적재까지만 (DB 쓰기는 consumer 워커)
    - serializer 검증 실패는 rest_framework ValidationError 그대로 전파
    """

    @staticmethod
    def submit(
        form_key: str,
        data: Mapping[str, Any],
        client_ip: str,
        user_agent: str,
        submitter_id: Optional[int] = None,
        broker: Optional[SubmissionBrokerPort] = None,
    ) -> str:
        serializer = SubmissionCreateSerializer(data=data)
        serializer.is_valid(raise_exception=True)
        return submit_by_form_key(
            DjangoUnitOfWork(),
            broker or get_submission_stream(),
            form_key,
            serializer.validated_data["answers"],
            client_ip=client_ip,
            user_agent=user_agent,
            submitter_id=submitter_id,
        )

    @staticmethod
    def statistics(form_id: int, actor_id: int, query: Optional[Mapping[str, Any]] = None) -> FormStats:
        serializer = SubmissionQuerySerializer(data=query or {})
        serializer.is_valid(raise_exception=True)
        return get_form_statistics(
            DjangoUnitOfWork(),
            form_id,
            actor_id,
            start_time=serializer.validated_data.get("start_time"),
            end_time=serializer.validated_data.get("end_time"),
            conditions=serializer.to_conditions(),
        )

    @staticmethod
    def export_rows(form_id: int, actor_id: int, query: Optional[Mapping[str, Any]] = None):
        """export 렌더러 입력 (form, created_at 오름차순 레코드)."""
        serializer = SubmissionQuerySerializer(data=query or {})
        serializer.is_valid(raise_exception=True)
        return find_submissions_for_export(
            DjangoUnitOfWork(),
            form_id,
            actor_id,
            start_time=serializer.validated_data.get("start_time"),
            end_time=serializer.validated_data.get("end_time"),
            conditions=serializer.to_conditions(),
        )
