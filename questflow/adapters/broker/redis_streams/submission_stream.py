"""
Redis Stream 어댑터 — SubmissionBrokerPort 구현 (redis-py)

- stream:      SUBMISSION_STREAM_KEY (field "payload" = envelope JSON)
- group:       SUBMISSION_GROUP_NAME (시작 위치 "0": 기존 미처리 이력도 재생)
- dead-letter: SUBMISSION_DEAD_LETTER_KEY (기본 "<stream>:dead")

redis 연결/타임아웃 오류는 BrokerUnavailableError로 변환 (워커가 잡고 백오프).
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from questflow.application.ports.broker import StreamEntry
from questflow.domain.shared.errors import BrokerUnavailableError

logger = logging.getLogger(__name__)

PAYLOAD_FIELD = "payload"
_TRANSIENT_ERRORS = (RedisConnectionError, RedisTimeoutError)


def _field(fields: Any, name: str) -> Optional[Any]:
    if not fields:
        return None
    if name in fields:
        return fields[name]
    return fields.get(name.encode())


def _as_str(value: Any) -> str:
    return value.decode() if isinstance(value, bytes) else str(value)


def _iter_messages(response: Any) -> Iterable[tuple[Any, Any]]:
    """
    XREADGROUP 응답 → (id, fields).
    RESP2: [[stream, [(id, fields), ...]]], RESP3: {stream: [[(id, fields), ...]]}
    """
    if not response:
        return []
    if isinstance(response, dict):
        groups = response.values()
    else:
        groups = [messages for _stream, messages in response]

    out: list[tuple[Any, Any]] = []
    for messages in groups:
        if messages and isinstance(messages[0], list) and messages[0] and isinstance(messages[0][0], (list, tuple)):
            messages = messages[0]
        for message in messages or []:
            out.append((message[0], message[1]))
    return out


class RedisSubmissionStream:
    """SubmissionBrokerPort 구현. 클라이언트 핸들은 생성자 주입 (스레드 간 공유 가능)."""

    def __init__(
        self,
        client: redis.Redis,
        stream_key: str,
        group_name: str,
        dead_letter_key: Optional[str] = None,
        maxlen: Optional[int] = None,
    ) -> None:
        self.client = client
        self.stream_key = stream_key
        self.group_name = group_name
        self.dead_letter_key = dead_letter_key or f"{stream_key}:dead"
        self.maxlen = maxlen

    def append(self, payload: str) -> str:
        try:
            entry_id = self.client.xadd(
                self.stream_key,
                {PAYLOAD_FIELD: payload},
                maxlen=self.maxlen,
                approximate=True,
            )
        except _TRANSIENT_ERRORS as e:
            raise BrokerUnavailableError(f"XADD {self.stream_key} failed: {e}", cause=e) from e
        return _as_str(entry_id)

    def ensure_group(self) -> None:
        try:
            self.client.xgroup_create(self.stream_key, self.group_name, id="0", mkstream=True)
            logger.info("STREAM_GROUP_CREATED | stream=%s | group=%s", self.stream_key, self.group_name)
        except ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise
            logger.info("STREAM_GROUP_EXISTS | stream=%s | group=%s", self.stream_key, self.group_name)

    def read_new(self, consumer: str, count: int, block_ms: Optional[int]) -> list[StreamEntry]:
        try:
            response = self.client.xreadgroup(
                self.group_name,
                consumer,
                {self.stream_key: ">"},
                count=count,
                # BLOCK 0 = 항목이 올 때까지 무기한 대기
                block=block_ms or 0,
            )
        except _TRANSIENT_ERRORS as e:
            raise BrokerUnavailableError(f"XREADGROUP {self.stream_key} failed: {e}", cause=e) from e

        return [
            StreamEntry(entry_id=_as_str(entry_id), payload=_field(fields, PAYLOAD_FIELD), deliveries=1)
            for entry_id, fields in _iter_messages(response)
        ]

    def claim_stale(self, consumer: str, min_idle_ms: int, count: int) -> list[StreamEntry]:
        try:
            response = self.client.xautoclaim(
                self.stream_key,
                self.group_name,
                consumer,
                min_idle_time=min_idle_ms,
                start_id="0-0",
                count=count,
            )
            # [next_start_id, [(id, fields), ...], (redis>=7) deleted_ids]
            messages = response[1] if response and len(response) > 1 else []
            if not messages:
                return []

            pipe = self.client.pipeline(transaction=False)
            for entry_id, _fields in messages:
                pipe.xpending_range(
                    self.stream_key,
                    self.group_name,
                    min=entry_id,
                    max=entry_id,
                    count=1,
                )
            pending_rows = pipe.execute()
        except _TRANSIENT_ERRORS as e:
            raise BrokerUnavailableError(f"XAUTOCLAIM {self.stream_key} failed: {e}", cause=e) from e

        entries = []
        for (entry_id, fields), rows in zip(messages, pending_rows):
            deliveries = int(rows[0]["times_delivered"]) if rows else 1
            entries.append(
                StreamEntry(
                    entry_id=_as_str(entry_id),
                    payload=_field(fields, PAYLOAD_FIELD),
                    deliveries=deliveries,
                )
            )
        return entries

    def ack(self, entry_id: str) -> None:
        try:
            self.client.xack(self.stream_key, self.group_name, entry_id)
        except _TRANSIENT_ERRORS as e:
            raise BrokerUnavailableError(f"XACK {entry_id} failed: {e}", cause=e) from e

    def dead_letter(self, entry: StreamEntry, reason: str) -> str:
        payload = entry.payload
        if payload is None:
            payload = ""
        elif isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")

        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.xadd(
                self.dead_letter_key,
                {
                    PAYLOAD_FIELD: payload,
                    "source_id": entry.entry_id,
                    "source_stream": self.stream_key,
                    "reason": (reason or "")[:500],
                    "deliveries": str(entry.deliveries),
                },
            )
            pipe.xack(self.stream_key, self.group_name, entry.entry_id)
            dead_id, _acked = pipe.execute()
        except _TRANSIENT_ERRORS as e:
            raise BrokerUnavailableError(f"dead-letter {entry.entry_id} failed: {e}", cause=e) from e
        return _as_str(dead_id)
