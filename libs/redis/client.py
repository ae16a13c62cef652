"""
Redis 클라이언트 생성

제출 stream은 필수 인프라이므로 fallback 없음: 연결 실패는 그대로 예외.
프로세스 전역 싱글톤을 두지 않고, 생성한 핸들을 producer/consumer 생성자에 넘긴다.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import redis

logger = logging.getLogger(__name__)


def create_redis_client(url: Optional[str] = None, ping: bool = True) -> redis.Redis:
    """
    REDIS_URL 우선, 없으면 REDIS_HOST/REDIS_PORT/REDIS_PASSWORD/REDIS_DB.

    socket_timeout은 두지 않는다: XREADGROUP BLOCK 대기가 소켓 타임아웃에 잘리지 않도록.
    """
    url = url or os.getenv("REDIS_URL")
    if url:
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        target = url.rsplit("@", 1)[-1]
    else:
        host = os.getenv("REDIS_HOST", "localhost")
        port = int(os.getenv("REDIS_PORT", "6379"))
        password = os.getenv("REDIS_PASSWORD") or None
        db = int(os.getenv("REDIS_DB", "0"))
        client = redis.Redis(
            host=host,
            port=port,
            password=password,
            db=db,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        target = f"{host}:{port}/{db}"

    if ping:
        client.ping()
        logger.info("Redis connected: %s", target)
    return client
