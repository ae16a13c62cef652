"""
Redis 연결 레이어

제출 stream(XADD/XREADGROUP/XACK)의 연결 핸들 생성만 담당.
stream 사용 로직은 questflow.adapters.broker.redis_streams 에 있다.
"""

from libs.redis.client import create_redis_client

__all__ = [
    "create_redis_client",
]
