"""
도메인 공통: ID 생성 (외부 라이브러리 없음)
"""
from __future__ import annotations

import os
import socket


def generate_consumer_name(prefix: str, index: int = 0) -> str:
    """
    Consumer group 내 워커 식별자.
    호스트/프로세스가 달라도 겹치지 않도록 host-pid-index 조합.
    """
    host = socket.gethostname() or "localhost"
    return f"{prefix}-{host}-{os.getpid()}-{index}"
