# apps/api/config/settings/worker.py

from .base import *
import os

# 워커는 URLConf 불필요
ROOT_URLCONF = None

# ==================================================
# DATABASE
# ==================================================
# 워커 스레드는 각자 커넥션을 열고 스레드 종료 시 닫는다.
# 장시간 유휴 커넥션 재사용 금지.
DATABASES["default"]["CONN_MAX_AGE"] = 0

LOGGING["formatters"]["default"]["format"] = (
    "%(asctime)s [%(levelname)s] [SUBMISSION-WORKER] %(threadName)s %(name)s: %(message)s"
)
