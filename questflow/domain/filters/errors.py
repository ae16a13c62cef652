"""
Filter 도메인 오류
"""
from __future__ import annotations

from questflow.domain.shared.errors import ValidationError


class InvalidFilterError(ValidationError):
    """필터 조건이 문항 유형/연산자 규칙에 맞지 않음."""
    pass
