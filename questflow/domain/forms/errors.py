"""
Form 도메인 오류 — 순수 파이썬
"""
from __future__ import annotations

from questflow.domain.shared.errors import QuestflowError, ValidationError


class FormNotFoundError(QuestflowError):
    """Form이 DB에 없음."""
    pass


class FormAccessDeniedError(QuestflowError):
    """actor가 form 작성자가 아님."""
    pass


class FormNotPublishedError(ValidationError):
    """status가 PUBLISHED가 아님 → 제출 불가."""

    def __init__(self, form_id: int, status: int):
        self.form_id = form_id
        self.status = status
        super().__init__(f"form {form_id} is not published (status={status})")


class InvalidFormDefinitionError(ValidationError):
    """definition JSON 구조 오류."""
    pass
