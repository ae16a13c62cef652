# apps/domains/forms/models.py
from __future__ import annotations

import secrets
import string

from django.db import models

from apps.api.common.models import TimestampModel

_FORM_KEY_ALPHABET = string.ascii_letters + string.digits
FORM_KEY_LENGTH = 10


def generate_form_key() -> str:
    """공개 제출 URL용 짧은 키."""
    return "".join(secrets.choice(_FORM_KEY_ALPHABET) for _ in range(FORM_KEY_LENGTH))


class Form(TimestampModel):
    """
    Form = "작성자가 만든 설문 + 문항 정의"
    - definition: {"questions": [...]} (questflow.domain.forms.entities.FormDefinition 문서 형식)
    - 제출 수락 여부는 status == PUBLISHED 로만 판단
    """

    class Status(models.IntegerChoices):
        DRAFT = 1, "Draft"
        PUBLISHED = 2, "Published"
        CLOSED = 3, "Closed"

    form_key = models.CharField(max_length=20, unique=True, default=generate_form_key)

    # 인증 계층이 검증한 actor id (FK 강제 X)
    creator_id = models.PositiveBigIntegerField(db_index=True)

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    definition = models.JSONField(default=dict)

    status = models.PositiveSmallIntegerField(
        choices=Status.choices,
        default=Status.DRAFT,
    )

    class Meta:
        db_table = "forms"
        indexes = [
            models.Index(fields=["creator_id", "created_at"], name="forms_creator_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Form({self.id}) key={self.form_key} status={self.status}"
