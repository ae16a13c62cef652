# apps/domains/submissions/models/submission.py
from __future__ import annotations

from django.db import models
from django.utils import timezone


class Submission(models.Model):
    """
    submissions = "제출 원본 보관" (consumer가 stream envelope에서 생성, 이후 불변)
    - envelope_id: stream이 부여한 id. 유니크 → 중복 전달 시 insert no-op
    - answers: {question_id: "값" | ["값", ...]} 원본 문서
    - 집계/필터 판단 금지 (questflow.domain 책임)
    """

    envelope_id = models.CharField(max_length=64, unique=True)

    # Form FK 강제 X: envelope 적재 후 form 변경/삭제와 무관하게 원본 보관
    form_id = models.PositiveBigIntegerField(db_index=True)

    # 익명 제출 허용 (해석 가능한 FK라고 가정하지 않음)
    submitter_id = models.PositiveBigIntegerField(null=True, blank=True)

    answers = models.JSONField(default=dict)

    client_ip = models.CharField(max_length=45, blank=True)
    user_agent = models.TextField(blank=True)

    submitted_at = models.DateTimeField()
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "submissions"
        indexes = [
            models.Index(fields=["form_id", "created_at"], name="submissions_form_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Submission({self.id}) form={self.form_id} envelope={self.envelope_id}"
