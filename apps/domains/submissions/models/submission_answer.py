# apps/domains/submissions/models/submission_answer.py
from __future__ import annotations

from django.db import models

# 필터 question_id 상한과 동일. 이보다 긴 문항 id는 색인하지 않는다
QUESTION_ID_MAX_LENGTH = 128


class SubmissionAnswer(models.Model):
    """
    SubmissionAnswer = "answers 문서의 조회용 색인" (필터 푸시다운 전용)
    - Submission insert와 같은 트랜잭션에서 생성, 이후 불변
    - 문자열 답: kind=scalar, value
    - 리스트 답: kind=list (size=원소 수, value 없음) + 원소마다 kind=item, value
    - 원본은 Submission.answers. 집계는 원본 문서 기준
    """

    class Kind(models.TextChoices):
        SCALAR = "scalar", "Scalar"
        LIST = "list", "List"
        ITEM = "item", "List Item"

    submission = models.ForeignKey(
        "submissions.Submission",
        on_delete=models.CASCADE,
        related_name="answer_index",
    )

    question_id = models.CharField(max_length=QUESTION_ID_MAX_LENGTH)
    kind = models.CharField(max_length=10, choices=Kind.choices)
    value = models.TextField(null=True, blank=True)
    size = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        db_table = "submission_answers"
        indexes = [
            models.Index(fields=["submission", "question_id", "kind"], name="sub_answers_lookup_idx"),
        ]

    def __str__(self) -> str:
        return f"SubmissionAnswer(submission={self.submission_id}, q={self.question_id}, {self.kind})"
