# apps/domains/submissions/serializers/submission.py
from rest_framework import serializers

from questflow.domain.submissions.answers import validate_answers as validate_answer_document
from questflow.domain.submissions.errors import MalformedSubmissionError


class SubmissionCreateSerializer(serializers.Serializer):
    """
    공개 제출 payload
    - answers: {question_id: "값" | ["값", ...]}
    - client_ip / user_agent 는 요청 메타에서 채움 (payload 아님)
    """

    answers = serializers.JSONField()

    def validate_answers(self, value):
        try:
            validate_answer_document(value)
        except MalformedSubmissionError as e:
            raise serializers.ValidationError(str(e))
        return value
