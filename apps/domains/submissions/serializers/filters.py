# apps/domains/submissions/serializers/filters.py
from rest_framework import serializers

from apps.domains.submissions.models.submission_answer import QUESTION_ID_MAX_LENGTH
from questflow.domain.filters.errors import InvalidFilterError
from questflow.domain.filters.predicate import FilterCondition, FilterOperator, compile_filters
from questflow.domain.forms.entities import QuestionType


class FilterConditionSerializer(serializers.Serializer):
    question_id = serializers.CharField(max_length=QUESTION_ID_MAX_LENGTH)
    question_type = serializers.ChoiceField(choices=[t.value for t in QuestionType])
    operator = serializers.ChoiceField(choices=[o.value for o in FilterOperator])
    values = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False),
        min_length=1,
    )

    def validate(self, attrs):
        # 연산자/유형 조합 규칙은 domain 컴파일러 기준 (form_id는 검증에 무관)
        try:
            compile_filters(0, conditions=[self.to_condition(attrs)])
        except InvalidFilterError as e:
            raise serializers.ValidationError({"operator": str(e)})
        return attrs

    @staticmethod
    def to_condition(attrs) -> FilterCondition:
        return FilterCondition(
            question_id=attrs["question_id"],
            question_type=QuestionType(attrs["question_type"]),
            operator=FilterOperator(attrs["operator"]),
            values=tuple(attrs["values"]),
        )


class SubmissionQuerySerializer(serializers.Serializer):
    """
    통계/export 조회 조건
    - start_time/end_time: created_at 포함 구간 (둘 다 선택)
    - conditions: 모두 AND
    """

    start_time = serializers.DateTimeField(required=False, allow_null=True)
    end_time = serializers.DateTimeField(required=False, allow_null=True)
    conditions = FilterConditionSerializer(many=True, required=False)

    def validate(self, attrs):
        start_time = attrs.get("start_time")
        end_time = attrs.get("end_time")
        if start_time and end_time and start_time > end_time:
            raise serializers.ValidationError({"end_time": "end_time은 start_time 이후여야 합니다."})
        return attrs

    def to_conditions(self) -> list[FilterCondition]:
        return [
            FilterConditionSerializer.to_condition(c)
            for c in self.validated_data.get("conditions") or []
        ]
