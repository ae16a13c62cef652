"""
Form 도메인 엔티티 — 순수 파이썬 (Django/ORM 미사용)

FormDefinition은 작성자가 만든 문항 스키마.
한 번 읽은 뒤에는 연산 동안 불변이며 core는 절대 수정하지 않는다.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Optional

from questflow.domain.forms.errors import InvalidFormDefinitionError


class QuestionType(str, Enum):
    """문항 유형 (definition JSON의 type 값과 동기화)."""
    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    JUDGMENT = "judgment"
    TEXT_INPUT = "text_input"


# 선택지 기반 유형 (option 단위 집계)
CHOICE_TYPES = (QuestionType.SINGLE_CHOICE, QuestionType.MULTI_CHOICE, QuestionType.JUDGMENT)
# 답이 문자열 1개인 유형
SCALAR_TYPES = (QuestionType.SINGLE_CHOICE, QuestionType.JUDGMENT, QuestionType.TEXT_INPUT)


class FormStatus(IntEnum):
    """Form 상태 (forms_domain.Form.status choices와 동기화)."""
    DRAFT = 1
    PUBLISHED = 2
    CLOSED = 3


@dataclass(frozen=True)
class FormOption:
    id: str
    text: str


@dataclass(frozen=True)
class Question:
    id: str
    type: QuestionType
    title: str
    options: tuple[FormOption, ...] = ()

    @property
    def is_choice(self) -> bool:
        return self.type in CHOICE_TYPES


@dataclass(frozen=True)
class FormDefinition:
    """순서 있는 문항 목록."""
    questions: tuple[Question, ...] = ()

    def get(self, question_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None

    def __contains__(self, question_id: object) -> bool:
        return any(q.id == question_id for q in self.questions)

    @classmethod
    def from_document(cls, document: Any) -> "FormDefinition":
        """
        저장된 definition 문서 → FormDefinition.
        문서 형식: {"questions": [{"id", "type", "title", "options": [{"id", "text"}]}]}
        JSON 문자열도 허용.
        """
        if isinstance(document, (bytes, str)):
            try:
                document = json.loads(document)
            except ValueError as e:
                raise InvalidFormDefinitionError(f"definition is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise InvalidFormDefinitionError("definition must be an object")

        raw_questions = document.get("questions") or []
        if not isinstance(raw_questions, list):
            raise InvalidFormDefinitionError("definition.questions must be a list")

        questions = []
        for idx, raw in enumerate(raw_questions):
            if not isinstance(raw, dict) or not raw.get("id"):
                raise InvalidFormDefinitionError(f"question #{idx} has no id")
            try:
                q_type = QuestionType(raw.get("type"))
            except ValueError:
                raise InvalidFormDefinitionError(
                    f"question {raw['id']} has unknown type: {raw.get('type')!r}"
                ) from None
            options = tuple(
                FormOption(id=str(o.get("id")), text=str(o.get("text") or ""))
                for o in (raw.get("options") or [])
                if isinstance(o, dict) and o.get("id") is not None
            )
            questions.append(
                Question(
                    id=str(raw["id"]),
                    type=q_type,
                    title=str(raw.get("title") or ""),
                    options=options,
                )
            )
        return cls(questions=tuple(questions))


@dataclass
class Form:
    """
    Form 애그리거트 (core가 읽는 필드만).
    definition 파싱은 definition_document를 그대로 두고 필요할 때 수행.
    """
    form_id: int
    form_key: str
    creator_id: int
    title: str
    status: FormStatus
    definition_document: Any = field(default_factory=dict)
    description: str = ""

    def is_published(self) -> bool:
        return self.status == FormStatus.PUBLISHED

    def is_owned_by(self, actor_id: int) -> bool:
        return self.creator_id == actor_id

    def definition(self) -> FormDefinition:
        return FormDefinition.from_document(self.definition_document)
