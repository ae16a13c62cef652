"""
Repository 포트 — 영속화 추상화 (Django/ORM 미사용)
"""
from __future__ import annotations

from abc import abstractmethod
from typing import Optional, Protocol

from questflow.domain.filters.predicate import Predicate
from questflow.domain.forms.entities import Form
from questflow.domain.submissions.entities import SubmissionRecord


class FormRepository(Protocol):
    """Form 조회 전용 (CRUD는 core 범위 밖)."""

    @abstractmethod
    def get_by_id(self, form_id: int) -> Optional[Form]:
        ...

    @abstractmethod
    def get_by_key(self, form_key: str) -> Optional[Form]:
        ...


class SubmissionRepository(Protocol):
    """제출 레코드. envelope_id 단위 멱등 insert."""

    @abstractmethod
    def insert(self, record: SubmissionRecord) -> bool:
        """
        레코드 1건 저장.
        Returns: True 새로 생성, False 같은 envelope_id가 이미 있음 (no-op).
        장애 시 PersistenceUnavailableError.
        """
        ...

    @abstractmethod
    def find_by_form(self, form_id: int) -> list[SubmissionRecord]:
        """created_at 오름차순."""
        ...

    @abstractmethod
    def find_matching(self, predicate: Predicate) -> list[SubmissionRecord]:
        """predicate를 만족하는 레코드, created_at 오름차순."""
        ...
