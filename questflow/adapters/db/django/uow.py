"""
Django Unit of Work — forms/submissions 저장소 + transaction.atomic 경계

- 제출 1건 저장(Submission + 색인 행)과 통계 조회가 각각 1 트랜잭션.
- DB 연결 수명은 호출부 책임 (워커는 fresh_django_uow로 항목마다 끊긴 연결 정리).
"""
from __future__ import annotations


class DjangoUnitOfWork:
    """UnitOfWork 포트 구현. 저장소는 처음 접근할 때 생성, Django import는 메서드 내부."""

    def __init__(self) -> None:
        self._atomic = None
        self._forms = None
        self._submissions = None

    @property
    def forms(self):
        from questflow.adapters.db.django.repositories_forms import DjangoFormRepository
        if self._forms is None:
            self._forms = DjangoFormRepository()
        return self._forms

    @property
    def submissions(self):
        from questflow.adapters.db.django.repositories_submissions import DjangoSubmissionRepository
        if self._submissions is None:
            self._submissions = DjangoSubmissionRepository()
        return self._submissions

    def __enter__(self) -> DjangoUnitOfWork:
        from django.db import transaction
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._atomic is not None:
            atomic, self._atomic = self._atomic, None
            atomic.__exit__(exc_type, exc_val, exc_tb)

    def commit(self) -> None:
        # 정상 종료 시 atomic __exit__에서 commit
        pass

    def rollback(self) -> None:
        from django.db import transaction
        transaction.set_rollback(True)
