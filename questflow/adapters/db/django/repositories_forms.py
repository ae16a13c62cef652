"""
Form Repository — Django ORM 구현 (메서드 내부에서만 apps.domains.forms import)
"""
from __future__ import annotations

from typing import Optional

from django.db import InterfaceError, OperationalError

from questflow.domain.forms.entities import Form, FormStatus
from questflow.domain.shared.errors import PersistenceUnavailableError


def _model_to_entity(m) -> Optional[Form]:
    if m is None:
        return None
    return Form(
        form_id=m.id,
        form_key=m.form_key,
        creator_id=int(m.creator_id),
        title=m.title or "",
        status=FormStatus(m.status),
        definition_document=m.definition or {},
        description=m.description or "",
    )


class DjangoFormRepository:
    """FormRepository 구현. 조회 전용."""

    def get_by_id(self, form_id: int) -> Optional[Form]:
        from apps.domains.forms.models import Form as FormModel
        try:
            m = FormModel.objects.filter(pk=form_id).first()
        except (OperationalError, InterfaceError) as e:
            raise PersistenceUnavailableError(f"form lookup failed: id={form_id}: {e}", cause=e) from e
        return _model_to_entity(m)

    def get_by_key(self, form_key: str) -> Optional[Form]:
        from apps.domains.forms.models import Form as FormModel
        try:
            m = FormModel.objects.filter(form_key=form_key).first()
        except (OperationalError, InterfaceError) as e:
            raise PersistenceUnavailableError(f"form lookup failed: key={form_key}: {e}", cause=e) from e
        return _model_to_entity(m)
