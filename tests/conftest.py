import pytest

from tests.fakes import (
    InMemoryFormRepository,
    InMemorySubmissionRepository,
    InMemorySubmissionStream,
    InMemoryUnitOfWork,
    make_form,
)


@pytest.fixture
def stream():
    return InMemorySubmissionStream()


@pytest.fixture
def forms():
    return InMemoryFormRepository((make_form(),))


@pytest.fixture
def submissions():
    return InMemorySubmissionRepository()


@pytest.fixture
def uow(forms, submissions):
    return InMemoryUnitOfWork(forms, submissions)
