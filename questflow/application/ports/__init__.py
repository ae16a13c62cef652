from questflow.application.ports.unit_of_work import UnitOfWork
from questflow.application.ports.repositories import FormRepository, SubmissionRepository
from questflow.application.ports.broker import StreamEntry, SubmissionBrokerPort

__all__ = [
    "UnitOfWork",
    "FormRepository",
    "SubmissionRepository",
    "StreamEntry",
    "SubmissionBrokerPort",
]
