from .filters import FilterConditionSerializer, SubmissionQuerySerializer
from .submission import SubmissionCreateSerializer

__all__ = [
    "FilterConditionSerializer",
    "SubmissionQuerySerializer",
    "SubmissionCreateSerializer",
]
