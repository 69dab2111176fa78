"""
Price submission intake.

Runs single submissions and bulk imports through verification and into the
points ledger, one item at a time, with pause/resume and per-item status.
"""

from .errors import (
    SubmissionError,
    InvalidImageError,
    RecognitionFailedError,
    StorageUploadFailed,
)
from .models import (
    ItemStatus,
    SubmissionPayload,
    SubmissionItem,
    SubmissionOutcome,
    QueueRunState,
    RunSummary,
)
from .processor import SubmissionProcessor
from .queue import SubmissionQueue, RunStore, build_run
from .storage import ImageStorage

__all__ = [
    "SubmissionError",
    "InvalidImageError",
    "RecognitionFailedError",
    "StorageUploadFailed",
    "ItemStatus",
    "SubmissionPayload",
    "SubmissionItem",
    "SubmissionOutcome",
    "QueueRunState",
    "RunSummary",
    "SubmissionProcessor",
    "SubmissionQueue",
    "RunStore",
    "build_run",
    "ImageStorage",
]
