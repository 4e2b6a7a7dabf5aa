"""Submission sync pipeline."""

from .fingerprint import fingerprint
from .models import CatalogEntry, CatalogMergePayload, PassResult, SubmissionPayload
from .paths import ResolvedPath, resolve, resolve_path
from .processor import SyncLease, SyncProcessor
from .progress import ProgressAggregator, ProgressDocuments
from .queue import QueueManager
from .retry import RetryPolicy
from .scheduler import PeriodicSync

__all__ = [
    "CatalogEntry",
    "CatalogMergePayload",
    "PassResult",
    "PeriodicSync",
    "ProgressAggregator",
    "ProgressDocuments",
    "QueueManager",
    "ResolvedPath",
    "RetryPolicy",
    "SubmissionPayload",
    "SyncLease",
    "SyncProcessor",
    "fingerprint",
    "resolve",
    "resolve_path",
]
