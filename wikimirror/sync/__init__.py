"""Incremental synchronization engine."""

from wikimirror.sync.detector import ChangeDetector
from wikimirror.sync.models import (
    ChangeSet,
    Document,
    DocumentStatus,
    SyncError,
    SyncReport,
    TreeSyncResult,
)
from wikimirror.sync.orchestrator import Synchronizer
from wikimirror.sync.tree import TreeSynchronizer, copy_file_atomic, iter_tracked_files

__all__ = [
    "ChangeDetector",
    "ChangeSet",
    "Document",
    "DocumentStatus",
    "SyncError",
    "SyncReport",
    "Synchronizer",
    "TreeSyncResult",
    "TreeSynchronizer",
    "copy_file_atomic",
    "iter_tracked_files",
]
