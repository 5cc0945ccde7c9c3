"""Classifies documents as new, modified, unchanged, or deleted."""

from __future__ import annotations

import filecmp
import logging
import os
import shutil
from pathlib import Path

from wikimirror.config.models import SyncRulesConfig
from wikimirror.converter.worker import (
    HTML_SUFFIX,
    MARKDOWN_SUFFIX,
    SNAPSHOT_SUFFIX,
    artifact_path_for,
)
from wikimirror.sync.models import ChangeSet
from wikimirror.sync.tree import copy_file_atomic, iter_tracked_files

logger = logging.getLogger(__name__)

# Snapshots of in-flight conversions live here until their artifact is published.
STAGING_DIR = ".staging"


def _collect_by_suffix(root: Path, suffix: str) -> dict[str, Path]:
    """Relative path (with *suffix* stripped) -> absolute path.

    The staging directory at the top of *root* is skipped.
    """
    found: dict[str, Path] = {}
    if not root.is_dir():
        return found
    for dirpath, dirnames, filenames in os.walk(root):
        if Path(dirpath) == root and STAGING_DIR in dirnames:
            dirnames.remove(STAGING_DIR)
        for name in filenames:
            if not name.endswith(suffix):
                continue
            path = Path(dirpath) / name
            rel = path.relative_to(root).as_posix()
            found[rel[: -len(suffix)]] = path
    return found


class ChangeDetector:
    """Compares the source tree with the snapshot store byte for byte.

    The snapshot of ``notes/todo.md`` is ``<snapshot_root>/notes/todo.md.old``
    and its artifact is ``<snapshot_root>/notes/todo.html``. Conversions read
    from ``<snapshot_root>/.staging/notes/todo.md.old`` and the staged copy is
    committed over the snapshot only after the artifact is in place.
    """

    def __init__(self, source_root: Path, snapshot_root: Path, rules: SyncRulesConfig) -> None:
        self.source_root = Path(source_root)
        self.snapshot_root = Path(snapshot_root)
        self.rules = rules

    def snapshot_path(self, rel_path: str) -> Path:
        return self.snapshot_root / (rel_path[: -len(MARKDOWN_SUFFIX)] + SNAPSHOT_SUFFIX)

    def artifact_path(self, rel_path: str) -> Path:
        return artifact_path_for(self.snapshot_root / rel_path)

    def source_documents(self) -> dict[str, Path]:
        return {
            rel: path
            for rel, path in iter_tracked_files(self.source_root, self.rules).items()
            if rel.endswith(MARKDOWN_SUFFIX)
        }

    def detect(self) -> ChangeSet:
        sources = self.source_documents()
        # Keys are document stems ("notes/todo"); documents are keyed "notes/todo.md".
        snapshots = {
            stem + MARKDOWN_SUFFIX: p
            for stem, p in _collect_by_suffix(self.snapshot_root, SNAPSHOT_SUFFIX).items()
        }
        artifacts = {
            stem + MARKDOWN_SUFFIX: p
            for stem, p in _collect_by_suffix(self.snapshot_root, HTML_SUFFIX).items()
        }

        changes = ChangeSet()
        for rel, src in sources.items():
            snapshot = snapshots.get(rel)
            if snapshot is None:
                changes.new.append(rel)
            elif not filecmp.cmp(src, snapshot, shallow=False):
                changes.modified.append(rel)
            elif rel not in artifacts:
                # Snapshot recorded but never published (crashed or failed earlier).
                logger.info("Artifact missing for '%s'. Scheduling reconversion.", rel)
                changes.modified.append(rel)
            else:
                changes.unchanged.append(rel)

        changes.deleted = sorted((set(snapshots) | set(artifacts)) - set(sources))
        logger.debug(
            "detected %d new, %d modified, %d unchanged, %d deleted",
            len(changes.new),
            len(changes.modified),
            len(changes.unchanged),
            len(changes.deleted),
        )
        return changes

    def record(self, rel_path: str) -> Path:
        """Copy the current source bytes into the snapshot store."""
        snapshot = self.snapshot_path(rel_path)
        copy_file_atomic(self.source_root / rel_path, snapshot)
        return snapshot

    def discard(self, rel_path: str) -> None:
        self.snapshot_path(rel_path).unlink(missing_ok=True)

    # -- Staging -------------------------------------------------------------

    @property
    def staging_root(self) -> Path:
        return self.snapshot_root / STAGING_DIR

    def staging_path(self, rel_path: str) -> Path:
        return self.staging_root / self.snapshot_path(rel_path).relative_to(self.snapshot_root)

    def stage(self, rel_path: str) -> Path:
        """Copy the current source bytes to the staging area, not the snapshot store.

        Until :meth:`commit` runs, ``detect`` still compares against the
        previous snapshot, so an interrupted conversion is retried.
        """
        staged = self.staging_path(rel_path)
        copy_file_atomic(self.source_root / rel_path, staged)
        return staged

    def commit(self, rel_path: str) -> Path:
        """Promote a staged snapshot once its artifact has been published."""
        snapshot = self.snapshot_path(rel_path)
        snapshot.parent.mkdir(parents=True, exist_ok=True)
        os.replace(self.staging_path(rel_path), snapshot)
        return snapshot

    def clear_staging(self) -> None:
        if self.staging_root.is_dir():
            shutil.rmtree(self.staging_root)
