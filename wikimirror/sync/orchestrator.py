"""Synchronization pass: tree sync -> classify -> convert -> reconcile -> index."""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path

from wikimirror.config.models import WikiMirrorConfig
from wikimirror.converter.models import WorkItem
from wikimirror.converter.renderer import Renderer
from wikimirror.converter.worker import MARKDOWN_SUFFIX, ConversionWorker
from wikimirror.errors import (
    ConversionError,
    IndexConversionError,
    IndexMissingError,
    SyncInterrupted,
)
from wikimirror.sync.detector import ChangeDetector
from wikimirror.sync.models import (
    ChangeSet,
    Document,
    DocumentStatus,
    SyncError,
    SyncReport,
)
from wikimirror.sync.tree import TreeSynchronizer
from wikimirror.transform import default_link_pipeline

logger = logging.getLogger(__name__)


class Synchronizer:
    """Runs one synchronization pass over a configured source/output pair.

    Conversions for new and modified documents run on a thread pool bounded
    by ``config.concurrent_jobs``; each thread drives one renderer process.
    The pass waits for every conversion before reconciling deletions and
    regenerating the index, so those steps always see a settled tree.
    """

    def __init__(
        self,
        config: WikiMirrorConfig,
        renderer: Renderer,
        worker: ConversionWorker | None = None,
    ) -> None:
        self.config = config
        self.renderer = renderer
        self.source_root = Path(config.source_dir)
        self.output_root = Path(config.output_dir)
        self.tree = TreeSynchronizer(self.source_root, self.output_root, config.sync)
        self.detector = ChangeDetector(self.source_root, self.output_root, config.sync)
        if worker is None:
            stylesheet = Path(config.css_file) if config.css_file else None
            worker = ConversionWorker(
                renderer,
                pipeline=default_link_pipeline(str(self.output_root)),
                stylesheet=stylesheet,
            )
        self.worker = worker

    @property
    def index_rel_path(self) -> str:
        return self.config.index_name + MARKDOWN_SUFFIX

    # -- Public API ----------------------------------------------------------

    def run(self) -> SyncReport:
        start = time.monotonic()
        report = SyncReport()

        self.output_root.mkdir(parents=True, exist_ok=True)
        # Leftovers from a pass that died before publishing.
        self.detector.clear_staging()
        logger.info("Synchronizing Markdown files and assets to '%s'...", self.output_root)
        report.tree = self.tree.sync()

        changes = self.detector.detect()
        report.changes = changes
        self._seed_documents(changes, report)

        try:
            items = self._schedule(changes, report)
            self._dispatch(items, report)
            self._reconcile(changes.deleted, report)
            self._generate_index(report)
        finally:
            # Uncommitted snapshots are dropped; those documents stay stale until retried.
            self.detector.clear_staging()
            report.duration = time.monotonic() - start

        logger.info(
            "Pass finished in %.2fs: %d converted, %d failed, %d deleted.",
            report.duration,
            len(report.converted),
            len(report.errors),
            len(changes.deleted),
        )
        return report

    # -- Internals -----------------------------------------------------------

    @staticmethod
    def _seed_documents(changes: ChangeSet, report: SyncReport) -> None:
        for rel in changes.pending:
            report.documents[rel] = Document(rel_path=rel)
        for rel in changes.unchanged:
            report.documents[rel] = Document(rel_path=rel, status=DocumentStatus.CONVERTED)
            logger.info("No changes detected for '%s'. Skipping conversion.", rel)

    def _schedule(self, changes: ChangeSet, report: SyncReport) -> dict[str, WorkItem]:
        """Stage snapshots and build at most one work item per document."""
        items: dict[str, WorkItem] = {}
        new = set(changes.new)
        for rel in changes.pending:
            if rel in items:
                continue
            try:
                staged = self.detector.stage(rel)
            except OSError as exc:
                logger.error("Failed to snapshot '%s': %s", rel, exc)
                self._mark_failed(rel, "snapshot", exc, report)
                continue
            if rel in new:
                logger.info("New file detected. Staged '%s' as '%s'.", rel, staged)
            else:
                logger.info("Modified file detected. Staged '%s'.", staged)
            items[rel] = WorkItem(
                rel_path=rel,
                snapshot_path=staged,
                artifact_path=self.detector.artifact_path(rel),
            )
        return items

    def _dispatch(self, items: dict[str, WorkItem], report: SyncReport) -> None:
        if not items:
            return

        executor = ThreadPoolExecutor(
            max_workers=self.config.concurrent_jobs,
            thread_name_prefix="wikimirror-worker",
        )
        futures: dict[Future, WorkItem] = {}
        try:
            for item in items.values():
                futures[executor.submit(self.worker.convert, item)] = item

            for future in as_completed(futures):
                item = futures[future]
                try:
                    future.result()
                except ConversionError as exc:
                    logger.error("Failed to convert '%s' at step '%s': %s", item.snapshot_path, exc.step, exc)
                    self._mark_failed(item.rel_path, exc.step, exc, report)
                except Exception as exc:
                    logger.exception("Unexpected error converting '%s'", item.snapshot_path)
                    self._mark_failed(item.rel_path, "convert", exc, report)
                else:
                    self._commit(item.rel_path, report)
        except KeyboardInterrupt:
            logger.warning("Synchronization interrupted. Cleaning up...")
            executor.shutdown(wait=False, cancel_futures=True)
            self.renderer.terminate_all()
            raise SyncInterrupted("interrupted while converting documents") from None
        executor.shutdown(wait=True)
        logger.info("Conversion of new or modified files completed.")

    def _commit(self, rel: str, report: SyncReport) -> None:
        try:
            self.detector.commit(rel)
        except OSError as exc:
            logger.error("Failed to record snapshot of '%s': %s", rel, exc)
            self._mark_failed(rel, "snapshot", exc, report)
            return
        report.converted.append(rel)
        report.documents[rel].status = DocumentStatus.CONVERTED

    def _reconcile(self, deleted: list[str], report: SyncReport) -> None:
        for rel in deleted:
            artifact = self.detector.artifact_path(rel)
            try:
                if artifact.is_file():
                    artifact.unlink()
                    logger.info("Deleted '%s' as the source Markdown file no longer exists.", artifact)
                self.detector.discard(rel)
            except OSError as exc:
                logger.error("Failed to remove outputs of deleted '%s': %s", rel, exc)
                report.errors.append(SyncError(file=rel, step="reconcile", error=str(exc)))
                continue
            report.documents[rel] = Document(rel_path=rel, status=DocumentStatus.DELETED)
        self._prune_empty_dirs()

    def _prune_empty_dirs(self) -> None:
        for dirpath, _dirnames, _filenames in os.walk(self.output_root, topdown=False):
            path = Path(dirpath)
            if path == self.output_root:
                continue
            try:
                path.rmdir()
            except OSError:
                continue  # not empty
            logger.debug("pruned empty directory %s", path)

    def _generate_index(self, report: SyncReport) -> None:
        rel = self.index_rel_path
        # Still staged when the index failed during dispatch.
        staged = self.detector.staging_path(rel)
        snapshot = staged if staged.is_file() else self.detector.snapshot_path(rel)
        if not snapshot.is_file():
            raise IndexMissingError(f"'{snapshot.name}' not found in '{self.output_root}'.")

        logger.info("Generating '%s' from '%s'...", self.detector.artifact_path(rel).name, snapshot.name)
        item = WorkItem(rel_path=rel, snapshot_path=snapshot, artifact_path=self.detector.artifact_path(rel))
        try:
            self.worker.convert(item)
        except ConversionError as exc:
            raise IndexConversionError(exc.source, exc.step, exc.__cause__ or exc) from exc

        report.errors = [e for e in report.errors if e.file != rel]
        if snapshot == staged:
            self._commit(rel, report)
        elif rel in report.documents:
            report.documents[rel].status = DocumentStatus.CONVERTED
        report.index_path = str(item.artifact_path)

    @staticmethod
    def _mark_failed(rel: str, step: str, exc: Exception, report: SyncReport) -> None:
        report.errors.append(SyncError(file=rel, step=step, error=str(exc)))
        report.documents[rel].status = DocumentStatus.FAILED
