"""Mirroring copy of allow-listed source files into the output tree."""

from __future__ import annotations

import filecmp
import fnmatch
import logging
import os
import shutil
from pathlib import Path, PurePosixPath

from wikimirror.config.models import SyncRulesConfig
from wikimirror.sync.models import TreeSyncResult

logger = logging.getLogger(__name__)


def _matches_any(rel: PurePosixPath, patterns: tuple[str, ...]) -> bool:
    """True if the file name or any parent directory matches a pattern."""
    return any(
        fnmatch.fnmatchcase(part, pattern)
        for part in rel.parts
        for pattern in patterns
    )


def iter_tracked_files(root: Path, rules: SyncRulesConfig) -> dict[str, Path]:
    """Map of POSIX relative path -> absolute path for every allow-listed file.

    Excluded directories are pruned during the walk; symlinked directories are
    not followed.
    """
    root = Path(root)
    found: dict[str, Path] = {}
    if not root.is_dir():
        return found

    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = PurePosixPath(Path(dirpath).relative_to(root).as_posix())
        dirnames[:] = sorted(
            d for d in dirnames
            if not any(fnmatch.fnmatchcase(d, p) for p in rules.exclude_patterns)
        )
        for name in sorted(filenames):
            rel = rel_dir / name if str(rel_dir) != "." else PurePosixPath(name)
            if _matches_any(rel, rules.exclude_patterns):
                continue
            if not any(fnmatch.fnmatchcase(name, p) for p in rules.include_patterns):
                continue
            path = Path(dirpath) / name
            if path.is_file():
                found[str(rel)] = path
    return found


def copy_file_atomic(src: Path, dest: Path) -> None:
    """Copy *src* over *dest* so readers never see a half-written *dest*."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_name(f".{dest.name}.{os.getpid()}.part")
    try:
        shutil.copy2(src, partial)
        os.replace(partial, dest)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise


class TreeSynchronizer:
    """rsync-style ``--delete`` mirror restricted to the allow-list.

    Only allow-listed kinds are ever copied or deleted, so snapshots,
    artifacts, temp files and logs in the output tree are left alone.
    """

    def __init__(self, source_root: Path, output_root: Path, rules: SyncRulesConfig) -> None:
        self.source_root = Path(source_root)
        self.output_root = Path(output_root)
        self.rules = rules

    def sync(self) -> TreeSyncResult:
        result = TreeSyncResult()
        sources = iter_tracked_files(self.source_root, self.rules)

        for rel, src in sources.items():
            dest = self.output_root / rel
            if dest.is_file() and filecmp.cmp(src, dest, shallow=False):
                continue
            copy_file_atomic(src, dest)
            result.copied.append(rel)
            logger.debug("copied %s", rel)

        for rel, dest in iter_tracked_files(self.output_root, self.rules).items():
            if rel in sources:
                continue
            dest.unlink(missing_ok=True)
            result.removed.append(rel)
            logger.debug("removed %s", rel)

        logger.info(
            "Synchronization completed: %d copied, %d removed.",
            len(result.copied),
            len(result.removed),
        )
        return result
