"""Convert a single Markdown file outside the synchronized tree."""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path

from wikimirror.converter.models import WorkItem
from wikimirror.converter.worker import ConversionWorker, artifact_path_for
from wikimirror.errors import InvalidFilenameError, PathConfigError, WikiMirrorError

logger = logging.getLogger(__name__)

_VALID_FILENAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def is_valid_filename(name: str) -> bool:
    return bool(_VALID_FILENAME_RE.match(name))


def convert_single_file(md_file: Path, dump_dir: Path, worker: ConversionWorker) -> Path:
    """Copy *md_file* into *dump_dir* and render it next to the copy.

    The snapshot store is never touched. Returns the published HTML path.
    """
    md_file = Path(md_file)
    dump_dir = Path(dump_dir)
    if not is_valid_filename(md_file.name):
        raise InvalidFilenameError(f"Refusing file with invalid filename: '{md_file}'")
    if not md_file.is_file():
        raise WikiMirrorError(f"File '{md_file}' does not exist.")
    if not dump_dir.is_absolute():
        raise PathConfigError(f"dump_dir ('{dump_dir}') is not an absolute path.")

    dump_dir.mkdir(parents=True, exist_ok=True)
    dest = dump_dir / md_file.name
    shutil.copyfile(md_file, dest)
    logger.info("Copied '%s' to '%s'.", md_file, dest)

    item = WorkItem(rel_path=md_file.name, snapshot_path=dest, artifact_path=artifact_path_for(dest))
    worker.convert(item)
    return item.artifact_path
