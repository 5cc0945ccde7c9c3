"""Converts one document snapshot into a published HTML artifact."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

from wikimirror.converter.models import ConversionResult, WorkItem
from wikimirror.converter.renderer import Renderer
from wikimirror.errors import ConversionError
from wikimirror.transform import TransformPipeline

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = ".md.old"
MARKDOWN_SUFFIX = ".md"
HTML_SUFFIX = ".html"
TEMP_SUFFIX = ".tmp"


def strip_markdown_suffix(name: str) -> str:
    """notes.md.old -> notes, notes.md -> notes, anything else unchanged."""
    for suffix in (SNAPSHOT_SUFFIX, MARKDOWN_SUFFIX):
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def artifact_path_for(path: Path) -> Path:
    """Sibling .html path for a Markdown source or snapshot."""
    return path.with_name(strip_markdown_suffix(path.name) + HTML_SUFFIX)


def temp_path_for(artifact: Path) -> Path:
    return artifact.with_name(artifact.name + TEMP_SUFFIX)


def extract_title(path: Path) -> str:
    """First ``title:`` line in the file, else the file name without its suffix."""
    with open(path, encoding="utf-8", errors="replace") as f:
        for line in f:
            if line.startswith("title:"):
                title = line[len("title:"):].strip()
                if len(title) >= 2 and title[0] == title[-1] and title[0] in "\"'":
                    title = title[1:-1].strip()
                if title:
                    return title
                break
    return strip_markdown_suffix(path.name)


class ConversionWorker:
    """Render -> rewrite -> publish, all-or-nothing per document.

    The artifact only ever appears at its final path via ``os.replace`` of a
    fully written temp file in the same directory. On any failure the temp
    file is removed and the previous artifact (if any) is left as it was.
    """

    def __init__(
        self,
        renderer: Renderer,
        pipeline: TransformPipeline | None = None,
        stylesheet: Path | None = None,
    ) -> None:
        self.renderer = renderer
        self.pipeline = pipeline
        self.stylesheet: Path | None = None
        if stylesheet is not None:
            if Path(stylesheet).is_file():
                self.stylesheet = Path(stylesheet)
            else:
                logger.warning("CSS file '%s' not found. Rendering without a stylesheet.", stylesheet)

    def convert(self, item: WorkItem) -> ConversionResult:
        start = time.monotonic()
        source = item.snapshot_path
        final = item.artifact_path
        tmp = temp_path_for(final)

        logger.info("Converting '%s' to '%s'...", source, final)
        try:
            final.parent.mkdir(parents=True, exist_ok=True)
            title = extract_title(source)

            try:
                self.renderer.render(source, tmp, title=title, stylesheet=self.stylesheet)
            except Exception as exc:
                raise ConversionError(source, "render", exc) from exc

            if self.pipeline is not None:
                try:
                    html = tmp.read_text(encoding="utf-8")
                    tmp.write_text(self.pipeline.apply(html), encoding="utf-8")
                except Exception as exc:
                    raise ConversionError(source, "rewrite", exc) from exc

            try:
                os.replace(tmp, final)
            except OSError as exc:
                raise ConversionError(source, "publish", exc) from exc
        except ConversionError:
            tmp.unlink(missing_ok=True)
            raise
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise ConversionError(source, "prepare", exc) from exc

        logger.info("Successfully converted '%s' to '%s'.", source, final)
        return ConversionResult(
            source_path=item.rel_path,
            artifact_path=str(final),
            title=title,
            duration=time.monotonic() - start,
        )
