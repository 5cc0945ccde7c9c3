"""Document conversion subsystem: renderer adapter and atomic worker."""

from wikimirror.converter.models import ConversionResult, WorkItem
from wikimirror.converter.oneshot import convert_single_file, is_valid_filename
from wikimirror.converter.renderer import PandocRenderer, Renderer
from wikimirror.converter.worker import (
    HTML_SUFFIX,
    MARKDOWN_SUFFIX,
    SNAPSHOT_SUFFIX,
    ConversionWorker,
    artifact_path_for,
    extract_title,
    strip_markdown_suffix,
)

__all__ = [
    "ConversionResult",
    "ConversionWorker",
    "HTML_SUFFIX",
    "MARKDOWN_SUFFIX",
    "PandocRenderer",
    "Renderer",
    "SNAPSHOT_SUFFIX",
    "WorkItem",
    "artifact_path_for",
    "convert_single_file",
    "extract_title",
    "is_valid_filename",
    "strip_markdown_suffix",
]
