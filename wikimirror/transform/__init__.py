"""Post-render transforms for generated HTML."""

from .pipeline import Transform, TransformPipeline
from .link_rewriter import (
    ExtensionlessLinkRewriter,
    ImageRootRewriter,
    SnapshotLinkRewriter,
    default_link_pipeline,
)

__all__ = [
    "Transform",
    "TransformPipeline",
    "SnapshotLinkRewriter",
    "ExtensionlessLinkRewriter",
    "ImageRootRewriter",
    "default_link_pipeline",
]
