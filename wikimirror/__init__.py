"""wikimirror - incrementally mirror a Markdown wiki into standalone HTML."""

__version__ = "1.0.0"

from wikimirror.config import WikiMirrorConfig, load_config
from wikimirror.converter import ConversionWorker, PandocRenderer
from wikimirror.errors import ExitCode, WikiMirrorError
from wikimirror.sync import ChangeDetector, SyncReport, Synchronizer

__all__ = [
    "ChangeDetector",
    "ConversionWorker",
    "ExitCode",
    "PandocRenderer",
    "SyncReport",
    "Synchronizer",
    "WikiMirrorConfig",
    "WikiMirrorError",
    "load_config",
]
