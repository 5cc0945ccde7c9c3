from .loader import DEFAULT_CONFIG_TEMPLATE, load_config
from .models import (
    BrowserConfig,
    RendererConfig,
    SyncRulesConfig,
    WikiMirrorConfig,
)

__all__ = [
    "BrowserConfig",
    "DEFAULT_CONFIG_TEMPLATE",
    "RendererConfig",
    "SyncRulesConfig",
    "WikiMirrorConfig",
    "load_config",
]
