from pydantic import BaseModel, ConfigDict, Field
from typing import Literal


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class RendererConfig(_Frozen):
    command: str = "pandoc"
    from_format: str = "markdown"
    extra_args: tuple[str, ...] = ()


class BrowserConfig(_Frozen):
    # Empty command means "use the platform default browser".
    command: str = "qutebrowser"


class SyncRulesConfig(_Frozen):
    include_patterns: tuple[str, ...] = ("*.md", "*.pdf", "*.png", "*.jpg", "*.jpeg", "*.gif")
    exclude_patterns: tuple[str, ...] = (
        "*.html", "*.sh", ".git", ".gitignore", "*.bak", "*.tex", "*.toc", "*.out",
    )


class WikiMirrorConfig(_Frozen):
    source_dir: str = "~/vimwiki"
    output_dir: str = "/tmp/vimwikihtml"
    scratch_root: str = "/tmp"
    css_file: str | None = "~/.local/share/nvim/style.css"
    concurrent_jobs: int = Field(default=4, gt=0)
    index_name: str = Field(default="index", min_length=1)
    dump_dir: str = "/tmp/markdowndump"
    renderer: RendererConfig = Field(default_factory=RendererConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    sync: SyncRulesConfig = Field(default_factory=SyncRulesConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_file: str = "conversion.log"
    error_log_file: str = "error.log"
