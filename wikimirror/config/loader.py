"""YAML config loading with env var and home directory expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from wikimirror.errors import ConfigError

from .models import WikiMirrorConfig

_PATH_FIELDS = ("source_dir", "output_dir", "scratch_root", "css_file", "dump_dir")


def config_search_paths(cli_path: str | None = None) -> list[Path]:
    """Candidate config files in resolution order."""
    paths = [Path(cli_path)] if cli_path else []
    paths.append(Path("./wikimirror.yaml"))
    paths.append(Path.home() / ".config" / "wikimirror" / "config.yaml")
    return paths


def load_config(cli_path: str | None = None) -> WikiMirrorConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    if cli_path and not Path(cli_path).is_file():
        raise ConfigError(f"Config file not found: {cli_path}")

    for path in config_search_paths(cli_path):
        if path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                if not isinstance(raw, dict):
                    raise ConfigError(f"Invalid config in {path}: expected a mapping")
                raw = _expand_env_vars(raw)
                return WikiMirrorConfig(**_expand_user_paths(raw))
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ConfigError(f"Invalid config in {path}: {e}") from e

    return WikiMirrorConfig(**_expand_user_paths(WikiMirrorConfig().model_dump()))


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _expand_user_paths(raw: dict) -> dict:
    """Expand a leading ~ in path-valued fields."""
    out = dict(raw)
    for key in _PATH_FIELDS:
        value = out.get(key)
        if isinstance(value, str) and value:
            out[key] = os.path.expanduser(value)
    return out


# Default YAML template for `wikimirror config init`
DEFAULT_CONFIG_TEMPLATE = """\
# wikimirror.yaml

# Markdown wiki to mirror (absolute path, ~ is expanded)
source_dir: "~/vimwiki"

# Generated HTML tree; must live under scratch_root
output_dir: "/tmp/vimwikihtml"
scratch_root: "/tmp"

# Stylesheet passed to the renderer when the file exists
css_file: "~/.local/share/nvim/style.css"

# Number of concurrent renderer processes
concurrent_jobs: 4

# Entry-point document, regenerated on every pass
index_name: "index"

# Scratch directory for one-off `wikimirror convert FILE`
dump_dir: "/tmp/markdowndump"

renderer:
  command: "pandoc"
  from_format: "markdown"
  # extra_args: ["--toc"]

browser:
  command: "qutebrowser"       # empty string uses the default browser

sync:
  include_patterns: ["*.md", "*.pdf", "*.png", "*.jpg", "*.jpeg", "*.gif"]
  exclude_patterns: ["*.html", "*.sh", ".git", ".gitignore", "*.bak", "*.tex", "*.toc", "*.out"]

# Logging
log_level: "info"              # debug | info | warn | error
log_file: "conversion.log"     # relative to output_dir
error_log_file: "error.log"
"""
