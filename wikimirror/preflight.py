"""Checks that run before any filesystem state is touched."""

from __future__ import annotations

import logging
import shlex
import shutil
from pathlib import Path

from wikimirror.config.models import WikiMirrorConfig
from wikimirror.errors import DependencyError, PathConfigError

logger = logging.getLogger(__name__)


def required_tools(config: WikiMirrorConfig, *, open_browser: bool = True) -> list[str]:
    """Executables the requested run needs on PATH."""
    tools = [config.renderer.command]
    if open_browser and config.browser.command:
        tools.append(shlex.split(config.browser.command)[0])
    return tools


def check_dependencies(config: WikiMirrorConfig, *, open_browser: bool = True) -> None:
    """Raise DependencyError listing every required tool that is missing."""
    logger.info("Checking for required dependencies...")
    missing = [tool for tool in required_tools(config, open_browser=open_browser) if shutil.which(tool) is None]
    if missing:
        for tool in missing:
            logger.error("Dependency '%s' is not installed. Please install it and retry.", tool)
        raise DependencyError(missing)
    logger.info("All dependencies are satisfied.")


def validate_paths(config: WikiMirrorConfig) -> tuple[Path, Path]:
    """Validate the source and output roots. Returns them resolved.

    The output root must be absolute, live strictly under the scratch root,
    and never overlap the source tree.
    """
    logger.info("Validating input paths...")
    source = Path(config.source_dir)
    output = Path(config.output_dir)
    scratch = Path(config.scratch_root)

    if not source.is_absolute():
        raise PathConfigError(f"source_dir ('{source}') is not an absolute path.")
    if not output.is_absolute():
        raise PathConfigError(f"output_dir ('{output}') is not an absolute path.")
    if not scratch.is_absolute():
        raise PathConfigError(f"scratch_root ('{scratch}') is not an absolute path.")

    source_r = source.resolve()
    output_r = output.resolve()
    scratch_r = scratch.resolve()

    if output_r == scratch_r or not output_r.is_relative_to(scratch_r):
        raise PathConfigError(f"output_dir ('{output}') must be under {scratch}.")
    if not source.is_dir():
        raise PathConfigError(f"source_dir ('{source}') does not exist or is not a directory.")
    if output.exists() and not output.is_dir():
        raise PathConfigError(f"output_dir ('{output}') exists but is not a directory.")
    if output_r.is_relative_to(source_r) or source_r.is_relative_to(output_r):
        raise PathConfigError(f"output_dir ('{output}') must not overlap source_dir ('{source}').")

    logger.info("Input paths are valid.")
    return source_r, output_r
