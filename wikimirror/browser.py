"""Opens generated HTML in a viewer."""

from __future__ import annotations

import logging
import shlex
import subprocess
import webbrowser
from pathlib import Path

from wikimirror.config.models import BrowserConfig
from wikimirror.errors import BrowserError

logger = logging.getLogger(__name__)


def open_in_browser(path: Path, config: BrowserConfig) -> None:
    """Launch the configured viewer on *path* without waiting for it."""
    path = Path(path)
    if not path.is_file():
        raise BrowserError(f"'{path}' does not exist. Please ensure it is generated correctly.")

    if not config.command:
        if not webbrowser.open(path.as_uri()):
            raise BrowserError(f"No default browser available to open '{path}'.")
        logger.info("Opened '%s' in the default browser.", path)
        return

    cmd = [*shlex.split(config.command), str(path)]
    logger.info("Opening '%s' in %s...", path, cmd[0])
    try:
        subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        raise BrowserError(f"Failed to launch {cmd[0]}: {e}") from e
    logger.info("Opened '%s' in %s.", path, cmd[0])
