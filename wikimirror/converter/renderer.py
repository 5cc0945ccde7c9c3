"""External Markdown -> HTML renderer (pandoc) driven through subprocess."""

from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import Protocol

from wikimirror.config.models import RendererConfig
from wikimirror.errors import RenderError

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """Anything that can turn one Markdown file into one standalone HTML file."""

    def render(
        self, source: Path, output: Path, *, title: str, stylesheet: Path | None = None
    ) -> None:
        """Write HTML for *source* to *output*. Raises RenderError on failure."""
        ...

    def terminate_all(self) -> int:
        """Stop every in-flight render and refuse new ones. Returns how many were signalled."""
        ...


class PandocRenderer:
    """Runs ``pandoc -f markdown -s`` once per document.

    Live subprocesses are tracked so an interrupted pass can terminate them.
    """

    def __init__(self, config: RendererConfig | None = None) -> None:
        self.config = config or RendererConfig()
        self._lock = threading.Lock()
        self._procs: set[subprocess.Popen] = set()
        self._cancelled = False

    @property
    def executable(self) -> str:
        return self.config.command

    def build_command(
        self, source: Path, output: Path, *, title: str, stylesheet: Path | None = None
    ) -> list[str]:
        cmd = [self.config.command, "-f", self.config.from_format, "-s"]
        if stylesheet is not None:
            cmd.append(f"--css={stylesheet}")
        cmd += ["--metadata", f"title={title}"]
        cmd += list(self.config.extra_args)
        cmd += [str(source), "-o", str(output)]
        return cmd

    def render(
        self, source: Path, output: Path, *, title: str, stylesheet: Path | None = None
    ) -> None:
        cmd = self.build_command(source, output, title=title, stylesheet=stylesheet)
        with self._lock:
            if self._cancelled:
                raise RenderError(source, None, "renderer was cancelled")
        logger.debug("running %s", cmd)
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise RenderError(source, None, str(e)) from e

        with self._lock:
            # terminate_all may have swept while Popen was starting.
            if self._cancelled:
                proc.terminate()
            self._procs.add(proc)
        try:
            _stdout, stderr = proc.communicate()
        finally:
            with self._lock:
                self._procs.discard(proc)

        if proc.returncode != 0:
            raise RenderError(source, proc.returncode, stderr or "")

    def terminate_all(self) -> int:
        """Stop in-flight renders and refuse any new ones."""
        with self._lock:
            self._cancelled = True
            procs = list(self._procs)
        count = 0
        for proc in procs:
            if proc.poll() is None:
                proc.terminate()
                count += 1
        if count:
            logger.warning("Terminated %d running renderer process(es)", count)
        return count
