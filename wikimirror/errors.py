"""Error taxonomy and process exit codes."""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path


class ExitCode(IntEnum):
    SUCCESS = 0
    FAILURE = 1
    DEPENDENCY = 2
    CONVERSION = 3


class WikiMirrorError(Exception):
    """Base class for all wikimirror failures."""

    exit_code: ExitCode = ExitCode.FAILURE


class ConfigError(WikiMirrorError, ValueError):
    """A config file could not be parsed or failed validation."""


class PathConfigError(WikiMirrorError):
    """Source or output root is unusable (relative, wrong place, wrong type)."""


class DependencyError(WikiMirrorError):
    """One or more required external tools are not on PATH."""

    exit_code = ExitCode.DEPENDENCY

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        names = ", ".join(f"'{m}'" for m in self.missing)
        super().__init__(f"Missing required dependencies: {names}. Install them and retry.")


class RenderError(WikiMirrorError):
    """The external renderer exited non-zero or could not be started."""

    def __init__(self, source: Path, returncode: int | None, stderr: str = "") -> None:
        self.source = Path(source)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
        super().__init__(f"renderer failed on {self.source} (exit {returncode}): {detail}")


class ConversionError(WikiMirrorError):
    """Wraps a failure in one conversion step with the document it hit."""

    exit_code = ExitCode.CONVERSION

    def __init__(self, source: Path, step: str, cause: Exception) -> None:
        self.source = Path(source)
        self.step = step
        super().__init__(f"{step} failed for '{self.source}': {cause}")
        self.__cause__ = cause


class IndexConversionError(ConversionError):
    """The entry-point document could not be converted."""


class IndexMissingError(WikiMirrorError):
    """No snapshot of the entry-point document exists after synchronization."""


class SyncInterrupted(WikiMirrorError):
    """A pass was cancelled by SIGINT/SIGTERM."""


class BrowserError(WikiMirrorError):
    """The viewer could not be launched."""


class InvalidFilenameError(WikiMirrorError):
    """File name contains characters outside [A-Za-z0-9._-]."""
