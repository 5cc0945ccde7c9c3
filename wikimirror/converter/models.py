"""Models for the conversion subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel


@dataclass(frozen=True)
class WorkItem:
    """One scheduled conversion of a single document."""

    rel_path: str  # relative to the source root, e.g. "notes/todo.md"
    snapshot_path: Path
    artifact_path: Path


class ConversionResult(BaseModel):
    """Outcome of a successful conversion."""

    source_path: str
    artifact_path: str
    title: str
    duration: float = 0.0
