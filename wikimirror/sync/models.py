"""Pydantic models for synchronization passes."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class DocumentStatus(str, Enum):
    PENDING = "pending"
    CONVERTED = "converted"
    FAILED = "failed"
    DELETED = "deleted"


class Document(BaseModel):
    """A Markdown file tracked by the engine, keyed by its source-relative path."""

    rel_path: str
    status: DocumentStatus = DocumentStatus.PENDING


class ChangeSet(BaseModel):
    """Classification of every known document for one pass."""

    new: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)

    @property
    def pending(self) -> list[str]:
        """Documents that need a conversion this pass."""
        return self.new + self.modified

    @property
    def has_changes(self) -> bool:
        return bool(self.new or self.modified or self.deleted)


class TreeSyncResult(BaseModel):
    """Files copied into / removed from the output tree by the mirroring copy."""

    copied: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)


class SyncError(BaseModel):
    file: str
    step: str
    error: str


class SyncReport(BaseModel):
    changes: ChangeSet = Field(default_factory=ChangeSet)
    tree: TreeSyncResult = Field(default_factory=TreeSyncResult)
    documents: dict[str, Document] = Field(default_factory=dict)
    converted: list[str] = Field(default_factory=list)
    errors: list[SyncError] = Field(default_factory=list)
    index_path: str | None = None
    duration: float = 0.0

    @property
    def failed(self) -> list[str]:
        return [e.file for e in self.errors]
