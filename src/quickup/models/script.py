"""Managed script models for script synchronization."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

# Digest placeholders
MISSING = "missing"
FETCH_FAILED = "fetch-failed"


class ScriptStatus(str, Enum):
    """Classification of a managed script against a release tag."""

    UP_TO_DATE = "up-to-date"
    CHANGED = "changed"
    NEW = "new"
    UNKNOWN = "unknown"


class ManagedScript(BaseModel):
    """State of one managed script for a single check.

    Attributes:
        name: Script filename (e.g. "updater.sh")
        local_digest: SHA-256 of the local copy, or "missing"
        remote_digest: SHA-256 of the file at the target tag, or "fetch-failed"
        status: Resulting classification
    """

    name: str
    local_digest: str = MISSING
    remote_digest: str = FETCH_FAILED
    status: ScriptStatus = ScriptStatus.UNKNOWN

    @property
    def needs_update(self) -> bool:
        return self.status in (ScriptStatus.CHANGED, ScriptStatus.NEW)


class SyncResult(BaseModel):
    """Outcome of applying script updates.

    Per-script failures do not abort the batch, so a result can mix
    updated and failed scripts; ``mixed_version`` flags that case.
    """

    target_tag: str
    updated: set[str] = Field(default_factory=set)
    failed: set[str] = Field(default_factory=set)
    backup: Path | None = Field(default=None, description="Snapshot taken before applying")

    @property
    def mixed_version(self) -> bool:
        return bool(self.updated) and bool(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed
