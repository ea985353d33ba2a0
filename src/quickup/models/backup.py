"""Backup snapshot metadata for the managed scripts directory."""

from datetime import datetime

from pydantic import BaseModel, Field


class BackupSnapshot(BaseModel):
    """Metadata stored as snapshot.json inside each snapshot directory.

    Attributes:
        name: Snapshot directory name (sortable, newest last)
        created_at: When the snapshot was taken
        target_tag: Release tag the following sync was heading to
        scripts: Managed scripts present when the snapshot was taken
    """

    name: str
    created_at: datetime = Field(default_factory=datetime.now)
    target_tag: str | None = Field(default=None, description="Tag being synced to")
    scripts: list[str] = Field(default_factory=list)
