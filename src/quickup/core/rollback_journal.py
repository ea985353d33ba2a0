"""Single-slot rollback journal.

Holds the one version an explicit rollback returns to. There is no
history: recording overwrites whatever was there. The record is written
durably before an update is applied, so a crash mid-update still
leaves the pre-update version as the rollback target.
"""

import logging
from pathlib import Path

from ..errors import NoRollbackAvailable
from ..services.storage import Storage

logger = logging.getLogger(__name__)


class RollbackJournal:
    """Persisted "version to return to"."""

    def __init__(self, storage: Storage, path: Path) -> None:
        self.storage = storage
        self.path = path

    def record(self, version: str) -> None:
        """Overwrite the rollback target with version."""
        self.storage.write_text(self.path, f"{version}\n")
        logger.info("Saved rollback version: %s", version)

    def peek(self) -> str | None:
        """Return the rollback target without removing it."""
        content = self.storage.read_text(self.path)
        if content is None:
            return None
        version = content.strip()
        return version or None

    def require(self) -> str:
        """Return the rollback target.

        Raises:
            NoRollbackAvailable: If nothing is recorded
        """
        version = self.peek()
        if version is None:
            raise NoRollbackAvailable(
                "No rollback information found. "
                "Rollback is only available after a successful update."
            )
        return version

    def consume(self) -> str:
        """Return and delete the rollback target.

        Call only after the rollback itself succeeded.

        Raises:
            NoRollbackAvailable: If nothing is recorded
        """
        version = self.require()
        self.storage.delete(self.path)
        logger.debug("Cleared rollback record %s", self.path)
        return version
