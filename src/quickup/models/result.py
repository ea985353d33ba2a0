"""Result model returned by every orchestrator run."""

from enum import Enum

from pydantic import BaseModel, Field

from .release import Artifact
from .script import ManagedScript, SyncResult


class UpdateOutcome(str, Enum):
    """How an orchestrator run ended."""

    UPDATED = "updated"
    ROLLED_BACK = "rolled-back"
    UP_TO_DATE = "up-to-date"
    SCRIPTS_SYNCED = "scripts-synced"
    PREVIEW = "preview"
    CANCELLED = "cancelled"


class UpdateResult(BaseModel):
    """Summary of one orchestrator run, suitable for --json output."""

    outcome: UpdateOutcome
    current_version: str | None = None
    target_version: str | None = None
    downgrade: bool = False
    development: bool = False
    artifact: Artifact | None = None
    scripts: dict[str, ManagedScript] = Field(default_factory=dict)
    sync: SyncResult | None = None
    warnings: list[str] = Field(default_factory=list)
    states: list[str] = Field(default_factory=list, description="Visited states, in order")

    @property
    def exit_code(self) -> int:
        """Non-zero when script sync partially failed."""
        if self.sync is not None and not self.sync.ok:
            return 2
        return 0
