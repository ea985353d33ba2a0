"""Lock model for single-instance runs.

Only one quickup process may touch the installation record, the
rollback record or the scripts directory at a time.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Lock(BaseModel):
    """Active run lock written to <data_root>/quickup.lock.

    Attributes:
        pid: Process ID of the lock holder.
        command: Command that acquired the lock.
        started_at: When the lock was acquired.
        last_heartbeat: Last heartbeat update (for stale detection).
    """

    pid: int = Field(description="Process ID holding the lock")
    command: str = Field(description="Command that acquired lock")
    started_at: datetime = Field(default_factory=datetime.now)
    last_heartbeat: datetime = Field(default_factory=datetime.now)
