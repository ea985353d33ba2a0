"""Lock manager for single-instance quickup runs.

Provides PID-based file locking so two quickup processes never touch
the installation record, the rollback record or the scripts directory
at the same time. Includes stale lock detection for crash recovery.

Uses atomic file creation (O_CREAT | O_EXCL) to prevent TOCTOU races.
"""

import contextlib
import os
from collections.abc import Iterator
from datetime import datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from ..constants import LOCK_FILE
from ..errors import LockError
from ..models import Lock

STALE_TIMEOUT_SECONDS = 3600  # 1 hour
MAX_LOCK_RETRIES = 3  # Max retries when clearing stale locks


def _lock_path(state_dir: Path) -> Path:
    """Get path to lock file."""
    return state_dir / LOCK_FILE


def _is_pid_running(pid: int) -> bool:
    """Check if a process with given PID is running."""
    try:
        os.kill(pid, 0)  # Signal 0 doesn't kill, just checks
        return True
    except OSError:
        return False


def get_current_lock(state_dir: Path) -> Lock | None:
    """Get current lock if it exists and is valid.

    Args:
        state_dir: Directory holding the lock file

    Returns:
        Lock if valid lock exists, None otherwise
    """
    lock_path = _lock_path(state_dir)
    if not lock_path.exists():
        return None

    try:
        content = lock_path.read_text()
        return Lock.model_validate_json(content)
    except (OSError, ValidationError):
        # Unreadable or corrupted lock file counts as no lock
        return None


def is_stale_lock(lock: Lock, timeout_seconds: int = STALE_TIMEOUT_SECONDS) -> bool:
    """Check if lock is stale (PID dead or timeout exceeded).

    Args:
        lock: Lock to check
        timeout_seconds: Max time since heartbeat before considered stale

    Returns:
        True if lock is stale and should be cleared
    """
    if not _is_pid_running(lock.pid):
        return True

    age = datetime.now() - lock.last_heartbeat
    return age > timedelta(seconds=timeout_seconds)


def _try_atomic_create(lock_path: Path, lock: Lock) -> bool:
    """Attempt atomic lock file creation.

    Returns:
        True if lock was created, False if file already exists
    """
    try:
        fd = os.open(str(lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        try:
            os.write(fd, lock.model_dump_json(indent=2).encode())
        finally:
            os.close(fd)
        return True
    except FileExistsError:
        return False


def acquire_lock(state_dir: Path, command: str) -> Lock:
    """Acquire the run lock.

    Args:
        state_dir: Directory holding the lock file
        command: Command acquiring the lock

    Returns:
        Lock object if acquired

    Raises:
        LockError: If another process holds an active lock
    """
    state_dir.mkdir(parents=True, exist_ok=True)
    lock_path = _lock_path(state_dir)
    lock = Lock(pid=os.getpid(), command=command)

    for _ in range(MAX_LOCK_RETRIES):
        if _try_atomic_create(lock_path, lock):
            return lock

        existing = get_current_lock(state_dir)
        if existing is None:
            # Corrupted or removed between attempts
            with contextlib.suppress(FileNotFoundError):
                lock_path.unlink()
            continue

        if existing.pid == os.getpid():
            lock_path.write_text(lock.model_dump_json(indent=2))
            return lock

        if is_stale_lock(existing):
            with contextlib.suppress(FileNotFoundError):
                lock_path.unlink()
            continue

        raise LockError(
            f"Another quickup run is in progress (PID {existing.pid}, command: {existing.command})"
        )

    raise LockError("Failed to acquire lock after multiple attempts")


def release_lock(state_dir: Path) -> None:
    """Release lock if owned by current process."""
    lock_path = _lock_path(state_dir)
    existing = get_current_lock(state_dir)

    if existing and existing.pid == os.getpid():
        lock_path.unlink(missing_ok=True)


def update_heartbeat(state_dir: Path) -> None:
    """Update lock heartbeat timestamp.

    Called on every orchestrator state transition.
    """
    existing = get_current_lock(state_dir)
    if existing and existing.pid == os.getpid():
        existing.last_heartbeat = datetime.now()
        _lock_path(state_dir).write_text(existing.model_dump_json(indent=2))


@contextlib.contextmanager
def hold_lock(state_dir: Path, command: str) -> Iterator[Lock]:
    """Hold the run lock for the duration of a with-block."""
    lock = acquire_lock(state_dir, command)
    try:
        yield lock
    finally:
        release_lock(state_dir)
