"""Snapshots of the managed scripts directory.

Each snapshot is a timestamped directory under the backups root:

    backups/scripts-20260101_120000_000000/
        files/        full copy of the scripts directory
        snapshot.json BackupSnapshot metadata

Names sort chronologically. Only the newest MAX_BACKUPS are kept.
"""

import logging
import os
import shutil
import stat
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from ..constants import MAX_BACKUPS
from ..models import BackupSnapshot

logger = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "scripts-"
FILES_DIR = "files"
META_FILE = "snapshot.json"


def _snapshot_dirs(backups_dir: Path) -> list[Path]:
    """Snapshot directories, newest first."""
    if not backups_dir.exists():
        return []
    return sorted(
        (d for d in backups_dir.iterdir() if d.is_dir() and d.name.startswith(SNAPSHOT_PREFIX)),
        key=lambda d: d.name,
        reverse=True,
    )


def create_snapshot(
    scripts_dir: Path,
    backups_dir: Path,
    scripts: list[str],
    target_tag: str | None = None,
) -> Path:
    """Copy the whole scripts directory into a new snapshot.

    Args:
        scripts_dir: Directory holding the managed scripts
        backups_dir: Root directory for snapshots
        scripts: Managed script names, recorded in the metadata
        target_tag: Tag the caller is about to sync to

    Returns:
        Path to the snapshot directory
    """
    now = datetime.now()
    name = f"{SNAPSHOT_PREFIX}{now.strftime('%Y%m%d_%H%M%S_%f')}"
    snapshot_dir = backups_dir / name
    snapshot_dir.mkdir(parents=True, exist_ok=False)

    files_dir = snapshot_dir / FILES_DIR
    if scripts_dir.exists():
        resolved_backups = backups_dir.resolve()

        def _ignore(directory: str, names: list[str]) -> set[str]:
            ignored = {n for n in names if n.endswith((".new", ".part"))}
            # Never copy the backups root into itself
            ignored.update(n for n in names if (Path(directory) / n).resolve() == resolved_backups)
            return ignored

        shutil.copytree(scripts_dir, files_dir, ignore=_ignore, symlinks=True)
    else:
        files_dir.mkdir()

    present = [s for s in scripts if (files_dir / s).exists()]
    meta = BackupSnapshot(name=name, created_at=now, target_tag=target_tag, scripts=present)
    (snapshot_dir / META_FILE).write_text(meta.model_dump_json(indent=2))

    logger.info("Backed up scripts to %s", snapshot_dir)
    return snapshot_dir


def list_snapshots(backups_dir: Path) -> list[BackupSnapshot]:
    """Snapshot metadata, newest first. Corrupt entries are skipped."""
    snapshots = []
    for snapshot_dir in _snapshot_dirs(backups_dir):
        meta_path = snapshot_dir / META_FILE
        try:
            snapshots.append(BackupSnapshot.model_validate_json(meta_path.read_text()))
        except (ValidationError, OSError) as e:
            logger.warning("Skipping corrupt snapshot %s: %s", snapshot_dir.name, e)
    return snapshots


def prune_snapshots(backups_dir: Path, keep: int = MAX_BACKUPS) -> list[str]:
    """Remove snapshots beyond the newest ``keep``.

    Returns:
        Names of the removed snapshots
    """
    removed = []
    for old_dir in _snapshot_dirs(backups_dir)[keep:]:
        shutil.rmtree(old_dir)
        removed.append(old_dir.name)
    if removed:
        logger.info("Cleaned up %d old backup(s)", len(removed))
    return removed


def restore_snapshot(
    backups_dir: Path,
    scripts_dir: Path,
    scripts: list[str],
    name: str | None = None,
) -> list[str]:
    """Copy managed scripts from a snapshot back into place.

    Args:
        backups_dir: Root directory for snapshots
        scripts_dir: Live scripts directory
        scripts: Managed script names to restore
        name: Snapshot to restore (defaults to the newest)

    Returns:
        Names of the restored scripts

    Raises:
        FileNotFoundError: If the snapshot does not exist
    """
    if name is None:
        dirs = _snapshot_dirs(backups_dir)
        if not dirs:
            raise FileNotFoundError(f"No backups found in {backups_dir}")
        snapshot_dir = dirs[0]
    else:
        snapshot_dir = backups_dir / name
        inside = snapshot_dir.resolve().parent == backups_dir.resolve()
        if not (inside and name.startswith(SNAPSHOT_PREFIX) and snapshot_dir.is_dir()):
            raise FileNotFoundError(f"Backup not found: {name}")

    files_dir = snapshot_dir / FILES_DIR
    restored = []
    scripts_dir.mkdir(parents=True, exist_ok=True)
    for script in scripts:
        source = files_dir / script
        if not source.is_file():
            continue
        tmp = scripts_dir / f"{script}.new"
        shutil.copy2(source, tmp)
        os.replace(tmp, scripts_dir / script)
        make_executable(scripts_dir / script)
        restored.append(script)

    logger.info("Restored %d script(s) from %s", len(restored), snapshot_dir.name)
    return restored


def make_executable(path: Path) -> None:
    """Add execute permission wherever read permission is set."""
    mode = path.stat().st_mode
    exec_bits = 0
    if mode & stat.S_IRUSR:
        exec_bits |= stat.S_IXUSR
    if mode & stat.S_IRGRP:
        exec_bits |= stat.S_IXGRP
    if mode & stat.S_IROTH:
        exec_bits |= stat.S_IXOTH
    path.chmod(mode | exec_bits)
