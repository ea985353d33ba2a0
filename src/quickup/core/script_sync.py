"""Maintenance script synchronization.

Detects drift between the locally cached maintenance scripts and the
copies published at a release tag of the scripts repository, using
SHA-256 digests, and applies updates one script at a time.

The batch is best effort: a failed download leaves that script as it
was and the rest still update. Each replacement is atomic (download to
``<name>.new``, then rename over the live file), so a script is always
either the old or the new version, never a partial one. A batch that
ends with both updated and failed scripts is reported as mixed-version.
"""

import hashlib
import logging
import os
from collections.abc import Iterable, Sequence
from pathlib import Path

from ..constants import MANAGED_SCRIPTS, MAX_BACKUPS
from ..errors import ArtifactFetchFailed
from ..models import (
    FETCH_FAILED,
    MISSING,
    BackupSnapshot,
    ManagedScript,
    ScriptStatus,
    SyncResult,
)
from ..services.fetcher import ArtifactFetcher
from ..services.github import GitHubAPIError, GitHubClient
from ..services.retry import RetryPolicy
from .backup_manager import (
    create_snapshot,
    list_snapshots,
    make_executable,
    prune_snapshots,
    restore_snapshot,
)

logger = logging.getLogger(__name__)


def digest_bytes(data: bytes) -> str:
    """SHA-256 hex digest of data."""
    return hashlib.sha256(data).hexdigest()


def digest_file(path: Path) -> str:
    """SHA-256 hex digest of a file, or MISSING if it does not exist."""
    if not path.is_file():
        return MISSING
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(64 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def classify(local_digest: str, remote_digest: str) -> ScriptStatus:
    """Status of a script from its two digests."""
    if remote_digest == FETCH_FAILED:
        return ScriptStatus.UNKNOWN
    if local_digest == MISSING:
        return ScriptStatus.NEW
    if local_digest != remote_digest:
        return ScriptStatus.CHANGED
    return ScriptStatus.UP_TO_DATE


class ScriptSyncEngine:
    """Checks and updates the fixed set of managed scripts."""

    def __init__(
        self,
        client: GitHubClient,
        fetcher: ArtifactFetcher,
        repo: str,
        scripts_dir: Path,
        backups_dir: Path,
        managed: Sequence[str] = MANAGED_SCRIPTS,
        max_backups: int = MAX_BACKUPS,
        retry: RetryPolicy | None = None,
    ) -> None:
        self.client = client
        self.fetcher = fetcher
        self.repo = repo
        self.scripts_dir = scripts_dir
        self.backups_dir = backups_dir
        self.managed = tuple(managed)
        self.max_backups = max_backups
        self.retry = retry or fetcher.retry

    def _remote_digest(self, name: str, target_tag: str) -> str:
        try:
            content = self.retry.run(
                lambda: self.client.fetch_raw(self.repo, target_tag, name),
                retry_on=(GitHubAPIError,),
                description=f"Fetch of {name}",
            )
        except GitHubAPIError as e:
            logger.warning("Could not fetch remote version of %s: %s", name, e)
            return FETCH_FAILED
        return digest_bytes(content)

    def check_status(
        self, target_tag: str, names: Iterable[str] | None = None
    ) -> dict[str, ManagedScript]:
        """Classify each managed script against the target tag.

        A remote fetch failure only marks that script ``unknown``.

        Returns:
            Mapping of script name to ManagedScript, in managed order
        """
        statuses: dict[str, ManagedScript] = {}
        for name in names if names is not None else self.managed:
            local = digest_file(self.scripts_dir / name)
            remote = self._remote_digest(name, target_tag)
            script = ManagedScript(
                name=name,
                local_digest=local,
                remote_digest=remote,
                status=classify(local, remote),
            )
            statuses[name] = script

            if script.status is ScriptStatus.NEW:
                logger.info("  NEW: %s (not installed locally)", name)
            elif script.status is ScriptStatus.CHANGED:
                logger.info("  UPDATE: %s (changed)", name)
            elif script.status is ScriptStatus.UP_TO_DATE:
                logger.info("  OK: %s (up to date)", name)
        return statuses

    @staticmethod
    def scripts_to_update(statuses: dict[str, ManagedScript]) -> list[str]:
        """Changed and new scripts; unknown ones are excluded."""
        return [name for name, script in statuses.items() if script.needs_update]

    def apply(self, names: Sequence[str], target_tag: str) -> SyncResult:
        """Update the given scripts to their content at target_tag.

        A snapshot of the scripts directory is always taken first. Old
        snapshots are pruned when every script updated.
        """
        result = SyncResult(target_tag=target_tag)
        result.backup = create_snapshot(
            self.scripts_dir, self.backups_dir, list(self.managed), target_tag
        )
        self.scripts_dir.mkdir(parents=True, exist_ok=True)

        for name in names:
            logger.info("Updating %s...", name)
            live = self.scripts_dir / name
            staged = self.scripts_dir / f"{name}.new"
            try:
                self.fetcher.download_to(self.client.raw_url(self.repo, target_tag, name), staged)
                os.replace(staged, live)
                make_executable(live)
            except (ArtifactFetchFailed, OSError) as e:
                staged.unlink(missing_ok=True)
                logger.error("Failed to update %s: %s", name, e)
                result.failed.add(name)
                continue
            logger.info("Updated %s from %s @ %s", name, self.repo, target_tag)
            result.updated.add(name)

        if result.updated:
            logger.info("Updated %d script(s) to %s", len(result.updated), target_tag)
        if result.failed:
            logger.warning("Failed to update %d script(s)", len(result.failed))
        if result.mixed_version:
            logger.warning(
                "Scripts are now at mixed versions; rerun the sync or restore %s",
                result.backup.name if result.backup else "a backup",
            )
        if result.ok:
            prune_snapshots(self.backups_dir, self.max_backups)
        return result

    def prune(self) -> list[str]:
        """Drop snapshots beyond the retention limit."""
        return prune_snapshots(self.backups_dir, self.max_backups)

    def backups(self) -> list[BackupSnapshot]:
        """Available snapshots, newest first."""
        return list_snapshots(self.backups_dir)

    def restore(self, name: str | None = None) -> list[str]:
        """Put the managed scripts back as they were in a snapshot.

        Raises:
            FileNotFoundError: If no matching snapshot exists
        """
        return restore_snapshot(self.backups_dir, self.scripts_dir, list(self.managed), name)
