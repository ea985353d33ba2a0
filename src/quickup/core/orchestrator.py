"""Update and rollback orchestration.

UpdateOrchestrator drives one run through an explicit state machine:

    update:   idle → resolving_release → [awaiting_confirmation]
              → recording_rollback → fetching → applying → validating → done
    rollback: idle → resolving_previous_release → fetching → applying
              → validating → done
    scripts:  idle → syncing_scripts → done

A completed update may continue validating → syncing_scripts → done
when a script refresh was requested. Unattended runs skip
awaiting_confirmation unless the downgrade guard has to ask. Any state
can end in ``failed`` when a fatal error escapes; declined prompts end
in ``cancelled``.

Rollback is never automatic. A failed validation is a warning and the
update still counts as applied; going back is always an explicit
``rollback`` run.
"""

import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..errors import InvalidTransition, QuickupError, ReleaseUnavailable, ValidationFailed
from ..models import Artifact, UpdateOutcome, UpdateResult
from .context import UpdaterContext
from .installation import is_known_version, set_installed_version
from .lock_manager import hold_lock, update_heartbeat
from .release_resolver import ReleaseSelector
from .versioning import is_development, is_downgrade, same_version

logger = logging.getLogger(__name__)

DEV_DISCLAIMER = (
    "DEVELOPMENT BUILD WARNING",
    "Development builds may break existing configuration files,",
    "introduce unstable features and change behavior between releases.",
    "Back up ~/.config/.quickbot/ before proceeding.",
    "Use 'quickup rollback' to revert if needed.",
)


class UpdateState(str, Enum):
    """States of an orchestrator run."""

    IDLE = "idle"
    RESOLVING_RELEASE = "resolving_release"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    RECORDING_ROLLBACK = "recording_rollback"
    RESOLVING_PREVIOUS_RELEASE = "resolving_previous_release"
    FETCHING = "fetching"
    APPLYING = "applying"
    VALIDATING = "validating"
    SYNCING_SCRIPTS = "syncing_scripts"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


_TERMINAL = {UpdateState.DONE, UpdateState.CANCELLED, UpdateState.FAILED}

_VALID_TRANSITIONS: dict[UpdateState, set[UpdateState]] = {
    UpdateState.IDLE: {
        UpdateState.RESOLVING_RELEASE,
        UpdateState.RESOLVING_PREVIOUS_RELEASE,
        UpdateState.SYNCING_SCRIPTS,
        UpdateState.DONE,
        UpdateState.CANCELLED,
        UpdateState.FAILED,
    },
    UpdateState.RESOLVING_RELEASE: {
        UpdateState.AWAITING_CONFIRMATION,
        UpdateState.RECORDING_ROLLBACK,
        UpdateState.SYNCING_SCRIPTS,
        UpdateState.DONE,
        UpdateState.FAILED,
    },
    UpdateState.AWAITING_CONFIRMATION: {
        UpdateState.RECORDING_ROLLBACK,
        UpdateState.CANCELLED,
        UpdateState.FAILED,
    },
    UpdateState.RECORDING_ROLLBACK: {UpdateState.FETCHING, UpdateState.FAILED},
    UpdateState.RESOLVING_PREVIOUS_RELEASE: {UpdateState.FETCHING, UpdateState.FAILED},
    UpdateState.FETCHING: {UpdateState.APPLYING, UpdateState.FAILED},
    UpdateState.APPLYING: {UpdateState.VALIDATING, UpdateState.FAILED},
    UpdateState.VALIDATING: {UpdateState.SYNCING_SCRIPTS, UpdateState.DONE, UpdateState.FAILED},
    UpdateState.SYNCING_SCRIPTS: {UpdateState.DONE, UpdateState.CANCELLED, UpdateState.FAILED},
    UpdateState.DONE: set(),
    UpdateState.CANCELLED: set(),
    UpdateState.FAILED: set(),
}


@dataclass
class UpdateOptions:
    """Flags controlling a run (mirrors the CLI surface).

    Attributes:
        force: Re-apply even when the version matches; skips version checks
        update_scripts: Refresh maintenance scripts (alone: scripts only)
        assume_yes: Unattended mode, no confirmation prompts
        development: Consider development builds when resolving latest
        rollback: Restore the version recorded in the rollback journal
        dry_run: Report planned changes without applying anything
    """

    force: bool = False
    update_scripts: bool = False
    assume_yes: bool = False
    development: bool = False
    rollback: bool = False
    dry_run: bool = False

    @property
    def scripts_only(self) -> bool:
        return self.update_scripts and not self.force and not self.rollback

    @property
    def refresh_scripts(self) -> bool:
        return self.update_scripts or self.force


class UpdateOrchestrator:
    """Runs updates, rollbacks and script syncs against one installation."""

    def __init__(
        self,
        ctx: UpdaterContext,
        on_transition: Callable[[UpdateState, UpdateState], None] | None = None,
    ) -> None:
        self.ctx = ctx
        self.options = UpdateOptions()
        self.state = UpdateState.IDLE
        self.history: list[UpdateState] = [UpdateState.IDLE]
        self.on_transition = on_transition

    # ------------------------------------------------------------------
    # State handling
    # ------------------------------------------------------------------

    def _transition(self, new_state: UpdateState) -> None:
        if new_state not in _VALID_TRANSITIONS[self.state]:
            raise InvalidTransition(f"Invalid transition: {self.state.value} -> {new_state.value}")
        old_state = self.state
        self.state = new_state
        self.history.append(new_state)
        logger.debug("State: %s -> %s", old_state.value, new_state.value)
        update_heartbeat(self.ctx.config.paths.data_root)
        if self.on_transition:
            self.on_transition(old_state, new_state)

    def _reset(self) -> None:
        self.state = UpdateState.IDLE
        self.history = [UpdateState.IDLE]

    def _finish(self, result: UpdateResult, state: UpdateState = UpdateState.DONE) -> UpdateResult:
        self._transition(state)
        result.states = [s.value for s in self.history]
        return result

    def _guarded(self, operation: Callable[[], UpdateResult]) -> UpdateResult:
        """Run operation; a fatal error moves the machine to FAILED."""
        self._reset()
        try:
            return operation()
        except QuickupError:
            if self.state not in _TERMINAL:
                self._transition(UpdateState.FAILED)
            raise

    def _confirm(self, prompt: str, default: bool, bypass_yes: bool = False) -> bool:
        if self.options.assume_yes and not bypass_yes:
            return True
        return self.ctx.confirm(prompt, default)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, options: UpdateOptions, command: str = "update") -> UpdateResult:
        """Dispatch on options while holding the run lock."""
        with hold_lock(self.ctx.config.paths.data_root, command):
            if options.rollback:
                return self.rollback(options)
            if options.scripts_only:
                return self.sync_scripts(options)
            return self.update(options)

    def update(self, options: UpdateOptions) -> UpdateResult:
        """Update the application to the latest (stable or development) release."""
        self.options = options
        return self._guarded(self._update)

    def rollback(self, options: UpdateOptions) -> UpdateResult:
        """Reinstall the version recorded in the rollback journal."""
        self.options = options
        return self._guarded(self._rollback)

    def sync_scripts(self, options: UpdateOptions) -> UpdateResult:
        """Bring the managed scripts up to the latest scripts release."""
        self.options = options

        def _sync() -> UpdateResult:
            result = UpdateResult(
                outcome=UpdateOutcome.SCRIPTS_SYNCED,
                current_version=self.ctx.installation.current_version,
            )
            self.ctx.client.check_connectivity(self.ctx.config.network.connectivity_timeout)
            if not self._sync_scripts_step(result, fatal=True):
                result.outcome = UpdateOutcome.CANCELLED
                return self._finish(result, UpdateState.CANCELLED)
            if options.dry_run:
                result.outcome = UpdateOutcome.PREVIEW
            return self._finish(result)

        return self._guarded(_sync)

    # ------------------------------------------------------------------
    # Update path
    # ------------------------------------------------------------------

    def _update(self) -> UpdateResult:
        options = self.options
        config = self.ctx.config
        current = self.ctx.installation.current_version
        result = UpdateResult(outcome=UpdateOutcome.UPDATED, current_version=current)

        if options.development:
            logger.info("Development channel enabled, checking for development builds")

        self.ctx.client.check_connectivity(config.network.connectivity_timeout)
        self._transition(UpdateState.RESOLVING_RELEASE)
        selector = (
            ReleaseSelector.latest_development()
            if options.development
            else ReleaseSelector.latest_stable()
        )
        release = self.ctx.resolver.resolve(config.app.repo, selector)
        target = release.version
        result.target_version = target
        result.development = is_development(target)
        result.downgrade = is_known_version(current) and is_downgrade(current, target)

        logger.info("Current version: %s", current)
        logger.info(
            "Latest version:  %s%s", target, " (development build)" if result.development else ""
        )

        if not options.force and same_version(current, target):
            logger.info("QuickBot is already up to date!")
            result.outcome = UpdateOutcome.UP_TO_DATE
            if options.refresh_scripts:
                self._sync_scripts_step(result, fatal=False)
            return self._finish(result)

        if result.downgrade:
            logger.warning(
                "Current version (%s) is newer than latest release (%s)", current, target
            )

        if options.dry_run:
            result.outcome = UpdateOutcome.PREVIEW
            result.artifact = self.ctx.resolver.select_artifact(
                release, config.app.repo, config.app.package
            )
            logger.info("Would install %s from %s", target, result.artifact.locator)
            if options.refresh_scripts:
                self._sync_scripts_step(result, fatal=False)
            return self._finish(result)

        if self._needs_confirmation(result):
            self._transition(UpdateState.AWAITING_CONFIRMATION)
        if not self._confirm_update(current, target, result):
            logger.info("Update cancelled")
            result.outcome = UpdateOutcome.CANCELLED
            return self._finish(result, UpdateState.CANCELLED)

        self._transition(UpdateState.RECORDING_ROLLBACK)
        if is_known_version(current):
            self.ctx.journal.record(current)
        else:
            logger.warning("Current version is unknown, no rollback target recorded")

        self._transition(UpdateState.FETCHING)
        artifact = self.ctx.resolver.select_artifact(release, config.app.repo, config.app.package)
        result.artifact = artifact
        local_path = self._fetch(artifact, target)

        self._transition(UpdateState.APPLYING)
        self._apply(artifact, local_path, target)
        logger.info("Updated QuickBot from %s to %s", current, target)

        self._transition(UpdateState.VALIDATING)
        self._validate(result)

        if options.refresh_scripts:
            self._sync_scripts_step(result, fatal=False)

        if result.development:
            logger.warning(
                "This is a development build. Use 'quickup rollback' to revert to %s if needed.",
                current,
            )
        return self._finish(result)

    def _needs_confirmation(self, result: UpdateResult) -> bool:
        """Whether the update will put a question to the operator."""
        options = self.options
        guarded = (
            result.downgrade
            and not options.force
            and self.ctx.config.policy.downgrade_protection
        )
        return guarded or not options.assume_yes

    def _confirm_update(self, current: str, target: str, result: UpdateResult) -> bool:
        """Run the confirmation prompts for an update.

        Downgrades are guarded only while downgrade protection is on; the
        guard prompts even in unattended mode. ``force`` skips it.
        """
        options = self.options
        policy = self.ctx.config.policy

        if result.downgrade and not options.force:
            if policy.downgrade_protection:
                logger.info("You may be using a development version")
                if not self._confirm("Downgrade to latest stable release?", False, bypass_yes=True):
                    return False
            else:
                logger.info("Downgrade protection is off, proceeding with %s", target)

        if result.development:
            for line in DEV_DISCLAIMER:
                logger.warning(line)
            return self._confirm(f"Install development build {target}?", False)

        if options.force:
            return True
        return self._confirm(f"QuickBot update available: {current} → {target}. Install?", True)

    # ------------------------------------------------------------------
    # Rollback path
    # ------------------------------------------------------------------

    def _rollback(self) -> UpdateResult:
        options = self.options
        config = self.ctx.config
        current = self.ctx.installation.current_version
        previous = self.ctx.journal.require()

        result = UpdateResult(
            outcome=UpdateOutcome.ROLLED_BACK,
            current_version=current,
            target_version=previous,
            development=is_development(previous),
            downgrade=is_known_version(current) and is_downgrade(current, previous),
        )
        logger.info("Current version:  %s", current)
        logger.info("Rollback target:  %s", previous)

        if same_version(current, previous):
            logger.warning("Already on version %s, nothing to rollback.", previous)
            result.outcome = UpdateOutcome.UP_TO_DATE
            return self._finish(result)

        if options.dry_run:
            logger.info("Would roll back from %s to %s", current, previous)
            result.outcome = UpdateOutcome.PREVIEW
            return self._finish(result)

        if not self._confirm(f"Rollback from {current} to {previous}?", False):
            logger.info("Rollback cancelled.")
            result.outcome = UpdateOutcome.CANCELLED
            return self._finish(result, UpdateState.CANCELLED)

        if result.development:
            for line in DEV_DISCLAIMER:
                logger.warning(line)
            if not self._confirm("The rollback target is a development build. Continue?", False):
                logger.info("Rollback cancelled.")
                result.outcome = UpdateOutcome.CANCELLED
                return self._finish(result, UpdateState.CANCELLED)

        self.ctx.client.check_connectivity(config.network.connectivity_timeout)
        self._transition(UpdateState.RESOLVING_PREVIOUS_RELEASE)
        release = self.ctx.resolver.resolve(config.app.repo, ReleaseSelector.for_tag(previous))

        self._transition(UpdateState.FETCHING)
        artifact = self.ctx.resolver.select_artifact(release, config.app.repo, config.app.package)
        result.artifact = artifact
        local_path = self._fetch(artifact, previous)

        self._transition(UpdateState.APPLYING)
        self._apply(artifact, local_path, previous)
        self.ctx.journal.consume()

        self._transition(UpdateState.VALIDATING)
        self._validate(result)

        logger.info("Rolled back from %s to %s", current, previous)
        return self._finish(result)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _fetch(self, artifact: Artifact, version: str) -> Path | None:
        if not artifact.downloadable or artifact.filename is None:
            return None
        logger.info("Downloading QuickBot %s...", version)
        path = self.ctx.fetcher.fetch(artifact.locator, artifact.filename)
        logger.info("Downloaded QuickBot %s from %s", version, artifact.locator)
        return path

    def _apply(self, artifact: Artifact, local_path: Path | None, version: str) -> None:
        """Install the artifact and record the new version.

        The downloaded file is removed whether or not the install worked.
        """
        locator = str(local_path) if local_path is not None else artifact.locator
        try:
            self.ctx.installer.install(locator, force=True)
        finally:
            if local_path is not None:
                with contextlib.suppress(FileNotFoundError):
                    local_path.unlink()

        env_file = self.ctx.config.env_file
        set_installed_version(self.ctx.storage, env_file, version)
        self.ctx.installation.version = version
        with contextlib.suppress(OSError):
            self.ctx.installer.mirror_env_file(env_file)

    def _validate(self, result: UpdateResult) -> None:
        logger.info("Validating update...")
        try:
            self.ctx.installer.probe()
        except ValidationFailed as e:
            logger.warning("%s", e)
            logger.warning(
                "The update is installed; run 'quickup rollback' to restore the previous version"
            )
            result.warnings.append(str(e))
            return
        logger.info("Update validated successfully!")

    def _sync_scripts_step(self, result: UpdateResult, fatal: bool) -> bool:
        """Check and apply maintenance script updates.

        Args:
            result: Result to fill in
            fatal: Whether a failure to resolve the scripts release aborts the run

        Returns:
            False if the operator declined the update, True otherwise
        """
        options = self.options
        engine = self.ctx.scripts
        self._transition(UpdateState.SYNCING_SCRIPTS)
        logger.info("Checking for script updates...")

        try:
            release = self.ctx.resolver.resolve(
                self.ctx.config.scripts.repo, ReleaseSelector.latest_stable()
            )
        except ReleaseUnavailable as e:
            if fatal:
                raise
            logger.warning("Could not check for script updates: %s", e)
            result.warnings.append(str(e))
            return True

        tag = release.tag
        logger.info("Latest installer release: %s", tag)
        result.scripts = engine.check_status(tag)
        to_update = engine.scripts_to_update(result.scripts)

        if not to_update:
            if not options.force:
                logger.info("Scripts are up to date (%s)", tag)
                if not options.dry_run:
                    engine.prune()
                return True
            logger.info("Force mode: re-downloading all scripts")
            to_update = list(engine.managed)

        if options.dry_run:
            logger.info("Dry run - the following scripts would be updated:")
            for name in to_update:
                logger.info("  - %s", name)
            return True

        logger.info("Script updates available (release %s): %s", tag, ", ".join(to_update))
        if not self._confirm(f"Update installation scripts to {tag}?", True):
            logger.info("Script update cancelled")
            return False

        result.sync = engine.apply(to_update, tag)
        if result.sync.updated:
            logger.info("New script versions will take effect on next run.")
        return True
