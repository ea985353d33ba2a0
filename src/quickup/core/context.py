"""Explicit run context threaded into every component.

Nothing in quickup looks up paths or collaborators from globals; the
CLI builds one UpdaterContext per invocation and hands it to the
orchestrator. Tests build their own with MemoryStorage and fakes.
"""

from collections.abc import Callable
from dataclasses import dataclass

from rich.console import Console

from ..config import QuickupConfig
from ..constants import DEV_RELEASE_SCAN
from ..models import InstallationRecord
from ..services.fetcher import ArtifactFetcher
from ..services.github import GitHubClient
from ..services.installer import PipxInstaller
from ..services.retry import RetryPolicy
from ..services.storage import FileStorage, Storage
from .installation import load_installation
from .release_resolver import ReleaseResolver
from .rollback_journal import RollbackJournal
from .script_sync import ScriptSyncEngine

# (prompt, default) -> answer
Confirmer = Callable[[str, bool], bool]


def always_yes(prompt: str, default: bool) -> bool:
    return True


@dataclass
class UpdaterContext:
    """Everything an orchestrator run needs."""

    config: QuickupConfig
    storage: Storage
    installation: InstallationRecord
    client: GitHubClient
    resolver: ReleaseResolver
    fetcher: ArtifactFetcher
    scripts: ScriptSyncEngine
    journal: RollbackJournal
    installer: PipxInstaller
    confirm: Confirmer = always_yes

    def close(self) -> None:
        self.client.close()


def build_context(
    config: QuickupConfig,
    storage: Storage | None = None,
    client: GitHubClient | None = None,
    installer: PipxInstaller | None = None,
    confirm: Confirmer = always_yes,
    console: Console | None = None,
    retry: RetryPolicy | None = None,
) -> UpdaterContext:
    """Load the installation record and wire up components.

    Raises:
        NotInstalled: If the installation env file is missing
    """
    storage = storage or FileStorage()
    installation = load_installation(storage, config.env_file)
    config = config.with_installation(installation)

    retry = retry or RetryPolicy(
        attempts=config.network.attempts,
        backoff_seconds=config.network.backoff_seconds,
    )
    client = client or GitHubClient(
        token=config.network.get_token(),
        connect_timeout=config.network.connect_timeout,
    )
    fetcher = ArtifactFetcher(
        client.http,
        config.scratch_dir,
        retry=retry,
        console=console,
        show_progress=console is not None,
    )
    return UpdaterContext(
        config=config,
        storage=storage,
        installation=installation,
        client=client,
        resolver=ReleaseResolver(
            client, retry=retry, tag_prefix=config.app.tag_prefix, dev_scan=DEV_RELEASE_SCAN
        ),
        fetcher=fetcher,
        scripts=ScriptSyncEngine(
            client,
            fetcher,
            repo=config.scripts.repo,
            scripts_dir=config.scripts_dir,
            backups_dir=config.backups_dir,
            managed=config.scripts.managed,
            max_backups=config.policy.max_backups,
            retry=retry,
        ),
        journal=RollbackJournal(storage, config.rollback_file),
        installer=installer
        or PipxInstaller(
            package=config.app.package,
            command=config.app.command,
            pipx=config.app.pipx,
        ),
        confirm=confirm,
    )
