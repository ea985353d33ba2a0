"""Configuration management for quickup."""

import os
import tomllib
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field

from .constants import (
    CONFIG_FILE,
    CONNECT_TIMEOUT,
    CONNECTIVITY_TIMEOUT,
    DEFAULT_APP_REPO,
    DEFAULT_SCRIPTS_REPO,
    ENV_FILE,
    FETCH_ATTEMPTS,
    FETCH_BACKOFF_SECONDS,
    MANAGED_SCRIPTS,
    MAX_BACKUPS,
    ROLLBACK_FILE,
    UPDATE_LOG,
)
from .models import InstallationRecord


def _default_home() -> Path:
    return Path.home() / ".quickbot"


def _default_data_root() -> Path:
    return Path.home() / ".config" / ".quickbot" / "data"


class PathsConfig(BaseModel):
    """Filesystem layout of an installation."""

    home: Path = Field(default_factory=_default_home, description="Scripts dir and .env")
    data_root: Path = Field(default_factory=_default_data_root)
    scratch_dir: Path | None = None  # Download directory (defaults to <data_root>/tmp)


class AppConfig(BaseModel):
    """The application being kept up to date."""

    repo: str = DEFAULT_APP_REPO
    package: str = "quickbot"  # pipx venv name
    command: str = "quick"  # Executable probed after install
    tag_prefix: str = "v"  # Prepended to bare versions when looking up tags
    pipx: str = "pipx"


class ScriptsConfig(BaseModel):
    """Where the maintenance scripts are released."""

    repo: str = DEFAULT_SCRIPTS_REPO
    managed: list[str] = Field(default_factory=lambda: list(MANAGED_SCRIPTS))


class NetworkConfig(BaseModel):
    """Retry policy and timeouts for GitHub requests."""

    attempts: int = Field(default=FETCH_ATTEMPTS, ge=1)
    backoff_seconds: float = Field(default=FETCH_BACKOFF_SECONDS, ge=0)
    connect_timeout: float = CONNECT_TIMEOUT
    connectivity_timeout: float = CONNECTIVITY_TIMEOUT
    token: str | None = None  # Falls back to $GITHUB_TOKEN

    def get_token(self) -> str | None:
        return self.token or os.environ.get("GITHUB_TOKEN") or None


class PolicyConfig(BaseModel):
    """Update policy switches."""

    downgrade_protection: bool = True  # Prompt on downgrade even with --yes
    max_backups: int = Field(default=MAX_BACKUPS, ge=1)


class QuickupConfig(BaseModel):
    """Root configuration for quickup."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    app: AppConfig = Field(default_factory=AppConfig)
    scripts: ScriptsConfig = Field(default_factory=ScriptsConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)

    @property
    def env_file(self) -> Path:
        return self.paths.home / ENV_FILE

    @property
    def scripts_dir(self) -> Path:
        return self.paths.home

    @property
    def rollback_file(self) -> Path:
        return self.paths.data_root / ROLLBACK_FILE

    @property
    def log_dir(self) -> Path:
        return self.paths.data_root / "logs"

    @property
    def log_file(self) -> Path:
        return self.log_dir / UPDATE_LOG

    @property
    def backups_dir(self) -> Path:
        return self.paths.data_root / "backups"

    @property
    def scratch_dir(self) -> Path:
        return self.paths.scratch_dir or self.paths.data_root / "tmp"

    def with_installation(self, record: InstallationRecord) -> "QuickupConfig":
        """Return a copy using the repo and directories from the env file.

        The env file written by the installer is the source of truth for
        where things live; the TOML config only supplies defaults.
        """
        paths = self.paths.model_copy(
            update={
                "home": record.scripts_dir or self.paths.home,
                "data_root": record.data_root or self.paths.data_root,
            }
        )
        app = self.app.model_copy(update={"repo": record.repo})
        return self.model_copy(update={"paths": paths, "app": app})


def default_config_path() -> Path:
    """Config file location when --config is not given."""
    return _default_home() / CONFIG_FILE


def load_config(config_path: Path | None = None) -> QuickupConfig:
    """Load config from TOML.

    Args:
        config_path: Path to the config file (defaults to ~/.quickbot/quickup.toml)

    Returns:
        Loaded configuration, or defaults if the file doesn't exist
    """
    config_path = config_path or default_config_path()
    if not config_path.exists():
        return QuickupConfig()
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return QuickupConfig.model_validate(data)


def write_config_template(config_path: Path) -> Path:
    """Write default config template.

    Args:
        config_path: Destination file

    Returns:
        Path to the written config file
    """
    defaults = QuickupConfig()
    template = {
        "paths": {
            "home": str(defaults.paths.home),
            "data_root": str(defaults.paths.data_root),
        },
        "app": {
            "repo": defaults.app.repo,
            "package": defaults.app.package,
            "command": defaults.app.command,
            "tag_prefix": defaults.app.tag_prefix,
            "pipx": defaults.app.pipx,
        },
        "scripts": {"repo": defaults.scripts.repo, "managed": defaults.scripts.managed},
        "network": {
            "attempts": defaults.network.attempts,
            "backoff_seconds": defaults.network.backoff_seconds,
            "connect_timeout": defaults.network.connect_timeout,
        },
        # Downgrade protection asks before installing an older release,
        # even when --yes is passed
        "policy": {
            "downgrade_protection": defaults.policy.downgrade_protection,
            "max_backups": defaults.policy.max_backups,
        },
    }
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
