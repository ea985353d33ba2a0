"""Installation record model.

Mirrors the key/value env file written by the installer. Only the
version changes after install; the rest is informational.
"""

from pathlib import Path

from pydantic import BaseModel, Field

from ..constants import DEFAULT_APP_REPO

UNKNOWN_VERSION = "unknown"

# Env-file keys, in the order the installer writes them
KEY_SCRIPTS_DIR = "QUICKBOT_SCRIPTS_DIR"
KEY_DATA_ROOT = "QUICKBOT_DATA_ROOT"
KEY_REPO = "QUICKBOT_GITHUB_REPO"
KEY_VERSION = "QUICKBOT_VERSION"
KEY_INSTALLED_AT = "QUICKBOT_INSTALLED_AT"
KEY_INSTALL_METHOD = "QUICKBOT_INSTALL_METHOD"


class InstallationRecord(BaseModel):
    """Current installation as described by the env file.

    Attributes:
        version: Installed application version ("unknown" if not recorded)
        install_method: How the app was installed (installer, brew, ...)
        installed_at: Installation date as written by the installer
        repo: GitHub repository the app is released from
        scripts_dir: Directory holding the managed scripts
        data_root: Directory holding logs, backups and the rollback record
    """

    version: str = UNKNOWN_VERSION
    install_method: str | None = None
    installed_at: str | None = None
    repo: str = DEFAULT_APP_REPO
    scripts_dir: Path | None = None
    data_root: Path | None = Field(default=None, description="Root for logs and state")

    @property
    def current_version(self) -> str:
        """Version with any leading ``v`` stripped."""
        return self.version.lstrip("vV")
