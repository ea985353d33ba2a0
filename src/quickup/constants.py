"""Constants for quickup."""

# Network retry policy: fixed delay, no jitter
FETCH_ATTEMPTS = 3
FETCH_BACKOFF_SECONDS = 2.0
CONNECT_TIMEOUT = 30.0
CONNECTIVITY_TIMEOUT = 10.0

# Subprocess timeouts (seconds)
INSTALL_TIMEOUT = 600  # pipx may build from source
PROBE_TIMEOUT = 30
INIT_TOOL_CHECK_TIMEOUT = 10

GITHUB_API_BASE = "https://api.github.com"
GITHUB_RAW_BASE = "https://raw.githubusercontent.com"
GITHUB_API_VERSION = "2022-11-28"
DEV_RELEASE_SCAN = 20  # releases inspected when looking for a dev build

DEFAULT_APP_REPO = "levinismynameirl/Quick-Bot"
DEFAULT_SCRIPTS_REPO = "levinismynameirl/QuickBot-Installer"
ISSUES_URL = "https://github.com/levinismynameirl/QuickBot-Installer/issues"

MANAGED_SCRIPTS = (
    "install.sh",
    "updater.sh",
    "uninstall.sh",
    "brewinstall.sh",
    "update-installer.sh",
)

# Snapshots of the scripts directory kept after each sync
MAX_BACKUPS = 3

ENV_FILE = ".env"
ROLLBACK_FILE = ".rollback_version"
LOCK_FILE = "quickup.lock"
CONFIG_FILE = "quickup.toml"
UPDATE_LOG = "update.log"
