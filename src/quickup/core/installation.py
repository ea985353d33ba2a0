"""Installation record stored as a KEY="value" env file."""

import logging
import re
import shlex
from pathlib import Path

from ..errors import NotInstalled
from ..models import InstallationRecord
from ..models.installation import (
    KEY_DATA_ROOT,
    KEY_INSTALL_METHOD,
    KEY_INSTALLED_AT,
    KEY_REPO,
    KEY_SCRIPTS_DIR,
    KEY_VERSION,
    UNKNOWN_VERSION,
)
from ..services.storage import Storage

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"^\s*(?:export\s+)?(?P<key>[A-Za-z_][A-Za-z0-9_]*)=(?P<value>.*)$")


def parse_env(content: str) -> dict[str, str]:
    """Parse KEY=value lines; comments and blank lines are ignored."""
    values: dict[str, str] = {}
    for line in content.splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        match = _LINE_RE.match(line)
        if match is None:
            continue
        raw = match.group("value").strip()
        try:
            parts = shlex.split(raw, comments=True)
        except ValueError:
            parts = [raw.strip("\"'")]
        values[match.group("key")] = parts[0] if parts else ""
    return values


def load_installation(storage: Storage, env_file: Path) -> InstallationRecord:
    """Read the installation record.

    Raises:
        NotInstalled: If the env file does not exist
    """
    content = storage.read_text(env_file)
    if content is None:
        raise NotInstalled(f"QuickBot installation not found or corrupted (missing {env_file})")

    values = parse_env(content)
    record = InstallationRecord(
        install_method=values.get(KEY_INSTALL_METHOD) or None,
        installed_at=values.get(KEY_INSTALLED_AT) or None,
        scripts_dir=Path(values[KEY_SCRIPTS_DIR]) if values.get(KEY_SCRIPTS_DIR) else None,
        data_root=Path(values[KEY_DATA_ROOT]) if values.get(KEY_DATA_ROOT) else None,
    )
    if values.get(KEY_VERSION):
        record.version = values[KEY_VERSION]
    else:
        logger.warning("Could not determine current version")
    if values.get(KEY_REPO):
        record.repo = values[KEY_REPO]
    else:
        logger.warning("GitHub repository not specified in %s, using default", env_file.name)

    logger.debug("Installation found (version: %s)", record.version)
    return record


def set_installed_version(storage: Storage, env_file: Path, version: str) -> None:
    """Rewrite only the version line of the env file.

    Every other line, comments included, is kept as is. The key is
    appended when the file has no version line yet.
    """
    content = storage.read_text(env_file)
    if content is None:
        raise NotInstalled(f"Missing {env_file}")

    new_line = f'{KEY_VERSION}="{version}"'
    lines = content.splitlines()
    replaced = False
    for i, line in enumerate(lines):
        match = _LINE_RE.match(line)
        if match and match.group("key") == KEY_VERSION:
            lines[i] = new_line
            replaced = True
    if not replaced:
        lines.append(new_line)

    storage.write_text(env_file, "\n".join(lines) + "\n")
    logger.debug("Recorded installed version %s in %s", version, env_file)


def is_known_version(version: str | None) -> bool:
    return bool(version) and version != UNKNOWN_VERSION
