"""Package-install collaborator backed by pipx."""

import logging
import shutil
import subprocess
from pathlib import Path

from ..constants import INSTALL_TIMEOUT, PROBE_TIMEOUT
from ..errors import InstallFailed, ValidationFailed

logger = logging.getLogger(__name__)


def run_command(cmd: list[str], timeout: int) -> tuple[str, int]:
    """Run a command and return (combined output, exit code).

    Raises:
        FileNotFoundError: If the executable does not exist
        subprocess.TimeoutExpired: If the command runs past timeout
    """
    result = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
    )
    output = result.stdout
    if result.stderr:
        output += "\n" + result.stderr
    return output.strip(), result.returncode


class PipxInstaller:
    """Installs the application with ``pipx install --force``.

    The installer's output is opaque: only the exit status decides
    success. Output lines go to the log so they land in update.log.
    """

    def __init__(
        self,
        package: str,
        command: str,
        pipx: str = "pipx",
        venvs_dir: Path | None = None,
    ) -> None:
        """Initialize installer.

        Args:
            package: pipx venv name of the application
            command: Executable the application installs (used for probing)
            pipx: pipx executable
            venvs_dir: pipx venvs root (defaults to ~/.local/pipx/venvs)
        """
        self.package = package
        self.command = command
        self.pipx = pipx
        self.venvs_dir = venvs_dir or Path.home() / ".local" / "pipx" / "venvs"

    def install(self, locator: str, force: bool = True) -> None:
        """Install or replace the application from a file path or VCS locator.

        Raises:
            InstallFailed: If pipx is missing, times out or exits non-zero
        """
        cmd = [self.pipx, "install", locator]
        if force:
            cmd.append("--force")
        logger.info("Updating %s via pipx...", self.package)

        try:
            output, exit_code = run_command(cmd, INSTALL_TIMEOUT)
        except FileNotFoundError:
            raise InstallFailed(f"pipx not found: {self.pipx}") from None
        except subprocess.TimeoutExpired as e:
            raise InstallFailed(f"pipx timed out after {INSTALL_TIMEOUT} seconds") from e

        for line in output.splitlines():
            logger.info("pipx: %s", line)
        if exit_code != 0:
            raise InstallFailed(f"pipx install exited with status {exit_code}")
        logger.info("%s updated via pipx", self.package)

    def probe(self) -> None:
        """Check that the installed command answers ``help``.

        Raises:
            ValidationFailed: If the command is missing or fails
        """
        if shutil.which(self.command) is None:
            raise ValidationFailed(f"'{self.command}' command not found, update may have failed")
        try:
            _, exit_code = run_command([self.command, "help"], PROBE_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ValidationFailed(f"'{self.command} help' could not run: {e}") from e
        if exit_code != 0:
            raise ValidationFailed(f"'{self.command} help' failed, but update may still work")

    def mirror_env_file(self, env_file: Path) -> bool:
        """Copy the env file into the pipx venv.

        Returns:
            True if copied, False when the venv does not exist
        """
        venv = self.venvs_dir / self.package
        if not venv.is_dir():
            logger.warning("pipx venv not found, .env copy skipped (%s may still work)", venv)
            return False
        shutil.copy2(env_file, venv / ".env")
        logger.info(".env updated in pipx environment")
        return True
