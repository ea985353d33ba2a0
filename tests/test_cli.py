"""CLI integration tests for quickup."""

import json
import subprocess
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest
import tomli_w
from conftest import APP_REPO, SCRIPTS_REPO, FakeGitHub, FakeInstaller, write_env
from typer.testing import CliRunner

from quickup import __version__
from quickup.cli import app
from quickup.constants import MANAGED_SCRIPTS
from quickup.core.context import build_context
from quickup.services.retry import RetryPolicy


@pytest.fixture
def config_file(
    tmp_path: Path,
    github: FakeGitHub,
    installer: FakeInstaller,
    no_wait_retry: RetryPolicy,
) -> Generator[Path, None, None]:
    """Config file for an installation under tmp_path, wired to the fakes."""
    home, data_root = tmp_path / "home", tmp_path / "data"
    write_env(home, data_root)
    path = tmp_path / "quickup.toml"
    path.write_text(
        tomli_w.dumps(
            {
                "paths": {"home": str(home), "data_root": str(data_root)},
                "scripts": {"repo": SCRIPTS_REPO},
                "network": {"backoff_seconds": 0},
            }
        )
    )

    def _build(config, **kwargs):
        kwargs.update(client=github.client(), installer=installer, retry=no_wait_retry)
        return build_context(config, **kwargs)

    with patch("quickup.commands.common.build_context", side_effect=_build):
        yield path


def invoke(runner: CliRunner, config_file: Path, *args: str, input: str | None = None):
    return runner.invoke(app, ["--no-color", "--config", str(config_file), *args], input=input)


def publish_scripts(github: FakeGitHub, tag: str = "v1.0.0") -> None:
    github.add_release(SCRIPTS_REPO, tag)
    for name in MANAGED_SCRIPTS:
        github.raw[(SCRIPTS_REPO, tag, name)] = f"#!/bin/bash\n# {name} {tag}\n".encode()


class TestVersionCommand:
    """Tests for --version flag."""

    def test_version_shows_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"quickup {__version__}" in result.stdout

    def test_version_short_flag(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert "quickup" in result.stdout


class TestHelpCommand:
    """Tests for --help flag."""

    def test_help_shows_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("update", "rollback", "status", "scripts", "init"):
            assert command in result.stdout

    def test_no_args_shows_help(self, runner: CliRunner) -> None:
        """Typer's no_args_is_help=True returns exit code 2."""
        result = runner.invoke(app, [])
        assert result.exit_code == 2
        assert "Usage:" in result.output

    def test_update_help_lists_flags(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["update", "--help"])
        assert result.exit_code == 0
        for flag in ("--force", "--update-scripts", "--yes", "--development", "--rollback"):
            assert flag in result.stdout


class TestUpdateCommand:
    """Tests for quickup update."""

    def test_not_installed(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "empty.toml"
        path.write_text(tomli_w.dumps({"paths": {"home": str(tmp_path / "nowhere")}}))
        result = runner.invoke(app, ["--no-color", "--config", str(path), "update", "--yes"])
        assert result.exit_code == 3
        assert "Error" in result.output

    def test_installs_latest(
        self,
        runner: CliRunner,
        config_file: Path,
        github: FakeGitHub,
        installer: FakeInstaller,
        tmp_path: Path,
    ) -> None:
        github.add_release(APP_REPO, "v0.2.0")
        result = invoke(runner, config_file, "update", "--yes")

        assert result.exit_code == 0, result.output
        assert "Updated QuickBot 0.1.0 → 0.2.0" in result.output
        assert len(installer.installed) == 1
        assert 'QUICKBOT_VERSION="0.2.0"' in (tmp_path / "home" / ".env").read_text()
        assert (tmp_path / "data" / ".rollback_version").read_text().strip() == "0.1.0"

    def test_run_is_logged(
        self, runner: CliRunner, config_file: Path, github: FakeGitHub, tmp_path: Path
    ) -> None:
        github.add_release(APP_REPO, "v0.2.0")
        invoke(runner, config_file, "update", "--yes")
        log = (tmp_path / "data" / "logs" / "update.log").read_text()
        assert "0.2.0" in log

    def test_up_to_date(
        self,
        runner: CliRunner,
        config_file: Path,
        github: FakeGitHub,
        installer: FakeInstaller,
    ) -> None:
        github.add_release(APP_REPO, "v0.1.0")
        result = invoke(runner, config_file, "update", "--yes")
        assert result.exit_code == 0
        assert "up to date" in result.output
        assert installer.installed == []

    def test_declined(
        self,
        runner: CliRunner,
        config_file: Path,
        github: FakeGitHub,
        installer: FakeInstaller,
    ) -> None:
        github.add_release(APP_REPO, "v0.2.0")
        result = invoke(runner, config_file, "update", input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert installer.installed == []

    def test_dry_run(
        self,
        runner: CliRunner,
        config_file: Path,
        github: FakeGitHub,
        installer: FakeInstaller,
    ) -> None:
        github.add_release(APP_REPO, "v0.2.0")
        result = invoke(runner, config_file, "update", "--dry-run")
        assert result.exit_code == 0
        assert "[DRY RUN] Would install 0.2.0" in result.output
        assert installer.installed == []

    def test_json_output(self, runner: CliRunner, config_file: Path, github: FakeGitHub) -> None:
        github.add_release(APP_REPO, "v0.2.0")
        result = invoke(runner, config_file, "-q", "--json", "update", "--yes")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["outcome"] == "updated"
        assert data["current_version"] == "0.1.0"
        assert data["target_version"] == "0.2.0"
        assert data["states"][-1] == "done"

    def test_offline(self, runner: CliRunner, config_file: Path, github: FakeGitHub) -> None:
        github.offline = True
        result = invoke(runner, config_file, "update", "--yes")
        assert result.exit_code == 4

    def test_install_failure(
        self,
        runner: CliRunner,
        config_file: Path,
        github: FakeGitHub,
        installer: FakeInstaller,
        tmp_path: Path,
    ) -> None:
        github.add_release(APP_REPO, "v0.2.0")
        installer.fail_install = True
        result = invoke(runner, config_file, "-q", "--json", "update", "--yes")
        assert result.exit_code == 7
        assert json.loads(result.stdout)["type"] == "InstallFailed"
        assert 'QUICKBOT_VERSION="0.1.0"' in (tmp_path / "home" / ".env").read_text()

    def test_update_scripts_only(
        self,
        runner: CliRunner,
        config_file: Path,
        github: FakeGitHub,
        installer: FakeInstaller,
        tmp_path: Path,
    ) -> None:
        github.add_release(APP_REPO, "v0.2.0")
        publish_scripts(github)
        result = invoke(runner, config_file, "update", "--update-scripts", "--yes")
        assert result.exit_code == 0, result.output
        assert installer.installed == []
        for name in MANAGED_SCRIPTS:
            assert (tmp_path / "home" / name).exists()

    def test_rollback_flag(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "update", "--rollback", "--yes")
        assert result.exit_code == 8
        assert "No rollback information found" in result.output


class TestRollbackCommand:
    """Tests for quickup rollback."""

    def test_nothing_recorded(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "rollback", "--yes")
        assert result.exit_code == 8

    def test_after_update(
        self,
        runner: CliRunner,
        config_file: Path,
        github: FakeGitHub,
        installer: FakeInstaller,
        tmp_path: Path,
    ) -> None:
        github.add_release(APP_REPO, "v0.1.0")
        github.add_release(APP_REPO, "v0.2.0")
        assert invoke(runner, config_file, "update", "--yes").exit_code == 0

        result = invoke(runner, config_file, "rollback", "--yes")

        assert result.exit_code == 0, result.output
        assert "Rolled back QuickBot 0.2.0 → 0.1.0" in result.output
        assert len(installer.installed) == 2
        assert 'QUICKBOT_VERSION="0.1.0"' in (tmp_path / "home" / ".env").read_text()
        assert not (tmp_path / "data" / ".rollback_version").exists()

    def test_declined_keeps_record(
        self,
        runner: CliRunner,
        config_file: Path,
        installer: FakeInstaller,
        tmp_path: Path,
    ) -> None:
        (tmp_path / "data").mkdir()
        (tmp_path / "data" / ".rollback_version").write_text("0.0.9\n")
        result = invoke(runner, config_file, "rollback", input="n\n")
        assert result.exit_code == 0
        assert installer.installed == []
        assert (tmp_path / "data" / ".rollback_version").exists()


class TestStatusCommand:
    """Tests for quickup status."""

    def test_text(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "status")
        assert result.exit_code == 0
        assert "QuickBot: 0.1.0" in result.output
        assert "No rollback available" in result.output

    def test_json(self, runner: CliRunner, config_file: Path, tmp_path: Path) -> None:
        (tmp_path / "data").mkdir()
        (tmp_path / "data" / ".rollback_version").write_text("0.0.9\n")
        result = invoke(runner, config_file, "-q", "--json", "status")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["version"] == "0.1.0"
        assert data["repo"] == APP_REPO
        assert data["rollback_version"] == "0.0.9"
        assert data["lock"] is None


class TestScriptsCommands:
    """Tests for quickup scripts."""

    def test_check_changes_nothing(
        self, runner: CliRunner, config_file: Path, github: FakeGitHub, tmp_path: Path
    ) -> None:
        publish_scripts(github)
        result = invoke(runner, config_file, "scripts", "check")
        assert result.exit_code == 0
        assert "NEW" in result.output
        assert not (tmp_path / "home" / "install.sh").exists()

    def test_apply(
        self, runner: CliRunner, config_file: Path, github: FakeGitHub, tmp_path: Path
    ) -> None:
        publish_scripts(github)
        result = invoke(runner, config_file, "scripts", "apply", "--yes")
        assert result.exit_code == 0, result.output
        assert (tmp_path / "home" / "updater.sh").read_text().endswith("v1.0.0\n")

    def test_declined_sync_reports_cancelled(
        self, runner: CliRunner, config_file: Path, github: FakeGitHub, tmp_path: Path
    ) -> None:
        publish_scripts(github)
        result = invoke(runner, config_file, "scripts", "apply", input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert "Scripts are up to date" not in result.output
        assert not (tmp_path / "home" / "install.sh").exists()

    def test_apply_partial_failure(
        self, runner: CliRunner, config_file: Path, github: FakeGitHub
    ) -> None:
        publish_scripts(github)
        github.fail("/uninstall.sh", after=1)
        result = invoke(runner, config_file, "-q", "--json", "scripts", "apply", "--yes")
        assert result.exit_code == 2
        data = json.loads(result.stdout)
        assert data["sync"]["failed"] == ["uninstall.sh"]
        assert data["sync"]["mixed_version"] is True

    def test_apply_without_release(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "scripts", "apply", "--yes")
        assert result.exit_code == 5

    def test_backups_empty(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "scripts", "backups")
        assert result.exit_code == 0
        assert "No backups found" in result.output

    def test_restore_after_apply(
        self, runner: CliRunner, config_file: Path, github: FakeGitHub, tmp_path: Path
    ) -> None:
        (tmp_path / "home" / "install.sh").write_text("old\n")
        publish_scripts(github)
        assert invoke(runner, config_file, "scripts", "apply", "--yes").exit_code == 0

        backups = invoke(runner, config_file, "-q", "--json", "scripts", "backups")
        assert len(json.loads(backups.stdout)["backups"]) == 1

        result = invoke(runner, config_file, "scripts", "restore", "--yes")
        assert result.exit_code == 0, result.output
        assert (tmp_path / "home" / "install.sh").read_text() == "old\n"

    def test_restore_without_backups(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "scripts", "restore", "--yes")
        assert result.exit_code == 1

    def test_restore_rejects_path_outside_backups(
        self, runner: CliRunner, config_file: Path
    ) -> None:
        result = invoke(runner, config_file, "scripts", "restore", "--snapshot", "../..", "--yes")
        assert result.exit_code == 1
        assert "Backup not found" in result.output


class TestInitCommand:
    """Tests for quickup init."""

    def test_writes_template(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "cfg" / "quickup.toml"
        with patch("quickup.commands.init.subprocess.run", side_effect=FileNotFoundError):
            result = runner.invoke(app, ["--no-color", "--config", str(path), "init"])
        assert "Created config template" in result.output
        assert path.exists()

    def test_all_tools_present(self, runner: CliRunner, config_file: Path) -> None:
        ok = subprocess.CompletedProcess([], 0, stdout="", stderr="")
        with patch("quickup.commands.init.subprocess.run", return_value=ok):
            result = invoke(runner, config_file, "init")
        assert result.exit_code == 0, result.output
        assert "initialized successfully" in result.output

    def test_missing_tools(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "quickup.toml"
        with patch("quickup.commands.init.subprocess.run", side_effect=FileNotFoundError):
            result = runner.invoke(app, ["--no-color", "--config", str(path), "init"])
        assert result.exit_code == 2
        assert "not found in PATH" in result.output

    def test_existing_config_kept(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "quickup.toml"
        path.write_text('[app]\nrepo = "me/bot"\n')
        with patch("quickup.commands.init.subprocess.run", side_effect=FileNotFoundError):
            result = runner.invoke(app, ["--no-color", "--config", str(path), "init"])
        assert "Config already exists" in result.output
        assert path.read_text() == '[app]\nrepo = "me/bot"\n'
