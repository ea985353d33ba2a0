"""Tests for maintenance script synchronization."""

import os
from pathlib import Path

import httpx
import pytest
from conftest import SCRIPTS_REPO, FakeGitHub

from quickup.core.backup_manager import create_snapshot, list_snapshots
from quickup.core.script_sync import ScriptSyncEngine, classify, digest_bytes, digest_file
from quickup.models import FETCH_FAILED, MISSING, ScriptStatus
from quickup.services.fetcher import ArtifactFetcher
from quickup.services.retry import RetryPolicy

TAG = "v1.1.0"
SCRIPTS = ("install.sh", "updater.sh", "uninstall.sh")


@pytest.fixture
def scripts_dir(tmp_path: Path) -> Path:
    d = tmp_path / "home"
    d.mkdir()
    return d


@pytest.fixture
def backups_dir(tmp_path: Path) -> Path:
    return tmp_path / "data" / "backups"


@pytest.fixture
def engine(
    github: FakeGitHub, no_wait_retry: RetryPolicy, scripts_dir: Path, backups_dir: Path
) -> ScriptSyncEngine:
    client = github.client()
    fetcher = ArtifactFetcher(
        client.http, scripts_dir / "tmp", retry=no_wait_retry, show_progress=False
    )
    return ScriptSyncEngine(
        client,
        fetcher,
        repo=SCRIPTS_REPO,
        scripts_dir=scripts_dir,
        backups_dir=backups_dir,
        managed=SCRIPTS,
        retry=no_wait_retry,
    )


def publish(github: FakeGitHub, tag: str = TAG) -> dict[str, bytes]:
    """Publish every managed script at tag; returns the published content."""
    content = {name: f"#!/bin/bash\n# {name} {tag}\n".encode() for name in SCRIPTS}
    for name, data in content.items():
        github.raw[(SCRIPTS_REPO, tag, name)] = data
    return content


@pytest.mark.unit
class TestDigests:
    """Tests for digest helpers."""

    def test_digest_stable(self) -> None:
        assert digest_bytes(b"abc") == digest_bytes(b"abc")
        assert digest_bytes(b"abc") != digest_bytes(b"abd")

    def test_file_digest_matches_bytes(self, tmp_path: Path) -> None:
        path = tmp_path / "f.sh"
        path.write_bytes(b"echo hi\n")
        assert digest_file(path) == digest_bytes(b"echo hi\n")

    def test_missing_file(self, tmp_path: Path) -> None:
        assert digest_file(tmp_path / "absent.sh") == MISSING

    def test_classify(self) -> None:
        assert classify(MISSING, "abc") is ScriptStatus.NEW
        assert classify("abc", "abd") is ScriptStatus.CHANGED
        assert classify("abc", "abc") is ScriptStatus.UP_TO_DATE
        assert classify("abc", FETCH_FAILED) is ScriptStatus.UNKNOWN
        assert classify(MISSING, FETCH_FAILED) is ScriptStatus.UNKNOWN


@pytest.mark.unit
class TestCheckStatus:
    """Tests for ScriptSyncEngine.check_status."""

    def test_fresh_check_marks_all_new(self, github: FakeGitHub, engine: ScriptSyncEngine) -> None:
        publish(github)
        statuses = engine.check_status(TAG)
        assert list(statuses) == list(SCRIPTS)
        assert all(s.status is ScriptStatus.NEW for s in statuses.values())
        assert engine.scripts_to_update(statuses) == list(SCRIPTS)

    def test_idempotent_when_local_matches(
        self, github: FakeGitHub, engine: ScriptSyncEngine, scripts_dir: Path
    ) -> None:
        for name, data in publish(github).items():
            (scripts_dir / name).write_bytes(data)
        statuses = engine.check_status(TAG)
        assert all(s.status is ScriptStatus.UP_TO_DATE for s in statuses.values())
        assert engine.scripts_to_update(statuses) == []
        # Checking again changes nothing
        assert engine.check_status(TAG) == statuses

    def test_changed_script(
        self, github: FakeGitHub, engine: ScriptSyncEngine, scripts_dir: Path
    ) -> None:
        for name, data in publish(github).items():
            (scripts_dir / name).write_bytes(data)
        (scripts_dir / "updater.sh").write_text("#!/bin/bash\n# local edit\n")
        statuses = engine.check_status(TAG)
        assert statuses["updater.sh"].status is ScriptStatus.CHANGED
        assert engine.scripts_to_update(statuses) == ["updater.sh"]

    def test_fetch_failure_is_unknown_and_excluded(
        self, github: FakeGitHub, engine: ScriptSyncEngine
    ) -> None:
        publish(github)
        github.fail("/uninstall.sh")
        statuses = engine.check_status(TAG)
        assert statuses["uninstall.sh"].status is ScriptStatus.UNKNOWN
        assert statuses["uninstall.sh"].remote_digest == FETCH_FAILED
        assert "uninstall.sh" not in engine.scripts_to_update(statuses)
        assert github.count("/uninstall.sh") == 3


@pytest.mark.unit
class TestApply:
    """Tests for ScriptSyncEngine.apply."""

    def test_fresh_apply_installs_all(
        self, github: FakeGitHub, engine: ScriptSyncEngine, scripts_dir: Path
    ) -> None:
        content = publish(github)
        result = engine.apply(list(SCRIPTS), TAG)
        assert result.ok
        assert result.updated == set(SCRIPTS)
        for name in SCRIPTS:
            assert (scripts_dir / name).read_bytes() == content[name]
            assert os.access(scripts_dir / name, os.X_OK)
        assert engine.scripts_to_update(engine.check_status(TAG)) == []

    def test_partial_failure_reports_mixed_version(
        self, github: FakeGitHub, engine: ScriptSyncEngine, scripts_dir: Path
    ) -> None:
        """Two of three changed scripts update; the third keeps its old content."""
        for name in SCRIPTS:
            (scripts_dir / name).write_text(f"old {name}\n")
        content = publish(github)
        github.fail("/uninstall.sh")

        result = engine.apply(list(SCRIPTS), TAG)

        assert result.updated == {"install.sh", "updater.sh"}
        assert result.failed == {"uninstall.sh"}
        assert result.mixed_version
        assert not result.ok
        assert (scripts_dir / "install.sh").read_bytes() == content["install.sh"]
        assert (scripts_dir / "uninstall.sh").read_text() == "old uninstall.sh\n"
        assert not (scripts_dir / "uninstall.sh.new").exists()
        assert not (scripts_dir / "uninstall.sh.new.part").exists()

    def test_snapshot_taken_before_apply(
        self, github: FakeGitHub, engine: ScriptSyncEngine, scripts_dir: Path, backups_dir: Path
    ) -> None:
        (scripts_dir / "updater.sh").write_text("old updater\n")
        publish(github)
        result = engine.apply(["updater.sh"], TAG)
        assert result.backup is not None
        assert (result.backup / "files" / "updater.sh").read_text() == "old updater\n"
        snapshots = list_snapshots(backups_dir)
        assert snapshots[0].target_tag == TAG
        assert snapshots[0].scripts == ["updater.sh"]

    def test_success_prunes_old_snapshots(
        self, github: FakeGitHub, engine: ScriptSyncEngine, scripts_dir: Path, backups_dir: Path
    ) -> None:
        for _ in range(4):
            create_snapshot(scripts_dir, backups_dir, list(SCRIPTS))
        publish(github)
        engine.apply(["updater.sh"], TAG)
        assert len(list_snapshots(backups_dir)) == 3

    def test_failure_keeps_all_snapshots(
        self, github: FakeGitHub, engine: ScriptSyncEngine, scripts_dir: Path, backups_dir: Path
    ) -> None:
        for _ in range(4):
            create_snapshot(scripts_dir, backups_dir, list(SCRIPTS))
        publish(github)
        github.fail("/updater.sh")
        engine.apply(["updater.sh"], TAG)
        assert len(list_snapshots(backups_dir)) == 5

    def test_restore_undoes_sync(
        self, github: FakeGitHub, engine: ScriptSyncEngine, scripts_dir: Path
    ) -> None:
        (scripts_dir / "updater.sh").write_text("old updater\n")
        publish(github)
        engine.apply(["updater.sh"], TAG)
        restored = engine.restore()
        assert restored == ["updater.sh"]
        assert (scripts_dir / "updater.sh").read_text() == "old updater\n"


@pytest.mark.unit
def test_engine_uses_shared_http_client(github: FakeGitHub, engine: ScriptSyncEngine) -> None:
    """Remote checks and downloads go through the same client."""
    assert isinstance(engine.fetcher.http, httpx.Client)
    assert engine.fetcher.http is engine.client.http
