"""Shared test fixtures for quickup tests."""

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import httpx
import pytest
from typer.testing import CliRunner

from quickup.config import NetworkConfig, PathsConfig, QuickupConfig, ScriptsConfig
from quickup.core.context import UpdaterContext, build_context
from quickup.errors import InstallFailed, ValidationFailed
from quickup.services.github import GitHubClient
from quickup.services.retry import RetryPolicy
from quickup.services.storage import FileStorage

APP_REPO = "owner/app"
SCRIPTS_REPO = "owner/scripts"


class FakeGitHub:
    """In-process GitHub API, raw endpoint and download host.

    Releases are kept newest first, like the API returns them.
    """

    def __init__(self) -> None:
        self.releases: dict[str, list[dict[str, Any]]] = {}
        self.raw: dict[tuple[str, str, str], bytes] = {}
        self.downloads: dict[str, bytes] = {}
        self.failures: dict[str, list[int]] = {}
        self.offline = False
        self.requests: list[httpx.Request] = []

    def add_release(
        self,
        repo: str,
        tag: str,
        assets: tuple[str, ...] = (),
        tarball: bool = True,
        prerelease: bool = False,
        draft: bool = False,
    ) -> dict[str, Any]:
        """Publish a release; later calls are newer."""
        release = {
            "tag_name": tag,
            "prerelease": prerelease,
            "draft": draft,
            "tarball_url": f"https://api.github.com/repos/{repo}/tarball/{tag}" if tarball else None,
            "assets": [
                {
                    "name": name,
                    "browser_download_url": f"https://github.com/{repo}/releases/download/{tag}/{name}",
                }
                for name in assets
            ],
        }
        self.releases.setdefault(repo, []).insert(0, release)
        for asset in release["assets"]:
            self.downloads[asset["browser_download_url"]] = f"{asset['name']} payload".encode()
        if release["tarball_url"]:
            self.downloads[release["tarball_url"]] = b"tarball payload"
        return release

    def fail(self, url_fragment: str, times: int = 1000, after: int = 0) -> None:
        """Answer requests whose URL contains url_fragment with HTTP 500.

        The first ``after`` matching requests still succeed.
        """
        self.failures[url_fragment] = [after, times]

    def count(self, url_fragment: str) -> int:
        return sum(1 for r in self.requests if url_fragment in str(r.url))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def client(self) -> GitHubClient:
        return GitHubClient(http=httpx.Client(transport=self.transport(), follow_redirects=True))

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("network is unreachable", request=request)

        url = str(request.url)
        for fragment, budget in self.failures.items():
            if fragment not in url:
                continue
            if budget[0] > 0:
                budget[0] -= 1
            elif budget[1] > 0:
                budget[1] -= 1
                return httpx.Response(500, text="server error")

        if url in self.downloads:
            return httpx.Response(200, content=self.downloads[url])

        host, path = request.url.host, request.url.path.strip("/")
        if host == "api.github.com":
            return self._api(path)
        if host == "raw.githubusercontent.com":
            owner, name, tag, file_path = path.split("/", 3)
            content = self.raw.get((f"{owner}/{name}", tag, file_path))
            if content is None:
                return httpx.Response(404, text="404: Not Found")
            return httpx.Response(200, content=content)
        return httpx.Response(404)

    def _api(self, path: str) -> httpx.Response:
        if not path:
            return httpx.Response(200, json={"current_user_url": "https://api.github.com/user"})
        parts = path.split("/")
        if len(parts) < 4 or parts[0] != "repos" or parts[3] != "releases":
            return httpx.Response(404, json={"message": "Not Found"})
        releases = self.releases.get(f"{parts[1]}/{parts[2]}", [])
        rest = parts[4:]
        if not rest:
            return httpx.Response(200, json=releases)
        if rest == ["latest"]:
            published = [r for r in releases if not r["prerelease"] and not r["draft"]]
            if not published:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json=published[0])
        if rest[0] == "tags" and len(rest) == 2:
            for release in releases:
                if release["tag_name"] == rest[1]:
                    return httpx.Response(200, json=release)
        return httpx.Response(404, json={"message": "Not Found"})


class FakeInstaller:
    """Stands in for PipxInstaller without running pipx."""

    def __init__(self) -> None:
        self.installed: list[str] = []
        self.existed: list[bool] = []
        self.probes = 0
        self.mirrored: list[Path] = []
        self.fail_install = False
        self.fail_probe = False

    def install(self, locator: str, force: bool = True) -> None:
        self.installed.append(locator)
        self.existed.append(Path(locator).exists())
        if self.fail_install:
            raise InstallFailed("pipx install exited with status 1")

    def probe(self) -> None:
        self.probes += 1
        if self.fail_probe:
            raise ValidationFailed("'quick help' failed, but update may still work")

    def mirror_env_file(self, env_file: Path) -> bool:
        self.mirrored.append(env_file)
        return True


class Prompts:
    """Scripted confirm callable that records every question."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.asked: list[tuple[str, bool]] = []

    def __call__(self, prompt: str, default: bool) -> bool:
        self.asked.append((prompt, default))
        return self.answer


def write_env(home: Path, data_root: Path, version: str | None = "0.1.0") -> Path:
    """Write an installer-style env file."""
    lines = [
        "# QuickBot installation",
        f'QUICKBOT_SCRIPTS_DIR="{home}"',
        f'QUICKBOT_DATA_ROOT="{data_root}"',
        f'QUICKBOT_GITHUB_REPO="{APP_REPO}"',
    ]
    if version is not None:
        lines.append(f'QUICKBOT_VERSION="{version}"')
    lines += ['QUICKBOT_INSTALLED_AT="2026-01-01 10:00:00"', 'QUICKBOT_INSTALL_METHOD="installer"']
    home.mkdir(parents=True, exist_ok=True)
    env_file = home / ".env"
    env_file.write_text("\n".join(lines) + "\n")
    return env_file


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def installer() -> FakeInstaller:
    return FakeInstaller()


@pytest.fixture
def prompts() -> Prompts:
    return Prompts()


@pytest.fixture
def no_wait_retry() -> RetryPolicy:
    """Retry policy with the default attempts and no sleeping."""
    return RetryPolicy(attempts=3, backoff_seconds=0, sleep=lambda _: None)


@pytest.fixture
def config(tmp_path: Path) -> QuickupConfig:
    """Config pointing at an installation under tmp_path."""
    home = tmp_path / "home"
    data_root = tmp_path / "data"
    write_env(home, data_root)
    return QuickupConfig(
        paths=PathsConfig(home=home, data_root=data_root),
        scripts=ScriptsConfig(repo=SCRIPTS_REPO),
        network=NetworkConfig(backoff_seconds=0),
    )


@pytest.fixture
def make_context(
    config: QuickupConfig,
    github: FakeGitHub,
    installer: FakeInstaller,
    prompts: Prompts,
    no_wait_retry: RetryPolicy,
) -> Generator[Callable[..., UpdaterContext], None, None]:
    """Factory building an UpdaterContext against the fakes.

    Keyword overrides are applied to the config before building, e.g.
    ``make_context(version="0.3.0")`` rewrites the installed version.
    """
    contexts: list[UpdaterContext] = []

    def _make(version: str | None = "0.1.0", **config_updates: Any) -> UpdaterContext:
        write_env(config.paths.home, config.paths.data_root, version)
        cfg = config.model_copy(update=config_updates)
        ctx = build_context(
            cfg,
            storage=FileStorage(),
            client=github.client(),
            installer=installer,  # type: ignore[arg-type]
            confirm=prompts,
            retry=no_wait_retry,
        )
        contexts.append(ctx)
        return ctx

    yield _make
    for ctx in contexts:
        ctx.client.http.close()
