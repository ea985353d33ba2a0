"""GitHub client for release metadata and raw file content.

Handles communication with GitHub's Releases API and the raw content
endpoint:
- latest release, release by tag, recent release list
- raw file content at a tag
- connectivity probe
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..constants import (
    CONNECT_TIMEOUT,
    CONNECTIVITY_TIMEOUT,
    GITHUB_API_BASE,
    GITHUB_API_VERSION,
    GITHUB_RAW_BASE,
)
from ..errors import NetworkUnavailable
from ..models import ReleaseAsset, ReleaseDescriptor

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Request failed, returned a non-success status, or was malformed."""


class GitHubClient:
    """Synchronous client for GitHub releases and raw files.

    One client is shared by every component in a run; it owns the
    underlying httpx.Client unless one is passed in.
    """

    def __init__(
        self,
        token: str | None = None,
        connect_timeout: float = CONNECT_TIMEOUT,
        api_base: str = GITHUB_API_BASE,
        raw_base: str = GITHUB_RAW_BASE,
        http: httpx.Client | None = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            token: Optional API token for higher rate limits
            connect_timeout: Connect timeout in seconds (the only per-call bound)
            api_base: API root URL
            raw_base: Raw content root URL
            http: Pre-built httpx client (tests pass one with a MockTransport)
        """
        self.token = token
        self.api_base = api_base.rstrip("/")
        self.raw_base = raw_base.rstrip("/")
        self._owns_http = http is None
        self.http = http or httpx.Client(
            timeout=httpx.Timeout(None, connect=connect_timeout),
            follow_redirects=True,
        )

    @property
    def headers(self) -> dict[str, str]:
        """Headers for API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": "quickup",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        """GET with uniform error mapping."""
        try:
            response = self.http.get(url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            logger.debug("GitHub returned %s for %s", e.response.status_code, url)
            raise GitHubAPIError(f"HTTP {e.response.status_code} for {url}") from e
        except httpx.HTTPError as e:
            logger.debug("Request to %s failed: %s", url, e)
            raise GitHubAPIError(f"Request failed: {e}") from e

    def _get_json(self, url: str, **kwargs: Any) -> Any:
        response = self._get(url, headers=self.headers, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(f"Malformed JSON from {url}") from e

    def check_connectivity(self, timeout: float = CONNECTIVITY_TIMEOUT) -> None:
        """Verify the API host is reachable.

        Raises:
            NetworkUnavailable: If the API root cannot be reached
        """
        try:
            self.http.get(self.api_base, headers=self.headers, timeout=timeout)
        except httpx.HTTPError as e:
            raise NetworkUnavailable(
                f"Cannot reach {self.api_base}. Check your internet connection."
            ) from e

    def get_latest_release(self, repo: str) -> ReleaseDescriptor:
        """Latest non-prerelease release of a repository."""
        data = self._get_json(f"{self.api_base}/repos/{repo}/releases/latest")
        return parse_release(data)

    def get_release_by_tag(self, repo: str, tag: str) -> ReleaseDescriptor:
        """Release for an exact tag name."""
        data = self._get_json(f"{self.api_base}/repos/{repo}/releases/tags/{tag}")
        return parse_release(data)

    def list_releases(self, repo: str, per_page: int = 20) -> list[ReleaseDescriptor]:
        """Most recent releases, including pre-releases, in API order.

        Draft releases are skipped.
        """
        data = self._get_json(
            f"{self.api_base}/repos/{repo}/releases",
            params={"per_page": min(per_page, 100)},
        )
        if not isinstance(data, list):
            raise GitHubAPIError("Expected a list of releases")
        if not all(isinstance(item, dict) for item in data):
            raise GitHubAPIError("Release list contains a non-object entry")
        return [parse_release(item) for item in data if not item.get("draft", False)]

    def raw_url(self, repo: str, tag: str, path: str) -> str:
        return f"{self.raw_base}/{repo}/{tag}/{path}"

    def fetch_raw(self, repo: str, tag: str, path: str) -> bytes:
        """Byte content of a file at a tag."""
        return self._get(self.raw_url(repo, tag, path)).content


def parse_release(data: Any) -> ReleaseDescriptor:
    """Build a ReleaseDescriptor from a GitHub release JSON object.

    Assets that are not objects or lack a name or URL are skipped.

    Raises:
        GitHubAPIError: If the object has no string tag name or is malformed
    """
    tag = data.get("tag_name") if isinstance(data, dict) else None
    if not isinstance(tag, str) or not tag:
        raise GitHubAPIError("Release response has no tag_name")

    raw_assets = data.get("assets") or []
    if not isinstance(raw_assets, list):
        raise GitHubAPIError("Release assets are not a list")
    try:
        assets = tuple(
            ReleaseAsset(filename=asset["name"], url=asset["browser_download_url"])
            for asset in raw_assets
            if isinstance(asset, dict)
            and asset.get("name")
            and asset.get("browser_download_url")
        )
        return ReleaseDescriptor(
            tag=tag,
            assets=assets,
            tarball_url=data.get("tarball_url"),
            prerelease=bool(data.get("prerelease", False)),
        )
    except ValidationError as e:
        raise GitHubAPIError(f"Malformed release {tag!r}: {e}") from e
