"""Release resolution and artifact selection.

Turns "latest", "latest including dev builds" or an explicit version
into a ReleaseDescriptor, then picks what to install from it. Artifact
preference, highest first:

1. prebuilt wheel uploaded as an asset
2. source archive (.tar.gz) uploaded as an asset
3. GitHub's auto-generated source tarball
4. a pip VCS locator for the tag (nothing to download)
"""

import logging
from dataclasses import dataclass
from enum import Enum

from ..errors import ReleaseUnavailable
from ..models import Artifact, ArtifactKind, ReleaseDescriptor
from ..services.fetcher import artifact_filename
from ..services.github import GitHubAPIError, GitHubClient
from ..services.retry import RetryPolicy
from .versioning import is_development

logger = logging.getLogger(__name__)


class SelectorKind(str, Enum):
    LATEST_STABLE = "latest-stable"
    LATEST_DEVELOPMENT = "latest-development"
    TAG = "tag"


@dataclass(frozen=True)
class ReleaseSelector:
    """Which release to resolve."""

    kind: SelectorKind
    tag: str | None = None

    @classmethod
    def latest_stable(cls) -> "ReleaseSelector":
        return cls(SelectorKind.LATEST_STABLE)

    @classmethod
    def latest_development(cls) -> "ReleaseSelector":
        return cls(SelectorKind.LATEST_DEVELOPMENT)

    @classmethod
    def for_tag(cls, tag: str) -> "ReleaseSelector":
        return cls(SelectorKind.TAG, tag)

    def describe(self) -> str:
        if self.kind is SelectorKind.TAG:
            return f"tag {self.tag}"
        return self.kind.value


class ReleaseResolver:
    """Resolves releases through the GitHub API with bounded retries."""

    def __init__(
        self,
        client: GitHubClient,
        retry: RetryPolicy | None = None,
        tag_prefix: str = "v",
        dev_scan: int = 20,
    ) -> None:
        self.client = client
        self.retry = retry or RetryPolicy()
        self.tag_prefix = tag_prefix
        self.dev_scan = dev_scan

    def tag_for(self, version: str) -> str:
        """Tag name for a bare version ("0.2.0" -> "v0.2.0")."""
        if not version or not version[0].isdigit():
            return version
        return f"{self.tag_prefix}{version}"

    def resolve(self, repo: str, selector: ReleaseSelector) -> ReleaseDescriptor:
        """Resolve a selector to a single release.

        Raises:
            ReleaseUnavailable: If no release could be fetched after retries
        """
        logger.info("Checking %s for %s...", repo, selector.describe())
        try:
            release = self.retry.run(
                lambda: self._lookup(repo, selector),
                retry_on=(GitHubAPIError,),
                description=f"Release lookup ({selector.describe()})",
            )
        except GitHubAPIError as e:
            raise ReleaseUnavailable(
                f"Failed to fetch {selector.describe()} for {repo} from GitHub: {e}"
            ) from e
        logger.debug("Resolved %s to %s", selector.describe(), release.tag)
        return release

    def _lookup(self, repo: str, selector: ReleaseSelector) -> ReleaseDescriptor:
        if selector.kind is SelectorKind.LATEST_STABLE:
            return self.client.get_latest_release(repo)
        if selector.kind is SelectorKind.TAG:
            return self.client.get_release_by_tag(repo, self.tag_for(selector.tag or ""))

        releases = self.client.list_releases(repo, per_page=self.dev_scan)
        if not releases:
            raise GitHubAPIError(f"No releases published for {repo}")
        for release in releases:
            if is_development(release.tag):
                return release
        logger.info("No development build found, using latest release")
        return releases[0]

    def select_artifact(self, release: ReleaseDescriptor, repo: str, package: str) -> Artifact:
        """Pick the installable artifact for a release."""
        for suffix, kind in ((".whl", ArtifactKind.WHEEL), (".tar.gz", ArtifactKind.SDIST_ASSET)):
            for asset in release.assets:
                if asset.filename.endswith(suffix):
                    return Artifact(kind=kind, locator=asset.url, filename=asset.filename)

        if release.tarball_url:
            return Artifact(
                kind=ArtifactKind.SOURCE_TARBALL,
                locator=release.tarball_url,
                filename=artifact_filename(release.tarball_url, package, release.version),
            )

        logger.warning("No downloadable release found, will install from git")
        return Artifact(
            kind=ArtifactKind.VCS,
            locator=f"git+https://github.com/{repo}.git@{release.tag}",
        )
