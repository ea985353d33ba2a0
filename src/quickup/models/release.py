"""Release metadata models.

A ReleaseDescriptor is what the GitHub releases API told us about one
release; an Artifact is the installable unit chosen from it.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReleaseAsset(BaseModel):
    """A file attached to a release."""

    model_config = ConfigDict(frozen=True)

    filename: str
    url: str


class ReleaseDescriptor(BaseModel):
    """Immutable view of a single remote release.

    Attributes:
        tag: Tag name exactly as published (e.g. "v0.2.0")
        assets: Uploaded assets in the order the API returned them
        tarball_url: Auto-generated source archive URL, if any
        prerelease: Whether GitHub flags the release as a pre-release
    """

    model_config = ConfigDict(frozen=True)

    tag: str
    assets: tuple[ReleaseAsset, ...] = ()
    tarball_url: str | None = None
    prerelease: bool = False

    @property
    def version(self) -> str:
        """Tag with any leading non-numeric marker removed."""
        return self.tag.lstrip("vV")


class ArtifactKind(str, Enum):
    """Installable artifact kinds, highest preference first."""

    WHEEL = "wheel"
    SDIST_ASSET = "sdist-asset"
    SOURCE_TARBALL = "source-tarball"
    VCS = "vcs"


class Artifact(BaseModel):
    """Installable unit selected from a release.

    Attributes:
        kind: Which fallback level produced this artifact
        locator: Download URL, or a pip VCS requirement for ``vcs``
        filename: Local filename to download to (None for ``vcs``)
    """

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    locator: str = Field(description="URL or VCS locator")
    filename: str | None = None

    @property
    def downloadable(self) -> bool:
        return self.kind is not ArtifactKind.VCS
