"""Version identifier model.

A version is a tagged variant: a stable release or a development build
of the same numeric release. Parsing and ordering live in
``quickup.core.versioning``; this module only holds the value type.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Trailing letter that marks a development build in tags such as "0.1.0d"
DEV_MARKER = "d"


class BuildKind(str, Enum):
    """Kind of build a version identifier refers to."""

    DEVELOPMENT = "development"
    STABLE = "stable"


class VersionIdentifier(BaseModel):
    """Parsed version: numeric release plus build kind.

    Attributes:
        release: Numeric components, padded to at least major.minor.patch
        kind: Whether this is a stable release or a development build
    """

    model_config = ConfigDict(frozen=True)

    release: tuple[int, ...] = Field(min_length=3, description="Numeric release components")
    kind: BuildKind = BuildKind.STABLE

    @property
    def is_development(self) -> bool:
        return self.kind is BuildKind.DEVELOPMENT

    @property
    def base(self) -> str:
        """Numeric base without the development marker."""
        return ".".join(str(part) for part in self.release)

    def __str__(self) -> str:
        return f"{self.base}{DEV_MARKER}" if self.is_development else self.base
