"""Version parsing and ordering.

Release tags mix stable releases ("0.1.0") with development builds
that carry a trailing "d" ("0.1.0d"). Both share a numeric base, so
a plain string or semver comparison cannot order them. The rules:

- leading non-numeric markers ("v", "release-") are ignored
- numeric components compare as integers, missing ones count as 0
- on an equal base a development build is strictly older
- anything unparsable is the minimum value and never raises
"""

import re
from enum import IntEnum

from ..models import BuildKind, VersionIdentifier

_VERSION_RE = re.compile(r"^[^0-9]*(?P<base>\d+(?:\.\d+)*)(?P<marker>[dD])?$")


class VersionOrder(IntEnum):
    """Result of comparing two versions."""

    LESS = -1
    EQUAL = 0
    GREATER = 1


def parse_version(value: str | None) -> VersionIdentifier | None:
    """Parse a version string.

    Args:
        value: Version or tag string (e.g. "v0.2.0", "0.1.0d")

    Returns:
        Parsed identifier, or None when the string is missing or unparsable
    """
    if not value:
        return None
    match = _VERSION_RE.match(value.strip())
    if match is None:
        return None

    parts = [int(p) for p in match.group("base").split(".")]
    while len(parts) < 3:
        parts.append(0)
    # "1.2.3.0" and "1.2.3" are the same release
    while len(parts) > 3 and parts[-1] == 0:
        parts.pop()

    kind = BuildKind.DEVELOPMENT if match.group("marker") else BuildKind.STABLE
    return VersionIdentifier(release=tuple(parts), kind=kind)


def normalize(value: str | None) -> str | None:
    """Return the canonical string form, or None when unparsable."""
    parsed = parse_version(value)
    return str(parsed) if parsed is not None else None


def is_development(value: str | None) -> bool:
    """True if the version carries a development marker."""
    parsed = parse_version(value)
    return parsed is not None and parsed.is_development


def version_key(value: str | None) -> tuple[int, tuple[int, ...], int]:
    """Sort key consistent with compare().

    Unparsable values sort first; development sorts before stable.
    """
    parsed = parse_version(value)
    if parsed is None:
        return (0, (), 0)
    return (1, parsed.release, 0 if parsed.is_development else 1)


def compare(a: str | None, b: str | None) -> VersionOrder:
    """Compare two version strings.

    Args:
        a: Left-hand version
        b: Right-hand version

    Returns:
        VersionOrder.LESS, EQUAL or GREATER
    """
    key_a, key_b = version_key(a), version_key(b)
    if key_a < key_b:
        return VersionOrder.LESS
    if key_a > key_b:
        return VersionOrder.GREATER
    return VersionOrder.EQUAL


def is_downgrade(current: str | None, target: str | None) -> bool:
    """True if moving from current to target goes backwards."""
    return compare(target, current) is VersionOrder.LESS


def same_version(a: str | None, b: str | None) -> bool:
    """True if both strings name the same build.

    Two unparsable strings only match if they are literally equal, so an
    unknown current version never looks up to date.
    """
    if parse_version(a) is None or parse_version(b) is None:
        return a is not None and a == b
    return compare(a, b) is VersionOrder.EQUAL
