"""
Version Parsing and Comparison
==============================

Parses and compares NuGet package versions. NuGet versions follow
SemVer 2.0 with a few relaxations:

- 2 to 4 numeric release components (1.0, 1.2.3, 1.2.3.4)
- optional dot-separated prerelease label after '-'
- optional build metadata after '+', ignored for precedence
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from .errors import InvalidVersionError

_VERSION_RE = re.compile(
    r"^(?P<major>\d+)\.(?P<minor>\d+)(?:\.(?P<patch>\d+))?(?:\.(?P<revision>\d+))?"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<meta>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@dataclass(frozen=True)
class NuGetVersion:
    """
    A parsed NuGet version.

    Ordering follows SemVer precedence:
    - release components compare numerically
    - a prerelease sorts before the same release without one
    - prerelease identifiers compare left to right; numeric ones
      numerically and before alphanumeric ones, alphanumeric ones
      case-insensitively
    - build metadata never takes part in comparisons
    """

    major: int
    minor: int = 0
    patch: int = 0
    revision: int = 0
    prerelease: tuple[str, ...] = ()
    metadata: str | None = field(default=None, compare=False)

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            base += f".{self.revision}"
        if self.prerelease:
            base += "-" + ".".join(self.prerelease)
        if self.metadata:
            base += f"+{self.metadata}"
        return base

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def as_tuple(self) -> tuple:
        """
        Convert to a tuple for comparison.

        A release gets (1,) as its prerelease key so it sorts after any
        prerelease key (0, ...). Identifiers become (0, int) or (1, str)
        so numeric ones sort first and ints are never compared to strings.
        """
        if not self.prerelease:
            pre_key: tuple = (1,)
        else:
            idents = tuple(
                (0, int(ident)) if ident.isdigit() else (1, ident.lower())
                for ident in self.prerelease
            )
            pre_key = (0, idents)
        return (self.major, self.minor, self.patch, self.revision, pre_key)

    def __lt__(self, other: "NuGetVersion") -> bool:
        return self.as_tuple() < other.as_tuple()

    def __le__(self, other: "NuGetVersion") -> bool:
        return self.as_tuple() <= other.as_tuple()

    def __gt__(self, other: "NuGetVersion") -> bool:
        return self.as_tuple() > other.as_tuple()

    def __ge__(self, other: "NuGetVersion") -> bool:
        return self.as_tuple() >= other.as_tuple()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NuGetVersion):
            return False
        return self.as_tuple() == other.as_tuple()

    def __hash__(self) -> int:
        return hash(self.as_tuple())


def parse_version(version_str: str) -> NuGetVersion:
    """
    Parse a version string into a NuGetVersion.

    Args:
        version_str: Version string like "1.2.3", "2.0", "1.0.0-beta.2+sha.abc"

    Returns:
        NuGetVersion object

    Raises:
        InvalidVersionError: If the string is not a valid version
    """
    if version_str is None:
        raise InvalidVersionError("None")

    match = _VERSION_RE.match(version_str.strip())
    if not match:
        raise InvalidVersionError(version_str)

    pre = match.group("pre")
    return NuGetVersion(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch") or 0),
        revision=int(match.group("revision") or 0),
        prerelease=tuple(pre.split(".")) if pre else (),
        metadata=match.group("meta"),
    )


def get_greater_version(version1: str, version2: str) -> str:
    """
    Compare two version strings and return the greater one.

    The original string is returned untouched. When both versions have
    equal precedence the second argument is returned.
    """
    v1 = parse_version(version1)
    v2 = parse_version(version2)
    return version1 if v1 > v2 else version2


def is_prerelease(version: str) -> bool:
    """Check whether a version string carries a prerelease label."""
    return parse_version(version).is_prerelease


def pick_greater(version1: str, version2: str) -> str:
    """
    Like get_greater_version, but versions of equal precedence resolve to
    the smaller string so the outcome never depends on argument order.
    """
    v1 = parse_version(version1)
    v2 = parse_version(version2)
    if v1 == v2:
        return min(version1, version2)
    return version1 if v1 > v2 else version2


def max_version(versions: Iterable[str]) -> str:
    """Return the greatest version string from an iterable."""
    result: str | None = None
    for version in versions:
        result = version if result is None else pick_greater(result, version)
    if result is None:
        raise ValueError("max_version() arg is an empty iterable")
    return result


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Sort version strings by precedence, lowest first."""
    return sorted(versions, key=lambda v: parse_version(v).as_tuple())
