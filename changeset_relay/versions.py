"""Version parsing utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0").
"""

from __future__ import annotations

import re

import semver

_CORE_RE = re.compile(r"^(?P<core>\d+(?:\.\d+){0,2})(?P<rest>[-+].*)?$")


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding the numeric core with zeros while
    keeping any prerelease or build suffix:
    - "1" → "1.0.0"
    - "1.2-snapshot.3" → "1.2.0-snapshot.3"

    Raises:
        ValueError: If the string is not a valid (possibly incomplete) semver.
    """
    m = _CORE_RE.match(version_str.strip().lstrip("v"))
    if m is None:
        raise ValueError(f"{version_str!r} is not valid SemVer string")
    parts = m.group("core").split(".")
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts) + (m.group("rest") or ""))


def is_prerelease(version_str: str) -> bool:
    """True if the version has a prerelease segment (e.g. a snapshot).

    Strings that are not semver are treated as final releases.
    """
    try:
        return parse_version(version_str).prerelease is not None
    except ValueError:
        return False
