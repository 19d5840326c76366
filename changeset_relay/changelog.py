"""Changelog extraction for release notes.

The versioning engine writes a ``CHANGELOG.md`` per package with one
heading per version::

    # pkg-a

    ## 1.2.0

    ### Minor Changes

    - abc123: Add streaming support.

    ## 1.1.0
    ...

get_changelog_entry() cuts out the section for one version; release notes
are the concatenation of those sections for every upgraded package.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path

from .errors import ChangelogError
from .models import UpgradedPackage
from .shell import info

_HEADING_RE = re.compile(r"^(?P<hashes>#{1,6})\s+(?P<text>.*?)\s*#*\s*$")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")


def get_changelog_entry(changelog: str, version: str) -> str:
    """Return the body under the heading that equals ``version``.

    The entry ends at the next heading of the same depth. Headings inside
    fenced code blocks are ignored.

    Returns:
        The stripped entry, or "" when the version has no heading.
    """
    lines = changelog.splitlines()
    start: int | None = None
    depth = 0
    end = len(lines)
    in_fence = False

    for i, line in enumerate(lines):
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        m = _HEADING_RE.match(line)
        if m is None:
            continue
        level = len(m.group("hashes"))
        if start is None:
            if m.group("text") == version:
                start, depth = i + 1, level
        elif level <= depth:
            end = i
            break

    if start is None:
        return ""
    return "\n".join(lines[start:end]).strip()


def concat_changelog_entries(entries: Sequence[tuple[UpgradedPackage, str]]) -> str:
    """Join per-package entries under ``## <name> v<version>`` headings."""
    sections: list[str] = []
    for pkg, entry in entries:
        section = f"## {pkg.name} v{pkg.version}"
        if entry:
            section += f"\n\n{entry}"
        sections.append(section)
    return "\n\n".join(sections) + ("\n" if sections else "")


def read_changelog_entry(root: Path, pkg: UpgradedPackage) -> str | None:
    """Read the entry for an upgraded package from its CHANGELOG.md.

    Returns:
        The entry text, or None when the package has no changelog file
        (changelogs are disabled in the engine's config).

    Raises:
        ChangelogError: If the file exists but cannot be read.
    """
    path = root / pkg.path / "CHANGELOG.md"
    try:
        changelog = path.read_text()
    except FileNotFoundError:
        info(f"{pkg.name}: no CHANGELOG.md, changelogs are disabled")
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise ChangelogError(
            f"Could not read changelog for {pkg.name} at {path}: {exc}"
        ) from exc
    return get_changelog_entry(changelog, pkg.version)


def build_release_notes(root: Path, packages: Sequence[UpgradedPackage]) -> str:
    """Release notes covering every upgraded package that has a changelog."""
    entries: list[tuple[UpgradedPackage, str]] = []
    for pkg in packages:
        entry = read_changelog_entry(root, pkg)
        if entry is not None:
            entries.append((pkg, entry))
    return concat_changelog_entries(entries)
