"""Changeset reading and reconciliation with the prerelease state.

Changesets are markdown files in ``.changeset/`` with a frontmatter block
naming the packages to bump::

    ---
    "pkg-a": minor
    "@scope/pkg-b": patch
    ---

    Add streaming support to pkg-a.

reconcile() decides which of the pending changesets apply to this run. In a
snapshot cycle that is already running, changesets consumed by earlier runs
are filtered out and the remaining ones are recorded as consumed.
"""

from __future__ import annotations

import re
from pathlib import Path

from .models import Changeset, ChangesetState, Mode, Release
from .prerelease import STATE_DIR, enter_pre, read_pre_state, update_pre_state
from .shell import git, info, step, warn

_FRONTMATTER_LINE_RE = re.compile(
    r"""^["']?(?P<name>[^"']+?)["']?\s*:\s*(?P<type>major|minor|patch|none)\s*$"""
)


def parse_changeset(changeset_id: str, text: str) -> Changeset | None:
    """Parse the contents of a changeset file.

    Returns:
        The parsed Changeset, or None when the file has no frontmatter block.
        A frontmatter block without entries is a valid empty changeset.
    """
    lines = text.strip().splitlines()
    if not lines or lines[0].strip() != "---":
        return None

    end_idx = next(
        (i for i, line in enumerate(lines[1:], start=1) if line.strip() == "---"),
        None,
    )
    if end_idx is None:
        return None

    releases: list[Release] = []
    for line in lines[1:end_idx]:
        stripped = line.strip()
        if not stripped:
            continue
        m = _FRONTMATTER_LINE_RE.match(stripped)
        if m is None:
            warn(f"changeset {changeset_id}: ignoring invalid line {stripped!r}")
            continue
        releases.append(Release(name=m.group("name"), type=m.group("type")))

    summary = "\n".join(lines[end_idx + 1 :]).strip()
    return Changeset(id=changeset_id, releases=releases, summary=summary)


def _changed_since(root: Path, since: str) -> set[str]:
    """Ids of changeset files added or modified since a git ref."""
    output = git(
        "diff", "--name-only", "--relative", "--diff-filter=d", since, "--", STATE_DIR,
        cwd=root,
    )
    return {
        Path(f).stem for f in output.splitlines() if f.endswith(".md")
    }


def read_changesets(root: Path, since: str | None = None) -> list[Changeset]:
    """Read all pending changesets from the workspace, sorted by id.

    Args:
        root: Workspace root.
        since: Optional git ref; only changesets changed since it are read.
    """
    changeset_dir = root / STATE_DIR
    if not changeset_dir.is_dir():
        return []

    wanted = _changed_since(root, since) if since else None

    changesets: list[Changeset] = []
    for path in sorted(changeset_dir.glob("*.md")):
        if path.name == "README.md" or path.name.startswith("."):
            continue
        if wanted is not None and path.stem not in wanted:
            continue
        changeset = parse_changeset(path.stem, path.read_text())
        if changeset is None:
            warn(f"changeset {path.name} has no frontmatter, skipping")
            continue
        changesets.append(changeset)
    return changesets


def reconcile(mode: Mode, root: Path, since: str | None = None) -> ChangesetState:
    """Work out which changesets apply to this run.

    If the workspace is already in snapshot mode and a snapshot run is
    requested, this run continues the existing cycle: changesets consumed by
    earlier runs are dropped and the rest are recorded as consumed.
    Otherwise a fresh cycle is entered with every pending changeset.

    Returns:
        ChangesetState whose ``pre_state`` is the continued state, or None
        when a fresh cycle was started.
    """
    step("Reading changesets")

    pre_state = read_pre_state(root)
    changesets = read_changesets(root, since)
    continuing = (
        pre_state is not None
        and pre_state.mode == Mode.SNAPSHOT
        and mode == Mode.SNAPSHOT
    )

    if continuing:
        consumed = set(pre_state.changesets)
        changesets = [c for c in changesets if c.id not in consumed]
        info(
            f"continuing snapshot cycle: {len(changesets)} new, "
            f"{len(consumed)} already consumed"
        )
        update_pre_state([c.id for c in changesets], root)
    else:
        enter_pre(mode, root, [c.id for c in changesets])

    for changeset in changesets:
        names = ", ".join(f"{r.name} ({r.type})" for r in changeset.releases)
        info(f"{changeset.id}: {names or '<empty>'}")

    return ChangesetState(
        pre_state=pre_state if continuing else None, changesets=changesets
    )
