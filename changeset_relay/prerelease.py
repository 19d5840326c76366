"""Prerelease state store.

The only state changeset-relay keeps between CI runs is a single JSON record
at ``.changeset/prerelease.json``:

    {
      "mode": "snapshot",
      "initialVersions": {"pkg-a": "1.0.0"},
      "changesets": ["brave-lions-sing"]
    }

It records whether the workspace is in snapshot mode and which changesets
were already consumed in the current cycle. It is only ever touched through
read_pre_state, enter_pre, update_pre_state and exit_pre. Writes replace the
whole file atomically; concurrent runs against one workspace are not
supported.
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from .errors import InvariantViolationError, MalformedStateError, NotInPrereleaseError
from .manifests import current_versions
from .models import Mode, PrereleaseState
from .shell import info, warn

STATE_DIR = ".changeset"
STATE_FILENAME = "prerelease.json"


def state_path(root: Path) -> Path:
    """Location of the prerelease state file for a workspace."""
    return root / STATE_DIR / STATE_FILENAME


def _merge_ids(existing: Iterable[str], new: Iterable[str]) -> list[str]:
    """Union two id sequences, keeping first-seen order."""
    return list(dict.fromkeys([*existing, *new]))


def read_pre_state(root: Path) -> PrereleaseState | None:
    """Load the prerelease state, or None when the workspace has none.

    Raises:
        MalformedStateError: If the file exists but is not UTF-8, not valid
            JSON, or does not match the state schema. The raw content of
            a JSON or schema failure is printed to stderr for diagnosis.
    """
    path = state_path(root)
    try:
        contents = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as exc:
        raise MalformedStateError(
            f"Prerelease state {path} is not valid UTF-8: {exc}",
            hint="Fix or delete the file, then re-run.",
        ) from exc

    try:
        return PrereleaseState.model_validate(json.loads(contents))
    except (json.JSONDecodeError, ValidationError) as exc:
        print(f"error parsing {path}:\n{contents}", file=sys.stderr)
        raise MalformedStateError(
            f"Prerelease state {path} is malformed: {exc}",
            hint="Fix or delete the file, then re-run.",
        ) from exc


def write_pre_state(root: Path, state: PrereleaseState) -> None:
    """Atomically replace the prerelease state file.

    The record is written to a temp file in the same directory and renamed
    into place, so an interrupted write leaves the previous state intact.
    """
    path = state_path(root)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(state.model_dump(mode="json", by_alias=True), indent=2) + "\n"

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".prerelease-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        Path(tmp_path).unlink(missing_ok=True)
        raise


def enter_pre(mode: Mode, root: Path, changeset_ids: Iterable[str]) -> PrereleaseState:
    """Start a prerelease cycle in the given mode.

    Re-entering while already in snapshot mode is tolerated: a warning is
    printed and the supplied ids are merged into the consumed list rather
    than replacing it. Current package versions become the new baseline.

    Returns:
        The state that was written.
    """
    existing = read_pre_state(root)
    if existing is not None and existing.mode is Mode.SNAPSHOT:
        warn(
            "prerelease mode cannot be entered when already in prerelease mode. "
            "skipping..."
        )

    state = PrereleaseState(
        mode=mode,
        initial_versions=current_versions(root),
        changesets=_merge_ids(
            existing.changesets if existing is not None else [], changeset_ids
        ),
    )
    write_pre_state(root, state)
    info(f"entered {mode.value} mode with {len(state.changesets)} changeset(s)")
    return state


def update_pre_state(changeset_ids: Iterable[str], root: Path) -> PrereleaseState:
    """Record more changesets as consumed in the current cycle.

    Raises:
        InvariantViolationError: If there is no state to update.
    """
    existing = read_pre_state(root)
    if existing is None:
        raise InvariantViolationError(
            "pre state should exist when updating pre state. this is a bug"
        )

    state = existing.model_copy(
        update={"changesets": _merge_ids(existing.changesets, changeset_ids)}
    )
    write_pre_state(root, state)
    return state


def exit_pre(root: Path) -> PrereleaseState:
    """Leave prerelease mode.

    Resets the record to stable mode with the current package versions as
    the new baseline and no consumed changesets.

    Raises:
        NotInPrereleaseError: If the workspace has no prerelease state.
            Nothing is written in that case.
    """
    if read_pre_state(root) is None:
        raise NotInPrereleaseError(
            "Cannot exit prerelease mode: the workspace is not in prerelease mode.",
            hint=f"No {STATE_DIR}/{STATE_FILENAME} was found in {root}.",
        )

    state = PrereleaseState(
        mode=Mode.STABLE, initial_versions=current_versions(root), changesets=[]
    )
    write_pre_state(root, state)
    return state
