"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")


def _write_changeset(root: Path, changeset_id: str, releases: dict[str, str]) -> None:
    lines = ["---", *(f'"{name}": {bump}' for name, bump in releases.items()), "---"]
    path = root / ".changeset" / f"{changeset_id}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + f"\n\nChange {changeset_id}.\n")


def _bump_manifest(root: Path, rel_dir: str, version: str) -> None:
    """Simulate the versioning engine rewriting a package.json."""
    path = root / rel_dir / "package.json"
    data = json.loads(path.read_text())
    data["version"] = version
    _write_json(path, data)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """An npm workspace with three packages and two pending changesets.

    pkg-a and pkg-b are deployable (they carry a ``config``); pkg-c is a
    library without one.
    """
    _write_json(
        tmp_path / "package.json",
        {"name": "root", "private": True, "workspaces": ["packages/*"]},
    )
    _write_json(
        tmp_path / "packages" / "a" / "package.json",
        {"name": "pkg-a", "version": "1.0.0", "config": {"dockerfile": "Dockerfile"}},
    )
    _write_json(
        tmp_path / "packages" / "b" / "package.json",
        {"name": "pkg-b", "version": "2.0.0", "config": {"dockerfile": "Dockerfile"}},
    )
    _write_json(
        tmp_path / "packages" / "c" / "package.json",
        {"name": "pkg-c", "version": "0.1.0"},
    )
    _write_changeset(tmp_path, "brave-lions", {"pkg-a": "minor"})
    _write_changeset(tmp_path, "quiet-owls", {"pkg-b": "patch"})
    (tmp_path / ".changeset" / "README.md").write_text("# Changesets\n")
    _write_json(tmp_path / ".changeset" / "config.json", {"baseBranch": "main"})
    return tmp_path


class FakeEngine:
    """Stand-in for VersionEngine that records calls.

    Args:
        code: Exit code returned by invoke().
        effect: Called with the engine args to mutate the workspace, the way
            the real engine rewrites manifests.
    """

    def __init__(
        self, code: int = 0, effect: Callable[[list[str]], None] | None = None
    ) -> None:
        self.code = code
        self.effect = effect
        self.calls: list[list[str]] = []

    def resolve(self) -> list[str]:
        return ["changeset"]

    def invoke(self, args: list[str]) -> int:
        self.calls.append(args)
        if self.effect is not None:
            self.effect(args)
        return self.code


class FakeTree:
    """In-memory working tree reporting fixed file lists."""

    def __init__(
        self, modified: list[str] | None = None, dirty: list[str] | None = None
    ) -> None:
        self.modified = modified or []
        self.dirty = dirty or []
        self.modified_calls = 0

    def modified_files(self) -> list[str]:
        self.modified_calls += 1
        return list(self.modified)

    def dirty_files(self) -> list[str]:
        return list(self.dirty)


@pytest.fixture
def add_changeset(workspace: Path) -> Callable[[str, dict[str, str]], None]:
    """Write another changeset file into the workspace."""

    def add(changeset_id: str, releases: dict[str, str]) -> None:
        _write_changeset(workspace, changeset_id, releases)

    return add


@pytest.fixture
def write_manifest() -> Callable[[Path, Any], None]:
    """Write a JSON manifest, creating parent directories."""
    return _write_json


@pytest.fixture
def make_engine() -> type[FakeEngine]:
    return FakeEngine


@pytest.fixture
def make_tree() -> type[FakeTree]:
    return FakeTree


@pytest.fixture
def bumping_engine(workspace: Path) -> Callable[..., FakeEngine]:
    """Build a FakeEngine that rewrites workspace package versions.

    Takes a mapping of package directory to new version, e.g.
    ``{"packages/a": "1.1.0"}``.
    """

    def build(versions: dict[str, str], code: int = 0) -> FakeEngine:
        def effect(args: list[str]) -> None:
            for rel_dir, version in versions.items():
                _bump_manifest(workspace, rel_dir, version)

        return FakeEngine(code=code, effect=effect)

    return build
