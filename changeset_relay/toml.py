"""pyproject.toml reading utilities.

Uses tomlkit so Python packages in a mixed workspace are read with the same
parser the versioning engine writes them with, keeping values such as
inline tables intact.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from packaging.utils import canonicalize_name

TOOL_TABLE = "changeset-relay"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file."""
    return tomlkit.parse(path.read_text())


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to return if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    """Extract version from [project].version, defaulting to '0.0.0'."""
    return str(doc.get("project", {}).get("version", "0.0.0"))


def get_deploy_config(doc: tomlkit.TOMLDocument) -> dict[str, Any] | None:
    """Return [tool.changeset-relay.config] as a plain dict, if present.

    A package with this table is a deployable app; its contents are passed
    through untouched to CI as part of the upgraded package list.
    """
    config = doc.get("tool", {}).get(TOOL_TABLE, {}).get("config")
    if config is None:
        return None
    return config.unwrap() if hasattr(config, "unwrap") else dict(config)


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages. Returns an empty list when none are defined.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    return [str(m) for m in members] if members else []
