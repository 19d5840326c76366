"""Package manifest reading and workspace discovery.

A workspace package is described either by a ``package.json`` (the
changesets CLI's native format) or by a ``pyproject.toml``. Both are read
into the same PackageManifest model.
"""

from __future__ import annotations

import glob
import json
from pathlib import Path

import yaml

from .errors import ConfigurationError
from .models import PackageManifest
from .toml import (
    get_deploy_config,
    get_project_name,
    get_project_version,
    get_workspace_member_globs,
    load_pyproject,
)

MANIFEST_NAMES = ("package.json", "pyproject.toml")
PNPM_WORKSPACE = "pnpm-workspace.yaml"


def is_manifest(file: str) -> bool:
    """True if a workspace-relative path points at a package manifest."""
    return Path(file).name in MANIFEST_NAMES


def read_manifest(path: Path, root: Path) -> PackageManifest:
    """Read a package.json or pyproject.toml into a PackageManifest.

    Args:
        path: Absolute path to the manifest file.
        root: Workspace root, used to compute the package's relative path.
    """
    rel_dir = path.parent.relative_to(root).as_posix()
    if path.name == "pyproject.toml":
        doc = load_pyproject(path)
        return PackageManifest(
            name=get_project_name(doc, path.parent.name),
            version=get_project_version(doc),
            path=rel_dir,
            config=get_deploy_config(doc),
            kind="pyproject.toml",
        )

    data = json.loads(path.read_text())
    return PackageManifest(
        name=data.get("name", path.parent.name),
        version=data.get("version", "0.0.0"),
        path=rel_dir,
        # Falsy config ("", {}, null) means "not deployable", as in npm.
        config=data.get("config") or None,
        kind="package.json",
    )


def _root_manifest(root: Path) -> Path | None:
    for name in MANIFEST_NAMES:
        if (root / name).exists():
            return root / name
    return None


def _pnpm_workspace_globs(path: Path) -> list[str]:
    """Read the ``packages`` list of a pnpm-workspace.yaml."""
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Could not parse {path}: {exc}") from exc
    packages = data.get("packages") if isinstance(data, dict) else None
    return [str(p) for p in packages] if packages else []


def get_workspace_globs(root: Path) -> list[str]:
    """Collect workspace member globs declared by the root manifest.

    Reads ``workspaces`` from the root package.json (either a list or an
    object with a ``packages`` list), then ``packages`` from
    pnpm-workspace.yaml, falling back to [tool.uv.workspace] in the root
    pyproject.toml. Globs starting with ``!`` exclude directories.
    """
    package_json = root / "package.json"
    if package_json.exists():
        workspaces = json.loads(package_json.read_text()).get("workspaces")
        if isinstance(workspaces, dict):
            workspaces = workspaces.get("packages")
        if workspaces:
            return [str(w) for w in workspaces]

    pnpm_workspace = root / PNPM_WORKSPACE
    if pnpm_workspace.exists():
        globs = _pnpm_workspace_globs(pnpm_workspace)
        if globs:
            return globs

    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        return get_workspace_member_globs(load_pyproject(pyproject))
    return []


def _expand_globs(root: Path, patterns: list[str]) -> list[Path]:
    """Directories matched by workspace globs, minus ``!`` exclusions."""
    included: list[Path] = []
    excluded: set[Path] = set()
    for pattern in patterns:
        negated = pattern.startswith("!")
        pattern = pattern.lstrip("!")
        for match in sorted(glob.glob(str(root / pattern), recursive=True)):
            p = Path(match)
            if not p.is_dir() or "node_modules" in p.relative_to(root).parts:
                continue
            if negated:
                excluded.add(p)
            elif p not in included:
                included.append(p)
    return [p for p in included if p not in excluded]


def discover_packages(root: Path) -> dict[str, PackageManifest]:
    """Scan the workspace and discover all packages.

    Expands the workspace member globs and reads the manifest of every
    matching directory. Without member globs, the root manifest is treated
    as a single-package workspace.

    Returns:
        Map of package name to PackageManifest, in discovery order.
    """
    manifests: list[Path] = []
    for d in _expand_globs(root, get_workspace_globs(root)):
        for name in MANIFEST_NAMES:
            if (d / name).exists():
                manifests.append(d / name)
                break

    if not manifests:
        root_manifest = _root_manifest(root)
        if root_manifest is not None:
            manifests.append(root_manifest)

    packages: dict[str, PackageManifest] = {}
    for path in manifests:
        manifest = read_manifest(path, root)
        packages[manifest.name] = manifest
    return packages


def current_versions(root: Path) -> dict[str, str]:
    """Map every workspace package name to its current version."""
    return {name: m.version for name, m in discover_packages(root).items()}
