"""Version runner: run the versioning engine, then work out what it bumped.

The engine only reports success or failure. To learn which packages it
upgraded, the working tree is inspected afterwards:

1. Refuse to start on a dirty tree (other changes would be misattributed)
2. Run ``version`` or ``version --snapshot <tag>``
3. List modified manifests (package.json / pyproject.toml)
4. Keep deployable packages named by one of this run's changesets
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from packaging.utils import canonicalize_name

from .engine import VersionEngine
from .errors import DirtyWorkingTreeError, SubprocessFailureError
from .manifests import is_manifest, read_manifest
from .models import Changeset, Mode, PackageManifest, UpgradedPackage, UpgradeResult
from .prerelease import STATE_DIR, STATE_FILENAME
from .shell import info, step
from .vcs import GitWorkingTree

DEFAULT_SNAPSHOT_TAG = "snapshot"


def engine_args(mode: Mode, tag_name: str | None = None) -> list[str]:
    """Arguments passed to the engine for a mode."""
    if mode is Mode.SNAPSHOT:
        return ["version", "--snapshot", tag_name or DEFAULT_SNAPSHOT_TAG]
    return ["version"]


def _released_names(changesets: Sequence[Changeset]) -> set[str]:
    names: set[str] = set()
    for changeset in changesets:
        names |= changeset.names()
    return names


def _named_in(manifest: PackageManifest, names: set[str]) -> bool:
    if manifest.name in names:
        return True
    if manifest.kind == "pyproject.toml":
        # Python names are canonicalized; match changesets written either way.
        return manifest.name in {canonicalize_name(n) for n in names}
    return False


def check_clean_tree(tree: GitWorkingTree) -> None:
    """Fail if tracked files other than the prerelease state are modified.

    Raises:
        DirtyWorkingTreeError: Listing the offending files.
    """
    state_file = f"{STATE_DIR}/{STATE_FILENAME}"
    dirty = [f for f in tree.dirty_files() if f != state_file]
    if dirty:
        raise DirtyWorkingTreeError(
            "Working tree has uncommitted changes before versioning:\n"
            + "\n".join(f"  - {f}" for f in dirty),
            hint="Commit or discard them so they are not reported as upgrades.",
        )


def collect_upgraded(
    root: Path,
    modified: Sequence[str],
    changesets: Sequence[Changeset] | None,
    *,
    match_changesets: bool = True,
    require_deploy_config: bool = True,
) -> list[UpgradedPackage]:
    """Turn the list of modified files into upgraded packages.

    Args:
        root: Workspace root.
        modified: Workspace-relative paths of modified files, in git order.
        changesets: Changesets that apply to this run.
        match_changesets: Drop packages not named by any changeset.
        require_deploy_config: Drop packages without a deploy config.
    """
    names = _released_names(changesets or [])
    upgraded: list[UpgradedPackage] = []
    for file in modified:
        if not is_manifest(file):
            continue
        manifest = read_manifest(root / file, root)
        if require_deploy_config and manifest.config is None:
            info(f"{manifest.name}: no deploy config, skipping")
            continue
        if match_changesets and not _named_in(manifest, names):
            info(f"{manifest.name}: not in this run's changesets, skipping")
            continue
        upgraded.append(
            UpgradedPackage(
                name=manifest.name,
                version=manifest.version,
                path=manifest.path,
                config=manifest.config,
            )
        )
    return upgraded


def run_version(
    *,
    mode: Mode,
    root: Path,
    changesets: Sequence[Changeset] | None = None,
    tag_name: str | None = None,
    engine: VersionEngine | None = None,
    tree: GitWorkingTree | None = None,
    match_changesets: bool = True,
    require_deploy_config: bool = True,
    require_clean_tree: bool = True,
) -> UpgradeResult:
    """Run the versioning engine and report the packages it upgraded.

    Raises:
        DependencyMissingError: If the engine is not installed.
        DirtyWorkingTreeError: If the tree has unrelated changes.
        SubprocessFailureError: If the engine exits non-zero. Manifests may
            be partially rewritten, so the run must stop here.
    """
    step(f"Running version ({mode.value})")
    engine = engine or VersionEngine(root)
    tree = tree or GitWorkingTree(root)

    engine.resolve()
    if require_clean_tree:
        check_clean_tree(tree)

    code = engine.invoke(engine_args(mode, tag_name))
    if code != 0:
        raise SubprocessFailureError(
            "Changeset command exited with non-zero code. "
            "Please check the output and fix the issue.",
            returncode=code,
        )
    info("version workflow completed successfully")

    upgraded = collect_upgraded(
        root,
        tree.modified_files(),
        changesets,
        match_changesets=match_changesets,
        require_deploy_config=require_deploy_config,
    )
    for pkg in upgraded:
        info(f"upgraded {pkg.name} → {pkg.version} ({pkg.path})")
    return UpgradeResult(upgraded_packages=upgraded)
