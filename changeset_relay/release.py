"""Release orchestration: commit → tag → push → GitHub release.

Runs after the version step when something was upgraded. Which of the
steps run is decided by the caller (see RunConfig.should_commit etc.).
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .changelog import build_release_notes
from .github import GitHubClient
from .models import UpgradedPackage, UpgradeResult
from .shell import info, step
from .vcs import GitWorkingTree
from .versions import is_prerelease

COMMIT_MESSAGE = "Version Packages"


def package_tag(pkg: UpgradedPackage) -> str:
    """Git tag name for an upgraded package, e.g. ``pkg-a_1.2.0``."""
    return f"{pkg.name}_{pkg.version}"


def find_next_release_tag(
    tree: GitWorkingTree, client: GitHubClient | None = None
) -> str:
    """Find the next release tag (r1, r2, r3, ...).

    Looks for existing tags matching the r<N> pattern and returns
    the next sequential number. With a client, the tags of the
    repository's GitHub releases count as well, since shallow checkouts
    may have no tags.
    """
    tags = list(tree.list_tags("r*"))
    if client is not None:
        tags += [r.get("tag_name") or "" for r in client.list_releases()]
    numbers = [int(t[1:]) for t in tags if t.startswith("r") and t[1:].isdigit()]
    return f"r{max(numbers) + 1}" if numbers else "r1"


def tag_packages(tree: GitWorkingTree, packages: Sequence[UpgradedPackage]) -> None:
    """Create one annotated tag per upgraded package."""
    step("Creating package tags")
    for pkg in packages:
        tag = package_tag(pkg)
        tree.annotated_tag(tag, f"{pkg.name} {pkg.version}")
        info(tag)


def create_release(
    client: GitHubClient,
    tree: GitWorkingTree,
    root: Path,
    packages: Sequence[UpgradedPackage],
) -> str:
    """Create a GitHub release covering all upgraded packages.

    Returns:
        The release tag.
    """
    step("Creating GitHub release")
    tag = find_next_release_tag(tree, client)
    notes = build_release_notes(root, packages)
    prerelease = any(is_prerelease(p.version) for p in packages)
    client.create_release(
        tag,
        name=f"Release {tag}",
        body=notes,
        target=tree.head_sha(),
        prerelease=prerelease,
    )
    info(f"{tag} with {len(packages)} package(s)")
    return tag


def release_upgraded(
    result: UpgradeResult,
    *,
    root: Path,
    tree: GitWorkingTree,
    client: GitHubClient | None,
    commit: bool,
    tag: bool,
    release: bool,
) -> str | None:
    """Commit, tag, push and publish a GitHub release for an upgrade.

    Tags are only created on top of a commit, and a GitHub release only for
    a tagged commit. Nothing happens when nothing was upgraded.

    Returns:
        The GitHub release tag, or None if no release was created.
    """
    if not result.upgraded:
        return None

    if commit:
        step("Committing version changes")
        tree.commit_all(COMMIT_MESSAGE)
        info("Committed")

    if commit and tag:
        tag_packages(tree, result.upgraded_packages)

    if commit:
        step("Pushing commits and tags")
        tree.push_follow_tags()

    if commit and tag and release and client is not None:
        return create_release(client, tree, root, result.upgraded_packages)
    return None
