"""Tests for changeset_relay.release."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, call

import pytest

from changeset_relay.github import GitHubClient
from changeset_relay.models import UpgradedPackage, UpgradeResult
from changeset_relay.release import (
    COMMIT_MESSAGE,
    find_next_release_tag,
    package_tag,
    release_upgraded,
)
from changeset_relay.vcs import GitWorkingTree

PKG_A = UpgradedPackage(name="pkg-a", version="1.1.0", path="packages/a")
PKG_B = UpgradedPackage(name="pkg-b", version="2.0.1", path="packages/b")


@pytest.fixture
def tree() -> MagicMock:
    tree = MagicMock(spec=GitWorkingTree)
    tree.list_tags.return_value = []
    tree.head_sha.return_value = "deadbeef"
    return tree


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock(spec=GitHubClient)
    client.list_releases.return_value = []
    return client


def test_package_tag() -> None:
    assert package_tag(PKG_A) == "pkg-a_1.1.0"


class TestFindNextReleaseTag:
    """Tests for find_next_release_tag()."""

    def test_first_release(self, tree: MagicMock) -> None:
        assert find_next_release_tag(tree) == "r1"

    def test_increments_from_last(self, tree: MagicMock) -> None:
        tree.list_tags.return_value = ["r5", "r4", "r3"]

        assert find_next_release_tag(tree) == "r6"

    def test_ignores_non_numeric_tags(self, tree: MagicMock) -> None:
        tree.list_tags.return_value = ["release-candidate", "r2"]

        assert find_next_release_tag(tree) == "r3"

    def test_counts_github_releases_without_local_tags(
        self, tree: MagicMock, client: MagicMock
    ) -> None:
        """A shallow checkout has no tags but the repository already has releases."""
        client.list_releases.return_value = [{"tag_name": "r7"}, {"tag_name": "v1.0.0"}]

        assert find_next_release_tag(tree, client) == "r8"

    def test_highest_of_tags_and_releases(
        self, tree: MagicMock, client: MagicMock
    ) -> None:
        tree.list_tags.return_value = ["r9"]
        client.list_releases.return_value = [{"tag_name": "r4"}]

        assert find_next_release_tag(tree, client) == "r10"


class TestReleaseUpgraded:
    """Tests for release_upgraded()."""

    def test_nothing_upgraded_does_nothing(
        self, tree: MagicMock, client: MagicMock, tmp_path: Path
    ) -> None:
        tag = release_upgraded(
            UpgradeResult(), root=tmp_path, tree=tree, client=client,
            commit=True, tag=True, release=True,
        )

        assert tag is None
        assert tree.mock_calls == []
        assert client.mock_calls == []

    def test_full_release(
        self, tree: MagicMock, client: MagicMock, tmp_path: Path
    ) -> None:
        """Commit, tag every package, push, then create one GitHub release."""
        changelog = tmp_path / "packages" / "a" / "CHANGELOG.md"
        changelog.parent.mkdir(parents=True)
        changelog.write_text("# pkg-a\n\n## 1.1.0\n\n- Added things\n\n## 1.0.0\n\n- Old\n")
        result = UpgradeResult(upgraded_packages=[PKG_A, PKG_B])

        tag = release_upgraded(
            result, root=tmp_path, tree=tree, client=client,
            commit=True, tag=True, release=True,
        )

        assert tag == "r1"
        assert tree.mock_calls[:4] == [
            call.commit_all(COMMIT_MESSAGE),
            call.annotated_tag("pkg-a_1.1.0", "pkg-a 1.1.0"),
            call.annotated_tag("pkg-b_2.0.1", "pkg-b 2.0.1"),
            call.push_follow_tags(),
        ]
        client.create_release.assert_called_once_with(
            "r1",
            name="Release r1",
            body="## pkg-a v1.1.0\n\n- Added things\n",
            target="deadbeef",
            prerelease=False,
        )

    def test_tags_require_commit(
        self, tree: MagicMock, client: MagicMock, tmp_path: Path
    ) -> None:
        release_upgraded(
            UpgradeResult(upgraded_packages=[PKG_A]), root=tmp_path, tree=tree,
            client=client, commit=False, tag=True, release=True,
        )

        tree.commit_all.assert_not_called()
        tree.annotated_tag.assert_not_called()
        tree.push_follow_tags.assert_not_called()
        client.create_release.assert_not_called()

    def test_commit_without_tags_still_pushes(
        self, tree: MagicMock, client: MagicMock, tmp_path: Path
    ) -> None:
        release_upgraded(
            UpgradeResult(upgraded_packages=[PKG_A]), root=tmp_path, tree=tree,
            client=client, commit=True, tag=False, release=True,
        )

        tree.commit_all.assert_called_once_with(COMMIT_MESSAGE)
        tree.annotated_tag.assert_not_called()
        tree.push_follow_tags.assert_called_once_with()
        client.create_release.assert_not_called()

    def test_snapshot_versions_make_a_prerelease(
        self, tree: MagicMock, client: MagicMock, tmp_path: Path
    ) -> None:
        pkg = UpgradedPackage(name="pkg-a", version="0.0.0-canary-2024", path="packages/a")

        release_upgraded(
            UpgradeResult(upgraded_packages=[pkg]), root=tmp_path, tree=tree,
            client=client, commit=True, tag=True, release=True,
        )

        assert client.create_release.call_args.kwargs["prerelease"] is True
