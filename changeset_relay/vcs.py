"""Git working tree access.

GitWorkingTree is the only place that inspects or mutates the repository, so
the version runner and release steps can be tested against a fake tree.
"""

from __future__ import annotations

from pathlib import Path

from .shell import git

BOT_NAME = "github-actions[bot]"
BOT_EMAIL = "github-actions[bot]@users.noreply.github.com"


def parse_porcelain(output: str) -> list[tuple[str, str]]:
    """Parse ``git status --porcelain -z`` output.

    Returns:
        (XY status code, path) pairs in git's order. For renames and copies
        the destination path is reported.
    """
    entries: list[tuple[str, str]] = []
    fields = output.split("\0")
    i = 0
    while i < len(fields):
        field = fields[i]
        i += 1
        if len(field) < 4:
            continue
        code, path = field[:2], field[3:]
        if code[0] in "RC":
            # The source path follows as its own NUL-terminated field.
            i += 1
        entries.append((code, path))
    return entries


class GitWorkingTree:
    """A git working tree rooted at a workspace directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def status(self) -> list[tuple[str, str]]:
        """Status entries for the workspace, with workspace-relative paths.

        Porcelain output is always relative to the repository root, so the
        workspace's prefix inside the repository is stripped.
        """
        prefix = git("rev-parse", "--show-prefix", cwd=self.root)
        output = git(
            "status", "--porcelain", "-z", "--untracked-files=no", ".",
            cwd=self.root, strip=False,
        )
        return [
            (code, path.removeprefix(prefix))
            for code, path in parse_porcelain(output)
        ]

    def modified_files(self) -> list[str]:
        """Tracked files modified in the index or working tree."""
        return [path for code, path in self.status() if "M" in code]

    def dirty_files(self) -> list[str]:
        """Tracked files with any staged or unstaged change."""
        return [path for _code, path in self.status()]

    def commit_all(self, message: str) -> None:
        git("add", ".", cwd=self.root)
        git("commit", "-m", message, cwd=self.root)

    def annotated_tag(self, name: str, message: str) -> None:
        git("tag", "-a", name, "-m", message, cwd=self.root)

    def push_follow_tags(self) -> None:
        git("push", "origin", "--follow-tags", cwd=self.root)

    def head_sha(self) -> str:
        return git("rev-parse", "HEAD", cwd=self.root)

    def list_tags(self, pattern: str) -> list[str]:
        """Tags matching a glob, highest version first."""
        output = git(
            "tag", "--list", pattern, "--sort=-v:refname", cwd=self.root, check=False
        )
        return output.splitlines()

    def setup_git_user(self) -> None:
        """Configure the GitHub Actions bot as commit author."""
        git("config", "user.name", BOT_NAME, cwd=self.root)
        git("config", "user.email", BOT_EMAIL, cwd=self.root)
