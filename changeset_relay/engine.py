"""The external versioning engine.

The engine (the changesets CLI by default) reports what it did only through
its exit code and the files it rewrote. VersionEngine covers the first half
of that contract: resolve the executable and run it.
"""

from __future__ import annotations

import shlex
import shutil
from pathlib import Path

from .errors import DependencyMissingError
from .shell import run

CHANGESETS_CLI = Path("node_modules") / "@changesets" / "cli"


def find_changesets_bin(root: Path) -> Path | None:
    """Locate ``@changesets/cli/bin.js`` the way Node resolves packages.

    Searches ``node_modules`` in the workspace root and then in each parent
    directory.
    """
    for directory in [root, *root.parents]:
        candidate = directory / CHANGESETS_CLI / "bin.js"
        if candidate.is_file():
            return candidate
    return None


class VersionEngine:
    """Runs the versioning engine for a workspace.

    Args:
        root: Workspace root; the engine runs with it as working directory.
        command: Optional replacement command line (e.g. a changesets-
            compatible tool for Python workspaces). When omitted, the
            changesets CLI is run through node.
    """

    def __init__(self, root: Path, command: str | None = None) -> None:
        self.root = root
        self.command = command

    def resolve(self) -> list[str]:
        """Return the base command line for the engine.

        Raises:
            DependencyMissingError: If the engine is not installed.
        """
        if self.command:
            argv = shlex.split(self.command)
            if not argv or shutil.which(argv[0]) is None:
                raise DependencyMissingError(
                    f"Version command {self.command!r} was not found on PATH.",
                    hint="Install it or fix the versionCommand input.",
                )
            return argv

        bin_js = find_changesets_bin(self.root)
        if bin_js is None:
            raise DependencyMissingError(
                f'Have you forgotten to install `@changesets/cli` in "{self.root}"?',
                hint="Add @changesets/cli to devDependencies and install before this step.",
            )
        node = shutil.which("node")
        if node is None:
            raise DependencyMissingError(
                "node was not found on PATH.",
                hint="Set up Node.js (e.g. actions/setup-node) before this step.",
            )
        return [node, str(bin_js)]

    def invoke(self, args: list[str]) -> int:
        """Run the engine with extra arguments and return its exit code."""
        return run(*self.resolve(), *args, cwd=self.root, check=False).returncode
