"""Shell, git and gh utilities.

Provides simple wrappers around subprocess calls for running shell commands,
git and the GitHub CLI, plus the console output helpers used by every step
of the pipeline.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path


def git(
    *args: str, cwd: Path | None = None, check: bool = True, strip: bool = True
) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--porcelain").
        cwd: Directory to run in. Defaults to the process working directory.
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., tag lookup).
        strip: If True (default), strip surrounding whitespace. Porcelain
               status output must keep its leading status columns.

    Returns:
        Stdout from the git command.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip() if strip else result.stdout


def gh(*args: str, token: str | None = None, check: bool = True) -> str:
    """Run a GitHub CLI command and return stripped stdout.

    Args:
        *args: Arguments to pass to gh (e.g., "api", "repos/o/r/releases").
        token: GitHub token, exported to gh as GH_TOKEN.
        check: If True (default), raise CalledProcessError on non-zero exit.
    """
    env = None
    if token:
        env = {**os.environ, "GH_TOKEN": token}
    result = subprocess.run(
        ["gh", *args], capture_output=True, text=True, check=check, env=env
    )
    return result.stdout.strip()


def run(
    *args: str, cwd: Path | None = None, check: bool = True
) -> subprocess.CompletedProcess[bytes]:
    """Run an arbitrary shell command.

    Unlike git(), this doesn't capture output - it streams directly to
    the terminal so users can see the versioning engine's progress.

    Args:
        *args: Command and arguments (e.g., "node", "bin.js", "version").
        cwd: Directory to run in.
        check: If True (default), raise on non-zero exit.

    Returns:
        CompletedProcess with returncode for checking success.
    """
    return subprocess.run(args, cwd=cwd, check=check)


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the pipeline in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def info(msg: str) -> None:
    """Print an indented progress line under the current step."""
    print(f"  {msg}")


def warn(msg: str) -> None:
    """Print a warning as a GitHub Actions annotation."""
    print(f"::warning::{msg}")
