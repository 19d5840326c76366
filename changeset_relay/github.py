"""GitHub access through the gh CLI.

GitHubClient wraps the handful of REST endpoints the pipeline needs
(issue comments, pull requests for a commit, releases) as ``gh api`` calls.
TriggerContext captures the GitHub Actions event that started the run.
"""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from .errors import GitHubError
from .shell import gh


class TriggerContext(BaseModel):
    """The GitHub Actions event that triggered this run.

    Attributes:
        event_name: e.g. "pull_request" or "push".
        repository: "owner/repo".
        sha: Commit that triggered the run.
        pr_number: Pull request (or issue) number from the event payload.
    """

    event_name: str = ""
    repository: str = ""
    sha: str = ""
    pr_number: int | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TriggerContext:
        """Read the context from GITHUB_* environment variables."""
        env = os.environ if environ is None else environ
        payload: dict[str, Any] = {}
        event_path = env.get("GITHUB_EVENT_PATH")
        if event_path and Path(event_path).is_file():
            payload = json.loads(Path(event_path).read_text())

        number = (
            (payload.get("issue") or {}).get("number")
            or (payload.get("pull_request") or {}).get("number")
            or payload.get("number")
        )
        return cls(
            event_name=env.get("GITHUB_EVENT_NAME", ""),
            repository=env.get("GITHUB_REPOSITORY", ""),
            sha=env.get("GITHUB_SHA", ""),
            pr_number=number,
        )


class GitHubClient:
    """Minimal GitHub REST client backed by ``gh api``.

    Args:
        repository: "owner/repo".
        token: Token exported to gh as GH_TOKEN.
    """

    def __init__(self, repository: str, token: str) -> None:
        self.repository = repository
        self.token = token

    def _api(self, path: str, *args: str, method: str = "GET") -> Any:
        try:
            output = gh(
                "api", "-X", method, f"repos/{self.repository}/{path}", *args,
                token=self.token,
            )
        except subprocess.CalledProcessError as exc:
            raise GitHubError(
                f"gh api {method} {path} failed: {(exc.stderr or '').strip()}"
            ) from exc
        except OSError as exc:
            raise GitHubError(
                f"gh api {method} {path} could not run: {exc}",
                hint="Make sure the GitHub CLI (gh) is installed and on PATH.",
            ) from exc
        if not output:
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as exc:
            raise GitHubError(
                f"gh api {method} {path} returned invalid JSON: {exc}"
            ) from exc

    def list_releases(self) -> list[dict[str, Any]]:
        """The most recent releases of the repository."""
        return self._api("releases?per_page=100") or []

    def list_issue_comments(self, number: int) -> list[dict[str, Any]]:
        return self._api(f"issues/{number}/comments?per_page=100") or []

    def create_issue_comment(self, number: int, body: str) -> dict[str, Any]:
        return self._api(f"issues/{number}/comments", "-f", f"body={body}", method="POST")

    def update_issue_comment(self, comment_id: int, body: str) -> dict[str, Any]:
        return self._api(
            f"issues/comments/{comment_id}", "-f", f"body={body}", method="PATCH"
        )

    def pulls_for_commit(self, sha: str) -> list[dict[str, Any]]:
        """Pull requests associated with a commit, most recent first."""
        return self._api(f"commits/{sha}/pulls") or []

    def create_release(
        self,
        tag: str,
        *,
        name: str,
        body: str,
        target: str | None = None,
        prerelease: bool = False,
    ) -> dict[str, Any]:
        args = ["-f", f"tag_name={tag}", "-f", f"name={name}", "-f", f"body={body}"]
        if target:
            args += ["-f", f"target_commitish={target}"]
        args += ["-F", f"prerelease={'true' if prerelease else 'false'}"]
        return self._api("releases", *args, method="POST")
