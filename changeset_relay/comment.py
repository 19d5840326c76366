"""Pull request status comment.

Each run leaves exactly one status comment on the pull request it belongs
to. The comment body starts with a hidden marker; later runs find the
marked comment and edit it instead of adding another one.
"""

from __future__ import annotations

from collections.abc import Sequence

from .github import GitHubClient, TriggerContext
from .models import UpgradedPackage, UpgradeResult
from .shell import info, step

COMMENT_MARKER = "<!-- changesetsSnapshotPrCommentKey -->"
NOTHING_UPGRADED = (
    "Nothing were upgraded, since there are no linked `changesets` for this PR."
)


def format_table(packages: Sequence[UpgradedPackage]) -> str:
    """Markdown table of upgraded packages, in the given order."""
    rows = [f"| `{p.name}` | `{p.version}` |" for p in packages]
    return "\n".join(["| Package | Version |", "|------|---------|", *rows])


def format_comment(result: UpgradeResult) -> str:
    """Build the full comment body, marker included."""
    if result.upgraded:
        body = (
            "### 🚀 Snapshot Release\n\n"
            "The latest changes of this PR are available as:\n"
            f"{format_table(result.upgraded_packages)}"
        )
    else:
        body = NOTHING_UPGRADED
    return f"{COMMENT_MARKER}\n{body}"


def resolve_pr_number(client: GitHubClient, context: TriggerContext) -> int | None:
    """Find the pull request this run reports to.

    Uses the number from the event payload when present. For push events,
    falls back to the pull requests associated with the pushed commit,
    preferring an open one.
    """
    if context.pr_number:
        return context.pr_number
    if context.event_name != "push" or not context.sha:
        return None

    pulls = client.pulls_for_commit(context.sha)
    if not pulls:
        return None
    pull = next((p for p in pulls if p.get("state") == "open"), pulls[0])
    return pull.get("number")


def upsert_comment(
    client: GitHubClient,
    result: UpgradeResult,
    context: TriggerContext,
) -> None:
    """Create or update the status comment on the run's pull request.

    Posts even when nothing was upgraded, so a stale table from an earlier
    run is replaced. Does nothing when no pull request can be found.

    Raises:
        GitHubError: If a GitHub API call fails.
    """
    step("Updating pull request comment")

    number = resolve_pr_number(client, context)
    if number is None:
        info(
            "Failed to locate a PR associated with the Action context, "
            "skipping Snapshot info comment..."
        )
        return

    body = format_comment(result)
    existing = next(
        (
            c
            for c in client.list_issue_comments(number)
            if (c.get("body") or "").startswith(COMMENT_MARKER)
        ),
        None,
    )

    if existing is not None:
        client.update_issue_comment(existing["id"], body)
        info(f"Updated comment {existing['id']} on #{number}")
    else:
        client.create_issue_comment(number, body)
        info(f"Created comment on #{number}")
