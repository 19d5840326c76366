"""Release pipeline: reconcile → version → prepare → release → comment.

This module runs one CI invocation end to end:
1. Read pending changesets and reconcile them with the prerelease state
2. Run the versioning engine and detect upgraded packages
3. Run the user's prepare script, if any
4. Commit, tag and publish a GitHub release (stable mode by default)
5. Upsert the pull request status comment (snapshot mode by default)

Step outputs (hasChangesets, upgraded, upgradedPackages) are written to
$GITHUB_OUTPUT for later workflow steps.
"""

from __future__ import annotations

import json
import os
import shlex

from .changesets import reconcile
from .comment import upsert_comment
from .config import RunConfig
from .engine import VersionEngine
from .errors import GitHubError, SubprocessFailureError
from .github import GitHubClient, TriggerContext
from .models import UpgradeResult
from .release import release_upgraded
from .shell import info, run, step, warn
from .vcs import GitWorkingTree
from .versioning import run_version


def set_output(name: str, value: str) -> None:
    """Append a step output to $GITHUB_OUTPUT, or print it when unset."""
    output_path = os.environ.get("GITHUB_OUTPUT")
    if not output_path:
        info(f"output {name}={value}")
        return
    with open(output_path, "a") as fh:
        fh.write(f"{name}={value}\n")


def run_prepare_script(config: RunConfig) -> None:
    """Run the user's prepare command in the workspace.

    Raises:
        SubprocessFailureError: If the command exits non-zero.
    """
    if not config.prepare_script:
        return
    step("Running user prepare script")
    argv = shlex.split(config.prepare_script)
    result = run(*argv, cwd=config.cwd, check=False)
    if result.returncode != 0:
        raise SubprocessFailureError(
            "Failed to run 'prepareScript' command", returncode=result.returncode
        )


def run_pipeline(
    config: RunConfig,
    context: TriggerContext | None = None,
    *,
    engine: VersionEngine | None = None,
    tree: GitWorkingTree | None = None,
    client: GitHubClient | None = None,
) -> UpgradeResult:
    """Execute the full pipeline for one CI run.

    Args:
        config: Validated run configuration.
        context: Triggering event; read from the environment when omitted.
        engine: Versioning engine override (tests).
        tree: Working tree override (tests).
        client: GitHub client override (tests).

    Returns:
        The upgrade result (empty when there were no changesets).
    """
    root = config.cwd
    context = context or TriggerContext.from_env()
    tree = tree or GitWorkingTree(root)
    engine = engine or VersionEngine(root, config.version_command)
    if client is None and context.repository:
        client = GitHubClient(context.repository, config.github_token.get_secret_value())

    if config.setup_git_user:
        step("Setting git user")
        tree.setup_git_user()

    state = reconcile(config.mode, root, config.since)
    has_changesets = bool(state.changesets)

    set_output("upgraded", "false")
    set_output("upgradedPackages", "[]")
    set_output("hasChangesets", json.dumps(has_changesets))

    if not has_changesets:
        info("No changesets found")
        return UpgradeResult()

    result = run_version(
        mode=config.mode,
        root=root,
        changesets=state.changesets,
        tag_name=config.snapshot_tag,
        engine=engine,
        tree=tree,
        match_changesets=config.match_changesets,
        require_deploy_config=config.require_deploy_config,
        require_clean_tree=config.require_clean_tree,
    )

    if result.upgraded:
        packages = [p.model_dump(mode="json") for p in result.upgraded_packages]
        set_output("upgraded", "true")
        set_output("upgradedPackages", json.dumps(packages))
    else:
        info("Nothing was upgraded")

    run_prepare_script(config)

    release_upgraded(
        result,
        root=root,
        tree=tree,
        client=client,
        commit=config.should_commit,
        tag=config.should_tag,
        release=config.should_release,
    )

    if config.should_comment:
        if client is None:
            info("No GitHub repository in the environment, skipping comment")
        else:
            try:
                upsert_comment(client, result, context)
            except GitHubError as exc:
                info("Failed to create/update github comment.")
                warn(str(exc))

    step("Done!")
    return result
