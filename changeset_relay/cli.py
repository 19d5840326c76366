"""CLI entry point for changeset-relay."""

from __future__ import annotations

import json
from pathlib import Path

import click

from changeset_relay.changesets import read_changesets
from changeset_relay.config import RunConfig, parse_bool_input
from changeset_relay.errors import ChangesetRelayError
from changeset_relay.models import Mode
from changeset_relay.pipeline import run_pipeline
from changeset_relay.prerelease import enter_pre, exit_pre, read_pre_state

MODE_CHOICE = click.Choice([m.value for m in Mode])


def _cwd_option(fn):
    return click.option(
        "--cwd",
        envvar="INPUT_CWD",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=".",
        show_default=True,
        help="Workspace root.",
    )(fn)


def _tristate(name: str, help: str):
    return click.option(
        f"--{name}",
        envvar=f"INPUT_{name.upper()}",
        default=None,
        metavar="true|false",
        help=help,
    )


@click.group()
@click.version_option(package_name="changeset-relay")
def cli() -> None:
    """Changeset-driven versioning and release for monorepos in CI."""


@cli.command()
@click.option("--mode", envvar="INPUT_MODE", help="Release mode: stable or snapshot.")
@_cwd_option
@click.option("--token", envvar="GITHUB_TOKEN", help="GitHub token.")
@click.option(
    "--snapshot-tag",
    envvar="INPUT_SNAPSHOTTAG",
    default="snapshot",
    show_default=True,
    help="Tag passed to `version --snapshot`.",
)
@_tristate("commit", "Commit the version bump (default: stable mode only).")
@_tristate("tag", "Tag upgraded packages (default: stable mode only).")
@_tristate("comment", "Upsert the PR status comment (default: snapshot mode only).")
@_tristate("release", "Create a GitHub release when tagging (default: true).")
@click.option("--prepare-script", envvar="INPUT_PREPARESCRIPT", default=None,
              help="Command to run after versioning.")
@click.option("--since", envvar="INPUT_SINCE", default=None,
              help="Only read changesets changed since this git ref.")
@click.option("--version-command", envvar="INPUT_VERSIONCOMMAND", default=None,
              help="Replacement for the changesets CLI.")
@click.option("--setup-git-user", envvar="INPUT_SETUPGITUSER", is_flag=True,
              help="Configure github-actions[bot] as git author.")
@click.option("--loose-match", envvar="INPUT_LOOSEMATCH", is_flag=True,
              help="Report every bumped manifest, even if no changeset names it.")
@click.option("--all-manifests", envvar="INPUT_ALLMANIFESTS", is_flag=True,
              help="Report packages without a deploy config too.")
@click.option("--allow-dirty", envvar="INPUT_ALLOWDIRTY", is_flag=True,
              help="Skip the clean working tree check.")
def run(
    mode: str | None,
    cwd: Path,
    token: str | None,
    snapshot_tag: str,
    commit: str | None,
    tag: str | None,
    comment: str | None,
    release: str | None,
    prepare_script: str | None,
    since: str | None,
    version_command: str | None,
    setup_git_user: bool,
    loose_match: bool,
    all_manifests: bool,
    allow_dirty: bool,
) -> None:
    """Run the versioning pipeline (usually called from CI)."""
    try:
        config = RunConfig.from_inputs(
            mode=mode,
            token=token,
            cwd=cwd.resolve(),
            snapshot_tag=snapshot_tag or "snapshot",
            commit=parse_bool_input("commit", commit),
            tag=parse_bool_input("tag", tag),
            comment=parse_bool_input("comment", comment),
            release=parse_bool_input("release", release),
            prepare_script=prepare_script or None,
            since=since or None,
            version_command=version_command or None,
            setup_git_user=setup_git_user,
            match_changesets=not loose_match,
            require_deploy_config=not all_manifests,
            require_clean_tree=not allow_dirty,
        )
        run_pipeline(config)
    except ChangesetRelayError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.group()
def pre() -> None:
    """Enter or exit prerelease mode."""


@pre.command("enter")
@click.argument("mode", type=MODE_CHOICE)
@_cwd_option
def pre_enter(mode: str, cwd: Path) -> None:
    """Enter prerelease MODE, consuming all pending changesets."""
    root = cwd.resolve()
    try:
        ids = [c.id for c in read_changesets(root)]
        enter_pre(Mode(mode), root, ids)
    except ChangesetRelayError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"✓ Entered {mode} mode")


@pre.command("exit")
@_cwd_option
def pre_exit(cwd: Path) -> None:
    """Exit prerelease mode."""
    try:
        exit_pre(cwd.resolve())
    except ChangesetRelayError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("✓ Exited prerelease mode")


@cli.command()
@_cwd_option
def status(cwd: Path) -> None:
    """Show the prerelease state and pending changesets."""
    root = cwd.resolve()
    try:
        state = read_pre_state(root)
        changesets = read_changesets(root)
    except ChangesetRelayError as exc:
        raise click.ClickException(str(exc)) from exc

    if state is None:
        click.echo("Not in prerelease mode")
    else:
        click.echo(json.dumps(state.model_dump(mode="json", by_alias=True), indent=2))

    consumed = set(state.changesets) if state else set()
    click.echo(f"\nPending changesets ({len(changesets)}):")
    for changeset in changesets:
        mark = " (consumed)" if changeset.id in consumed else ""
        click.echo(f"  {changeset.id}{mark}")
