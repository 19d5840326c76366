"""Run configuration.

Inputs arrive as GitHub Actions inputs (``INPUT_<NAME>`` environment
variables) or CLI options and are validated into a RunConfig before any
work starts.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, SecretStr, ValidationError

from .errors import ConfigurationError
from .models import Mode

TRUE_VALUES = ("true", "True", "TRUE")
FALSE_VALUES = ("false", "False", "FALSE")


def parse_bool_input(name: str, value: str | None) -> bool | None:
    """Parse a tri-state boolean action input.

    Empty or missing means "not set", so the mode-dependent default applies.

    Raises:
        ConfigurationError: If the value is not a recognised boolean.
    """
    if value is None or value == "":
        return None
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Input {name!r} must be one of true/false, got {value!r}."
    )


class RunConfig(BaseModel):
    """Validated settings for one pipeline run.

    Attributes:
        mode: stable or snapshot.
        cwd: Workspace root.
        github_token: Token for the GitHub API.
        snapshot_tag: Tag passed to ``version --snapshot``.
        commit: Commit the version bump (unset = only in stable mode).
        tag: Tag upgraded packages (unset = only in stable mode).
        comment: Upsert the PR status comment (unset = only in snapshot mode).
        release: Create a GitHub release when tagging (unset = yes).
        prepare_script: Command run after versioning, before committing.
        setup_git_user: Configure the Actions bot as git author.
        since: Only read changesets changed since this git ref.
        version_command: Replacement for the changesets CLI.
        match_changesets: Require an upgraded package to be named by a
            changeset of this run (False = any bumped manifest counts).
        require_deploy_config: Only report packages with a deploy config.
        require_clean_tree: Refuse to version a dirty working tree.
    """

    mode: Mode
    cwd: Path
    github_token: SecretStr
    snapshot_tag: str = "snapshot"
    commit: bool | None = None
    tag: bool | None = None
    comment: bool | None = None
    release: bool | None = None
    prepare_script: str | None = None
    setup_git_user: bool = False
    since: str | None = None
    version_command: str | None = None
    match_changesets: bool = True
    require_deploy_config: bool = True
    require_clean_tree: bool = True

    @classmethod
    def from_inputs(cls, *, mode: str | None, token: str | None, **values) -> RunConfig:
        """Build a RunConfig, turning validation failures into ConfigurationError."""
        if not token:
            raise ConfigurationError(
                "Please add the GITHUB_TOKEN to the changesets action"
            )
        if not mode:
            raise ConfigurationError(
                "Please configure the 'mode', choose between snapshot or stable mode."
            )
        try:
            return cls(mode=mode, github_token=token, **values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration:\n{exc}") from exc

    @property
    def should_commit(self) -> bool:
        return self.commit if self.commit is not None else self.mode is Mode.STABLE

    @property
    def should_tag(self) -> bool:
        tag = self.tag if self.tag is not None else self.mode is Mode.STABLE
        return self.should_commit and tag

    @property
    def should_release(self) -> bool:
        return self.should_tag and (self.release if self.release is not None else True)

    @property
    def should_comment(self) -> bool:
        return self.comment if self.comment is not None else self.mode is not Mode.STABLE
