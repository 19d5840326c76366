"""Data models for changeset-relay.

These Pydantic models represent the core data structures passed between the
pipeline steps, plus the persisted prerelease state record.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

BumpType = Literal["major", "minor", "patch", "none"]


class Mode(str, Enum):
    """Release mode requested for a run."""

    STABLE = "stable"
    SNAPSHOT = "snapshot"


class PrereleaseState(BaseModel):
    """The persisted prerelease record (``.changeset/prerelease.json``).

    Attributes:
        mode: Whether the workspace is in snapshot (prerelease) mode.
        initial_versions: Package name → version captured when the state was
            created or reset. Serialized as ``initialVersions``.
        changesets: Ids of changesets already consumed in the current cycle,
            in the order they were first consumed.
    """

    model_config = ConfigDict(populate_by_name=True)

    mode: Mode
    initial_versions: dict[str, str] = Field(
        default_factory=dict, alias="initialVersions"
    )
    changesets: list[str] = Field(default_factory=list)


class Release(BaseModel):
    """A single package bump requested by a changeset."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: BumpType


class Changeset(BaseModel):
    """A pending changeset file.

    Attributes:
        id: File name without the ``.md`` extension.
        releases: Packages to bump, in the order they appear in the file.
        summary: Markdown body describing the change.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    releases: list[Release] = Field(default_factory=list)
    summary: str = ""

    def names(self) -> set[str]:
        """Names of all packages this changeset releases."""
        return {release.name for release in self.releases}


class ChangesetState(BaseModel):
    """Outcome of reconciling pending changesets with the prerelease state.

    Attributes:
        pre_state: The state being continued, or None when this run started
            a fresh cycle.
        changesets: Changesets that apply to this run.
    """

    pre_state: PrereleaseState | None = None
    changesets: list[Changeset] = Field(default_factory=list)


class PackageManifest(BaseModel):
    """A package descriptor read from ``package.json`` or ``pyproject.toml``.

    Attributes:
        name: Package name as declared in the manifest.
        version: Current version string.
        path: Workspace-relative directory containing the manifest.
        config: Deployable configuration, or None when the package is not a
            deployable app.
        kind: Manifest file name the record was read from.
    """

    name: str
    version: str
    path: str
    config: Any = None
    kind: Literal["package.json", "pyproject.toml"] = "package.json"


class UpgradedPackage(BaseModel):
    """A package whose version was bumped during this run."""

    name: str
    version: str
    path: str
    config: Any = None


class UpgradeResult(BaseModel):
    """What the versioning step upgraded.

    ``upgraded`` is derived from the package list so the two can never
    disagree.
    """

    model_config = ConfigDict(populate_by_name=True)

    upgraded_packages: list[UpgradedPackage] = Field(
        default_factory=list, alias="upgradedPackages"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def upgraded(self) -> bool:
        return bool(self.upgraded_packages)
