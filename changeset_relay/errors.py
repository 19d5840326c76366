"""Exceptions raised by changeset-relay.

Every error the pipeline raises on purpose derives from ChangesetRelayError,
so the CLI can report it as a single line and exit with code 1.
"""

from __future__ import annotations


class ChangesetRelayError(Exception):
    """Base class for all changeset-relay errors.

    Attributes:
        hint: Optional follow-up advice printed after the message.
    """

    def __init__(self, message: str, *, hint: str = "") -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        message = super().__str__()
        return f"{message}\n  hint: {self.hint}" if self.hint else message


class ConfigurationError(ChangesetRelayError):
    """A required input is missing or has an invalid value."""


class DependencyMissingError(ChangesetRelayError):
    """The external versioning engine cannot be resolved."""


class SubprocessFailureError(ChangesetRelayError):
    """A subprocess (versioning engine, prepare script) exited non-zero."""

    def __init__(self, message: str, *, returncode: int, hint: str = "") -> None:
        super().__init__(message, hint=hint)
        self.returncode = returncode


class DirtyWorkingTreeError(ChangesetRelayError):
    """Tracked files were modified before the versioning engine ran."""


class MalformedStateError(ChangesetRelayError):
    """The persisted prerelease state is not valid."""


class InvariantViolationError(ChangesetRelayError):
    """Internal consistency check failed. This is a bug."""


class NotInPrereleaseError(ChangesetRelayError):
    """Exiting prerelease mode was requested but no state exists."""


class ChangelogError(ChangesetRelayError):
    """A package changelog could not be read."""


class GitHubError(ChangesetRelayError):
    """A GitHub API call made through gh failed."""
