"""Tests for changeset_relay.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from changeset_relay.config import RunConfig, parse_bool_input
from changeset_relay.errors import ConfigurationError
from changeset_relay.models import Mode


def _config(mode: str, **values) -> RunConfig:
    return RunConfig.from_inputs(mode=mode, token="t0ken", cwd=Path("."), **values)


class TestParseBoolInput:
    @pytest.mark.parametrize("value", ["true", "True", "TRUE"])
    def test_true(self, value: str) -> None:
        assert parse_bool_input("commit", value) is True

    @pytest.mark.parametrize("value", ["false", "False", "FALSE"])
    def test_false(self, value: str) -> None:
        assert parse_bool_input("commit", value) is False

    @pytest.mark.parametrize("value", [None, ""])
    def test_unset(self, value: str | None) -> None:
        assert parse_bool_input("commit", value) is None

    def test_invalid(self) -> None:
        with pytest.raises(ConfigurationError, match="'tag'"):
            parse_bool_input("tag", "yes")


class TestFromInputs:
    def test_missing_token(self) -> None:
        with pytest.raises(ConfigurationError, match="GITHUB_TOKEN"):
            RunConfig.from_inputs(mode="stable", token=None, cwd=Path("."))

    def test_missing_mode(self) -> None:
        with pytest.raises(ConfigurationError, match="'mode'"):
            RunConfig.from_inputs(mode="", token="t0ken", cwd=Path("."))

    def test_unknown_mode(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            _config("nightly")

    def test_token_is_secret(self) -> None:
        config = _config("stable")
        assert "t0ken" not in repr(config)
        assert config.github_token.get_secret_value() == "t0ken"


class TestModeDefaults:
    """Unset commit/tag/comment inputs follow the mode."""

    def test_stable(self) -> None:
        config = _config("stable")
        assert config.mode is Mode.STABLE
        assert config.should_commit is True
        assert config.should_tag is True
        assert config.should_release is True
        assert config.should_comment is False

    def test_snapshot(self) -> None:
        config = _config("snapshot")
        assert config.should_commit is False
        assert config.should_tag is False
        assert config.should_release is False
        assert config.should_comment is True

    def test_tag_requires_commit(self) -> None:
        config = _config("snapshot", commit=False, tag=True)
        assert config.should_tag is False

    def test_snapshot_commit_without_tag(self) -> None:
        config = _config("snapshot", commit=True)
        assert config.should_commit is True
        assert config.should_tag is False

    def test_release_opt_out(self) -> None:
        config = _config("stable", release=False)
        assert config.should_tag is True
        assert config.should_release is False

    def test_explicit_comment(self) -> None:
        assert _config("stable", comment=True).should_comment is True
        assert _config("snapshot", comment=False).should_comment is False
