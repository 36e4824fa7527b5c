"""Tests for CLI commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import NoCredentialsError
from typer.testing import CliRunner

from bbl.cli import app
from bbl.core.errors import ErrorList
from bbl.core.state import StateStore
from bbl.lbs import CreateLBsConfig, DeleteLBsConfig, UpdateLBsConfig


@pytest.fixture(autouse=True)
def _restore_logging():
    """The CLI reconfigures root logging; undo it after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def cli_runner():
    """Return a CLI test runner."""
    return CliRunner()


@pytest.fixture
def state_dir(tmp_path: Path, legacy_state) -> Path:
    """A state directory holding a legacy environment."""
    StateStore(tmp_path).set(legacy_state)
    return tmp_path


@pytest.fixture
def commands():
    with patch("bbl.cli.lbs.build_lb_commands") as build:
        yield build.return_value


class TestGlobalOptions:
    """Tests for the main callback."""

    def test_version(self, cli_runner):
        result = cli_runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert result.output.startswith("bbl ")

    def test_no_args_shows_help(self, cli_runner):
        result = cli_runner.invoke(app, [])

        assert "create-lbs" in result.output


class TestCreateLBs:
    """Tests for bbl create-lbs."""

    def test_passes_flags(self, cli_runner, state_dir, commands, legacy_state):
        result = cli_runner.invoke(
            app,
            [
                "--state-dir",
                str(state_dir),
                "create-lbs",
                "--type",
                "cf",
                "--cert",
                "c.pem",
                "--key",
                "k.pem",
                "--domain",
                "cf.example.com",
                "--skip-if-exists",
            ],
        )

        assert result.exit_code == 0, result.output
        commands.create.execute.assert_called_once_with(
            CreateLBsConfig(
                lb_type="cf",
                cert_path="c.pem",
                key_path="k.pem",
                domain="cf.example.com",
                skip_if_exists=True,
            ),
            legacy_state,
        )

    def test_error_exits_1(self, cli_runner, tmp_path: Path):
        """Test a failure from the real wiring is printed."""
        result = cli_runner.invoke(
            app, ["--state-dir", str(tmp_path), "create-lbs", "--type", "concourse"]
        )

        assert result.exit_code == 1
        assert "AWS access key ID must be provided" in result.output

    def test_error_list_is_printed(self, cli_runner, state_dir, commands):
        commands.create.execute.side_effect = ErrorList(["failed to apply", "failed to save"])

        result = cli_runner.invoke(
            app, ["--state-dir", str(state_dir), "create-lbs", "--type", "cf"]
        )

        assert result.exit_code == 1
        assert "the following errors occurred:" in result.output
        assert "failed to save" in result.output

    def test_botocore_error_is_printed(self, cli_runner, state_dir, commands):
        commands.create.execute.side_effect = NoCredentialsError()

        result = cli_runner.invoke(
            app, ["--state-dir", str(state_dir), "create-lbs", "--type", "cf"]
        )

        assert result.exit_code == 1
        assert "Unable to locate credentials" in result.output


class TestUpdateAndDeleteLBs:
    """Tests for bbl update-lbs and bbl delete-lbs."""

    def test_update_lbs(self, cli_runner, state_dir, commands, legacy_state):
        result = cli_runner.invoke(
            app,
            ["--state-dir", str(state_dir), "update-lbs", "--cert", "c", "--key", "k", "--chain", "ch"],
        )

        assert result.exit_code == 0, result.output
        commands.update.execute.assert_called_once_with(
            UpdateLBsConfig(cert_path="c", key_path="k", chain_path="ch"), legacy_state
        )

    def test_delete_lbs(self, cli_runner, state_dir, commands, legacy_state):
        result = cli_runner.invoke(
            app, ["--state-dir", str(state_dir), "delete-lbs", "--skip-if-missing"]
        )

        assert result.exit_code == 0, result.output
        commands.delete.execute.assert_called_once_with(
            DeleteLBsConfig(skip_if_missing=True), legacy_state
        )


class TestLBs:
    """Tests for bbl lbs."""

    def test_prints_table(self, cli_runner, state_dir, commands):
        commands.report.execute.return_value = {
            "CF Router LB": "1.1.1.1",
            "CF System Domain DNS servers": ["ns-1", "ns-2"],
        }

        result = cli_runner.invoke(app, ["--state-dir", str(state_dir), "lbs"])

        assert result.exit_code == 0, result.output
        assert "CF Router LB" in result.output
        assert "1.1.1.1" in result.output
        assert "ns-1, ns-2" in result.output

    def test_corrupt_state(self, cli_runner, tmp_path: Path):
        (tmp_path / "bbl-state.json").write_text(json.dumps({"aws": "not an object"}))

        result = cli_runner.invoke(app, ["--state-dir", str(tmp_path), "lbs"])

        assert result.exit_code == 1
        assert "Failed to load bbl state" in result.output


class TestVersionCommand:
    def test_shows_terraform_version(self, cli_runner):
        executor = MagicMock()
        executor.version.return_value = "0.9.11"

        with patch("bbl.cli.lbs.Executor", return_value=executor):
            result = cli_runner.invoke(app, ["version"])

        assert result.exit_code == 0, result.output
        assert "terraform 0.9.11" in result.output
