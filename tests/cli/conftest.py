"""Fixtures for CLI interface tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner

from ac.cli import cli


@pytest.fixture
def cli_in_project(tmp_path: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> tuple[CliRunner, Path]:
    """Initialize an ac project in tmp_path, chdir into it, and return (runner, project_root)."""
    monkeypatch.chdir(tmp_path)
    result = cli_runner.invoke(cli, ["init", "--prefix", "test"])
    assert result.exit_code == 0, result.output
    return cli_runner, tmp_path


@pytest.fixture
def new_issue(cli_in_project: tuple[CliRunner, Path]) -> Callable[..., str]:
    """Create an issue through the CLI and return its id."""
    runner, _ = cli_in_project

    def _create(title: str, *args: str) -> str:
        result = runner.invoke(cli, ["create", title, *args, "--json"])
        assert result.exit_code == 0, result.output
        return json.loads(result.output)["id"]

    return _create
