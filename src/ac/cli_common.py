"""Shared CLI helpers.

Provides ``open_store()`` and the output helpers so that ``cli.py`` and the
``cli_commands/*.py`` modules can use them without circular imports.
"""

from __future__ import annotations

import json as json_mod
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

import click

from ac.core import IssueStore, find_ac_root
from ac.db_base import truncate
from ac.errors import TrackerError
from ac.logging import setup_logging

if TYPE_CHECKING:
    from ac.core import Issue

logger = logging.getLogger(__name__)


def resolve_ac_dir(ctx: click.Context) -> Path:
    """The --dir override if given, else the .ac/ found by walking up from cwd."""
    override = (ctx.obj or {}).get("ac_dir")
    return Path(override) if override is not None else find_ac_root()


def fail(message: str, as_json: bool) -> NoReturn:
    if as_json:
        click.echo(json_mod.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def echo_json(data: Any) -> None:
    click.echo(json_mod.dumps(data, indent=2, default=str))


@contextmanager
def open_store(*, as_json: bool = False, write: bool = False) -> Iterator[IssueStore]:
    """Load the store for the current command; save on success when *write*.

    Any TrackerError raised by the load, the command body or the save is
    reported and ends the process with exit status 1. Nothing is saved when
    the body raises.
    """
    ctx = click.get_current_context()
    try:
        ac_dir = resolve_ac_dir(ctx)
        store = IssueStore.load(ac_dir)
    except TrackerError as e:
        fail(str(e), as_json)
    setup_logging(ac_dir)

    try:
        yield store
        if write:
            store.save()
    except TrackerError as e:
        logger.warning(
            "Command failed",
            extra={"command": ctx.info_name, "args_data": ctx.params, "error": str(e)},
        )
        fail(str(e), as_json)


def echo_issue_table(issues: list[Issue], *, with_status: bool = False) -> None:
    """Fixed-width table: id, priority, type, [status,] title."""
    click.echo()
    if with_status:
        click.echo(f"  {'ID':<8} {'P':>2}  {'TYPE':<8} {'STATUS':<12} TITLE")
        click.echo("  " + "-" * 70)
        for issue in issues:
            click.echo(
                f"  {issue.id:<8} {issue.priority:>2}  {issue.issue_type:<8} {issue.status:<12} {truncate(issue.title, 40)}"
            )
    else:
        click.echo(f"  {'ID':<8} {'P':>2}  {'TYPE':<8} TITLE")
        click.echo("  " + "-" * 60)
        for issue in issues:
            click.echo(f"  {issue.id:<8} {issue.priority:>2}  {issue.issue_type:<8} {truncate(issue.title, 40)}")
    click.echo()
