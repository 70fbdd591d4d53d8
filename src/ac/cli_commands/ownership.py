"""CLI commands for session ownership: claim, release, finish, close, mine."""

from __future__ import annotations

import click

from ac.cli_common import echo_issue_table, echo_json, open_store


@click.command()
@click.argument("issue_id")
@click.option("--session", required=True, help="Session id (caller provides their own)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def claim(issue_id: str, session: str, as_json: bool) -> None:
    """Claim an issue for a session. Claiming a closed issue reopens it."""
    with open_store(as_json=as_json, write=True) as store:
        issue = store.claim_issue(issue_id, session)
    if as_json:
        echo_json(issue.to_dict())
    else:
        click.echo(f"Claimed {issue_id} for session {session}")


@click.command()
@click.argument("issue_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def release(issue_id: str, as_json: bool) -> None:
    """Release a claimed issue back to open."""
    with open_store(as_json=as_json, write=True) as store:
        issue, previous = store.release_issue(issue_id)
    if as_json:
        echo_json({**issue.to_dict(), "previous_session": previous})
    else:
        click.echo(f"Released {issue_id} (was claimed by {previous})")


@click.command()
@click.argument("issue_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def finish(issue_id: str, as_json: bool) -> None:
    """Close a claimed, in-progress issue."""
    with open_store(as_json=as_json, write=True) as store:
        issue, previous = store.finish_issue(issue_id)
    if as_json:
        echo_json({**issue.to_dict(), "previous_session": previous})
    else:
        click.echo(f"Finished {issue_id} (session {previous})")


@click.command()
@click.argument("issue_id")
@click.option("--reason", default=None, help="Reason for closing (recorded as a comment)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def close(issue_id: str, reason: str | None, as_json: bool) -> None:
    """Close an issue nobody has claimed."""
    with open_store(as_json=as_json, write=True) as store:
        issue = store.close_issue(issue_id)
        if reason:
            store.add_comment(issue_id, reason, author="close")
    if as_json:
        echo_json(issue.to_dict())
    else:
        click.echo(f"Closed {issue_id}")


@click.command()
@click.option("--session", required=True, help="Session id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def mine(session: str, as_json: bool) -> None:
    """Show issues claimed by a session."""
    with open_store(as_json=as_json) as store:
        issues = store.issues_for_session(session)
    if as_json:
        echo_json([i.to_dict() for i in issues])
        return
    if not issues:
        click.echo(f"No issues claimed by session {session}")
        return
    echo_issue_table(issues)
    click.echo(f"{len(issues)} issue(s) claimed by session {session}")


def register(cli: click.Group) -> None:
    """Register ownership commands with the CLI group."""
    cli.add_command(claim)
    cli.add_command(release)
    cli.add_command(finish)
    cli.add_command(close)
    cli.add_command(mine)
