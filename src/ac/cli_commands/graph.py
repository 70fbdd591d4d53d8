"""CLI commands for the dependency graph: block, unblock, tree, cycles, ready, blocked."""

from __future__ import annotations

import click

from ac.cli_common import echo_issue_table, echo_json, open_store


@click.command()
@click.argument("issue_id")
@click.argument("blocker_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def block(issue_id: str, blocker_id: str, as_json: bool) -> None:
    """Record that BLOCKER_ID blocks ISSUE_ID."""
    with open_store(as_json=as_json, write=True) as store:
        store.add_dependency(issue_id, blocker_id)
    if as_json:
        echo_json({"blocked": issue_id, "blocker": blocker_id})
    else:
        click.echo(f"{issue_id} now blocked by {blocker_id}")


@click.command()
@click.argument("issue_id")
@click.argument("blocker_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def unblock(issue_id: str, blocker_id: str, as_json: bool) -> None:
    """Remove a blocking dependency."""
    with open_store(as_json=as_json, write=True) as store:
        store.remove_dependency(issue_id, blocker_id)
    if as_json:
        echo_json({"unblocked": issue_id, "was_blocker": blocker_id})
    else:
        click.echo(f"{issue_id} no longer blocked by {blocker_id}")


@click.command()
@click.argument("issue_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tree(issue_id: str, as_json: bool) -> None:
    """Show everything blocking an issue, recursively."""
    with open_store(as_json=as_json) as store:
        if as_json:
            echo_json(store.build_tree(issue_id))
            return
        click.echo(store.render_tree(issue_id))


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def cycles(as_json: bool) -> None:
    """Detect circular blocking dependencies."""
    with open_store(as_json=as_json) as store:
        found = store.detect_cycles()
    if as_json:
        echo_json(found)
        return
    if not found:
        click.echo("No cycles detected.")
        return
    click.echo(f"Found {len(found)} cycle(s):")
    for n, cycle in enumerate(found, start=1):
        click.echo(f"  {n}. {' -> '.join(cycle)} -> {cycle[0]}")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def ready(as_json: bool) -> None:
    """Show open issues with no open blockers."""
    with open_store(as_json=as_json) as store:
        issues = store.get_ready()
    if as_json:
        echo_json([i.to_dict() for i in issues])
        return
    if not issues:
        click.echo("No issues ready to work on.")
        return
    echo_issue_table(issues)
    click.echo(f"{len(issues)} issue(s) ready")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def blocked(as_json: bool) -> None:
    """Show open issues waiting on an open blocker."""
    with open_store(as_json=as_json) as store:
        issues = store.get_blocked()
        waiting = {i.id: store.open_blockers(i) for i in issues}
    if as_json:
        echo_json([{**i.to_dict(), "open_blockers": waiting[i.id]} for i in issues])
        return
    if not issues:
        click.echo("No blocked issues.")
        return
    for issue in issues:
        click.echo(f"  {issue.id}  P{issue.priority}  {issue.title}  (waiting on {', '.join(waiting[issue.id])})")
    click.echo(f"\n{len(issues)} issue(s) blocked")


def register(cli: click.Group) -> None:
    """Register graph commands with the CLI group."""
    cli.add_command(block)
    cli.add_command(unblock)
    cli.add_command(tree)
    cli.add_command(cycles)
    cli.add_command(ready)
    cli.add_command(blocked)
