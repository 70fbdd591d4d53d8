"""CLI commands for issue records: create, list, show, update, label, comment."""

from __future__ import annotations

import click

from ac.cli_common import echo_issue_table, echo_json, fail, open_store


@click.command()
@click.argument("title")
@click.option("--type", "-t", "issue_type", default="task", help="Issue type (task, epic, refactor, spike)")
@click.option("--priority", "-p", default=2, type=int, help="Priority 0-4 (0=most urgent)")
@click.option("--description", "-d", default="", help="Description")
@click.option("--label", "-l", multiple=True, help="Labels (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def create(
    title: str,
    issue_type: str,
    priority: int,
    description: str,
    label: tuple[str, ...],
    as_json: bool,
) -> None:
    """Create a new issue."""
    with open_store(as_json=as_json, write=True) as store:
        issue = store.create_issue(
            title,
            issue_type=issue_type,
            priority=priority,
            description=description,
            labels=list(label),
        )
    if as_json:
        echo_json(issue.to_dict())
    else:
        click.echo(f"Created {issue.id}")


@click.command("list")
@click.option("--status", default=None, help="Filter by status (open, in_progress, closed)")
@click.option("--all", "include_closed", is_flag=True, help="Include closed issues")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_issues(status: str | None, include_closed: bool, as_json: bool) -> None:
    """List issues, most urgent first."""
    with open_store(as_json=as_json) as store:
        issues = store.list_issues(status=status, include_closed=include_closed)

    if as_json:
        echo_json([i.to_dict() for i in issues])
        return
    if not issues:
        click.echo("No issues found.")
        return

    echo_issue_table(issues, with_status=True)
    counts = {s: sum(1 for i in issues if i.status == s) for s in ("open", "in_progress", "closed")}
    click.echo(
        f"{len(issues)} issues ({counts['open']} open, {counts['in_progress']} in_progress, {counts['closed']} closed)"
    )


@click.command()
@click.argument("issue_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(issue_id: str, as_json: bool) -> None:
    """Show issue details."""
    with open_store(as_json=as_json) as store:
        issue = store.get_issue(issue_id)

    if as_json:
        echo_json(issue.to_dict())
        return

    click.echo(f"{issue.id}: {issue.title}")
    click.echo("-" * 60)
    click.echo(f"Status:   {issue.status:<16} Priority: P{issue.priority}")
    click.echo(f"Type:     {issue.issue_type}")
    if issue.session_id is not None:
        click.echo(f"Session:  {issue.session_id}")
    click.echo(f"Created:  {issue.created_at:%Y-%m-%d %H:%M}")
    click.echo(f"Updated:  {issue.updated_at:%Y-%m-%d %H:%M}")
    if issue.closed_at is not None:
        click.echo(f"Closed:   {issue.closed_at:%Y-%m-%d %H:%M}")
    if issue.labels:
        click.echo(f"Labels:   {', '.join(issue.labels)}")
    if issue.description:
        click.echo(f"\nDescription:\n{issue.description}")
    if issue.blocked_by:
        click.echo(f"\nBlocked by: {', '.join(issue.blocked_by)}")
    if issue.blocks:
        click.echo(f"Blocks: {', '.join(issue.blocks)}")
    if issue.comments:
        click.echo("\nComments:")
        for c in issue.comments:
            author = c.author or "-"
            click.echo(f"  [{c.timestamp:%Y-%m-%d %H:%M}] {author}: {c.text}")


@click.command()
@click.argument("issue_id")
@click.option("--title", default=None, help="New title")
@click.option("--description", "-d", default=None, help="New description")
@click.option("--priority", "-p", default=None, type=int, help="New priority (0-4)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def update(
    issue_id: str,
    title: str | None,
    description: str | None,
    priority: int | None,
    as_json: bool,
) -> None:
    """Edit title, description or priority. Use claim/release/finish/close for status."""
    if title is None and description is None and priority is None:
        fail("Nothing to update: pass --title, --description or --priority", as_json)
    with open_store(as_json=as_json, write=True) as store:
        issue = store.update_issue(issue_id, title=title, description=description, priority=priority)
    if as_json:
        echo_json(issue.to_dict())
    else:
        click.echo(f"Updated {issue.id}")


@click.command()
@click.argument("issue_id")
@click.argument("action", type=click.Choice(["add", "remove"]))
@click.argument("label")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def label(issue_id: str, action: str, label: str, as_json: bool) -> None:
    """Add or remove a label."""
    with open_store(as_json=as_json, write=True) as store:
        changed = store.update_label(issue_id, action, label)
        labels = list(store.get_issue(issue_id).labels)
    if as_json:
        echo_json({"id": issue_id, "action": action, "label": label.strip(), "changed": changed, "labels": labels})
    elif not changed:
        click.echo(f"No change: {issue_id} labels are {', '.join(labels) or '(none)'}")
    elif action == "add":
        click.echo(f"Added label '{label.strip()}' to {issue_id}")
    else:
        click.echo(f"Removed label '{label.strip()}' from {issue_id}")


@click.command()
@click.argument("issue_id")
@click.argument("text")
@click.option("--author", default="", help="Comment author (e.g. a session id)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def comment(issue_id: str, text: str, author: str, as_json: bool) -> None:
    """Append a comment to an issue."""
    with open_store(as_json=as_json, write=True) as store:
        added = store.add_comment(issue_id, text, author=author)
    if as_json:
        echo_json({"id": issue_id, **added.to_dict()})
    else:
        click.echo(f"Added comment to {issue_id}")


def register(cli: click.Group) -> None:
    """Register issue commands with the CLI group."""
    cli.add_command(create)
    cli.add_command(list_issues, "list")
    cli.add_command(show)
    cli.add_command(update)
    cli.add_command(label)
    cli.add_command(comment)
