"""CLI for the ac issue tracker.

Convention-based: discovers .ac/ by walking up from cwd, or uses --dir.

Usage:
    ac init                                   # Initialize .ac/ in cwd
    ac create "Fix the bug" -t task -p 1      # Create issue
    ac list [--status=open] [--all]           # List issues
    ac show <id>                              # Show issue details
    ac update <id> --priority 0               # Edit title/description/priority
    ac label <id> add|remove <label>          # Edit labels
    ac comment <id> "text"                    # Add comment
    ac block <id> <blocker>                   # blocker blocks id
    ac unblock <id> <blocker>                 # Remove dependency
    ac tree <id>                              # Dependency tree
    ac cycles                                 # Detect circular dependencies
    ac ready                                  # Open, unblocked issues
    ac blocked                                # Open issues waiting on blockers
    ac claim <id> --session=S                 # Take ownership
    ac release <id>                           # Give ownership back
    ac finish <id>                            # Close a claimed issue
    ac close <id>                             # Close an unclaimed issue
    ac mine --session=S                       # Issues owned by a session
    ac import export.jsonl                    # Import a beads JSONL export
    ac stats                                  # Project statistics
"""

from __future__ import annotations

from pathlib import Path

import click

from ac import __version__
from ac.cli_commands import admin, graph, issues, ownership


@click.group()
@click.version_option(version=__version__, prog_name="ac")
@click.option(
    "--dir",
    "ac_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Data directory (default: nearest .ac/ above cwd)",
)
@click.pass_context
def cli(ctx: click.Context, ac_dir: Path | None) -> None:
    """ac: session-aware issue tracking for coding agents."""
    ctx.ensure_object(dict)
    ctx.obj["ac_dir"] = ac_dir


for _module in (admin, issues, graph, ownership):
    _module.register(cli)


if __name__ == "__main__":
    cli()
