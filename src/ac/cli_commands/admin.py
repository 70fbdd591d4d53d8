"""CLI commands for admin: init, import, stats."""

from __future__ import annotations

from pathlib import Path

import click

from ac.cli_common import echo_json, fail, open_store
from ac.core import AC_DIR_NAME, CONFIG_FILENAME, IssueStore
from ac.errors import StoreError
from ac.logging import setup_logging
from ac.migrate import import_jsonl


@click.command()
@click.option("--prefix", default=None, help="ID prefix for issues (default: derived from the directory path)")
@click.pass_context
def init(ctx: click.Context, prefix: str | None) -> None:
    """Initialize .ac/ in the current directory (or --dir)."""
    override = (ctx.obj or {}).get("ac_dir")
    cwd = Path.cwd()
    ac_dir = Path(override) if override is not None else cwd / AC_DIR_NAME

    if (ac_dir / CONFIG_FILENAME).exists():
        click.echo(f"{ac_dir} already initialized")
        return

    try:
        store = IssueStore.init(ac_dir, cwd=cwd, prefix=prefix)
    except StoreError as e:
        fail(str(e), False)
    setup_logging(ac_dir)
    click.echo(f"Initialized {ac_dir} with prefix '{store.prefix}'")


@click.command("import")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--preserve-ids", is_flag=True, help="Keep source ids instead of generating new ones")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def import_data(input_file: str, preserve_ids: bool, as_json: bool) -> None:
    """Import issues from a beads JSONL export.

    Bad records are reported and skipped; the rest are saved.
    """
    with open_store(as_json=as_json, write=True) as store:
        report = import_jsonl(store, input_file, preserve_ids=preserve_ids)

    if as_json:
        echo_json(
            {
                "imported": report.imported,
                "skipped": report.skipped,
                "errors": [str(e) for e in report.errors],
                "id_map": report.id_map,
            }
        )
        return
    click.echo(f"Imported {len(report.imported)} issue(s) from {input_file}")
    if report.skipped:
        click.echo(f"Skipped {len(report.skipped)} already-imported issue(s)")
    for error in report.errors:
        click.echo(f"  {error}", err=True)


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(as_json: bool) -> None:
    """Show project statistics."""
    with open_store(as_json=as_json) as store:
        s = store.get_stats()

    if as_json:
        echo_json(s)
        return

    click.echo(f"Total: {s['total']}")
    click.echo("\nStatus:")
    for status, count in sorted(s["by_status"].items()):
        click.echo(f"  {status}: {count}")
    click.echo("\nTypes:")
    for t, count in sorted(s["by_type"].items()):
        click.echo(f"  {t}: {count}")
    click.echo(f"\nReady: {s['ready_count']}")
    click.echo(f"Blocked: {s['blocked_count']}")
    click.echo(f"Claimed: {s['claimed_count']}")
    click.echo(f"Dependencies: {s['total_dependencies']}")


def register(cli: click.Group) -> None:
    """Register admin commands with the CLI group."""
    cli.add_command(init)
    cli.add_command(import_data)
    cli.add_command(stats)
