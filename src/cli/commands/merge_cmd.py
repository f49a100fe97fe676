"""Group merge and conflict resolution CLI commands."""

import json
import sys

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components, load_json_arg
from shared_types import ConflictStrategy

console = Console()


def _fmt(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _print_merged(merged) -> None:
    names = ", ".join(p.name for p in merged.participants)
    console.print(f"[bold]Merged[/] {merged.id} for {names} at {merged.merged_at[:19]}")
    if not merged.conflicts:
        console.print("[green]No conflicts.[/]")
        return

    table = Table(show_header=True, title=f"Conflicts ({merged.unresolved_conflicts} unresolved)")
    table.add_column("ID", style="dim")
    table.add_column("Field", style="cyan")
    table.add_column("You")
    table.add_column("Companion")
    table.add_column("Suggested")
    table.add_column("Resolved")
    for conflict in merged.conflicts:
        table.add_row(
            conflict.id,
            f"{conflict.category}.{conflict.field}",
            f"{_fmt(conflict.user_value)} ({conflict.user_strength})",
            f"{_fmt(conflict.companion_value)} ({conflict.companion_name})",
            conflict.suggested_resolution,
            f"[green]{_fmt(conflict.resolved_value)}[/]" if conflict.is_resolved else "[yellow]open[/]",
        )
    console.print(table)


@click.group()
def merge():
    """Merge your preferences with companions for a group trip."""
    pass


@merge.command("run")
@click.argument("companion_ids", nargs=-1, required=True)
@click.option(
    "-w",
    "--weight",
    "weights",
    multiple=True,
    type=float,
    help="Participant weight, you first (repeat per participant; default equal)",
)
def merge_run(companion_ids, weights):
    """Merge with the given companions."""
    c = get_components()
    merged = c["service"].merge_with_companions(list(companion_ids), list(weights) or None)
    if merged is None:
        console.print(
            "[yellow]Nothing merged.[/] Companions need stored preferences and sync enabled."
        )
        return
    _print_merged(merged)


@merge.command("show")
@click.option("--json", "as_json", is_flag=True, help="Print the full merged record")
def merge_show(as_json: bool):
    """Show the current merged preferences."""
    c = get_components()
    merged = c["service"].merged_preferences
    if merged is None:
        console.print("[yellow]No merged preferences.[/] Run 'prefsync merge run' first.")
        return
    if as_json:
        console.print_json(json.dumps(merged.to_wire()))
    else:
        _print_merged(merged)


@merge.command("resolve")
@click.argument("conflict_id")
@click.option(
    "-s",
    "--strategy",
    default=ConflictStrategy.AVERAGE.value,
    type=click.Choice([s.value for s in ConflictStrategy]),
)
@click.option("--value", "manual_value", default=None, help="Value for the manual strategy (JSON)")
def merge_resolve(conflict_id: str, strategy: str, manual_value):
    """Resolve one conflict."""
    c = get_components()
    service = c["service"]
    value = load_json_arg(manual_value) if manual_value is not None else None
    if not service.resolve_conflict(conflict_id, strategy, value):
        console.print(f"[red]Could not resolve {conflict_id}[/] with {strategy}")
        sys.exit(1)
    console.print(
        f"[green]Resolved[/] {conflict_id}. "
        f"{service.unresolved_conflict_count} conflict(s) still open."
    )


@merge.command("clear")
def merge_clear():
    """Discard the merged preferences."""
    c = get_components()
    if c["service"].clear_merged_preferences():
        console.print("[green]Cleared merged preferences.[/]")
