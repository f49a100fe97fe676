"""Travel companion CLI commands."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components, read_json_file

console = Console()


@click.group()
def companions():
    """Manage travel companions and their shared preferences."""
    pass


@companions.command("list")
def companions_list():
    """List companions."""
    c = get_components()
    rows = c["service"].companions
    if not rows:
        console.print("[yellow]No companions yet.[/] Add one with 'prefsync companions add'.")
        return

    table = Table(show_header=True, title="Companions")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Relationship")
    table.add_column("Preferences", justify="center")
    table.add_column("Sync", justify="center")
    for comp in rows:
        table.add_row(
            comp.id,
            comp.name,
            comp.relationship,
            "✓" if comp.preferences else "-",
            "[green]on[/]" if comp.sync_enabled else "[dim]off[/]",
        )
    console.print(table)


@companions.command("add")
@click.argument("name")
@click.option(
    "-r",
    "--relationship",
    default="friend",
    type=click.Choice(["partner", "spouse", "family", "friend", "colleague", "other"]),
)
@click.option("--email", default=None)
@click.option("--phone", default=None)
@click.option(
    "--preferences",
    "prefs_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file holding the companion's preference profile",
)
@click.option("--no-sync", is_flag=True, help="Exclude from group merges")
def companions_add(name, relationship, email, phone, prefs_file, no_sync):
    """Add a companion."""
    c = get_components()
    data = {
        "name": name,
        "relationship": relationship,
        "email": email,
        "phone": phone,
        "sync_enabled": not no_sync,
    }
    if prefs_file:
        data["preferences"] = read_json_file(prefs_file)

    companion = c["service"].add_companion(data)
    if companion is None:
        console.print("[red]Could not add companion.[/]")
        sys.exit(1)
    console.print(f"[green]Added[/] {companion.name} ({companion.id})")


@companions.command("remove")
@click.argument("companion_id")
def companions_remove(companion_id: str):
    """Remove a companion by ID."""
    c = get_components()
    service = c["service"]
    if not any(comp.id == companion_id for comp in service.companions):
        console.print(f"[yellow]No companion {companion_id}[/]")
        return
    if service.remove_companion(companion_id):
        console.print(f"[green]Removed[/] {companion_id}")
