"""Export, import and reset CLI commands."""

import sys
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console

from cli.utils import get_components

console = Console()


@click.group()
def data():
    """Export, import and wipe preference data."""
    pass


@data.command("export")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
def data_export(output):
    """Export preferences, companions and learning history as JSON."""
    c = get_components()
    payload = c["service"].export_preferences()
    if payload is None:
        console.print("[red]Nothing to export.[/]")
        sys.exit(1)

    if output is None:
        export_dir = c["paths"]["export_dir"]
        export_dir.mkdir(parents=True, exist_ok=True)
        output = export_dir / f"preferences_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
    output.write_text(payload)
    console.print(f"[green]Exported to {output}[/]")


@data.command("import")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.confirmation_option(prompt="Importing replaces your profile and companions. Continue?")
def data_import(input_file: Path):
    """Import a previously exported JSON file."""
    c = get_components()
    if not c["service"].import_preferences(input_file.read_text()):
        console.print("[red]Import failed.[/] The file is not a valid preference export.")
        sys.exit(1)
    console.print(f"[green]Imported[/] {input_file}")


@data.command("clear")
@click.confirmation_option(prompt="Delete ALL preference data?")
def data_clear():
    """Delete every stored key and start from defaults."""
    c = get_components()
    if c["service"].clear_all_data():
        console.print("[green]All data cleared.[/]")
    else:
        console.print("[red]Clear failed.[/]")
        sys.exit(1)
