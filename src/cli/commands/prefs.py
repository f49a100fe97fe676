"""Preference profile CLI commands."""

import json
import sys

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components, load_json_arg
from shared_types import PreferenceCategory, PreferenceSource, Strength

console = Console()

CATEGORY_CHOICE = click.Choice([c.value for c in PreferenceCategory])


@click.group()
def prefs():
    """View and edit your travel preferences."""
    pass


@prefs.command("show")
@click.argument("category", required=False, type=CATEGORY_CHOICE)
def prefs_show(category: str):
    """Show the whole profile, or one category, as JSON."""
    c = get_components()
    profile = c["service"].preferences
    if profile is None:
        console.print("[yellow]No preferences stored.[/]")
        return

    data = profile.to_wire()
    if category:
        data = data[category]
    else:
        console.print(
            f"[bold]{profile.user_id}[/]  v{profile.version}  "
            f"status: {profile.sync_status}  last synced: {profile.last_synced[:19]}"
        )
    console.print_json(json.dumps(data))


@prefs.command("set")
@click.argument("category", type=CATEGORY_CHOICE)
@click.argument("field")
@click.argument("value")
@click.option(
    "-s",
    "--strength",
    default=Strength.MODERATE.value,
    type=click.Choice([s.value for s in Strength]),
    help="How strongly the preference is held",
)
@click.option(
    "--source",
    default=PreferenceSource.EXPLICIT.value,
    type=click.Choice([s.value for s in PreferenceSource]),
)
def prefs_set(category: str, field: str, value: str, strength: str, source: str):
    """Set one field. VALUE is parsed as JSON when possible.

    \b
    Examples:
      prefsync prefs set dining priceRange '{"min": 2, "max": 3}'
      prefsync prefs set activities physicalIntensity '{"min": "light", "max": "moderate"}'
      prefsync prefs set social travelStyle friends
    """
    c = get_components()
    if c["service"].update_preference(category, field, load_json_arg(value), strength, source):
        console.print(f"[green]Updated[/] {category}.{field} ({strength})")
    else:
        console.print(f"[red]Could not update {category}.{field}[/] (unknown field or bad value)")
        sys.exit(1)


@prefs.command("reset")
@click.confirmation_option(prompt="Reset all preferences to defaults?")
def prefs_reset():
    """Replace the profile with defaults."""
    c = get_components()
    if c["service"].reset_preferences():
        console.print("[green]Preferences reset.[/]")
    else:
        console.print("[red]Reset failed.[/]")
        sys.exit(1)


@prefs.command("completeness")
def prefs_completeness():
    """Show how filled-in each category is."""
    c = get_components()
    service = c["service"]

    table = Table(show_header=True, title="Profile completeness")
    table.add_column("Category", style="cyan")
    table.add_column("Complete", justify="right")
    for category in PreferenceCategory:
        pct = service.get_category_completeness(category)
        style = "green" if pct >= 75 else "yellow" if pct >= 40 else "red"
        table.add_row(category.value, f"[{style}]{pct}%[/]")
    console.print(table)


@prefs.command("field")
@click.argument("category", type=CATEGORY_CHOICE)
@click.argument("field")
def prefs_field(category: str, field: str):
    """Show strength and source recorded for one field."""
    c = get_components()
    service = c["service"]
    console.print(
        f"{category}.{field}: strength [bold]{service.get_preference_strength(category, field)}[/], "
        f"source [bold]{service.get_preference_source(category, field)}[/]"
    )
