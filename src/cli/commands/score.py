"""Suggestion scoring CLI commands."""

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components, read_json_file
from shared_types import ItemType

console = Console()


def _print_scores(scores, show_breakdown: bool) -> None:
    if not scores:
        console.print("[yellow]No items passed the score filter.[/]")
        return

    table = Table(show_header=True, title="Suggestions")
    table.add_column("Item", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Top matches", style="green")
    table.add_column("Issues", style="red")
    for s in scores:
        style = "green" if s.overall_score >= 80 else "yellow" if s.overall_score >= 40 else "red"
        table.add_row(
            s.item_id,
            f"[{style}]{s.overall_score}[/]",
            ", ".join(s.top_matches) or "-",
            ", ".join(s.potential_issues) or "-",
        )
    console.print(table)

    if show_breakdown:
        for s in scores:
            console.print(f"\n[bold]{s.item_id}[/] (confidence {s.confidence:.0%})")
            for m in s.match_breakdown:
                console.print(f"  {m.display_name}: {m.score:g} ({m.match_type}) x{m.weight}")


def _score_file(item_type: ItemType, items_file: Path, show_breakdown: bool) -> None:
    c = get_components()
    data = read_json_file(items_file)
    items = data if isinstance(data, list) else [data]
    scores = c["service"].score_items(items, item_type)
    _print_scores(scores, show_breakdown)


_breakdown_option = click.option(
    "-b", "--breakdown", is_flag=True, help="Show per-field match breakdown"
)


@click.group()
def score():
    """Score candidate restaurants and activities against your preferences."""
    pass


@score.command("restaurant")
@click.argument("items_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_breakdown_option
def score_restaurant(items_file: Path, breakdown: bool):
    """Score restaurants from a JSON file (one object or a list)."""
    _score_file(ItemType.RESTAURANT, items_file, breakdown)


@score.command("activity")
@click.argument("items_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_breakdown_option
def score_activity(items_file: Path, breakdown: bool):
    """Score activities from a JSON file (one object or a list)."""
    _score_file(ItemType.ACTIVITY, items_file, breakdown)


@score.command("settings")
@click.option("--personalize/--no-personalize", default=None)
@click.option("--strict/--no-strict", default=None, help="Drop items below the minimum score")
@click.option("--min-score", type=click.IntRange(0, 100), default=None)
def score_settings(personalize, strict, min_score):
    """Show or change suggestion settings."""
    c = get_components()
    service = c["service"]
    changes = {
        key: value
        for key, value in {
            "enable_personalization": personalize,
            "strict_filtering": strict,
            "min_score": min_score,
        }.items()
        if value is not None
    }
    if changes and not service.update_suggestion_settings(**changes):
        console.print("[red]Could not save settings.[/]")
        return

    settings = service.suggestion_settings
    for key, value in settings.model_dump().items():
        console.print(f"{key}: [bold]{value}[/]")
