"""Behavioural learning CLI commands."""

import json
import sys

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from shared_types import EventType, InsightStatus, ItemType

console = Console()


@click.group()
def learn():
    """Record behaviour and review the preference insights mined from it."""
    pass


@learn.command("record")
@click.argument("event_type", type=click.Choice([e.value for e in EventType]))
@click.argument("item_type", type=click.Choice([t.value for t in ItemType]))
@click.argument("item_id")
@click.option(
    "-a",
    "--attr",
    "attrs",
    multiple=True,
    help="Item attribute as key=value (repeatable), e.g. -a cuisine=thai",
)
@click.option("--value", type=float, default=None, help="Action value, e.g. a 1-5 rating")
def learn_record(event_type, item_type, item_id, attrs, value):
    """Record one booking, rating, search, favorite, skip or view event."""
    attributes = {}
    for attr in attrs:
        key, sep, val = attr.partition("=")
        if not sep:
            console.print(f"[red]Bad attribute '{attr}'[/], expected key=value")
            sys.exit(1)
        attributes[key.strip()] = val.strip()

    c = get_components()
    service = c["service"]
    before = {i.id for i in service.pending_insights}
    ok = service.record_event(
        {
            "event_type": event_type,
            "item_type": item_type,
            "item_id": item_id,
            "item_attributes": attributes,
            "user_action": {"type": event_type, "value": value},
        }
    )
    if not ok:
        console.print("[red]Could not record event.[/]")
        sys.exit(1)

    console.print(f"[green]Recorded[/] {event_type} of {item_type} {item_id}")
    for insight in service.pending_insights:
        if insight.id not in before:
            console.print(f"[cyan]New insight:[/] {insight.insight} ({insight.id})")


@learn.command("insights")
@click.option(
    "--status",
    type=click.Choice([s.value for s in InsightStatus] + ["all"]),
    default=InsightStatus.PENDING.value,
)
def learn_insights(status: str):
    """List learning insights."""
    c = get_components()
    rows = c["service"].learning_insights
    if status != "all":
        rows = [i for i in rows if i.status == status]
    if not rows:
        console.print("[yellow]No insights.[/]")
        return

    table = Table(show_header=True, title="Insights")
    table.add_column("ID", style="dim")
    table.add_column("Category", style="green")
    table.add_column("Insight", max_width=50)
    table.add_column("Conf", justify="right")
    table.add_column("Suggested")
    table.add_column("Status")
    for insight in rows:
        update = insight.suggested_update
        table.add_row(
            insight.id,
            insight.category,
            insight.insight,
            f"{insight.confidence:.0%}",
            f"{update.field} += {json.dumps(update.suggested_value)}",
            insight.status,
        )
    console.print(table)


@learn.command("accept")
@click.argument("insight_id")
def learn_accept(insight_id: str):
    """Apply a pending insight to your preferences."""
    c = get_components()
    if c["service"].apply_insight(insight_id):
        console.print(f"[green]Applied[/] {insight_id}")
    else:
        console.print(f"[yellow]{insight_id} is not a pending insight[/]")
        sys.exit(1)


@learn.command("reject")
@click.argument("insight_id")
def learn_reject(insight_id: str):
    """Dismiss a pending insight."""
    c = get_components()
    if c["service"].reject_insight(insight_id):
        console.print(f"[green]Rejected[/] {insight_id}")
    else:
        console.print(f"[yellow]{insight_id} is not a pending insight[/]")
        sys.exit(1)
