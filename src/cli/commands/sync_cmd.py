"""Sync bookkeeping and auto-sync daemon CLI commands."""

import time

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from shared_types import SyncOutcome

console = Console()

_auto_sync = None


@click.group()
def sync():
    """Sync status, history and the auto-sync daemon."""
    pass


@sync.command("status")
def sync_status():
    """Show sync status."""
    c = get_components()
    service = c["service"]
    console.print(f"Status: [bold]{service.sync_status or 'unknown'}[/]")
    console.print(f"Last synced: {service.last_sync_time or 'never'}")
    console.print(f"Unresolved conflicts: {service.unresolved_conflict_count}")
    console.print(f"Pending insights: {len(service.pending_insights)}")


@sync.command("now")
def sync_now():
    """Mark pending local changes as synced."""
    c = get_components()
    record = c["service"].sync_now()
    if record.status == SyncOutcome.FAILED:
        console.print("[red]Sync failed.[/] See logs for details.")
        return
    if record.changes_applied:
        console.print(f"[green]Synced[/] ({record.id})")
    else:
        console.print("[dim]Already up to date.[/]")


@sync.command("history")
@click.option("--limit", "-n", default=10)
def sync_history(limit: int):
    """Show recent sync records, newest first."""
    c = get_components()
    rows = list(reversed(c["service"].sync_history))[:limit]
    if not rows:
        console.print("[yellow]No sync history.[/]")
        return

    table = Table(show_header=True, title="Sync history")
    table.add_column("When", style="cyan", width=19)
    table.add_column("Direction")
    table.add_column("Status")
    table.add_column("Changes", justify="right")
    table.add_column("Device", style="dim")
    for r in rows:
        status = f"[green]{r.status}[/]" if r.status == SyncOutcome.SUCCESS else f"[red]{r.status}[/]"
        table.add_row(r.timestamp[:19], r.direction, status, str(r.changes_applied), r.device_name)
    console.print(table)


@sync.command("daemon")
@click.option(
    "-i",
    "--interval",
    type=float,
    default=None,
    help="Minutes between sync checks (default from config)",
)
def sync_daemon(interval):
    """Run auto-sync in the foreground until Ctrl+C."""
    from sync.scheduler import AutoSyncScheduler

    global _auto_sync
    c = get_components()

    if not c["config"]["sync"].get("auto_sync", True):
        console.print("[yellow]Auto-sync is disabled[/] (sync.auto_sync is false in config)")
        return

    if _auto_sync is not None:
        console.print("[yellow]Auto-sync already running[/]")
        return

    minutes = interval or c["config"]["sync"]["interval_minutes"]
    _auto_sync = AutoSyncScheduler(c["service"], interval_minutes=minutes)
    _auto_sync.start()

    console.print(f"[green]Started[/] auto-sync every {minutes:g} min")
    console.print("Press Ctrl+C to stop")

    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        _auto_sync.stop()
        c["service"].close()
        _auto_sync = None
        console.print("\n[yellow]Stopped[/]")
