"""prefsync: travel preference sync and merge from the command line."""

import sys
from pathlib import Path

import click
import yaml
from rich.console import Console

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cli.commands import companions, data, learn, merge, prefs, score, sync
from cli.config import get_paths, load_config_model
from cli.logging_config import setup_logging
from observability import log_run_summary

console = Console()


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool):
    """prefsync - Travel preferences, companions and group merges."""
    try:
        config = load_config_model()
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        sys.exit(1)

    log_cfg = config.logging
    setup_logging(
        json_mode=json_logs or log_cfg.json_mode,
        level="DEBUG" if verbose else log_cfg.level,
        log_file=config.paths.log_file,
        file_level=log_cfg.file_level,
    )
    ctx.call_on_close(log_run_summary)


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def init(force: bool):
    """Create the data directory and a default config file."""
    config = load_config_model()
    paths = get_paths(config.to_dict())

    for name, path in (("Data", paths["db_path"].parent), ("Exports", paths["export_dir"])):
        path.mkdir(parents=True, exist_ok=True)
        console.print(f"[green]✓[/] {name}: {path}")

    config_path = Path.home() / ".prefsync" / "config.yaml"
    if config_path.exists() and not force:
        console.print(f"[yellow]Config exists:[/] {config_path}")
        return
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.safe_dump(config.model_dump(mode="json", by_alias=True), f, default_flow_style=False)
    console.print(f"[green]✓[/] Created config: {config_path}")


for command in (prefs, companions, merge, score, learn, sync, data):
    cli.add_command(command)


if __name__ == "__main__":
    cli()
