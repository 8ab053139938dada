"""init command — interactive setup wizard.

Writes .reviewdesk.yml with the store backend, the notifier and the
deadline defaults so every later command runs without flags.
"""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console

console = Console()


@click.command("init")
@click.option(
    "--path", "config_path", default=".reviewdesk.yml", show_default=True, help="Where to write the config."
)
def init_cmd(config_path: str):
    """Set up reviewdesk for your workspace."""
    console.print("\n[bold cyan]reviewdesk init[/bold cyan] — setup wizard\n")

    # --- Choose store backend ---
    console.print("Review store:")
    console.print("  [bold]sqlite[/bold]  — local SQLite file (default)")
    console.print("  [bold]memory[/bold]  — nothing persisted, for trying things out")
    store_type = click.prompt("Store backend", type=click.Choice(["sqlite", "memory"]), default="sqlite")

    config: dict = {"store": store_type}
    if store_type == "sqlite":
        db_path = click.prompt("SQLite database path", default=".reviewdesk.db")
        if db_path != ".reviewdesk.db":
            config["store_path"] = db_path
        console.print(f"[green]SQLite store configured at {db_path}[/green]")

    # --- Choose notifier ---
    notifier = click.prompt("Notifications", type=click.Choice(["log", "slack"]), default="log")
    config["notifier"] = notifier
    if notifier == "slack":
        console.print(
            "\n[yellow]Note:[/yellow] the Slack notifier reads the bot token from "
            "[bold]SLACK_BOT_TOKEN[/bold]. The bot needs the chat:write and channels:join scopes."
        )

    # --- Deadline defaults ---
    config["deadline_days"] = click.prompt("Default review window (days)", type=click.IntRange(min=0), default=3)
    config["workday_end_hour"] = click.prompt(
        "End of workday (hour, 0-23)", type=click.IntRange(0, 23), default=17
    )

    _write_config(Path(config_path), config)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\n[bold green]Setup complete![/bold green]")
    console.print(
        "Open a review with: [bold]reviewdesk create --title ... --as U1:You --reviewer U2:Them --channel C1[/bold]"
    )


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
