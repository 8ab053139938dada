"""CLI entry point for reviewdesk.

Commands:
  create      — open a review request and ping its reviewers
  approve     — approve a review as one of its reviewers
  feedback    — request changes on a review
  set-status  — manually move a review to any status
  show        — one review with every reviewer's latest verdict
  status      — reviews grouped by status, filterable by client/channel/person
  init        — interactive setup wizard
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from reviewdesk_cli.commands.create import create_cmd
from reviewdesk_cli.commands.feedback import approve_cmd, feedback_cmd
from reviewdesk_cli.commands.init import init_cmd
from reviewdesk_cli.commands.show import show_cmd
from reviewdesk_cli.commands.status import set_status_cmd, status_cmd

console = Console()
logger = logging.getLogger(__name__)


def _build_store(config: dict):
    """Instantiate the configured store from .reviewdesk.yml settings.

    Store selection:
      store: sqlite → SQLiteStore (store_path, default .reviewdesk.db)
      store: memory → MemoryStore (nothing survives the process)

    This factory lives in cli.py so neither reviewdesk_core nor
    reviewdesk_store know about the config file format.
    """
    if config.get("store") == "memory":
        from reviewdesk_store.memory import MemoryStore

        store = MemoryStore()
    else:
        from reviewdesk_store.sqlite import SQLiteStore

        store = SQLiteStore(db_path=config.get("store_path", ".reviewdesk.db"))

    store.deadline_days = config.get("deadline_days", store.deadline_days)
    store.workday_end_hour = config.get("workday_end_hour", store.workday_end_hour)
    return store


def _build_notifier(config: dict):
    """Instantiate the configured notifier, falling back to the log notifier."""
    from reviewdesk_core.notify.log import LogNotifier

    if config.get("notifier") == "slack":
        token = config.get("slack_bot_token")
        if not token:
            console.print("[yellow]Slack notifier requires SLACK_BOT_TOKEN. Falling back to log output.[/yellow]")
            return LogNotifier()
        from reviewdesk_core.notify.slack import SlackNotifier

        return SlackNotifier(token=token, timeout=float(config.get("notify_timeout", 5.0)))

    return LogNotifier()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("reviewdesk"),
    prog_name="reviewdesk",
)
@click.option(
    "--config",
    "config_path",
    default=".reviewdesk.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEWDESK_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Track client content reviews and who has signed off."""
    from reviewdesk_core.config import load_config
    from reviewdesk_core.lifecycle import ReviewService
    from reviewdesk_store.errors import PersistenceError

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ValueError as e:
        raise click.UsageError(str(e))

    _configure_logging("DEBUG" if verbose else config.get("log_level", "WARNING"))

    try:
        store = _build_store(config)
    except PersistenceError as e:
        raise click.ClickException(str(e))
    notifier = _build_notifier(config)

    ctx.obj["config"] = config
    ctx.obj["store"] = store
    ctx.obj["notifier"] = notifier
    ctx.obj["service"] = ReviewService(store=store, notifier=notifier)
    ctx.call_on_close(store.close)
    ctx.call_on_close(notifier.close)


main.add_command(create_cmd)
main.add_command(approve_cmd)
main.add_command(feedback_cmd)
main.add_command(set_status_cmd)
main.add_command(show_cmd)
main.add_command(status_cmd)
main.add_command(init_cmd)
