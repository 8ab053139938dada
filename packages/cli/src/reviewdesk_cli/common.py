"""Helpers shared by the review commands.

Identity arguments arrive already resolved, as ``ID`` or ``ID:Display Name``;
the CLI never looks anything up in a workspace directory.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime

import click

from reviewdesk_store.deadline import to_local_naive
from reviewdesk_store.errors import ReviewDeskError
from reviewdesk_store.models import Channel, Person

CLIENT_CHANNEL_PREFIX = "client-"

STATUS_LABELS = {
    "draft": "Draft",
    "design": "Design",
    "in_review": "In Review",
    "approved": "Approved",
    "published": "Published",
}

STATUS_STYLES = {
    "draft": "dim",
    "design": "magenta",
    "in_review": "yellow",
    "approved": "green",
    "published": "cyan",
}


def parse_person(value: str) -> Person:
    ident, _, name = value.partition(":")
    ident = ident.strip().lstrip("@")
    if not ident:
        raise click.BadParameter(f"Expected ID or ID:Name, got {value!r}.")
    return Person(id=ident, name=name.strip() or ident)


def parse_channel(value: str) -> Channel:
    ident, _, name = value.partition(":")
    ident = ident.strip().lstrip("#")
    if not ident:
        raise click.BadParameter(f"Expected ID or ID:name, got {value!r}.")
    return Channel(id=ident, name=name.strip().lstrip("#") or None)


def client_from_channel(channel: Channel) -> str:
    """Derive the client label from the channel naming convention.

    ``#client-acme`` → ``acme``; any other channel name is used as is.
    """
    name = channel.name or channel.id
    if name.startswith(CLIENT_CHANNEL_PREFIX):
        return name[len(CLIENT_CHANNEL_PREFIX) :]
    return name


def parse_since(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return to_local_naive(datetime.fromisoformat(value))
    except ValueError:
        raise click.BadParameter(f"Expected YYYY-MM-DD or an ISO-8601 datetime, got {value!r}.")


def format_status(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{STATUS_LABELS.get(status, status.capitalize())}[/{style}]"


def format_ts(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "—"


def get_service(ctx: click.Context):
    service = ctx.obj.get("service") if ctx.obj else None
    if service is None:
        raise click.UsageError("reviewdesk is not configured; run commands through the `reviewdesk` group.")
    return service


@contextmanager
def review_errors():
    """Render engine errors as plain one-line CLI errors."""
    try:
        yield
    except ReviewDeskError as e:
        raise click.ClickException(str(e)) from e
