"""status / set-status commands — review overview and manual status changes."""

from __future__ import annotations

from itertools import groupby

import click
from rich.console import Console
from rich.table import Table

from reviewdesk_cli.common import format_status, format_ts, get_service, parse_person, parse_since, review_errors
from reviewdesk_core.aggregator import approval_progress
from reviewdesk_store.models import ReviewFilters, ReviewStatus

console = Console()


@click.command("status")
@click.option("--client", default=None, help="Only reviews for this client.")
@click.option("--channel", default=None, help="Only reviews started in this channel id.")
@click.option("--creator", default=None, help="Only reviews created by this user id.")
@click.option("--reviewer", default=None, help="Only reviews where this user id is a reviewer.")
@click.option("--status", "status", type=click.Choice(ReviewStatus.values()), default=None)
@click.option("--since", default=None, help="Only reviews with activity at/after this date or datetime.")
@click.pass_context
def status_cmd(
    ctx,
    client: str | None,
    channel: str | None,
    creator: str | None,
    reviewer: str | None,
    status: str | None,
    since: str | None,
):
    """Show reviews grouped by status with their approval progress."""
    service = get_service(ctx)
    filters = ReviewFilters(
        client=client,
        channel=channel,
        creator=creator,
        reviewer=reviewer,
        status=ReviewStatus(status) if status else None,
        activity_since=parse_since(since),
    )

    with review_errors():
        reviews = service.list_reviews(filters)

    heading = f"Status for {client}" if client else "Review status"
    if not reviews:
        console.print(f"[bold]{heading}[/bold]")
        console.print("[yellow]No content items found.[/yellow]")
        return

    table = Table(title=heading, show_header=True, header_style="bold cyan")
    table.add_column("Status", width=12)
    table.add_column("Title", max_width=40)
    table.add_column("Client", max_width=20)
    table.add_column("Created by", max_width=20)
    table.add_column("Approvals", justify="right", width=9)
    table.add_column("Due", width=16)

    # The store already orders by status, so each group is contiguous.
    for status_value, group in groupby(reviews, key=lambda r: r.status.value):
        for index, review in enumerate(group):
            approved, total = approval_progress(review)
            table.add_row(
                format_status(status_value) if index == 0 else "",
                review.title,
                review.client,
                review.creator.name,
                f"{approved}/{total}",
                format_ts(review.deadline),
            )

    console.print(table)


@click.command("set-status")
@click.argument("reference")
@click.argument("new_status")
@click.option("--as", "actor", required=True, envvar="REVIEWDESK_USER", help="Creator or reviewer as ID or ID:Name.")
@click.option("--client", default=None, help="Only match reviews for this client.")
@click.pass_context
def set_status_cmd(ctx, reference: str, new_status: str, actor: str, client: str | None):
    """Manually move a review to NEW_STATUS.

    Any status may follow any other. Only the creator or a reviewer may do
    this; moving into approved or published announces the completion.
    """
    service = get_service(ctx)
    person = parse_person(actor)

    with review_errors():
        review = service.find_review(reference, client=client)
        review = service.set_status_manually(review.review_id, new_status, person.id, person.name)

    console.print(f'"{review.title}" is now {format_status(review.status.value)}')
