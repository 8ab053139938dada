"""create command — open a review request."""

from __future__ import annotations

import click
from rich.console import Console

from reviewdesk_cli.common import (
    client_from_channel,
    format_status,
    format_ts,
    get_service,
    parse_channel,
    parse_person,
    review_errors,
)
from reviewdesk_store.models import ReviewStatus

console = Console()


@click.command("create")
@click.option("--title", required=True, help="What is being reviewed.")
@click.option("--description", default=None, help="Optional longer description.")
@click.option("--as", "actor", required=True, envvar="REVIEWDESK_USER", help="Creator as ID or ID:Name.")
@click.option(
    "--reviewer",
    "reviewers",
    multiple=True,
    required=True,
    help="Reviewer as ID or ID:Name. Repeat for several reviewers.",
)
@click.option("--channel", required=True, help="Origin channel as ID or ID:name.")
@click.option("--client", default=None, help="Client label. Defaults to the channel name without 'client-'.")
@click.option("--url", default=None, help="Link to the content under review.")
@click.option("--deadline", default=None, help="YYYY-MM-DD (due 17:00) or an ISO-8601 datetime.")
@click.option(
    "--status",
    "initial_status",
    default=ReviewStatus.IN_REVIEW.value,
    show_default=True,
    help=f"Initial status ({', '.join(ReviewStatus.values())}).",
)
@click.pass_context
def create_cmd(
    ctx,
    title: str,
    description: str | None,
    actor: str,
    reviewers: tuple[str, ...],
    channel: str,
    client: str | None,
    url: str | None,
    deadline: str | None,
    initial_status: str,
):
    """Ask one or more reviewers to approve a piece of client content.

    Every reviewer is notified once the review is saved. A failed
    notification is reported in the log but does not undo the review.
    """
    service = get_service(ctx)
    creator = parse_person(actor)
    origin = parse_channel(channel)
    reviewer_list = [parse_person(r) for r in reviewers]

    with review_errors():
        review = service.create_review(
            title=title,
            description=description,
            creator=creator,
            reviewers=reviewer_list,
            channel=origin,
            client=client or client_from_channel(origin),
            url=url,
            deadline=deadline,
            initial_status=initial_status,
        )

    notified = ctx.obj["notifier"].notify_reviewers(review)

    console.print(f"[green]Review requested:[/green] [bold]{review.title}[/bold] ({review.review_id})")
    console.print(f"  Client:    {review.client}")
    console.print(f"  Status:    {format_status(review.status.value)}")
    console.print(f"  Due:       {format_ts(review.deadline)}")
    console.print(f"  Reviewers: {', '.join(p.name for p in review.reviewers)}")
    if notified < len(review.reviewers):
        console.print(f"[yellow]Notified {notified}/{len(review.reviewers)} reviewer(s).[/yellow]")
