"""show command — one review in detail."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reviewdesk_cli.common import format_status, format_ts, get_service, review_errors
from reviewdesk_core.aggregator import reviewer_verdicts
from reviewdesk_store.models import FeedbackStatus

console = Console()

_VERDICT_LABELS = {
    None: "[dim]Pending[/dim]",
    FeedbackStatus.APPROVED: "[green]Approved[/green]",
    FeedbackStatus.REQUESTED_CHANGES: "[red]Requested changes[/red]",
}


@click.command("show")
@click.argument("reference")
@click.option("--client", default=None, help="Only match reviews for this client.")
@click.option("--history", is_flag=True, help="Also list every feedback entry.")
@click.pass_context
def show_cmd(ctx, reference: str, client: str | None, history: bool):
    """Show a review and where each reviewer stands."""
    service = get_service(ctx)

    with review_errors():
        review = service.find_review(reference, client=client)

    console.print(f"\n[bold]{review.title}[/bold]  [dim]{review.review_id}[/dim]")
    if review.description:
        console.print(review.description)
    console.print(f"  Client:     {review.client}")
    console.print(f"  Status:     {format_status(review.status.value)}")
    console.print(f"  Created by: {review.creator.name} ({review.creator.id}) on {format_ts(review.created_at)}")
    console.print(f"  Channel:    #{review.channel.name or review.channel.id}")
    console.print(f"  Due:        {format_ts(review.deadline)}")
    if review.completed_at:
        console.print(f"  Completed:  {format_ts(review.completed_at)}")
    if review.url:
        console.print(f"  Link:       {review.url}")

    table = Table(title="Reviewers", show_header=True, header_style="bold cyan")
    table.add_column("Reviewer")
    table.add_column("Verdict")
    for person, verdict in reviewer_verdicts(review):
        table.add_row(f"{person.name} ({person.id})", _VERDICT_LABELS[verdict])
    console.print(table)

    if history and review.feedbacks:
        log = Table(title="Feedback history", show_header=True)
        log.add_column("When", width=16)
        log.add_column("Reviewer")
        log.add_column("Verdict")
        log.add_column("Comment", max_width=50)
        for feedback in review.feedbacks:
            log.add_row(
                format_ts(feedback.created_at),
                feedback.reviewer.name,
                _VERDICT_LABELS[feedback.status],
                feedback.comment,
            )
        console.print(log)
