"""approve / feedback commands — record a reviewer's verdict."""

from __future__ import annotations

import click
from rich.console import Console

from reviewdesk_cli.common import format_status, get_service, parse_person, review_errors

console = Console()


@click.command("approve")
@click.argument("reference")
@click.option("--as", "actor", required=True, envvar="REVIEWDESK_USER", help="Reviewer as ID or ID:Name.")
@click.option("--comment", default="Approved", show_default=True, help="Optional approval note.")
@click.option("--client", default=None, help="Only match reviews for this client.")
@click.pass_context
def approve_cmd(ctx, reference: str, actor: str, comment: str, client: str | None):
    """Approve a review by id or by part of its title."""
    service = get_service(ctx)
    reviewer = parse_person(actor)

    with review_errors():
        review = service.find_review(reference, client=client)
        review = service.approve(review.review_id, reviewer.id, reviewer.name, comment)

    console.print(f'[green]You approved "{review.title}".[/green] Status: {format_status(review.status.value)}')
    if review.is_completed:
        console.print("[bold green]All reviewers have signed off.[/bold green]")


@click.command("feedback")
@click.argument("reference")
@click.option("--as", "actor", required=True, envvar="REVIEWDESK_USER", help="Reviewer as ID or ID:Name.")
@click.option("--changes", "comment", required=True, help="What needs to change.")
@click.option("--client", default=None, help="Only match reviews for this client.")
@click.pass_context
def feedback_cmd(ctx, reference: str, actor: str, comment: str, client: str | None):
    """Request changes on a review by id or by part of its title."""
    service = get_service(ctx)
    reviewer = parse_person(actor)

    with review_errors():
        review = service.find_review(reference, client=client)
        review = service.request_changes(review.review_id, reviewer.id, reviewer.name, comment)

    console.print(
        f'[yellow]Changes requested on "{review.title}".[/yellow] Status: {format_status(review.status.value)}'
    )
