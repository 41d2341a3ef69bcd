"""CLI for Chapter Ledger using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation

import typer

from .config import load_settings
from .db import Database
from .models import Share, SplitRequest
from .service import LedgerService
from .splitter import compute_split
from .ui import (
    console,
    display_balances,
    display_expenses,
    display_settlement,
    display_splits,
)

app = typer.Typer(
    name="chapter-ledger",
    help="Record shared chapter expenses and work out who pays whom",
)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def parse_amount(value: str) -> Decimal:
    """Parse a decimal amount from the command line."""
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise typer.BadParameter(f"Not a valid amount: {value!r}") from e


def parse_share(value: str) -> tuple[str, Decimal]:
    """Parse a MEMBER=AMOUNT share."""
    member, sep, amount = value.partition("=")
    if not sep or not member.strip():
        raise typer.BadParameter(f"Share must look like MEMBER=AMOUNT, got {value!r}")
    return member.strip(), parse_amount(amount.strip())


@contextmanager
def open_service() -> Iterator[LedgerService]:
    """Load settings, open the database and yield a service."""
    settings = load_settings()
    db = Database(settings.database_path)
    try:
        yield LedgerService(settings, db)
    finally:
        db.close()


def fail(e: Exception, verbose: bool):
    """Report an error and exit (or re-raise in verbose mode)."""
    console.print(f"\n[bold red]Error:[/bold red] {e}")
    if verbose:
        raise e
    sys.exit(1)


def member_names(service: LedgerService, chapter_id: int) -> dict[int | str, str]:
    """Map member ids to display names."""
    return {member.id: member.name for member in service.list_members(chapter_id)}


# ============================================================================
# Chapter / member / event commands
# ============================================================================


@app.command("chapter-create")
def chapter_create(
    name: str = typer.Argument(..., help="Chapter name"),
    description: str | None = typer.Option(None, "--description", "-d"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Create a new chapter."""
    setup_logging(verbose)

    try:
        with open_service() as service:
            chapter = service.create_chapter(name, description)
            console.print(f"[green]✓ Created chapter {chapter.id}: {chapter.name}[/green]")
    except Exception as e:
        fail(e, verbose)


@app.command("member-add")
def member_add(
    chapter_id: int = typer.Argument(..., help="Chapter ID"),
    name: str = typer.Argument(..., help="Member display name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add a member to a chapter."""
    setup_logging(verbose)

    try:
        with open_service() as service:
            member = service.add_member(chapter_id, name)
            console.print(f"[green]✓ Added member {member.id}: {member.name}[/green]")
    except Exception as e:
        fail(e, verbose)


@app.command("event-create")
def event_create(
    chapter_id: int = typer.Argument(..., help="Chapter ID"),
    name: str = typer.Argument(..., help="Event name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Create a sub-event for scoping expenses."""
    setup_logging(verbose)

    try:
        with open_service() as service:
            event = service.create_event(chapter_id, name)
            console.print(f"[green]✓ Created event {event.id}: {event.name}[/green]")
    except Exception as e:
        fail(e, verbose)


# ============================================================================
# Expense commands
# ============================================================================


def _shares_for(share: list[str] | None) -> list[Share] | None:
    if not share:
        return None
    parsed = [parse_share(value) for value in share]
    try:
        return [Share(member_id=int(member), amount=amount) for member, amount in parsed]
    except ValueError as e:
        raise typer.BadParameter("Share member must be a member ID") from e


@app.command("expense-add")
def expense_add(
    chapter_id: int = typer.Argument(..., help="Chapter ID"),
    amount: str = typer.Option(..., "--amount", "-a", help="Expense total"),
    payer: int = typer.Option(..., "--payer", "-p", help="Member ID of the payer"),
    participants: list[int] | None = typer.Option(
        None, "--with", "-w", help="Member ID sharing equally (repeatable)"
    ),
    share: list[str] | None = typer.Option(
        None, "--share", "-s", help="Custom share as MEMBER_ID=AMOUNT (repeatable)"
    ),
    description: str = typer.Option("", "--description", "-d"),
    event_id: int | None = typer.Option(None, "--event", "-e", help="Event ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Record an expense.

    Use --with for an equal split (extra cents go to the first members listed)
    or --share for explicit amounts.
    """
    setup_logging(verbose)

    try:
        with open_service() as service:
            expense = service.record_expense(
                chapter_id=chapter_id,
                payer_member_id=payer,
                amount=parse_amount(amount),
                participant_ids=participants,
                shares=_shares_for(share),
                description=description,
                event_id=event_id,
            )
            names = member_names(service, chapter_id)
            symbol = service.settings.currency_symbol
            display_splits(expense.total_amount, expense.splits, names, symbol)
            console.print(f"\n[bold green]✓ Expense {expense.id} added[/bold green]")
    except Exception as e:
        fail(e, verbose)


@app.command("expense-edit")
def expense_edit(
    expense_id: int = typer.Argument(..., help="Expense ID"),
    amount: str = typer.Option(..., "--amount", "-a", help="Expense total"),
    payer: int = typer.Option(..., "--payer", "-p", help="Member ID of the payer"),
    participants: list[int] | None = typer.Option(
        None, "--with", "-w", help="Member ID sharing equally (repeatable)"
    ),
    share: list[str] | None = typer.Option(
        None, "--share", "-s", help="Custom share as MEMBER_ID=AMOUNT (repeatable)"
    ),
    description: str | None = typer.Option(None, "--description", "-d"),
    event_id: int | None = typer.Option(None, "--event", "-e", help="Move to event ID"),
    no_event: bool = typer.Option(
        False, "--no-event", help="Take the expense out of its event"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Edit an expense, replacing all of its splits."""
    setup_logging(verbose)

    try:
        with open_service() as service:
            expense = service.update_expense(
                expense_id=expense_id,
                payer_member_id=payer,
                amount=parse_amount(amount),
                participant_ids=participants,
                shares=_shares_for(share),
                description=description,
                event_id=event_id,
                clear_event=no_event,
            )
            names = member_names(service, expense.chapter_id)
            symbol = service.settings.currency_symbol
            display_splits(expense.total_amount, expense.splits, names, symbol)
            console.print(f"\n[bold green]✓ Expense {expense_id} updated[/bold green]")
    except Exception as e:
        fail(e, verbose)


@app.command("expense-delete")
def expense_delete(
    expense_id: int = typer.Argument(..., help="Expense ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete an expense and its splits."""
    setup_logging(verbose)

    if not yes and not typer.confirm(f"Delete expense {expense_id}?"):
        console.print("[yellow]Cancelled.[/yellow]")
        return

    try:
        with open_service() as service:
            service.delete_expense(expense_id)
            console.print(f"[green]✓ Expense {expense_id} deleted[/green]")
    except Exception as e:
        fail(e, verbose)


@app.command("expenses")
def expenses(
    chapter_id: int = typer.Argument(..., help="Chapter ID"),
    event_id: int | None = typer.Option(None, "--event", "-e", help="Event ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List a chapter's expenses."""
    setup_logging(verbose)

    try:
        with open_service() as service:
            rows = service.list_expenses(chapter_id, event_id)
            if not rows:
                console.print("[yellow]No expenses recorded.[/yellow]")
                return
            names = member_names(service, chapter_id)
            display_expenses(rows, names, service.settings.currency_symbol)
    except Exception as e:
        fail(e, verbose)


# ============================================================================
# Balance / settlement commands
# ============================================================================


@app.command()
def summary(
    chapter_id: int = typer.Argument(..., help="Chapter ID"),
    event_id: int | None = typer.Option(None, "--event", "-e", help="Event ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show how much each member paid versus consumed."""
    setup_logging(verbose)

    try:
        with open_service() as service:
            balances = service.get_balances(chapter_id, event_id)
            names = member_names(service, chapter_id)
            display_balances(balances, names, service.settings.currency_symbol)
    except Exception as e:
        fail(e, verbose)


@app.command()
def settle(
    chapter_id: int = typer.Argument(..., help="Chapter ID"),
    event_id: int | None = typer.Option(None, "--event", "-e", help="Event ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show the payments that settle every balance in the chapter."""
    setup_logging(verbose)

    try:
        with open_service() as service:
            instructions, warning = service.get_settlement_plan(chapter_id, event_id)
            names = member_names(service, chapter_id)
            display_settlement(
                instructions, warning, names, service.settings.currency_symbol
            )
    except Exception as e:
        fail(e, verbose)


@app.command()
def split(
    amount: str = typer.Argument(..., help="Expense total"),
    participants: list[str] | None = typer.Option(
        None, "--with", "-w", help="Participant sharing equally (repeatable)"
    ),
    share: list[str] | None = typer.Option(
        None, "--share", "-s", help="Custom share as NAME=AMOUNT (repeatable)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Preview a split without recording anything."""
    setup_logging(verbose)

    try:
        request = SplitRequest(
            total_amount=parse_amount(amount),
            mode="custom" if share else "equal",
            participant_ids=participants or [],
            shares=[
                Share(member_id=member, amount=value)
                for member, value in map(parse_share, share or [])
            ],
        )
        splits = compute_split(request)
        display_splits(request.total_amount, splits, {})
    except Exception as e:
        fail(e, verbose)


if __name__ == "__main__":
    app()
