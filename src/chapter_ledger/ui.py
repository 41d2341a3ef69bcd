"""Rich rendering for balances, settlement plans and splits."""

from collections.abc import Mapping, Sequence
from decimal import Decimal

from rich.console import Console
from rich.table import Table

from .exceptions import BalanceIntegrityWarning
from .models import Expense, MemberBalance, MemberId, SettlementInstruction, Split

console = Console()


def format_money(amount: Decimal, symbol: str = "₹", use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (₹85.02)
    Positive amounts have spaces:      ₹85.02
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            return f"({symbol}[red]{abs_amount:,.2f}[/red])"
        return f"({symbol}{abs_amount:,.2f})"
    if use_color:
        return f" [green]{symbol}{abs_amount:,.2f}[/green] "
    return f" {symbol}{abs_amount:,.2f} "


def _label(member_id: MemberId, names: Mapping[MemberId, str]) -> str:
    return names.get(member_id, str(member_id))


def display_balances(
    balances: Sequence[MemberBalance],
    names: Mapping[MemberId, str],
    symbol: str = "₹",
):
    """Display the paid / consumed / net table."""
    table = Table(title="Member Balances", show_header=True, header_style="bold magenta")
    table.add_column("Member", style="cyan")
    table.add_column("Paid", justify="right")
    table.add_column("Consumed", justify="right")
    table.add_column("Net Balance", justify="right")
    table.add_column("Status")

    for balance in balances:
        table.add_row(
            _label(balance.member_id, names),
            format_money(balance.total_paid, symbol, use_color=False),
            format_money(balance.total_consumed, symbol, use_color=False),
            format_money(balance.net, symbol),
            balance.status,
        )

    console.print(table)

    total_spent = sum((balance.total_paid for balance in balances), Decimal("0"))
    console.print(f"  Total spend: {format_money(total_spent, symbol, use_color=False)}")


def display_settlement(
    instructions: Sequence[SettlementInstruction],
    warning: BalanceIntegrityWarning | None,
    names: Mapping[MemberId, str],
    symbol: str = "₹",
):
    """Display a settlement plan and any integrity warning."""
    if not instructions:
        console.print("[green]All settled up! No debts.[/green]")
    else:
        table = Table(title="Settlement Plan", show_header=True, header_style="bold magenta")
        table.add_column("From (Debtor)", style="red")
        table.add_column("To (Creditor)", style="green")
        table.add_column("Amount", justify="right")

        for instruction in instructions:
            table.add_row(
                _label(instruction.from_member_id, names),
                _label(instruction.to_member_id, names),
                format_money(instruction.amount, symbol, use_color=False),
            )

        console.print(table)
        console.print(f"  Payments needed: {len(instructions)}")

    if warning is not None:
        console.print(f"\n[bold yellow]⚠️  {warning}[/bold yellow]")
        for member_id, residual in warning.residuals.items():
            console.print(f"  {_label(member_id, names)}: {format_money(residual, symbol)}")


def display_splits(
    total_amount: Decimal,
    splits: Sequence[Split],
    names: Mapping[MemberId, str],
    symbol: str = "₹",
):
    """Display how an expense total is split."""
    table = Table(title="Split", show_header=True, header_style="bold magenta")
    table.add_column("Member", style="cyan")
    table.add_column("Owes", justify="right")

    for split in splits:
        table.add_row(
            _label(split.member_id, names),
            format_money(split.amount_owed, symbol, use_color=False),
        )

    console.print(table)

    split_total = sum((split.amount_owed for split in splits), Decimal("0"))
    if split_total == total_amount:
        console.print("  [green]✓ Shares add up to the total[/green]")
    else:
        console.print(
            f"  [yellow]Shares total {split_total}, expense total {total_amount} "
            f"(within 1 cent tolerance)[/yellow]"
        )


def display_expenses(
    expenses: Sequence[Expense],
    names: Mapping[MemberId, str],
    symbol: str = "₹",
):
    """Display a chapter's expenses."""
    table = Table(title="Expenses", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=6)
    table.add_column("Description", style="cyan", width=30)
    table.add_column("Paid By")
    table.add_column("Amount", justify="right")
    table.add_column("Split Between", no_wrap=False)

    for expense in expenses:
        desc = expense.description
        table.add_row(
            str(expense.id),
            desc[:30] + "..." if len(desc) > 30 else desc,
            _label(expense.payer_member_id, names),
            format_money(expense.total_amount, symbol, use_color=False),
            ", ".join(_label(split.member_id, names) for split in expense.splits),
        )

    console.print(table)
