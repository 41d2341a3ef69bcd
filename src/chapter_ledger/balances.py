"""Balance aggregation: reduce a chapter's expenses to one position per member."""

from collections.abc import Iterable
from decimal import Decimal

from .models import Expense, MemberBalance, MemberId, NetBalance, PaidAmount, Split
from .money import from_cents, is_settled, member_sort_key, to_cents


def compute_balances(
    payments: Iterable[PaidAmount],
    splits: Iterable[Split],
    members: Iterable[MemberId] | None = None,
    drop_settled: bool = False,
) -> list[MemberBalance]:
    """
    Compute paid, consumed and net totals per member.

    Sums run in integer cents and are converted to Decimal once at the end.
    The aggregator doesn't filter or repair its input: an orphaned split
    simply shows up as consumption with no matching payment.

    Args:
        payments: (payer, amount) facts, one per expense
        splits: (member, amount owed) facts, one per split row
        members: Extra member ids to report even with no activity
        drop_settled: Omit members whose net is zero

    Returns:
        Balances ordered by member id
    """
    paid: dict[MemberId, int] = {}
    consumed: dict[MemberId, int] = {}

    for member_id in members or ():
        paid.setdefault(member_id, 0)
        consumed.setdefault(member_id, 0)

    for payment in payments:
        paid[payment.payer_member_id] = paid.get(
            payment.payer_member_id, 0
        ) + to_cents(payment.amount)
        consumed.setdefault(payment.payer_member_id, 0)

    for split in splits:
        consumed[split.member_id] = consumed.get(split.member_id, 0) + to_cents(
            split.amount_owed
        )
        paid.setdefault(split.member_id, 0)

    balances = []
    for member_id in sorted(paid, key=member_sort_key):
        net = paid[member_id] - consumed[member_id]
        if drop_settled and is_settled(net):
            continue
        balances.append(
            MemberBalance(
                member_id=member_id,
                total_paid=from_cents(paid[member_id]),
                total_consumed=from_cents(consumed[member_id]),
                net=from_cents(net),
            )
        )

    return balances


def compute_expense_balances(
    expenses: Iterable[Expense],
    members: Iterable[MemberId] | None = None,
    drop_settled: bool = False,
) -> list[MemberBalance]:
    """Compute balances directly from expense records and their splits."""
    payments: list[PaidAmount] = []
    splits: list[Split] = []
    for expense in expenses:
        payments.append(
            PaidAmount(
                payer_member_id=expense.payer_member_id, amount=expense.total_amount
            )
        )
        splits.extend(expense.splits)

    return compute_balances(payments, splits, members=members, drop_settled=drop_settled)


def total_net(balances: Iterable[NetBalance]) -> Decimal:
    """Sum of net balances; zero for a fully reconciled chapter."""
    return from_cents(sum(to_cents(balance.net) for balance in balances))
