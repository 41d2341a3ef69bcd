"""Settlement matching: turn net balances into a short list of payments.

The matcher is greedy: at every step the largest outstanding debtor pays the
largest outstanding creditor as much as either can absorb. Each step retires
at least one party, so a plan for ``n`` members never exceeds ``n - 1``
payments. It is not guaranteed to be the absolute minimum (that problem is a
combinatorial search); the greedy plan is what the ledger reports.

Ties between equal magnitudes are broken by member id so that the same input
always produces the same plan.
"""

import heapq
from collections.abc import Iterable, Sequence
from decimal import Decimal

from .exceptions import BalanceIntegrityWarning, DuplicateParticipantError
from .models import MemberId, NetBalance, SettlementInstruction
from .money import from_cents, is_settled, member_sort_key, to_cents

# Heap entry: (-outstanding cents, tie-break key, member id)
_HeapEntry = tuple[int, tuple[int, int | str], MemberId]


def _push(heap: list[_HeapEntry], member_id: MemberId, cents: int) -> None:
    heapq.heappush(heap, (-cents, member_sort_key(member_id), member_id))


def compute_settlement(
    balances: Sequence[NetBalance],
) -> tuple[list[SettlementInstruction], BalanceIntegrityWarning | None]:
    """
    Compute a settlement plan that zeroes every balance.

    Steps:
    1. Convert nets to cents; split into debtors (< 0) and creditors (> 0)
    2. Match the largest debtor with the largest creditor
    3. Pay min(debt, credit); requeue whichever side still has a balance
    4. Stop when either side is empty

    Args:
        balances: Net balance per member (MemberBalance works too)

    Returns:
        Tuple of (instructions, warning). The warning is set when the input
        didn't sum to zero; it lists the parties left unmatched.

    Raises:
        DuplicateParticipantError: If a member appears twice in the input
    """
    debtors: list[_HeapEntry] = []
    creditors: list[_HeapEntry] = []
    seen: set[MemberId] = set()
    imbalance = 0

    for balance in balances:
        if balance.member_id in seen:
            raise DuplicateParticipantError(balance.member_id)
        seen.add(balance.member_id)

        cents = to_cents(balance.net)
        imbalance += cents
        if is_settled(cents):
            continue
        if cents < 0:
            _push(debtors, balance.member_id, -cents)
        else:
            _push(creditors, balance.member_id, cents)

    instructions: list[SettlementInstruction] = []
    while debtors and creditors:
        neg_debt, _, debtor = heapq.heappop(debtors)
        neg_credit, _, creditor = heapq.heappop(creditors)
        debt, credit = -neg_debt, -neg_credit

        amount = min(debt, credit)
        instructions.append(
            SettlementInstruction(
                from_member_id=debtor,
                to_member_id=creditor,
                amount=from_cents(amount),
            )
        )

        if not is_settled(debt - amount):
            _push(debtors, debtor, debt - amount)
        if not is_settled(credit - amount):
            _push(creditors, creditor, credit - amount)

    warning = None
    if not is_settled(imbalance):
        residuals: dict[MemberId, Decimal] = {}
        for neg_cents, _, member_id in sorted(debtors):
            residuals[member_id] = from_cents(neg_cents)
        for neg_cents, _, member_id in sorted(creditors):
            residuals[member_id] = from_cents(-neg_cents)
        warning = BalanceIntegrityWarning(
            imbalance=from_cents(imbalance), residuals=residuals
        )

    return instructions, warning


def apply_settlement(
    balances: Iterable[NetBalance], instructions: Iterable[SettlementInstruction]
) -> dict[MemberId, Decimal]:
    """
    Apply a settlement plan to balances and return what's left per member.

    A payer's net goes up by the amount paid, a receiver's goes down. After
    a complete plan on consistent input every residual is zero.
    """
    residual: dict[MemberId, int] = {
        balance.member_id: to_cents(balance.net) for balance in balances
    }
    for instruction in instructions:
        cents = to_cents(instruction.amount)
        residual[instruction.from_member_id] = (
            residual.get(instruction.from_member_id, 0) + cents
        )
        residual[instruction.to_member_id] = (
            residual.get(instruction.to_member_id, 0) - cents
        )

    return {member_id: from_cents(cents) for member_id, cents in residual.items()}
