"""Split calculation: turn an expense total into exact per-member owed amounts."""

from collections.abc import Iterable, Sequence
from decimal import Decimal

from .exceptions import (
    DuplicateParticipantError,
    EmptyParticipantsError,
    ConflictingSplitModeError,
    InvalidAmountError,
    SplitMismatchError,
)
from .models import MemberId, Share, Split, SplitRequest
from .money import SPLIT_TOLERANCE_CENTS, from_cents, is_whole_cents, to_cents


def _check_precision(amount: Decimal | int | str, label: str) -> None:
    if not is_whole_cents(amount):
        raise InvalidAmountError(
            Decimal(str(amount)),
            f"{label} must have at most 2 decimal places, got {amount}",
        )


def _total_cents(total_amount: Decimal | int | str) -> int:
    _check_precision(total_amount, "Amount")
    total = to_cents(total_amount)
    if total <= 0:
        raise InvalidAmountError(Decimal(str(total_amount)))
    return total


def _check_distinct(member_ids: Iterable[MemberId]) -> None:
    seen: set[MemberId] = set()
    for member_id in member_ids:
        if member_id in seen:
            raise DuplicateParticipantError(member_id)
        seen.add(member_id)


def compute_equal_split(
    total_amount: Decimal | int | str, participant_ids: Sequence[MemberId]
) -> list[Split]:
    """
    Split a total equally, handing leftover cents out in caller order.

    Steps:
    1. Convert the total to integer cents T
    2. Give every participant floor(T / n) cents
    3. Give one extra cent to each of the first T mod n participants

    The result sums to T exactly by construction.

    Args:
        total_amount: Expense total (positive, 2 decimal places)
        participant_ids: Distinct member ids, in the order extra cents go out

    Returns:
        One split per participant, in the order supplied

    Raises:
        InvalidAmountError: If the total is not positive or finer than a cent
        EmptyParticipantsError: If there are no participants
        DuplicateParticipantError: If a member id repeats
    """
    total = _total_cents(total_amount)
    if not participant_ids:
        raise EmptyParticipantsError()
    _check_distinct(participant_ids)

    base, remainder = divmod(total, len(participant_ids))

    return [
        Split(
            member_id=member_id,
            amount_owed=from_cents(base + 1 if index < remainder else base),
        )
        for index, member_id in enumerate(participant_ids)
    ]


def compute_custom_split(
    total_amount: Decimal | int | str, shares: Sequence[Share]
) -> list[Split]:
    """
    Validate caller-supplied shares against the expense total.

    Shares within one cent of the total are accepted verbatim; the tolerance
    absorbs upstream decimal noise and is never redistributed.

    Args:
        total_amount: Expense total (positive, 2 decimal places)
        shares: (member, amount) pairs, each amount positive

    Returns:
        One split per share, amounts unchanged

    Raises:
        InvalidAmountError: If the total or any share is not positive or
            finer than a cent
        EmptyParticipantsError: If there are no shares
        DuplicateParticipantError: If a member id repeats
        SplitMismatchError: If shares differ from the total by more than 1 cent
    """
    total = _total_cents(total_amount)
    if not shares:
        raise EmptyParticipantsError()
    _check_distinct(share.member_id for share in shares)

    share_cents: list[tuple[MemberId, int]] = []
    for share in shares:
        _check_precision(share.amount, f"Share for member {share.member_id!r}")
        cents = to_cents(share.amount)
        if cents <= 0:
            raise InvalidAmountError(
                share.amount,
                f"Share for member {share.member_id!r} must be greater than 0, "
                f"got {share.amount}",
            )
        share_cents.append((share.member_id, cents))

    shares_total = sum(cents for _, cents in share_cents)
    if abs(shares_total - total) > SPLIT_TOLERANCE_CENTS:
        raise SplitMismatchError(
            total_amount=from_cents(total),
            shares_total=from_cents(shares_total),
            shares={member_id: from_cents(cents) for member_id, cents in share_cents},
        )

    return [
        Split(member_id=member_id, amount_owed=from_cents(cents))
        for member_id, cents in share_cents
    ]


def compute_split(request: SplitRequest) -> list[Split]:
    """
    Compute splits for a request in either equal or custom mode.

    A request carries the participants of one mode only; equal-mode ids sent
    alongside custom shares (or the reverse) are rejected, not ignored.

    Raises:
        ConflictingSplitModeError: If both participant_ids and shares are set
    """
    if request.participant_ids and request.shares:
        raise ConflictingSplitModeError(request.mode)
    if request.mode == "custom":
        return compute_custom_split(request.total_amount, request.shares)
    return compute_equal_split(request.total_amount, request.participant_ids)
