"""Custom exceptions for Chapter Ledger."""

from decimal import Decimal


class LedgerError(Exception):
    """Base exception for all Chapter Ledger errors."""

    pass


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing."""

    pass


# ============================================================================
# Split validation errors
# ============================================================================


class SplitError(LedgerError):
    """Base class for errors raised while computing an expense split."""

    pass


class InvalidAmountError(SplitError):
    """Raised when an expense total or a custom share is not positive."""

    def __init__(self, amount: Decimal, message: str | None = None):
        self.amount = amount
        super().__init__(message or f"Amount must be greater than 0, got {amount}")


class EmptyParticipantsError(SplitError):
    """Raised when an expense is split among nobody."""

    def __init__(self, message: str | None = None):
        super().__init__(message or "Select at least one person to split with")


class DuplicateParticipantError(SplitError):
    """Raised when a member appears more than once in a split."""

    def __init__(self, member_id: int | str, message: str | None = None):
        self.member_id = member_id
        super().__init__(message or f"Member {member_id!r} appears more than once")


class ConflictingSplitModeError(SplitError):
    """Raised when a split request mixes equal-mode participants with custom shares."""

    def __init__(self, mode: str, message: str | None = None):
        self.mode = mode
        super().__init__(
            message
            or f"Split request in {mode} mode can't carry both participants and shares"
        )


class SplitMismatchError(SplitError):
    """Raised when custom shares don't add up to the expense total."""

    def __init__(
        self,
        total_amount: Decimal,
        shares_total: Decimal,
        shares: dict[int | str, Decimal],
    ):
        self.total_amount = total_amount
        self.shares_total = shares_total
        self.shares = shares
        self.mismatch = abs(total_amount - shares_total)
        share_list = ", ".join(f"{member}: {amount}" for member, amount in shares.items())
        super().__init__(
            f"Split total mismatch:\n"
            f"  Expense total: {total_amount}\n"
            f"  Sum of shares: {shares_total} ({share_list})\n"
            f"  Mismatch:      {self.mismatch}"
        )


# ============================================================================
# Storage / service errors
# ============================================================================


class NotFoundError(LedgerError):
    """Base class for lookups that found nothing."""

    pass


class ChapterNotFoundError(NotFoundError):
    """Raised when a chapter does not exist."""

    def __init__(self, chapter_id: int):
        self.chapter_id = chapter_id
        super().__init__(f"Chapter {chapter_id} not found")


class MemberNotFoundError(NotFoundError):
    """Raised when a member id is not part of the chapter."""

    def __init__(self, member_id: int | str, chapter_id: int):
        self.member_id = member_id
        self.chapter_id = chapter_id
        super().__init__(f"Member {member_id} is not in chapter {chapter_id}")


class EventNotFoundError(NotFoundError):
    """Raised when an event does not exist in the chapter."""

    def __init__(self, event_id: int, chapter_id: int):
        self.event_id = event_id
        self.chapter_id = chapter_id
        super().__init__(f"Event {event_id} not found in chapter {chapter_id}")


class ExpenseNotFoundError(NotFoundError):
    """Raised when an expense does not exist."""

    def __init__(self, expense_id: int):
        self.expense_id = expense_id
        super().__init__(f"Expense {expense_id} not found")


# ============================================================================
# Warnings
# ============================================================================


class BalanceIntegrityWarning(UserWarning):
    """
    Returned (never raised) when settlement input balances don't sum to zero.

    The settlement plan is still produced; the parties left over after
    matching are reported in ``residuals`` so the caller can investigate the
    upstream inconsistency.
    """

    def __init__(self, imbalance: Decimal, residuals: dict[int | str, Decimal]):
        self.imbalance = imbalance
        self.residuals = residuals
        super().__init__(
            f"Balances do not sum to zero (off by {imbalance}); "
            f"{len(residuals)} member(s) left unsettled"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BalanceIntegrityWarning):
            return NotImplemented
        return self.imbalance == other.imbalance and self.residuals == other.residuals

    def __hash__(self) -> int:
        return hash((self.imbalance, tuple(self.residuals.items())))
