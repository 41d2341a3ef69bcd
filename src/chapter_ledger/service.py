"""Service layer that composes storage and the ledger core.

The split, balance and settlement functions are pure; this module is the
caller that feeds them rows from the database and persists their results.
"""

import logging
from collections.abc import Sequence
from decimal import Decimal

from .balances import compute_balances
from .config import Settings
from .db import Database
from .exceptions import (
    BalanceIntegrityWarning,
    ChapterNotFoundError,
    EventNotFoundError,
    ExpenseNotFoundError,
    MemberNotFoundError,
)
from .models import (
    Chapter,
    Event,
    Expense,
    Member,
    MemberBalance,
    MemberId,
    SettlementInstruction,
    Share,
    Split,
    SplitRequest,
)
from .money import from_cents, to_cents
from .settlement import compute_settlement
from .splitter import compute_split

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for recording chapter expenses and settling up."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database

    # ========================================================================
    # Chapters, members and events
    # ========================================================================

    def create_chapter(self, name: str, description: str | None = None) -> Chapter:
        """Create a new chapter."""
        chapter = self.db.create_chapter(name, description)
        logger.info(f"Created chapter {chapter.id}: {name}")
        return chapter

    def get_chapter(self, chapter_id: int) -> Chapter:
        """Get a chapter, raising if it doesn't exist."""
        chapter = self.db.get_chapter(chapter_id)
        if chapter is None:
            raise ChapterNotFoundError(chapter_id)
        return chapter

    def add_member(self, chapter_id: int, name: str) -> Member:
        """Add a member to a chapter."""
        self.get_chapter(chapter_id)
        member = self.db.add_member(chapter_id, name)
        logger.info(f"Added member {member.id} ({name}) to chapter {chapter_id}")
        return member

    def list_members(self, chapter_id: int) -> list[Member]:
        """List a chapter's members."""
        self.get_chapter(chapter_id)
        return self.db.list_members(chapter_id)

    def create_event(self, chapter_id: int, name: str) -> Event:
        """Create a sub-event used to scope expenses."""
        self.get_chapter(chapter_id)
        event = self.db.create_event(chapter_id, name.strip())
        logger.info(f"Created event {event.id} in chapter {chapter_id}")
        return event

    def list_events(self, chapter_id: int) -> list[Event]:
        """List a chapter's active events."""
        self.get_chapter(chapter_id)
        return self.db.list_events(chapter_id)

    def _check_event(self, chapter_id: int, event_id: int | None):
        if event_id is None:
            return
        event = self.db.get_event(event_id)
        if event is None or event.chapter_id != chapter_id:
            raise EventNotFoundError(event_id, chapter_id)

    def _check_members(self, chapter_id: int, member_ids: Sequence[MemberId]):
        known = {member.id for member in self.db.list_members(chapter_id)}
        for member_id in member_ids:
            if member_id not in known:
                raise MemberNotFoundError(member_id, chapter_id)

    # ========================================================================
    # Expenses
    # ========================================================================

    def _build_expense(
        self,
        chapter_id: int,
        payer_member_id: MemberId,
        amount: Decimal,
        participant_ids: Sequence[MemberId] | None,
        shares: Sequence[Share] | None,
        description: str,
        event_id: int | None,
        expense_id: int | None = None,
    ) -> Expense:
        """Compute the split and validate references for a new or edited expense."""
        request = SplitRequest(
            total_amount=amount,
            mode="custom" if shares else "equal",
            participant_ids=list(participant_ids or []),
            shares=list(shares or []),
        )

        splits: list[Split] = compute_split(request)

        self.get_chapter(chapter_id)
        self._check_event(chapter_id, event_id)
        self._check_members(
            chapter_id, [payer_member_id] + [split.member_id for split in splits]
        )

        return Expense(
            id=expense_id,
            chapter_id=chapter_id,
            payer_member_id=payer_member_id,
            total_amount=from_cents(to_cents(amount)),
            splits=splits,
            description=description,
            event_id=event_id,
        )

    def record_expense(
        self,
        chapter_id: int,
        payer_member_id: MemberId,
        amount: Decimal,
        participant_ids: Sequence[MemberId] | None = None,
        shares: Sequence[Share] | None = None,
        description: str = "",
        event_id: int | None = None,
    ) -> Expense:
        """
        Record an expense and its splits.

        Pass ``participant_ids`` for an equal split or ``shares`` for a custom
        split. The expense and its split rows are written in one transaction.

        Args:
            chapter_id: Chapter the expense belongs to
            payer_member_id: Member who paid
            amount: Expense total
            participant_ids: Members sharing equally, in remainder order
            shares: Explicit (member, amount) shares
            description: Free-text description
            event_id: Optional sub-event

        Returns:
            The stored expense
        """
        expense = self._build_expense(
            chapter_id,
            payer_member_id,
            amount,
            participant_ids,
            shares,
            description,
            event_id,
        )
        expense.id = self.db.insert_expense(expense)

        logger.info(
            f"Recorded expense {expense.id}: {expense.total_amount} paid by "
            f"{payer_member_id}, split {len(expense.splits)} ways"
        )
        return expense

    def update_expense(
        self,
        expense_id: int,
        payer_member_id: MemberId,
        amount: Decimal,
        participant_ids: Sequence[MemberId] | None = None,
        shares: Sequence[Share] | None = None,
        description: str | None = None,
        event_id: int | None = None,
        clear_event: bool = False,
    ) -> Expense:
        """
        Edit an expense, replacing its whole split set atomically.

        The description and event are kept unless new values are passed;
        ``clear_event`` moves the expense out of its event.
        """
        if clear_event and event_id is not None:
            raise ValueError("Pass either event_id or clear_event, not both")

        existing = self.get_expense(expense_id)
        expense = self._build_expense(
            existing.chapter_id,
            payer_member_id,
            amount,
            participant_ids,
            shares,
            existing.description if description is None else description,
            None if clear_event else (existing.event_id if event_id is None else event_id),
            expense_id=expense_id,
        )
        expense.created_at = existing.created_at

        if not self.db.replace_expense(expense):
            raise ExpenseNotFoundError(expense_id)

        logger.info(f"Updated expense {expense_id}")
        return expense

    def delete_expense(self, expense_id: int):
        """Delete an expense and its splits."""
        if not self.db.delete_expense(expense_id):
            raise ExpenseNotFoundError(expense_id)
        logger.info(f"Deleted expense {expense_id}")

    def get_expense(self, expense_id: int) -> Expense:
        """Get an expense with its splits."""
        expense = self.db.get_expense(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(expense_id)
        return expense

    def list_expenses(self, chapter_id: int, event_id: int | None = None) -> list[Expense]:
        """List a chapter's expenses, newest first."""
        self.get_chapter(chapter_id)
        self._check_event(chapter_id, event_id)
        return self.db.list_expenses(chapter_id, event_id)

    # ========================================================================
    # Balances and settlement
    # ========================================================================

    def get_balances(
        self, chapter_id: int, event_id: int | None = None
    ) -> list[MemberBalance]:
        """
        Compute paid/consumed/net for every chapter member.

        Members with no activity are reported at zero.
        """
        self.get_chapter(chapter_id)
        self._check_event(chapter_id, event_id)

        balances = compute_balances(
            payments=self.db.get_paid_amounts(chapter_id, event_id),
            splits=self.db.get_owed_splits(chapter_id, event_id),
            members=[member.id for member in self.db.list_members(chapter_id)],
        )

        logger.debug(f"Computed {len(balances)} balances for chapter {chapter_id}")
        return balances

    def get_settlement_plan(
        self, chapter_id: int, event_id: int | None = None
    ) -> tuple[list[SettlementInstruction], BalanceIntegrityWarning | None]:
        """
        Compute who pays whom to settle the chapter (or one event).

        Returns:
            Tuple of (instructions, warning); the warning is also logged
        """
        balances = self.get_balances(chapter_id, event_id)
        instructions, warning = compute_settlement(balances)

        if warning is not None:
            logger.warning(f"Chapter {chapter_id}: {warning}")

        logger.info(
            f"Settlement plan for chapter {chapter_id}: "
            f"{len(instructions)} payment(s)"
        )
        return instructions, warning
