"""Tests for transactional writes in the SQLite storage layer."""

import sqlite3
from decimal import Decimal

import pytest

from chapter_ledger.db import Database
from chapter_ledger.models import Expense, Split


@pytest.fixture
def db(tmp_path):
    """Create a temporary database."""
    database = Database(tmp_path / "ledger.db")
    yield database
    database.close()


@pytest.fixture
def chapter(db):
    """A chapter with two members; returns (chapter_id, asha_id, bilal_id)."""
    chapter = db.create_chapter("Goa Trip")
    asha = db.add_member(chapter.id, "Asha")
    bilal = db.add_member(chapter.id, "Bilal")
    return chapter.id, asha.id, bilal.id


def make_expense(chapter_id, payer, splits, total="10.00", expense_id=None) -> Expense:
    return Expense(
        id=expense_id,
        chapter_id=chapter_id,
        payer_member_id=payer,
        total_amount=Decimal(total),
        splits=[Split(member_id=member, amount_owed=Decimal(amount)) for member, amount in splits],
    )


class TestInsertExpense:
    """The expense row and its splits are written together or not at all."""

    def test_insert_round_trip(self, db, chapter):
        chapter_id, asha, bilal = chapter

        expense_id = db.insert_expense(
            make_expense(chapter_id, asha, [(asha, "5.00"), (bilal, "5.00")])
        )
        stored = db.get_expense(expense_id)

        assert stored.total_amount == Decimal("10.00")
        assert {split.member_id: split.amount_owed for split in stored.splits} == {
            asha: Decimal("5.00"),
            bilal: Decimal("5.00"),
        }

    def test_failed_split_insert_rolls_back_expense(self, db, chapter):
        """A split row violating UNIQUE(expense_id, member_id) leaves nothing behind."""
        chapter_id, asha, bilal = chapter
        expense = make_expense(chapter_id, asha, [(bilal, "5.00"), (bilal, "5.00")])

        with pytest.raises(sqlite3.IntegrityError):
            db.insert_expense(expense)

        assert db.list_expenses(chapter_id) == []
        assert db.get_paid_amounts(chapter_id) == []
        assert db.get_owed_splits(chapter_id) == []

    def test_connection_usable_after_rollback(self, db, chapter):
        chapter_id, asha, bilal = chapter
        with pytest.raises(sqlite3.IntegrityError):
            db.insert_expense(
                make_expense(chapter_id, asha, [(asha, "5.00"), (asha, "5.00")])
            )

        expense_id = db.insert_expense(make_expense(chapter_id, asha, [(bilal, "10.00")]))

        assert [expense.id for expense in db.list_expenses(chapter_id)] == [expense_id]
        assert len(db.get_paid_amounts(chapter_id)) == 1


class TestReplaceExpense:
    """Replacing an expense swaps the whole split set atomically."""

    def test_failed_replace_keeps_old_split_set(self, db, chapter):
        chapter_id, asha, bilal = chapter
        expense_id = db.insert_expense(
            make_expense(chapter_id, asha, [(asha, "5.00"), (bilal, "5.00")])
        )
        broken = make_expense(
            chapter_id,
            bilal,
            [(asha, "20.00"), (asha, "20.00")],
            total="40.00",
            expense_id=expense_id,
        )

        with pytest.raises(sqlite3.IntegrityError):
            db.replace_expense(broken)

        stored = db.get_expense(expense_id)
        assert stored.payer_member_id == asha
        assert stored.total_amount == Decimal("10.00")
        assert sorted((split.member_id, split.amount_owed) for split in stored.splits) == sorted(
            [(asha, Decimal("5.00")), (bilal, Decimal("5.00"))]
        )

    def test_replace_missing_expense(self, db, chapter):
        chapter_id, asha, _ = chapter

        replaced = db.replace_expense(
            make_expense(chapter_id, asha, [(asha, "10.00")], expense_id=999)
        )

        assert replaced is False
