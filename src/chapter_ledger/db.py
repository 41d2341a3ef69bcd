"""SQLite database operations for Chapter Ledger.

An expense row and its split rows are always written in one transaction, so a
reader never sees an expense without its full split set. Editing an expense
deletes and recreates the split set; concurrent edits resolve as last writer
wins.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from .models import Chapter, Event, Expense, Member, PaidAmount, Split
from .money import from_cents, to_cents

logger = logging.getLogger(__name__)


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path | str):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS chapters (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                description TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS chapter_members (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                chapter_id INTEGER NOT NULL REFERENCES chapters(id) ON DELETE CASCADE,
                member_name TEXT NOT NULL
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                chapter_id INTEGER NOT NULL REFERENCES chapters(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'active',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        # Amounts are stored as integer cents
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                chapter_id INTEGER NOT NULL REFERENCES chapters(id) ON DELETE CASCADE,
                event_id INTEGER REFERENCES events(id) ON DELETE SET NULL,
                payer_member_id INTEGER NOT NULL REFERENCES chapter_members(id),
                amount_cents INTEGER NOT NULL CHECK (amount_cents > 0),
                description TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_splits (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                expense_id INTEGER NOT NULL REFERENCES expenses(id) ON DELETE CASCADE,
                member_id INTEGER NOT NULL REFERENCES chapter_members(id),
                amount_owed_cents INTEGER NOT NULL CHECK (amount_owed_cents >= 0),
                UNIQUE (expense_id, member_id)
            )
        """
        )

        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_expenses_chapter ON expenses(chapter_id)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_splits_expense ON expense_splits(expense_id)"
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Chapter operations
    # ========================================================================

    def create_chapter(self, name: str, description: str | None = None) -> Chapter:
        """Create a chapter."""
        chapter = Chapter(id=0, name=name, description=description)
        cursor = self.conn.cursor()
        cursor.execute(
            "INSERT INTO chapters (name, description, created_at) VALUES (?, ?, ?)",
            (name, description, chapter.created_at.isoformat()),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert chapter record")
        chapter.id = row_id
        return chapter

    def get_chapter(self, chapter_id: int) -> Chapter | None:
        """Get a chapter by id."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, name, description, created_at FROM chapters WHERE id = ?",
            (chapter_id,),
        )
        row = cursor.fetchone()
        if not row:
            return None

        return Chapter(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ========================================================================
    # Member operations
    # ========================================================================

    def add_member(self, chapter_id: int, name: str) -> Member:
        """Add a member to a chapter."""
        cursor = self.conn.cursor()
        cursor.execute(
            "INSERT INTO chapter_members (chapter_id, member_name) VALUES (?, ?)",
            (chapter_id, name),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert member record")
        return Member(id=row_id, chapter_id=chapter_id, name=name)

    def list_members(self, chapter_id: int) -> list[Member]:
        """List a chapter's members in insertion order."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, chapter_id, member_name
            FROM chapter_members
            WHERE chapter_id = ?
            ORDER BY id
            """,
            (chapter_id,),
        )
        return [
            Member(id=row["id"], chapter_id=row["chapter_id"], name=row["member_name"])
            for row in cursor.fetchall()
        ]

    # ========================================================================
    # Event operations
    # ========================================================================

    def create_event(self, chapter_id: int, name: str) -> Event:
        """Create an event within a chapter."""
        event = Event(id=0, chapter_id=chapter_id, name=name)
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO events (chapter_id, name, status, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (chapter_id, name, event.status, event.created_at.isoformat()),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert event record")
        event.id = row_id
        return event

    def get_event(self, event_id: int) -> Event | None:
        """Get an event by id."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, chapter_id, name, status, created_at FROM events WHERE id = ?",
            (event_id,),
        )
        row = cursor.fetchone()
        if not row:
            return None

        return Event(
            id=row["id"],
            chapter_id=row["chapter_id"],
            name=row["name"],
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def list_events(self, chapter_id: int) -> list[Event]:
        """List a chapter's active events, newest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id FROM events
            WHERE chapter_id = ? AND status = 'active'
            ORDER BY created_at DESC, id DESC
            """,
            (chapter_id,),
        )
        events = [self.get_event(row["id"]) for row in cursor.fetchall()]
        return [event for event in events if event is not None]

    # ========================================================================
    # Expense operations
    # ========================================================================

    def _insert_splits(self, cursor: sqlite3.Cursor, expense_id: int, splits: list[Split]):
        cursor.executemany(
            """
            INSERT INTO expense_splits (expense_id, member_id, amount_owed_cents)
            VALUES (?, ?, ?)
            """,
            [(expense_id, split.member_id, to_cents(split.amount_owed)) for split in splits],
        )

    def insert_expense(self, expense: Expense) -> int:
        """Insert an expense and its splits in one transaction."""
        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO expenses (
                    chapter_id, event_id, payer_member_id, amount_cents,
                    description, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    expense.chapter_id,
                    expense.event_id,
                    expense.payer_member_id,
                    to_cents(expense.total_amount),
                    expense.description,
                    expense.created_at.isoformat(),
                ),
            )
            expense_id = cursor.lastrowid
            if expense_id is None:
                raise RuntimeError("Failed to insert expense record")
            self._insert_splits(cursor, expense_id, expense.splits)

        logger.debug(f"Inserted expense {expense_id} with {len(expense.splits)} splits")
        return expense_id

    def replace_expense(self, expense: Expense) -> bool:
        """
        Replace an expense's fields and its whole split set atomically.

        Returns:
            False if no expense with that id exists
        """
        if expense.id is None:
            raise ValueError("Cannot replace an expense without an id")

        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                UPDATE expenses
                SET payer_member_id = ?, amount_cents = ?, description = ?, event_id = ?
                WHERE id = ?
                """,
                (
                    expense.payer_member_id,
                    to_cents(expense.total_amount),
                    expense.description,
                    expense.event_id,
                    expense.id,
                ),
            )
            if cursor.rowcount == 0:
                return False
            cursor.execute("DELETE FROM expense_splits WHERE expense_id = ?", (expense.id,))
            self._insert_splits(cursor, expense.id, expense.splits)

        logger.debug(f"Replaced expense {expense.id} with {len(expense.splits)} splits")
        return True

    def delete_expense(self, expense_id: int) -> bool:
        """Delete an expense; its splits are removed by cascade."""
        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
            return cursor.rowcount > 0

    def _get_splits(self, expense_id: int) -> list[Split]:
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT member_id, amount_owed_cents
            FROM expense_splits
            WHERE expense_id = ?
            ORDER BY id
            """,
            (expense_id,),
        )
        return [
            Split(
                member_id=row["member_id"],
                amount_owed=from_cents(row["amount_owed_cents"]),
            )
            for row in cursor.fetchall()
        ]

    def _row_to_expense(self, row: sqlite3.Row) -> Expense:
        return Expense(
            id=row["id"],
            chapter_id=row["chapter_id"],
            event_id=row["event_id"],
            payer_member_id=row["payer_member_id"],
            total_amount=from_cents(row["amount_cents"]),
            description=row["description"],
            created_at=datetime.fromisoformat(row["created_at"]),
            splits=self._get_splits(row["id"]),
        )

    def get_expense(self, expense_id: int) -> Expense | None:
        """Get an expense with its splits."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, chapter_id, event_id, payer_member_id, amount_cents,
                   description, created_at
            FROM expenses
            WHERE id = ?
            """,
            (expense_id,),
        )
        row = cursor.fetchone()
        if not row:
            return None
        return self._row_to_expense(row)

    def list_expenses(self, chapter_id: int, event_id: int | None = None) -> list[Expense]:
        """List a chapter's expenses (optionally one event's), newest first."""
        cursor = self.conn.cursor()
        query = """
            SELECT id, chapter_id, event_id, payer_member_id, amount_cents,
                   description, created_at
            FROM expenses
            WHERE chapter_id = ?
        """
        params: tuple[int, ...] = (chapter_id,)
        if event_id is not None:
            query += " AND event_id = ?"
            params = (chapter_id, event_id)
        query += " ORDER BY created_at DESC, id DESC"

        cursor.execute(query, params)
        return [self._row_to_expense(row) for row in cursor.fetchall()]

    # ========================================================================
    # Balance facts
    # ========================================================================

    def get_paid_amounts(
        self, chapter_id: int, event_id: int | None = None
    ) -> list[PaidAmount]:
        """Get one (payer, amount) fact per expense in scope."""
        cursor = self.conn.cursor()
        query = "SELECT payer_member_id, amount_cents FROM expenses WHERE chapter_id = ?"
        params: tuple[int, ...] = (chapter_id,)
        if event_id is not None:
            query += " AND event_id = ?"
            params = (chapter_id, event_id)

        cursor.execute(query, params)
        return [
            PaidAmount(
                payer_member_id=row["payer_member_id"],
                amount=from_cents(row["amount_cents"]),
            )
            for row in cursor.fetchall()
        ]

    def get_owed_splits(self, chapter_id: int, event_id: int | None = None) -> list[Split]:
        """Get every split row belonging to expenses in scope."""
        cursor = self.conn.cursor()
        query = """
            SELECT es.member_id, es.amount_owed_cents
            FROM expense_splits es
            JOIN expenses e ON es.expense_id = e.id
            WHERE e.chapter_id = ?
        """
        params: tuple[int, ...] = (chapter_id,)
        if event_id is not None:
            query += " AND e.event_id = ?"
            params = (chapter_id, event_id)

        cursor.execute(query, params)
        return [
            Split(
                member_id=row["member_id"],
                amount_owed=from_cents(row["amount_owed_cents"]),
            )
            for row in cursor.fetchall()
        ]
