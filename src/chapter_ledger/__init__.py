"""Chapter Ledger - Split shared expenses and settle up with the fewest payments."""

__version__ = "0.1.0"

from .balances import compute_balances, compute_expense_balances, total_net
from .config import Settings, load_settings
from .db import Database
from .exceptions import (
    BalanceIntegrityWarning,
    ConflictingSplitModeError,
    DuplicateParticipantError,
    EmptyParticipantsError,
    InvalidAmountError,
    LedgerError,
    SplitMismatchError,
)
from .models import (
    Expense,
    MemberBalance,
    NetBalance,
    PaidAmount,
    SettlementInstruction,
    Share,
    Split,
    SplitRequest,
)
from .money import from_cents, to_cents
from .service import LedgerService
from .settlement import apply_settlement, compute_settlement
from .splitter import compute_custom_split, compute_equal_split, compute_split

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "LedgerService",
    "LedgerError",
    "InvalidAmountError",
    "EmptyParticipantsError",
    "DuplicateParticipantError",
    "SplitMismatchError",
    "ConflictingSplitModeError",
    "BalanceIntegrityWarning",
    "Expense",
    "MemberBalance",
    "NetBalance",
    "PaidAmount",
    "SettlementInstruction",
    "Share",
    "Split",
    "SplitRequest",
    "to_cents",
    "from_cents",
    "compute_split",
    "compute_equal_split",
    "compute_custom_split",
    "compute_balances",
    "compute_expense_balances",
    "total_net",
    "compute_settlement",
    "apply_settlement",
]
