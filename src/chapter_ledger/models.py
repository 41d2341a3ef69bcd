"""Pydantic domain models for Chapter Ledger."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

# Member ids are opaque: storage hands out ints, callers may use strings.
MemberId = int | str

# ============================================================================
# Chapter Models
# ============================================================================


class Chapter(BaseModel):
    """A group of members sharing a ledger of expenses."""

    id: int
    name: str
    description: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class Member(BaseModel):
    """A member of one chapter. The name is only used for display."""

    id: MemberId
    chapter_id: int
    name: str


class Event(BaseModel):
    """A sub-event of a chapter (a trip, a dinner) used to scope expenses."""

    id: int
    chapter_id: int
    name: str
    status: Literal["active", "archived"] = "active"
    created_at: datetime = Field(default_factory=datetime.now)


# ============================================================================
# Expense Models
# ============================================================================


class Split(BaseModel):
    """The portion of one expense consumed by one member."""

    member_id: MemberId
    amount_owed: Decimal


class Share(BaseModel):
    """A caller-supplied custom share of an expense."""

    member_id: MemberId
    amount: Decimal


class SplitRequest(BaseModel):
    """Request to split an expense total among members.

    ``participant_ids`` is used in equal mode, ``shares`` in custom mode.
    """

    total_amount: Decimal
    mode: Literal["equal", "custom"] = "equal"
    participant_ids: list[MemberId] = Field(default_factory=list)
    shares: list[Share] = Field(default_factory=list)


class Expense(BaseModel):
    """An expense paid by one member and split among one or more members."""

    id: int | None = None
    chapter_id: int
    payer_member_id: MemberId
    total_amount: Decimal
    splits: list[Split]
    description: str = ""
    event_id: int | None = None
    created_at: datetime = Field(default_factory=datetime.now)


# ============================================================================
# Balance Models
# ============================================================================


class PaidAmount(BaseModel):
    """A (payer, amount) fact taken from one expense."""

    payer_member_id: MemberId
    amount: Decimal


class NetBalance(BaseModel):
    """A member's net position: positive is owed money, negative owes money."""

    member_id: MemberId
    net: Decimal


class MemberBalance(NetBalance):
    """Paid vs consumed totals for one member. Derived, never persisted."""

    total_paid: Decimal
    total_consumed: Decimal

    @property
    def status(self) -> str:
        """Human readable label for the net position."""
        if self.net > 0:
            return "Gets back"
        if self.net < 0:
            return "Owes"
        return "Settled"


class SettlementInstruction(BaseModel):
    """A single payment from a debtor to a creditor."""

    from_member_id: MemberId
    to_member_id: MemberId
    amount: Decimal
