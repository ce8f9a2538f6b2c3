"""
Account model — a household money account (checking, credit card, cash, ...).

Each account has:
  - An owner (user) and a household; every query is scoped by both
  - An optional sub-entity (e.g. a household member's side business)
  - A type, which matters for payment detection elsewhere but NOT for
    balance arithmetic: a debit always decreases the balance and a credit
    always increases it, whatever the account type
  - A current balance in integer cents

Balance management:
  `current_balance_cents` is the single source of truth for "current
  balance". Once the account exists it is only ever written by the
  money-movement writers, inside the same database transaction as the
  transaction/transfer rows that justify the change. A NULL value is read
  as zero.

  `opening_balance_cents` is the balance the account was opened with. The
  integrity check recomputes opening balance + every posted transaction and
  compares it against the stored balance.

  There is deliberately no non-negative CHECK: credit cards and lines of
  credit carry negative balances.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, Integer, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column

from moneymove.database import Base


class AccountType(str, enum.Enum):
    """Kind of account. Stored as its lowercase value."""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    LINE_OF_CREDIT = "line_of_credit"
    CASH = "cash"
    INVESTMENT = "investment"


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Ownership: (user_id, household_id) scopes every read and write
    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    household_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    entity_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(
        Enum(
            AccountType,
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=AccountType.CHECKING,
    )

    opening_balance_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    # Current balance in cents; NULL reads as 0
    current_balance_cents: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        default=0,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
