"""
Transaction model — one posting against one account.

Every movement of money creates Transaction records:

  - Regular entry creates one INCOME (credit) or EXPENSE (debit)
  - A transfer creates TWO legs: a TRANSFER_OUT on the source account and
    a TRANSFER_IN on the destination account

Key fields:
  - type: income | expense | transfer_out | transfer_in
  - amount_cents: Always positive; the direction comes from the type
  - account_id: The account this row posts to

Transfer linkage (only populated on transfer legs):
  - transfer_group_id: Shared by both legs; equals the Transfer ledger row id
  - paired_transaction_id: The other leg's id. Mutual: A points at B and
    B points at A for as long as the pair exists
  - transfer_source_account_id / transfer_destination_account_id: The two
    accounts of the transfer, identical on both legs

Transfer legs are never categorized. The CHECK constraint below rejects a
transfer leg that carries a category or merchant.
"""

import enum
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Integer, Boolean, Date, DateTime, Text, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from moneymove.database import Base


class TransactionType(str, enum.Enum):
    """Direction and meaning of a posting. Stored as its lowercase value."""
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"

    @property
    def is_transfer(self) -> bool:
        return self in (TransactionType.TRANSFER_OUT, TransactionType.TRANSFER_IN)


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_transactions_positive_amount"),
        CheckConstraint(
            "type NOT IN ('transfer_out', 'transfer_in') "
            "OR (category_id IS NULL AND merchant_id IS NULL)",
            name="ck_transactions_transfer_uncategorized",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    household_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    entity_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    # Categorization lives in other services; only the ids are kept here
    category_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    merchant_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)

    type: Mapped[TransactionType] = mapped_column(
        Enum(
            TransactionType,
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=TransactionType.EXPENSE,
    )

    # Amount in cents — always positive
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    description: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_pending: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Credit-card balance transfer (both legs carry the flag)
    is_balance_transfer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # --- Transfer linkage ---
    transfer_group_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True, index=True)
    paired_transaction_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True, index=True)
    transfer_source_account_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    transfer_destination_account_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)

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

    # Posting date, indexed for date-range queries
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
