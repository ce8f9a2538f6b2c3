"""
Transfer model — the ledger summary row for one transfer.

A Transfer groups the two legs of a money movement under one id. That id is
the `transfer_group_id` stamped on both Transaction legs, so either side can
find the other.

Key fields:
  - from_account_id / to_account_id: Where the money left and arrived
  - amount_cents: The magnitude posted on both legs
  - fees_cents: Fees charged for the transfer. Reporting only: fees never
    move a live account balance, neither on create nor on delete
  - status: "completed" for same-instant transfers, "pending" when the
    caller flags the movement as not yet cleared
  - from_transaction_id / to_transaction_id: The two legs

After creation only `description` and `notes` may change. Amount, accounts
and date are immutable; a different movement is a delete plus a create.
"""

import enum
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Integer, Date, DateTime, Text, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from moneymove.database import Base


class TransferStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class Transfer(Base):
    __tablename__ = "transfers"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_transfers_positive_amount"),
        CheckConstraint("fees_cents >= 0", name="ck_transfers_non_negative_fees"),
    )

    # Equal to transfer_group_id on both legs
    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    household_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)

    from_account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )
    to_account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    fees_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    description: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[TransferStatus] = mapped_column(
        Enum(
            TransferStatus,
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=TransferStatus.COMPLETED,
    )

    # The two legs (no FK: legs and ledger row are deleted in one unit)
    from_transaction_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    to_transaction_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)

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

    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
