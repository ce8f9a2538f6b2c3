"""
TransferPairUsage model — how often a household moves money from A to B.

Feeds "frequent transfers" suggestions. The counter is bumped after a
transfer commits and is never part of the transfer's atomic unit: losing an
increment is acceptable, losing a transfer is not.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from moneymove.database import Base


class TransferPairUsage(Base):
    __tablename__ = "transfer_pair_usage"

    __table_args__ = (
        UniqueConstraint(
            "user_id", "household_id", "from_account_id", "to_account_id",
            name="uq_transfer_pair_usage_pair",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    household_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    from_account_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    to_account_id: Mapped[uuid.UUID] = mapped_column(nullable=False)

    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_used_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
