"""
Usage service — counts how often each (from, to) account pair is used.

Fire-and-forget: record_transfer_pair_usage() runs after the transfer has
committed, in its own nested unit. A failure here is logged and dropped; it
never reaches the caller and never touches the transfer.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from moneymove.database import atomic
from moneymove.models.usage import TransferPairUsage
from moneymove.scope import HouseholdScope

logger = logging.getLogger(__name__)


async def record_transfer_pair_usage(
    db: AsyncSession,
    scope: HouseholdScope,
    from_account_id: uuid.UUID,
    to_account_id: uuid.UUID,
) -> None:
    """Increment the usage counter for from_account_id -> to_account_id."""
    try:
        async with atomic(db):
            result = await db.execute(
                select(TransferPairUsage).where(
                    TransferPairUsage.user_id == scope.user_id,
                    TransferPairUsage.household_id == scope.household_id,
                    TransferPairUsage.from_account_id == from_account_id,
                    TransferPairUsage.to_account_id == to_account_id,
                )
            )
            usage = result.scalar_one_or_none()
            if usage is None:
                usage = TransferPairUsage(
                    user_id=scope.user_id,
                    household_id=scope.household_id,
                    from_account_id=from_account_id,
                    to_account_id=to_account_id,
                    usage_count=0,
                )
                db.add(usage)
            usage.usage_count += 1
            usage.last_used_at = datetime.now(timezone.utc)
            await db.flush()
    except SQLAlchemyError:
        logger.warning(
            "Could not record transfer pair usage",
            exc_info=True,
            extra={
                "user_id": str(scope.user_id),
                "household_id": str(scope.household_id),
                "from_account_id": str(from_account_id),
                "to_account_id": str(to_account_id),
                "action": "record_pair_usage",
                "component": "UsageService",
            },
        )


async def get_transfer_pair_usage_count(
    db: AsyncSession,
    scope: HouseholdScope,
    from_account_id: uuid.UUID,
    to_account_id: uuid.UUID,
) -> int:
    result = await db.execute(
        select(TransferPairUsage.usage_count).where(
            TransferPairUsage.user_id == scope.user_id,
            TransferPairUsage.household_id == scope.household_id,
            TransferPairUsage.from_account_id == from_account_id,
            TransferPairUsage.to_account_id == to_account_id,
        )
    )
    return result.scalar_one_or_none() or 0
