"""
Transaction service — regular income/expense entry and lookups.

Regular entries go through the same movement writer as transfer legs, so a
typed-in expense moves its account's balance exactly like the debit leg of
a transfer would. Transfer legs are never created here: the transfer
orchestrator owns them.
"""

import logging
import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moneymove.database import atomic
from moneymove.exceptions import TransactionNotFoundError, TransferValidationError
from moneymove.models.transaction import Transaction, TransactionType
from moneymove.scope import HouseholdScope
from moneymove.services import money_movement_service
from moneymove.services.money_movement_service import TransactionMovement

logger = logging.getLogger(__name__)


async def create_transaction(
    db: AsyncSession,
    scope: HouseholdScope,
    account_id: uuid.UUID,
    txn_type: TransactionType,
    amount_cents: int,
    txn_date: date,
    description: str,
    notes: str | None = None,
    category_id: uuid.UUID | None = None,
    merchant_id: uuid.UUID | None = None,
    is_pending: bool = False,
) -> Transaction:
    """
    Record an income or expense and move the account balance with it.

    Raises:
        TransferValidationError: A transfer type was requested, or the
            amount is not positive.
        AccountNotFoundError: The account is outside the scope.
    """
    if txn_type.is_transfer:
        raise TransferValidationError("Transfer legs can only be created through a transfer")
    if amount_cents <= 0:
        raise TransferValidationError("amount_cents cannot be zero or negative")

    async with atomic(db):
        txn = await money_movement_service.insert_transaction_movement(
            db,
            TransactionMovement(
                id=uuid.uuid4(),
                user_id=scope.user_id,
                household_id=scope.household_id,
                account_id=account_id,
                type=txn_type,
                amount_cents=amount_cents,
                date=txn_date,
                description=description,
                notes=notes,
                category_id=category_id,
                merchant_id=merchant_id,
                is_pending=is_pending,
            ),
        )

    logger.info(
        "Recorded transaction",
        extra={
            "user_id": str(scope.user_id),
            "household_id": str(scope.household_id),
            "transaction_id": str(txn.id),
            "type": txn_type.value,
            "action": "create_transaction",
            "component": "TransactionService",
        },
    )
    return txn


async def get_transaction(
    db: AsyncSession,
    scope: HouseholdScope,
    transaction_id: uuid.UUID,
) -> Transaction:
    """
    Get a single transaction in the caller's scope.

    Raises:
        TransactionNotFoundError: If it doesn't exist in this scope.
    """
    result = await db.execute(
        select(Transaction).where(
            Transaction.id == transaction_id,
            Transaction.user_id == scope.user_id,
            Transaction.household_id == scope.household_id,
        )
    )
    txn = result.scalar_one_or_none()
    if txn is None:
        raise TransactionNotFoundError(transaction_id)
    return txn


async def list_account_transactions(
    db: AsyncSession,
    scope: HouseholdScope,
    account_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
) -> list[Transaction]:
    """List an account's transactions, newest date first."""
    await money_movement_service.get_scoped_account(
        db, account_id, scope.user_id, scope.household_id
    )
    result = await db.execute(
        select(Transaction)
        .where(
            Transaction.account_id == account_id,
            Transaction.user_id == scope.user_id,
            Transaction.household_id == scope.household_id,
        )
        .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())
