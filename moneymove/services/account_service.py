"""
Account service — opening accounts and checking their balances.

Ownership enforcement:
  Every function takes the caller's HouseholdScope. Queries are filtered by
  user AND household, so an account of another household is simply "not
  found"; its existence is never confirmed.

Balance integrity:
  get_balance() returns the stored balance next to a balance recomputed from
  the opening balance plus every posted transaction. A mismatch means some
  write bypassed the money-movement writers.
"""

import uuid

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from moneymove.database import atomic
from moneymove.models.account import Account, AccountType
from moneymove.models.transaction import Transaction, TransactionType
from moneymove.scope import HouseholdScope
from moneymove.services.money_movement_service import get_account_balance_cents, get_scoped_account


async def create_account(
    db: AsyncSession,
    scope: HouseholdScope,
    name: str,
    account_type: AccountType = AccountType.CHECKING,
    opening_balance_cents: int = 0,
    entity_id: uuid.UUID | None = None,
) -> Account:
    """
    Open an account with an opening balance.

    The opening balance is the only balance ever written outside the
    money-movement writers: it is set once, before any transaction exists.
    """
    async with atomic(db):
        account = Account(
            user_id=scope.user_id,
            household_id=scope.household_id,
            entity_id=entity_id,
            name=name,
            account_type=account_type,
            opening_balance_cents=opening_balance_cents,
            current_balance_cents=opening_balance_cents,
        )
        db.add(account)
        await db.flush()
    return account


async def get_account(
    db: AsyncSession,
    scope: HouseholdScope,
    account_id: uuid.UUID,
) -> Account:
    """
    Get a single account in the caller's scope.

    Raises:
        AccountNotFoundError: If the account doesn't exist in this scope.
    """
    return await get_scoped_account(db, account_id, scope.user_id, scope.household_id)


async def get_balance(
    db: AsyncSession,
    scope: HouseholdScope,
    account_id: uuid.UUID,
) -> dict:
    """
    Get the stored balance and the balance recomputed from transactions.

    Returns:
        Dict with account_id, current_balance_cents, computed_balance_cents, match.
    """
    account = await get_account(db, scope, account_id)
    current_balance_cents = get_account_balance_cents(account)
    computed_balance_cents = account.opening_balance_cents + await _sum_posted_cents(db, account_id)

    return {
        "account_id": account.id,
        "current_balance_cents": current_balance_cents,
        "computed_balance_cents": computed_balance_cents,
        "match": current_balance_cents == computed_balance_cents,
    }


async def _sum_posted_cents(db: AsyncSession, account_id: uuid.UUID) -> int:
    """Signed sum of every posting on the account: credits add, debits subtract."""
    signed_amount = case(
        (
            Transaction.type.in_([TransactionType.INCOME, TransactionType.TRANSFER_IN]),
            Transaction.amount_cents,
        ),
        else_=-Transaction.amount_cents,
    )
    result = await db.execute(
        select(func.coalesce(func.sum(signed_amount), 0))
        .where(Transaction.account_id == account_id)
    )
    return result.scalar()
