"""
Money-movement writers — the only code allowed to change a balance.

This module holds the three low-level building blocks the transfer
orchestrator composes:

  - Balance accessor/mutator: read an account's balance in cents, lock an
    account row, write a new balance scoped by (id, user, household)
  - Transaction movement writer: insert one posting AND apply its balance
    delta to the owning account
  - Transfer ledger writer: insert the summary row grouping two legs

None of these functions commit. Each takes the caller's AsyncSession as the
transaction context and expects the caller to have opened the atomic unit
(see moneymove.database.atomic). Every statement is scoped by id, user and
household together; an id alone never selects or updates a row.

Lost-update safety:
  Balance writes are read-modify-write on a row that was re-read with
  SELECT ... FOR UPDATE inside the current transaction, never on a value
  remembered from before the transaction began. populate_existing forces the
  re-read even when the Account is already in the session's identity map.

SQLite note:
  with_for_update() is a no-op on SQLite; the database-level write lock taken
  by BEGIN IMMEDIATE (see moneymove.database) gives the same serialization. On PostgreSQL the
  rows are really locked.
"""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from moneymove.exceptions import AccountNotFoundError
from moneymove.models.account import Account
from moneymove.models.transaction import Transaction, TransactionType
from moneymove.models.transfer import Transfer, TransferStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionMovement:
    """Every column of one posting, transfer linkage included."""
    id: uuid.UUID
    user_id: uuid.UUID
    household_id: uuid.UUID
    account_id: uuid.UUID
    type: TransactionType
    amount_cents: int
    date: date
    description: str
    notes: str | None = None
    category_id: uuid.UUID | None = None
    merchant_id: uuid.UUID | None = None
    entity_id: uuid.UUID | None = None
    is_pending: bool = False
    is_balance_transfer: bool = False
    transfer_group_id: uuid.UUID | None = None
    paired_transaction_id: uuid.UUID | None = None
    transfer_source_account_id: uuid.UUID | None = None
    transfer_destination_account_id: uuid.UUID | None = None


@dataclass(frozen=True)
class TransferMovement:
    """Every column of one transfer ledger row."""
    id: uuid.UUID
    user_id: uuid.UUID
    household_id: uuid.UUID
    from_account_id: uuid.UUID
    to_account_id: uuid.UUID
    amount_cents: int
    date: date
    description: str
    fees_cents: int = 0
    status: TransferStatus = TransferStatus.COMPLETED
    from_transaction_id: uuid.UUID | None = None
    to_transaction_id: uuid.UUID | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Balance accessor / mutator
# ---------------------------------------------------------------------------

def get_account_balance_cents(account: Account) -> int:
    """Stored balance in cents; a missing value counts as zero."""
    return account.current_balance_cents or 0


def balance_delta_cents(txn_type: TransactionType, amount_cents: int) -> int:
    """
    Signed effect of a posting on its account's balance.

    Credits (income, transfer_in) add, debits (expense, transfer_out)
    subtract. Account type plays no part.
    """
    if txn_type in (TransactionType.INCOME, TransactionType.TRANSFER_IN):
        return amount_cents
    if txn_type in (TransactionType.EXPENSE, TransactionType.TRANSFER_OUT):
        return -amount_cents
    raise ValueError(f"Unknown transaction type: {txn_type!r}")


async def get_scoped_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    household_id: uuid.UUID,
    for_update: bool = False,
    label: str = "Account",
) -> Account:
    """
    Fetch an account by (id, user, household), optionally locking the row.

    Raises:
        AccountNotFoundError: If no row matches all three.
    """
    query = select(Account).where(
        Account.id == account_id,
        Account.user_id == user_id,
        Account.household_id == household_id,
    )
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)

    result = await db.execute(query)
    account = result.scalar_one_or_none()
    if account is None:
        raise AccountNotFoundError(account_id, label=label)
    return account


async def lock_scoped_accounts(
    db: AsyncSession,
    account_ids: Iterable[uuid.UUID],
    user_id: uuid.UUID,
    household_id: uuid.UUID,
) -> dict[uuid.UUID, Account]:
    """
    Lock several accounts in ascending id order and return them by id.

    Every unit that touches more than one account goes through here, so two
    concurrent transfers A->B and B->A always lock in the same order and
    cannot deadlock.
    """
    locked = {}
    for account_id in sorted(set(account_ids)):
        locked[account_id] = await get_scoped_account(
            db, account_id, user_id, household_id, for_update=True
        )
    return locked


async def update_scoped_account_balance(
    db: AsyncSession,
    *,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    household_id: uuid.UUID,
    balance_cents: int,
) -> None:
    """
    Write a new absolute balance on the row matching (id, user, household).

    Raises:
        AccountNotFoundError: If no row matched; nothing was written.
    """
    result = await db.execute(
        update(Account)
        .where(
            Account.id == account_id,
            Account.user_id == user_id,
            Account.household_id == household_id,
        )
        .values(
            current_balance_cents=balance_cents,
            updated_at=datetime.now(timezone.utc),
        )
    )
    if result.rowcount == 0:
        raise AccountNotFoundError(account_id)


async def apply_scoped_balance_delta(
    db: AsyncSession,
    *,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    household_id: uuid.UUID,
    delta_cents: int,
) -> int:
    """Lock, re-read and shift an account's balance by delta_cents. Returns the new balance."""
    account = await get_scoped_account(
        db, account_id, user_id, household_id, for_update=True
    )
    new_balance_cents = get_account_balance_cents(account) + delta_cents
    await update_scoped_account_balance(
        db,
        account_id=account_id,
        user_id=user_id,
        household_id=household_id,
        balance_cents=new_balance_cents,
    )
    return new_balance_cents


# ---------------------------------------------------------------------------
# Transaction movement writer
# ---------------------------------------------------------------------------

async def insert_transaction_movement(
    db: AsyncSession,
    movement: TransactionMovement,
) -> Transaction:
    """
    Insert one posting and apply its balance delta to the owning account.

    Exactly one row is inserted and exactly one balance changes: +amount for
    income/transfer_in, -amount for expense/transfer_out. Nothing is visible
    outside the caller's transaction until the caller commits.

    Raises:
        AccountNotFoundError: If the owning account is not in scope.
    """
    account = await get_scoped_account(
        db,
        movement.account_id,
        movement.user_id,
        movement.household_id,
        for_update=True,
    )

    txn = Transaction(
        id=movement.id,
        user_id=movement.user_id,
        household_id=movement.household_id,
        entity_id=movement.entity_id,
        account_id=movement.account_id,
        category_id=movement.category_id,
        merchant_id=movement.merchant_id,
        type=movement.type,
        amount_cents=movement.amount_cents,
        date=movement.date,
        description=movement.description,
        notes=movement.notes,
        is_pending=movement.is_pending,
        is_balance_transfer=movement.is_balance_transfer,
        transfer_group_id=movement.transfer_group_id,
        paired_transaction_id=movement.paired_transaction_id,
        transfer_source_account_id=movement.transfer_source_account_id,
        transfer_destination_account_id=movement.transfer_destination_account_id,
    )
    db.add(txn)
    await db.flush()

    new_balance_cents = get_account_balance_cents(account) + balance_delta_cents(
        movement.type, movement.amount_cents
    )
    await update_scoped_account_balance(
        db,
        account_id=movement.account_id,
        user_id=movement.user_id,
        household_id=movement.household_id,
        balance_cents=new_balance_cents,
    )
    logger.debug(
        "Posted transaction movement",
        extra={
            "transaction_id": str(movement.id),
            "account_id": str(movement.account_id),
            "type": movement.type.value,
            "amount_cents": movement.amount_cents,
            "balance_cents": new_balance_cents,
        },
    )
    return txn


# ---------------------------------------------------------------------------
# Transfer ledger writer
# ---------------------------------------------------------------------------

async def insert_transfer_movement(
    db: AsyncSession,
    movement: TransferMovement,
) -> Transfer:
    """
    Insert the ledger row for one transfer (once per transfer, not per leg).

    Must run in the same transaction as the two leg inserts it describes.
    """
    transfer = Transfer(
        id=movement.id,
        user_id=movement.user_id,
        household_id=movement.household_id,
        from_account_id=movement.from_account_id,
        to_account_id=movement.to_account_id,
        amount_cents=movement.amount_cents,
        fees_cents=movement.fees_cents,
        date=movement.date,
        description=movement.description,
        notes=movement.notes,
        status=movement.status,
        from_transaction_id=movement.from_transaction_id,
        to_transaction_id=movement.to_transaction_id,
    )
    db.add(transfer)
    await db.flush()
    return transfer
