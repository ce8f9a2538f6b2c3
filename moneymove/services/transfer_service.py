"""
Transfer service — the canonical orchestrator for money moving between accounts.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. Every path that creates,
links, edits or removes a transfer goes through here:

  - create_canonical_transfer_pair: new transfer between two accounts
  - link_existing_transactions_as_canonical_transfer: an expense on one
    account and an income on another turn out to be the same money
  - convert_transaction_to_transfer: an existing expense/income becomes one
    leg and the missing counterpart leg is created on the target account
  - update_*: description/notes edits propagated to both legs + ledger row
  - delete_*: remove both legs + ledger row and restore both balances

Atomicity:
  Each operation runs inside one atomic() unit on the caller's session.
  Leg inserts, balance writes and the ledger row commit together or not at
  all. A storage failure anywhere in the unit rolls the whole unit back and
  surfaces as MoneyMovementSystemError; domain errors roll back the same way
  and propagate unchanged.

Balance rules:
  - Create posts -amount on the source and +amount on the destination
  - Link posts nothing. Both transactions already moved their balances when
    they were entered as expense/income, and a transfer_out debits exactly
    like the expense it replaces (transfer_in credits like the income). Any
    re-application here would count the money twice
  - Convert posts only the newly created counterpart leg
  - Delete reverses exactly what each deleted leg posted
  - Fees are reporting-only and never move a balance

Deadlock prevention:
  Accounts touched by a unit are locked in ascending id order (see
  money_movement_service.lock_scoped_accounts).
"""

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from moneymove.database import atomic
from moneymove.exceptions import (
    MoneyMovementError,
    MoneyMovementSystemError,
    TransactionNotFoundError,
    TransferConflictError,
    TransferNotFoundError,
    TransferValidationError,
)
from moneymove.models.transaction import Transaction, TransactionType
from moneymove.models.transfer import Transfer, TransferStatus
from moneymove.scope import HouseholdScope
from moneymove.services import money_movement_service
from moneymove.services.money_movement_service import TransactionMovement, TransferMovement

logger = logging.getLogger(__name__)

DEFAULT_TRANSFER_DESCRIPTION = "Transfer"


@dataclass(frozen=True)
class NewTransfer:
    """Input for create_canonical_transfer_pair. Amounts are integer cents."""
    from_account_id: uuid.UUID
    to_account_id: uuid.UUID
    amount_cents: int
    date: date
    description: str = DEFAULT_TRANSFER_DESCRIPTION
    fees_cents: int = 0
    notes: str | None = None
    is_pending: bool = False
    is_balance_transfer: bool = False
    # Caller-supplied ids; fresh uuid4 values are generated when omitted
    transfer_group_id: uuid.UUID | None = None
    from_transaction_id: uuid.UUID | None = None
    to_transaction_id: uuid.UUID | None = None


@dataclass(frozen=True)
class TransferMetadataChanges:
    """
    Editable transfer fields. None leaves a field as it is.

    An empty notes string clears the notes.
    """
    description: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class TransferPairIds:
    """Identifiers of everything an operation created or touched."""
    transfer_group_id: uuid.UUID
    from_transaction_id: uuid.UUID | None
    to_transaction_id: uuid.UUID | None


# ---------------------------------------------------------------------------
# Unit of work
# ---------------------------------------------------------------------------

@asynccontextmanager
async def _transfer_unit(db: AsyncSession, scope: HouseholdScope, operation: str):
    """atomic() plus the logging and error translation every operation shares."""
    context = {
        "user_id": str(scope.user_id),
        "household_id": str(scope.household_id),
        "action": operation,
        "component": "TransferService",
    }
    try:
        async with atomic(db):
            yield
    except MoneyMovementError as exc:
        logger.warning("Transfer operation rejected: %s", exc.detail, extra=context)
        raise
    except SQLAlchemyError as exc:
        logger.exception("Transfer operation failed and was rolled back", extra=context)
        raise MoneyMovementSystemError(operation) from exc


def _require_cents(value: int, field: str, allow_zero: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TransferValidationError(f"{field} must be an integer number of cents")
    if value < 0 or (value == 0 and not allow_zero):
        qualifier = "negative" if allow_zero else "zero or negative"
        raise TransferValidationError(f"{field} cannot be {qualifier}")


def _validate_new_transfer(payload: NewTransfer) -> None:
    if payload.from_account_id == payload.to_account_id:
        raise TransferValidationError("Cannot transfer to the same account")
    _require_cents(payload.amount_cents, "amount_cents")
    _require_cents(payload.fees_cents, "fees_cents", allow_zero=True)
    if not payload.description or not payload.description.strip():
        raise TransferValidationError("Transfer description is required")


def _is_linked(txn: Transaction) -> bool:
    return (
        txn.type.is_transfer
        or txn.transfer_group_id is not None
        or txn.paired_transaction_id is not None
    )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def _get_scoped_transaction(
    db: AsyncSession,
    scope: HouseholdScope,
    transaction_id: uuid.UUID,
    for_update: bool = False,
) -> Transaction:
    query = select(Transaction).where(
        Transaction.id == transaction_id,
        Transaction.user_id == scope.user_id,
        Transaction.household_id == scope.household_id,
    )
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)

    result = await db.execute(query)
    txn = result.scalar_one_or_none()
    if txn is None:
        raise TransactionNotFoundError(transaction_id)
    return txn


async def _find_scoped_transfer(
    db: AsyncSession,
    scope: HouseholdScope,
    transfer_id: uuid.UUID | None,
    for_update: bool = False,
) -> Transfer | None:
    if transfer_id is None:
        return None
    query = select(Transfer).where(
        Transfer.id == transfer_id,
        Transfer.user_id == scope.user_id,
        Transfer.household_id == scope.household_id,
    )
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)

    result = await db.execute(query)
    return result.scalar_one_or_none()


async def _get_scoped_transfer(
    db: AsyncSession,
    scope: HouseholdScope,
    transfer_id: uuid.UUID,
    for_update: bool = False,
) -> Transfer:
    transfer = await _find_scoped_transfer(db, scope, transfer_id, for_update=for_update)
    if transfer is None:
        raise TransferNotFoundError(transfer_id)
    return transfer


async def find_paired_transfer_transaction(
    db: AsyncSession,
    scope: HouseholdScope,
    txn: Transaction,
) -> Transaction | None:
    """
    Find the other leg of a transfer leg, or None for an orphaned leg.

    The mutual paired_transaction_id is authoritative; legacy rows that only
    carry a transfer_group_id are matched on the group instead.
    """
    if txn.paired_transaction_id is not None:
        query = select(Transaction).where(Transaction.id == txn.paired_transaction_id)
    elif txn.transfer_group_id is not None:
        query = select(Transaction).where(
            Transaction.transfer_group_id == txn.transfer_group_id,
            Transaction.id != txn.id,
        )
    else:
        return None

    result = await db.execute(
        query.where(
            Transaction.user_id == scope.user_id,
            Transaction.household_id == scope.household_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def _get_transfer_legs(
    db: AsyncSession,
    scope: HouseholdScope,
    transfer: Transfer,
) -> list[Transaction]:
    """Legs referenced by a ledger row, by leg id or by group id."""
    leg_ids = [
        leg_id
        for leg_id in (transfer.from_transaction_id, transfer.to_transaction_id)
        if leg_id is not None
    ]
    result = await db.execute(
        select(Transaction)
        .where(
            or_(Transaction.id.in_(leg_ids), Transaction.transfer_group_id == transfer.id),
            Transaction.user_id == scope.user_id,
            Transaction.household_id == scope.household_id,
        )
        .order_by(Transaction.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

async def create_canonical_transfer_pair(
    db: AsyncSession,
    scope: HouseholdScope,
    payload: NewTransfer,
) -> TransferPairIds:
    """
    Move money between two accounts of the same household.

    Creates a transfer_out leg on the source (-amount), a transfer_in leg on
    the destination (+amount), and the ledger row, as one unit. Both legs
    point at each other and share the returned transfer_group_id, which is
    also the ledger row's id.

    Raises:
        TransferValidationError: Same account, non-positive amount, negative
            fees, blank description. Nothing is written.
        AccountNotFoundError: Either account is outside the scope.
        MoneyMovementSystemError: Storage failure; nothing was persisted.
    """
    transfer_group_id = payload.transfer_group_id or uuid.uuid4()
    from_transaction_id = payload.from_transaction_id or uuid.uuid4()
    to_transaction_id = payload.to_transaction_id or uuid.uuid4()

    async with _transfer_unit(db, scope, "create transfer"):
        _validate_new_transfer(payload)

        await money_movement_service.lock_scoped_accounts(
            db,
            [payload.from_account_id, payload.to_account_id],
            scope.user_id,
            scope.household_id,
        )

        shared = dict(
            user_id=scope.user_id,
            household_id=scope.household_id,
            amount_cents=payload.amount_cents,
            date=payload.date,
            description=payload.description,
            notes=payload.notes,
            is_pending=payload.is_pending,
            is_balance_transfer=payload.is_balance_transfer,
            transfer_group_id=transfer_group_id,
            transfer_source_account_id=payload.from_account_id,
            transfer_destination_account_id=payload.to_account_id,
        )
        await money_movement_service.insert_transaction_movement(
            db,
            TransactionMovement(
                id=from_transaction_id,
                account_id=payload.from_account_id,
                type=TransactionType.TRANSFER_OUT,
                paired_transaction_id=to_transaction_id,
                **shared,
            ),
        )
        await money_movement_service.insert_transaction_movement(
            db,
            TransactionMovement(
                id=to_transaction_id,
                account_id=payload.to_account_id,
                type=TransactionType.TRANSFER_IN,
                paired_transaction_id=from_transaction_id,
                **shared,
            ),
        )
        await money_movement_service.insert_transfer_movement(
            db,
            TransferMovement(
                id=transfer_group_id,
                user_id=scope.user_id,
                household_id=scope.household_id,
                from_account_id=payload.from_account_id,
                to_account_id=payload.to_account_id,
                amount_cents=payload.amount_cents,
                fees_cents=payload.fees_cents,
                date=payload.date,
                description=payload.description,
                notes=payload.notes,
                status=TransferStatus.PENDING if payload.is_pending else TransferStatus.COMPLETED,
                from_transaction_id=from_transaction_id,
                to_transaction_id=to_transaction_id,
            ),
        )

    logger.info(
        "Created transfer",
        extra={
            "user_id": str(scope.user_id),
            "household_id": str(scope.household_id),
            "transfer_group_id": str(transfer_group_id),
            "amount_cents": payload.amount_cents,
            "action": "create_transfer",
            "component": "TransferService",
        },
    )
    return TransferPairIds(
        transfer_group_id=transfer_group_id,
        from_transaction_id=from_transaction_id,
        to_transaction_id=to_transaction_id,
    )


# ---------------------------------------------------------------------------
# Link / convert
# ---------------------------------------------------------------------------

def _resolve_transfer_roles(
    first: Transaction, second: Transaction
) -> tuple[Transaction, Transaction]:
    """Return (outgoing, incoming): the expense becomes transfer_out, the income transfer_in."""
    if first.type == TransactionType.EXPENSE and second.type == TransactionType.INCOME:
        return first, second
    if first.type == TransactionType.INCOME and second.type == TransactionType.EXPENSE:
        return second, first
    raise TransferConflictError(
        "Transactions must be opposite flow types (one expense and one income)"
    )


def _retype_as_leg(
    txn: Transaction,
    txn_type: TransactionType,
    transfer_group_id: uuid.UUID,
    paired_transaction_id: uuid.UUID,
    source_account_id: uuid.UUID,
    destination_account_id: uuid.UUID,
) -> None:
    # Amount and account stay as they are; only meaning and linkage change
    txn.type = txn_type
    txn.category_id = None
    txn.merchant_id = None
    txn.transfer_group_id = transfer_group_id
    txn.paired_transaction_id = paired_transaction_id
    txn.transfer_source_account_id = source_account_id
    txn.transfer_destination_account_id = destination_account_id


async def link_existing_transactions_as_canonical_transfer(
    db: AsyncSession,
    scope: HouseholdScope,
    first_transaction_id: uuid.UUID,
    second_transaction_id: uuid.UUID,
    transfer_group_id: uuid.UUID | None = None,
) -> TransferPairIds:
    """
    Declare an existing expense and an existing income to be one transfer.

    Typical source: a CSV import where the checking-account debit and the
    credit-card payment credit were imported separately.

    The expense is re-typed to transfer_out and the income to transfer_in,
    categories are cleared, the two are paired, and a ledger row is added.
    No balance is touched (see the module docstring).

    Raises:
        TransactionNotFoundError: Either transaction is outside the scope.
        TransferConflictError: Either is already a transfer leg or paired,
            or the two are not one expense plus one income.
        TransferValidationError: Same transaction twice, same account, or
            amounts that differ by even one cent.
    """
    transfer_group_id = transfer_group_id or uuid.uuid4()

    async with _transfer_unit(db, scope, "link transactions"):
        if first_transaction_id == second_transaction_id:
            raise TransferValidationError("Cannot link a transaction to itself")

        first = await _get_scoped_transaction(db, scope, first_transaction_id, for_update=True)
        second = await _get_scoped_transaction(db, scope, second_transaction_id, for_update=True)

        for txn in (first, second):
            if _is_linked(txn):
                raise TransferConflictError(f"Transaction {txn.id} is already linked as a transfer")

        transfer_out, transfer_in = _resolve_transfer_roles(first, second)

        if transfer_out.account_id == transfer_in.account_id:
            raise TransferValidationError("Linked transactions must be on different accounts")
        if transfer_out.amount_cents != transfer_in.amount_cents:
            raise TransferValidationError(
                f"Amounts do not match: {transfer_out.amount_cents} vs "
                f"{transfer_in.amount_cents} cents"
            )

        # Scope check on both accounts; their balances already reflect these rows
        await money_movement_service.lock_scoped_accounts(
            db,
            [transfer_out.account_id, transfer_in.account_id],
            scope.user_id,
            scope.household_id,
        )

        source_account_id = transfer_out.account_id
        destination_account_id = transfer_in.account_id
        _retype_as_leg(
            transfer_out, TransactionType.TRANSFER_OUT, transfer_group_id,
            transfer_in.id, source_account_id, destination_account_id,
        )
        _retype_as_leg(
            transfer_in, TransactionType.TRANSFER_IN, transfer_group_id,
            transfer_out.id, source_account_id, destination_account_id,
        )
        await db.flush()

        await money_movement_service.insert_transfer_movement(
            db,
            TransferMovement(
                id=transfer_group_id,
                user_id=scope.user_id,
                household_id=scope.household_id,
                from_account_id=source_account_id,
                to_account_id=destination_account_id,
                amount_cents=transfer_out.amount_cents,
                date=transfer_out.date,
                description=(
                    transfer_out.description
                    or transfer_in.description
                    or DEFAULT_TRANSFER_DESCRIPTION
                ),
                notes=transfer_out.notes or transfer_in.notes,
                from_transaction_id=transfer_out.id,
                to_transaction_id=transfer_in.id,
            ),
        )
        transfer_out_id, transfer_in_id = transfer_out.id, transfer_in.id

    logger.info(
        "Linked existing transactions as transfer",
        extra={
            "user_id": str(scope.user_id),
            "household_id": str(scope.household_id),
            "transfer_group_id": str(transfer_group_id),
            "action": "link_transfer",
            "component": "TransferService",
        },
    )
    return TransferPairIds(
        transfer_group_id=transfer_group_id,
        from_transaction_id=transfer_out_id,
        to_transaction_id=transfer_in_id,
    )


async def convert_transaction_to_transfer(
    db: AsyncSession,
    scope: HouseholdScope,
    transaction_id: uuid.UUID,
    target_account_id: uuid.UUID,
) -> TransferPairIds:
    """
    Turn an existing expense or income into one leg of a new transfer.

    An expense becomes the transfer_out and a transfer_in is created on the
    target account; an income becomes the transfer_in and a transfer_out is
    created on the target. The existing row keeps its amount, date and
    account, and its balance effect already matches its new type, so only
    the new counterpart leg posts a balance change.

    Raises:
        TransactionNotFoundError: The transaction is outside the scope.
        AccountNotFoundError: The target account is outside the scope.
        TransferConflictError: The transaction is already a transfer leg.
        TransferValidationError: The target is the transaction's own account.
    """
    transfer_group_id = uuid.uuid4()
    counterpart_id = uuid.uuid4()

    async with _transfer_unit(db, scope, "convert to transfer"):
        txn = await _get_scoped_transaction(db, scope, transaction_id, for_update=True)
        if _is_linked(txn):
            raise TransferConflictError(f"Transaction {txn.id} is already linked as a transfer")
        if target_account_id == txn.account_id:
            raise TransferValidationError("Cannot transfer to the same account")

        await money_movement_service.get_scoped_account(
            db, target_account_id, scope.user_id, scope.household_id, label="Target"
        )
        await money_movement_service.lock_scoped_accounts(
            db, [txn.account_id, target_account_id], scope.user_id, scope.household_id
        )

        if txn.type == TransactionType.EXPENSE:
            existing_type, counterpart_type = TransactionType.TRANSFER_OUT, TransactionType.TRANSFER_IN
            source_account_id, destination_account_id = txn.account_id, target_account_id
            transfer_out_id, transfer_in_id = txn.id, counterpart_id
        else:
            existing_type, counterpart_type = TransactionType.TRANSFER_IN, TransactionType.TRANSFER_OUT
            source_account_id, destination_account_id = target_account_id, txn.account_id
            transfer_out_id, transfer_in_id = counterpart_id, txn.id

        _retype_as_leg(
            txn, existing_type, transfer_group_id, counterpart_id,
            source_account_id, destination_account_id,
        )
        await db.flush()

        await money_movement_service.insert_transaction_movement(
            db,
            TransactionMovement(
                id=counterpart_id,
                user_id=scope.user_id,
                household_id=scope.household_id,
                account_id=target_account_id,
                type=counterpart_type,
                amount_cents=txn.amount_cents,
                date=txn.date,
                description=txn.description,
                notes=txn.notes,
                is_pending=txn.is_pending,
                transfer_group_id=transfer_group_id,
                paired_transaction_id=txn.id,
                transfer_source_account_id=source_account_id,
                transfer_destination_account_id=destination_account_id,
            ),
        )
        await money_movement_service.insert_transfer_movement(
            db,
            TransferMovement(
                id=transfer_group_id,
                user_id=scope.user_id,
                household_id=scope.household_id,
                from_account_id=source_account_id,
                to_account_id=destination_account_id,
                amount_cents=txn.amount_cents,
                date=txn.date,
                description=txn.description or DEFAULT_TRANSFER_DESCRIPTION,
                notes=txn.notes,
                status=TransferStatus.PENDING if txn.is_pending else TransferStatus.COMPLETED,
                from_transaction_id=transfer_out_id,
                to_transaction_id=transfer_in_id,
            ),
        )

    logger.info(
        "Converted transaction to transfer",
        extra={
            "user_id": str(scope.user_id),
            "household_id": str(scope.household_id),
            "transfer_group_id": str(transfer_group_id),
            "transaction_id": str(transaction_id),
            "action": "convert_to_transfer",
            "component": "TransferService",
        },
    )
    return TransferPairIds(
        transfer_group_id=transfer_group_id,
        from_transaction_id=transfer_out_id,
        to_transaction_id=transfer_in_id,
    )


# ---------------------------------------------------------------------------
# Update (description / notes only)
# ---------------------------------------------------------------------------

def _validate_changes(changes: TransferMetadataChanges) -> None:
    if changes.description is None and changes.notes is None:
        raise TransferValidationError("Nothing to update: provide description and/or notes")
    if changes.description is not None and not changes.description.strip():
        raise TransferValidationError("Transfer description cannot be blank")


def _apply_changes(
    legs: list[Transaction],
    transfer: Transfer | None,
    changes: TransferMetadataChanges,
) -> None:
    targets = [*legs, transfer] if transfer is not None else legs
    for target in targets:
        if changes.description is not None:
            target.description = changes.description
        if changes.notes is not None:
            target.notes = changes.notes or None


def _pair_ids(
    transfer_group_id: uuid.UUID,
    legs: list[Transaction],
    transfer: Transfer | None,
) -> TransferPairIds:
    by_type = {leg.type: leg.id for leg in legs}
    return TransferPairIds(
        transfer_group_id=transfer_group_id,
        from_transaction_id=by_type.get(
            TransactionType.TRANSFER_OUT,
            transfer.from_transaction_id if transfer is not None else None,
        ),
        to_transaction_id=by_type.get(
            TransactionType.TRANSFER_IN,
            transfer.to_transaction_id if transfer is not None else None,
        ),
    )


async def update_canonical_transfer_pair_by_transaction_id(
    db: AsyncSession,
    scope: HouseholdScope,
    transaction_id: uuid.UUID,
    changes: TransferMetadataChanges,
) -> TransferPairIds:
    """
    Edit description/notes of a transfer, anchored on either leg.

    Both legs and the ledger row change together. Amount, accounts and date
    are immutable after creation.

    Raises:
        TransferValidationError: No change given, or a blank description.
        TransactionNotFoundError: The anchor is outside the scope.
        TransferConflictError: The anchor is not a transfer leg.
    """
    async with _transfer_unit(db, scope, "update transfer"):
        _validate_changes(changes)

        txn = await _get_scoped_transaction(db, scope, transaction_id, for_update=True)
        if not txn.type.is_transfer:
            raise TransferConflictError(f"Transaction {txn.id} is not a transfer")

        paired = await find_paired_transfer_transaction(db, scope, txn)
        legs = [txn] if paired is None else [txn, paired]
        transfer_group_id = txn.transfer_group_id or (paired.transfer_group_id if paired else None)
        transfer = await _find_scoped_transfer(db, scope, transfer_group_id, for_update=True)

        _apply_changes(legs, transfer, changes)
        await db.flush()
        result = _pair_ids(transfer_group_id or txn.id, legs, transfer)

    logger.info(
        "Updated transfer metadata",
        extra={
            "user_id": str(scope.user_id),
            "household_id": str(scope.household_id),
            "transfer_group_id": str(result.transfer_group_id),
            "action": "update_transfer",
            "component": "TransferService",
        },
    )
    return result


async def update_canonical_transfer_by_id(
    db: AsyncSession,
    scope: HouseholdScope,
    transfer_id: uuid.UUID,
    changes: TransferMetadataChanges,
) -> TransferPairIds:
    """
    Edit description/notes of a transfer, anchored on its ledger row.

    Legs that cannot be located (legacy, unlinked transfers) are skipped and
    only the ledger row changes.

    Raises:
        TransferValidationError: No change given, or a blank description.
        TransferNotFoundError: The ledger row is outside the scope.
    """
    async with _transfer_unit(db, scope, "update transfer"):
        _validate_changes(changes)

        transfer = await _get_scoped_transfer(db, scope, transfer_id, for_update=True)
        legs = await _get_transfer_legs(db, scope, transfer)

        _apply_changes(legs, transfer, changes)
        await db.flush()
        result = _pair_ids(transfer.id, legs, transfer)

    logger.info(
        "Updated transfer metadata",
        extra={
            "user_id": str(scope.user_id),
            "household_id": str(scope.household_id),
            "transfer_group_id": str(transfer_id),
            "legs_updated": len(legs),
            "action": "update_transfer",
            "component": "TransferService",
        },
    )
    return result


# ---------------------------------------------------------------------------
# Delete / reverse
# ---------------------------------------------------------------------------

async def _reverse_and_delete(
    db: AsyncSession,
    scope: HouseholdScope,
    legs: list[Transaction],
    transfer: Transfer | None,
) -> None:
    """Undo each leg's posted balance effect, then delete legs and ledger row."""
    await money_movement_service.lock_scoped_accounts(
        db, [leg.account_id for leg in legs], scope.user_id, scope.household_id
    )
    for leg in legs:
        await money_movement_service.apply_scoped_balance_delta(
            db,
            account_id=leg.account_id,
            user_id=scope.user_id,
            household_id=scope.household_id,
            delta_cents=-money_movement_service.balance_delta_cents(leg.type, leg.amount_cents),
        )
        await db.delete(leg)
    if transfer is not None:
        await db.delete(transfer)
    await db.flush()


async def delete_canonical_transfer_pair_by_transaction_id(
    db: AsyncSession,
    scope: HouseholdScope,
    transaction_id: uuid.UUID,
) -> TransferPairIds:
    """
    Delete a transfer anchored on either leg and restore both balances.

    The source gets its amount back and the destination gives it up, to the
    cent, so create-then-delete leaves every balance where it started.
    A leg whose partner is missing (legacy data) is reversed on its own.

    Raises:
        TransactionNotFoundError: The anchor is outside the scope.
        TransferConflictError: The anchor is not a transfer leg.
    """
    async with _transfer_unit(db, scope, "delete transfer"):
        txn = await _get_scoped_transaction(db, scope, transaction_id, for_update=True)
        if not txn.type.is_transfer:
            raise TransferConflictError(f"Transaction {txn.id} is not a transfer")

        paired = await find_paired_transfer_transaction(db, scope, txn)
        legs = [txn] if paired is None else [txn, paired]
        transfer_group_id = txn.transfer_group_id or (paired.transfer_group_id if paired else None)
        transfer = await _find_scoped_transfer(db, scope, transfer_group_id, for_update=True)

        result = _pair_ids(transfer_group_id or txn.id, legs, transfer)
        await _reverse_and_delete(db, scope, legs, transfer)

    logger.info(
        "Deleted transfer",
        extra={
            "user_id": str(scope.user_id),
            "household_id": str(scope.household_id),
            "transfer_group_id": str(result.transfer_group_id),
            "action": "delete_transfer",
            "component": "TransferService",
        },
    )
    return result


async def delete_canonical_transfer_by_id(
    db: AsyncSession,
    scope: HouseholdScope,
    transfer_id: uuid.UUID,
) -> TransferPairIds:
    """
    Delete a transfer anchored on its ledger row and restore both balances.

    Raises:
        TransferNotFoundError: The ledger row is outside the scope.
    """
    async with _transfer_unit(db, scope, "delete transfer"):
        transfer = await _get_scoped_transfer(db, scope, transfer_id, for_update=True)
        legs = await _get_transfer_legs(db, scope, transfer)

        result = _pair_ids(transfer.id, legs, transfer)
        await _reverse_and_delete(db, scope, legs, transfer)

    logger.info(
        "Deleted transfer",
        extra={
            "user_id": str(scope.user_id),
            "household_id": str(scope.household_id),
            "transfer_group_id": str(transfer_id),
            "action": "delete_transfer",
            "component": "TransferService",
        },
    )
    return result


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_transfer(
    db: AsyncSession,
    scope: HouseholdScope,
    transfer_id: uuid.UUID,
) -> Transfer:
    """Get one ledger row. Raises TransferNotFoundError outside the scope."""
    return await _get_scoped_transfer(db, scope, transfer_id)


async def list_transfers(
    db: AsyncSession,
    scope: HouseholdScope,
    from_date: date | None = None,
    to_date: date | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Transfer]:
    """List the household's transfers, newest date first, with optional date bounds."""
    query = (
        select(Transfer)
        .where(
            Transfer.user_id == scope.user_id,
            Transfer.household_id == scope.household_id,
        )
        .order_by(Transfer.date.desc(), Transfer.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    if from_date is not None:
        query = query.where(Transfer.date >= from_date)
    if to_date is not None:
        query = query.where(Transfer.date <= to_date)

    result = await db.execute(query)
    return list(result.scalars().all())
