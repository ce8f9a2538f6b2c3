"""
Tests for the low-level money-movement writers.

These tests verify:
  - Each posting type moves its own account's balance in the right direction
  - Exactly one row and exactly one balance change per posting
  - A missing stored balance counts as zero
  - Writes are scoped by (id, user, household), never by id alone
  - The transfer ledger writer inserts a row without touching balances
"""

import uuid
from datetime import date

import pytest
from sqlalchemy import func, select, update

from moneymove.database import atomic
from moneymove.exceptions import AccountNotFoundError
from moneymove.models.account import Account
from moneymove.models.transaction import Transaction, TransactionType
from moneymove.models.transfer import Transfer, TransferStatus
from moneymove.services import money_movement_service
from moneymove.services.money_movement_service import TransactionMovement, TransferMovement


def movement(scope, account_id, txn_type, amount_cents, **overrides):
    fields = dict(
        id=uuid.uuid4(),
        user_id=scope.user_id,
        household_id=scope.household_id,
        account_id=account_id,
        type=txn_type,
        amount_cents=amount_cents,
        date=date(2026, 3, 1),
        description="Posting",
    )
    fields.update(overrides)
    return TransactionMovement(**fields)


class TestBalanceDelta:
    """Tests for the signed effect of each posting type."""

    @pytest.mark.parametrize(
        "txn_type, expected",
        [
            (TransactionType.INCOME, 700),
            (TransactionType.TRANSFER_IN, 700),
            (TransactionType.EXPENSE, -700),
            (TransactionType.TRANSFER_OUT, -700),
        ],
    )
    def test_direction_follows_type(self, txn_type, expected):
        assert money_movement_service.balance_delta_cents(txn_type, 700) == expected


class TestTransactionMovementWriter:
    """Tests for insert_transaction_movement."""

    async def test_income_credits_account(self, db_session, scope, make_account, balance_of):
        account_id = await make_account(opening_balance_cents=1000)

        async with atomic(db_session):
            await money_movement_service.insert_transaction_movement(
                db_session, movement(scope, account_id, TransactionType.INCOME, 250)
            )

        assert await balance_of(account_id) == 1250

    async def test_transfer_out_debits_account(self, db_session, scope, make_account, balance_of):
        account_id = await make_account(opening_balance_cents=1000)

        async with atomic(db_session):
            await money_movement_service.insert_transaction_movement(
                db_session, movement(scope, account_id, TransactionType.TRANSFER_OUT, 1250)
            )

        # No non-negative rule: credit lines and overdrafts go below zero
        assert await balance_of(account_id) == -250

    async def test_exactly_one_row_and_one_balance(self, db_session, scope, make_account, balance_of):
        target_id = await make_account("Target", 500)
        bystander_id = await make_account("Bystander", 500)

        async with atomic(db_session):
            await money_movement_service.insert_transaction_movement(
                db_session, movement(scope, target_id, TransactionType.EXPENSE, 200)
            )

        assert await balance_of(target_id) == 300
        assert await balance_of(bystander_id) == 500
        assert await db_session.scalar(select(func.count()).select_from(Transaction)) == 1

    async def test_null_balance_counts_as_zero(self, db_session, scope, make_account, balance_of):
        account_id = await make_account()
        async with atomic(db_session):
            await db_session.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(current_balance_cents=None)
            )

        async with atomic(db_session):
            await money_movement_service.insert_transaction_movement(
                db_session, movement(scope, account_id, TransactionType.INCOME, 300)
            )

        assert await balance_of(account_id) == 300

    async def test_other_household_account_is_not_found(
        self, db_session, scope, other_scope, make_account, balance_of
    ):
        foreign_id = await make_account("Theirs", 1000, in_scope=other_scope)

        with pytest.raises(AccountNotFoundError):
            async with atomic(db_session):
                await money_movement_service.insert_transaction_movement(
                    db_session, movement(scope, foreign_id, TransactionType.EXPENSE, 100)
                )

        assert await balance_of(foreign_id) == 1000
        assert await db_session.scalar(select(func.count()).select_from(Transaction)) == 0


class TestBalanceMutator:
    """Tests for the scoped balance update."""

    async def test_update_requires_matching_scope(
        self, db_session, scope, other_scope, make_account, balance_of
    ):
        account_id = await make_account(opening_balance_cents=1000)

        with pytest.raises(AccountNotFoundError):
            async with atomic(db_session):
                await money_movement_service.update_scoped_account_balance(
                    db_session,
                    account_id=account_id,
                    user_id=other_scope.user_id,
                    household_id=other_scope.household_id,
                    balance_cents=0,
                )

        assert await balance_of(account_id) == 1000

    async def test_apply_delta_returns_new_balance(self, db_session, scope, make_account, balance_of):
        account_id = await make_account(opening_balance_cents=1000)

        async with atomic(db_session):
            new_balance = await money_movement_service.apply_scoped_balance_delta(
                db_session,
                account_id=account_id,
                user_id=scope.user_id,
                household_id=scope.household_id,
                delta_cents=-999,
            )

        assert new_balance == 1
        assert await balance_of(account_id) == 1


class TestTransferLedgerWriter:
    """Tests for insert_transfer_movement."""

    async def test_inserts_row_without_touching_balances(
        self, db_session, scope, make_account, balance_of
    ):
        from_id = await make_account("From", 1000)
        to_id = await make_account("To", 0)
        transfer_id = uuid.uuid4()

        async with atomic(db_session):
            await money_movement_service.insert_transfer_movement(
                db_session,
                TransferMovement(
                    id=transfer_id,
                    user_id=scope.user_id,
                    household_id=scope.household_id,
                    from_account_id=from_id,
                    to_account_id=to_id,
                    amount_cents=400,
                    fees_cents=25,
                    date=date(2026, 3, 1),
                    description="Ledger only",
                ),
            )

        row = (
            await db_session.execute(
                select(Transfer.amount_cents, Transfer.fees_cents, Transfer.status)
                .where(Transfer.id == transfer_id)
            )
        ).one()
        assert row.amount_cents == 400
        assert row.fees_cents == 25
        assert row.status == TransferStatus.COMPLETED
        assert await balance_of(from_id) == 1000
        assert await balance_of(to_id) == 0
