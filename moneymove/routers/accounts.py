"""
Accounts router — opening accounts and reading balances.

Endpoints (require a bearer token, scoped to the token's household):
  POST /accounts                          — Open an account
  GET  /accounts/{account_id}             — Account details
  GET  /accounts/{account_id}/balance     — Stored vs recomputed balance
  GET  /accounts/{account_id}/transactions — Postings on the account
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from moneymove.database import get_db
from moneymove.dependencies import get_current_scope
from moneymove.money import amount_to_cents
from moneymove.schemas.account import AccountCreateRequest, AccountResponse, BalanceResponse
from moneymove.schemas.transaction import TransactionResponse
from moneymove.scope import HouseholdScope
from moneymove.services import account_service, transaction_service

router = APIRouter()


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open an account",
)
async def create_account(
    request: AccountCreateRequest,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Open an account in the caller's household.

    - **opening_balance**: Decimal currency amount; stored as integer cents
    """
    return await account_service.create_account(
        db=db,
        scope=scope,
        name=request.name,
        account_type=request.account_type,
        opening_balance_cents=amount_to_cents(request.opening_balance),
        entity_id=request.entity_id,
    )


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get account details",
)
async def get_account(
    account_id: uuid.UUID,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """Accounts of other households are reported as not found."""
    return await account_service.get_account(db, scope, account_id)


@router.get(
    "/{account_id}/balance",
    response_model=BalanceResponse,
    summary="Get account balance with integrity check",
)
async def get_balance(
    account_id: uuid.UUID,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Return the stored balance and one recomputed from opening balance plus
    every posted transaction. `match` should always be true.
    """
    return await account_service.get_balance(db, scope, account_id)


@router.get(
    "/{account_id}/transactions",
    response_model=list[TransactionResponse],
    summary="List transactions for an account",
)
async def list_account_transactions(
    account_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """Postings on one account, newest first."""
    return await transaction_service.list_account_transactions(
        db, scope, account_id, limit=limit, offset=offset
    )
