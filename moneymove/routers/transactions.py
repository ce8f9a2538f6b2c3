"""
Transactions router — regular entry plus transfer actions anchored on a leg.

Endpoints (require a bearer token, scoped to the token's household):
  POST   /transactions                              — Record income/expense
  GET    /transactions/{id}                         — Get one transaction
  POST   /transactions/{id}/convert-to-transfer     — Make it a transfer leg
  PATCH  /transactions/{id}/transfer                — Edit its transfer
  DELETE /transactions/{id}/transfer                — Delete its transfer
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from moneymove.database import get_db
from moneymove.dependencies import get_current_scope
from moneymove.models.transaction import TransactionType
from moneymove.money import amount_to_cents
from moneymove.routers.transfers import metadata_changes
from moneymove.schemas.transaction import (
    ConvertToTransferRequest,
    TransactionCreateRequest,
    TransactionResponse,
)
from moneymove.schemas.transfer import TransferPairResponse, TransferResponse, TransferUpdateRequest
from moneymove.scope import HouseholdScope
from moneymove.services import transaction_service, transfer_service

router = APIRouter()


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an income or expense",
)
async def create_transaction(
    request: TransactionCreateRequest,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Record a regular income or expense; the account balance moves with it.

    - **amount**: Positive decimal, e.g. "19.99" (stored as 1999 cents)
    """
    return await transaction_service.create_transaction(
        db=db,
        scope=scope,
        account_id=request.account_id,
        txn_type=TransactionType(request.type),
        amount_cents=amount_to_cents(request.amount),
        txn_date=request.date,
        description=request.description,
        notes=request.notes,
        category_id=request.category_id,
        merchant_id=request.merchant_id,
        is_pending=request.is_pending,
    )


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a single transaction",
)
async def get_transaction(
    transaction_id: uuid.UUID,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    return await transaction_service.get_transaction(db, scope, transaction_id)


@router.post(
    "/{transaction_id}/convert-to-transfer",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Convert an income/expense into a transfer",
)
async def convert_to_transfer(
    transaction_id: uuid.UUID,
    request: ConvertToTransferRequest,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Re-type the transaction as a transfer leg and create the counterpart leg
    on **target_account_id**. Only the new leg moves a balance.
    """
    ids = await transfer_service.convert_transaction_to_transfer(
        db, scope, transaction_id, request.target_account_id
    )
    return await transfer_service.get_transfer(db, scope, ids.transfer_group_id)


@router.patch(
    "/{transaction_id}/transfer",
    response_model=TransferPairResponse,
    summary="Edit the transfer this transaction belongs to",
)
async def update_transfer_by_transaction(
    transaction_id: uuid.UUID,
    request: TransferUpdateRequest,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """Description and notes change on both legs and the ledger row."""
    return await transfer_service.update_canonical_transfer_pair_by_transaction_id(
        db, scope, transaction_id, metadata_changes(request)
    )


@router.delete(
    "/{transaction_id}/transfer",
    response_model=TransferPairResponse,
    summary="Delete the transfer this transaction belongs to",
)
async def delete_transfer_by_transaction(
    transaction_id: uuid.UUID,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """Both legs and the ledger row go; both balances are restored."""
    return await transfer_service.delete_canonical_transfer_pair_by_transaction_id(
        db, scope, transaction_id
    )
