"""
Transfers router — money moving between a household's accounts.

Endpoints (require a bearer token, scoped to the token's household):
  POST   /transfers          — Create a transfer
  GET    /transfers          — List transfers (date bounds, pagination)
  POST   /transfers/link     — Link an existing expense + income as a transfer
  GET    /transfers/{id}     — Get one transfer
  PATCH  /transfers/{id}     — Edit description/notes
  DELETE /transfers/{id}     — Delete and restore both balances

Every write is delegated to the canonical orchestrator in
services/transfer_service.py; this module only converts money to cents,
resolves the caller's scope and shapes responses.
"""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from moneymove.database import get_db
from moneymove.dependencies import get_current_scope
from moneymove.money import amount_to_cents
from moneymove.schemas.transfer import (
    TransferCreateRequest,
    TransferLinkRequest,
    TransferPairResponse,
    TransferResponse,
    TransferUpdateRequest,
)
from moneymove.scope import HouseholdScope
from moneymove.services import transfer_service, usage_service
from moneymove.services.transfer_service import NewTransfer, TransferMetadataChanges

router = APIRouter()


def metadata_changes(request: TransferUpdateRequest) -> TransferMetadataChanges:
    """Map a PATCH body onto the orchestrator's change set ("notes": null clears)."""
    notes = request.notes
    if notes is None and "notes" in request.model_fields_set:
        notes = ""
    return TransferMetadataChanges(description=request.description, notes=notes)


@router.post(
    "",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer money between accounts",
)
async def create_transfer(
    request: TransferCreateRequest,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Move money from one account to another, atomically.

    - **amount**: Positive decimal, e.g. "25.00"
    - **fees**: Recorded on the transfer for reporting; balances move by
      **amount** only
    - Cannot transfer to the same account
    """
    ids = await transfer_service.create_canonical_transfer_pair(
        db,
        scope,
        NewTransfer(
            from_account_id=request.from_account_id,
            to_account_id=request.to_account_id,
            amount_cents=amount_to_cents(request.amount),
            fees_cents=amount_to_cents(request.fees),
            date=request.date,
            description=request.description,
            notes=request.notes,
            is_pending=request.is_pending,
            is_balance_transfer=request.is_balance_transfer,
        ),
    )
    await usage_service.record_transfer_pair_usage(
        db, scope, request.from_account_id, request.to_account_id
    )
    return await transfer_service.get_transfer(db, scope, ids.transfer_group_id)


@router.get(
    "",
    response_model=list[TransferResponse],
    summary="List transfers",
)
async def list_transfers(
    from_date: date | None = Query(None, description="Earliest transfer date (inclusive)"),
    to_date: date | None = Query(None, description="Latest transfer date (inclusive)"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """Transfers of the caller's household, newest first."""
    return await transfer_service.list_transfers(
        db, scope, from_date=from_date, to_date=to_date, limit=limit, offset=offset
    )


@router.post(
    "/link",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Link an existing expense and income as one transfer",
)
async def link_transactions(
    request: TransferLinkRequest,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    The expense becomes the outgoing leg and the income the incoming leg.
    Amounts must match to the cent. Balances are left untouched.
    """
    ids = await transfer_service.link_existing_transactions_as_canonical_transfer(
        db, scope, request.first_transaction_id, request.second_transaction_id
    )
    return await transfer_service.get_transfer(db, scope, ids.transfer_group_id)


@router.get(
    "/{transfer_id}",
    response_model=TransferResponse,
    summary="Get a single transfer",
)
async def get_transfer(
    transfer_id: uuid.UUID,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    return await transfer_service.get_transfer(db, scope, transfer_id)


@router.patch(
    "/{transfer_id}",
    response_model=TransferPairResponse,
    summary="Edit a transfer's description or notes",
)
async def update_transfer(
    transfer_id: uuid.UUID,
    request: TransferUpdateRequest,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """Amount, accounts and date cannot change; delete and re-create instead."""
    return await transfer_service.update_canonical_transfer_by_id(
        db, scope, transfer_id, metadata_changes(request)
    )


@router.delete(
    "/{transfer_id}",
    response_model=TransferPairResponse,
    summary="Delete a transfer",
)
async def delete_transfer(
    transfer_id: uuid.UUID,
    scope: HouseholdScope = Depends(get_current_scope),
    db: AsyncSession = Depends(get_db),
):
    """Both legs and the ledger row go; both balances are restored exactly."""
    return await transfer_service.delete_canonical_transfer_by_id(db, scope, transfer_id)
