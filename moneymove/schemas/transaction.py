"""Pydantic schemas for Transaction endpoints."""

import datetime as dt
import uuid
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from moneymove.models.transaction import TransactionType


class TransactionCreateRequest(BaseModel):
    """Request body for POST /transactions (regular income/expense entry)."""
    account_id: uuid.UUID
    type: Literal["income", "expense"]
    amount: Decimal = Field(gt=0, description="Amount in currency units, e.g. \"19.99\"")
    date: dt.date
    description: str = Field(min_length=1, max_length=255)
    notes: str | None = None
    category_id: uuid.UUID | None = None
    merchant_id: uuid.UUID | None = None
    is_pending: bool = False


class TransactionResponse(BaseModel):
    """Public representation of a transaction, transfer linkage included."""
    id: uuid.UUID
    account_id: uuid.UUID
    type: TransactionType
    amount_cents: int
    date: dt.date
    description: str
    notes: str | None
    category_id: uuid.UUID | None
    merchant_id: uuid.UUID | None
    is_pending: bool
    is_balance_transfer: bool
    transfer_group_id: uuid.UUID | None
    paired_transaction_id: uuid.UUID | None
    transfer_source_account_id: uuid.UUID | None
    transfer_destination_account_id: uuid.UUID | None
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class ConvertToTransferRequest(BaseModel):
    """Request body for POST /transactions/{id}/convert-to-transfer."""
    target_account_id: uuid.UUID
