"""
Pydantic schemas for Transfer endpoints.

Amounts arrive as decimals ("25.00") and are converted to integer cents
exactly once, in the router, before the orchestrator sees them.
"""

import datetime as dt
import uuid
from decimal import Decimal

from pydantic import BaseModel, Field, computed_field, model_validator

from moneymove.models.transfer import TransferStatus
from moneymove.money import cents_to_amount


class TransferCreateRequest(BaseModel):
    """Request body for POST /transfers."""
    from_account_id: uuid.UUID
    to_account_id: uuid.UUID
    amount: Decimal = Field(gt=0, description="Amount in currency units, e.g. \"25.00\"")
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    date: dt.date
    description: str = Field(default="Transfer", min_length=1, max_length=255)
    notes: str | None = None
    is_pending: bool = False
    is_balance_transfer: bool = False

    @model_validator(mode="after")
    def accounts_must_differ(self):
        """Cannot transfer money to the same account."""
        if self.from_account_id == self.to_account_id:
            raise ValueError("Cannot transfer to the same account")
        return self


class TransferLinkRequest(BaseModel):
    """Request body for POST /transfers/link."""
    first_transaction_id: uuid.UUID
    second_transaction_id: uuid.UUID


class TransferUpdateRequest(BaseModel):
    """
    Request body for PATCH on a transfer.

    Only description and notes are editable. Sending "notes": null clears
    the notes; leaving the key out keeps them.
    """
    description: str | None = Field(default=None, min_length=1, max_length=255)
    notes: str | None = None


class TransferResponse(BaseModel):
    """Public representation of a transfer ledger row."""
    id: uuid.UUID
    from_account_id: uuid.UUID
    to_account_id: uuid.UUID
    amount_cents: int
    fees_cents: int
    date: dt.date
    description: str
    notes: str | None
    status: TransferStatus
    from_transaction_id: uuid.UUID | None
    to_transaction_id: uuid.UUID | None
    created_at: dt.datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def amount(self) -> Decimal:
        """Display amount, e.g. Decimal("25.00")."""
        return cents_to_amount(self.amount_cents)


class TransferPairResponse(BaseModel):
    """Identifiers returned by update/delete operations."""
    transfer_group_id: uuid.UUID
    from_transaction_id: uuid.UUID | None
    to_transaction_id: uuid.UUID | None

    model_config = {"from_attributes": True}
