"""
Pydantic schemas for Account endpoints.

Requests carry decimal currency amounts as typed by users; everything in
responses is integer cents unless the field name says otherwise.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from moneymove.models.account import AccountType


class AccountCreateRequest(BaseModel):
    """Request body for POST /accounts."""
    name: str = Field(min_length=1, max_length=100)
    account_type: AccountType = AccountType.CHECKING
    opening_balance: Decimal = Field(
        default=Decimal("0"),
        description="Opening balance in currency units, e.g. \"100.00\" (may be negative for credit)",
    )
    entity_id: uuid.UUID | None = None


class AccountResponse(BaseModel):
    """Public representation of an account."""
    id: uuid.UUID
    user_id: uuid.UUID
    household_id: uuid.UUID
    entity_id: uuid.UUID | None
    name: str
    account_type: AccountType
    opening_balance_cents: int
    current_balance_cents: int | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class BalanceResponse(BaseModel):
    """
    Balance check response — stored and recomputed values.

    `match` is False only if some write bypassed the money-movement writers.
    """
    account_id: uuid.UUID
    current_balance_cents: int
    computed_balance_cents: int
    match: bool
