"""The (user, household) pair every read and write is scoped by."""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class HouseholdScope:
    user_id: uuid.UUID
    household_id: uuid.UUID
