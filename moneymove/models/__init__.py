"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. Other modules can import from moneymove.models directly
"""

from moneymove.models.account import Account, AccountType  # noqa: F401
from moneymove.models.transaction import Transaction, TransactionType  # noqa: F401
from moneymove.models.transfer import Transfer, TransferStatus  # noqa: F401
from moneymove.models.usage import TransferPairUsage  # noqa: F401
