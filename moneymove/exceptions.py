"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors without importing HTTP
concepts. The handler layer translates them into HTTP responses, so route
code never has to string-match an error message to pick a status code.

Exception hierarchy:
    MoneyMovementError (base)
    ├── TransferValidationError   — malformed or rule-breaking input (400)
    ├── AccountNotFoundError      — account missing in the caller's scope (404)
    ├── TransactionNotFoundError  — transaction missing in the caller's scope (404)
    ├── TransferNotFoundError     — ledger row missing in the caller's scope (404)
    ├── TransferConflictError     — already linked / wrong flow types (409)
    └── MoneyMovementSystemError  — storage failed, nothing was persisted (500)
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class MoneyMovementError(Exception):
    """Base exception for all money-movement domain errors."""

    status_code = 400
    error_type = "money_movement_error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class TransferValidationError(MoneyMovementError):
    """
    Raised before any write when input breaks a transfer rule.

    Examples: same source and destination, non-positive amount, negative
    fees, mismatched amounts when linking two transactions.
    """

    status_code = 400
    error_type = "validation_error"


class AccountNotFoundError(MoneyMovementError):
    """Raised when an account does not exist within the (user, household) scope."""

    status_code = 404
    error_type = "account_not_found"

    def __init__(self, account_id: uuid.UUID, label: str = "Account"):
        self.account_id = account_id
        super().__init__(f"{label} account {account_id} not found")


class TransactionNotFoundError(MoneyMovementError):
    """Raised when a transaction does not exist within the (user, household) scope."""

    status_code = 404
    error_type = "transaction_not_found"

    def __init__(self, transaction_id: uuid.UUID):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")


class TransferNotFoundError(MoneyMovementError):
    """Raised when a transfer ledger row does not exist within the scope."""

    status_code = 404
    error_type = "transfer_not_found"

    def __init__(self, transfer_id: uuid.UUID):
        self.transfer_id = transfer_id
        super().__init__(f"Transfer {transfer_id} not found")


class TransferConflictError(MoneyMovementError):
    """
    Raised when the target resource is in a state that forbids the operation.

    Examples: linking a transaction that is already a transfer leg, linking
    two expenses, editing a transaction that is not a transfer.
    """

    status_code = 409
    error_type = "transfer_conflict"


class MoneyMovementSystemError(MoneyMovementError):
    """
    Raised when the storage layer fails inside an atomic unit.

    The unit has already been rolled back when this is raised, so retrying
    the same operation with freshly generated ids is always safe.
    """

    status_code = 500
    error_type = "system_error"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Could not complete {operation}; no changes were saved")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Every domain error maps to its class-level status code and a consistent
    JSON body: {"detail": "...", "error_type": "..."}

    This is called once during app startup in main.py.
    """

    @app.exception_handler(MoneyMovementError)
    async def money_movement_error_handler(
        request: Request, exc: MoneyMovementError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error_type": exc.error_type},
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        # Outside the orchestrator (plain reads, account opening). Log it all,
        # tell the client nothing about the storage layer.
        logger.exception(
            "Unhandled storage error",
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "system_error"},
        )
