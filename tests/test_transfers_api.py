"""
Tests for transfer endpoints.

These tests verify:
  - POST /transfers moves money and returns the ledger row
  - Decimal amounts are converted to exact cents
  - Domain errors map to their status codes and error_type
  - Another household's accounts, transactions and transfers are "not found"
  - Link, convert, edit and delete through both anchors
  - Storage failures surface as 500 with nothing persisted
  - Missing or bad tokens are rejected
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError


async def open_account(client, name, opening_balance="0.00", **kwargs):
    response = await client.post(
        "/accounts",
        json={"name": name, "opening_balance": opening_balance},
        **kwargs,
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def balance(client, account_id):
    response = await client.get(f"/accounts/{account_id}/balance")
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["match"] is True
    return data["current_balance_cents"]


async def post_transfer(client, from_id, to_id, amount="25.00", **fields):
    return await client.post(
        "/transfers",
        json={
            "from_account_id": from_id,
            "to_account_id": to_id,
            "amount": amount,
            "date": "2026-03-15",
            **fields,
        },
    )


async def post_transaction(client, account_id, txn_type, amount, description="Imported"):
    response = await client.post(
        "/transactions",
        json={
            "account_id": account_id,
            "type": txn_type,
            "amount": amount,
            "date": "2026-03-10",
            "description": description,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture
async def accounts(authenticated_client):
    """Checking with $100.00 and savings with $5.00."""
    checking = await open_account(authenticated_client, "Checking", "100.00")
    savings = await open_account(authenticated_client, "Savings", "5.00")
    return checking, savings


class TestCreateTransfer:
    """Tests for POST /transfers."""

    async def test_transfer_moves_money(self, authenticated_client, accounts):
        checking, savings = accounts

        response = await post_transfer(
            authenticated_client, checking, savings, "25.00", description="Savings top-up"
        )

        assert response.status_code == 201, response.text
        data = response.json()
        assert data["amount_cents"] == 2500
        assert data["amount"] == "25.00"
        assert data["fees_cents"] == 0
        assert data["status"] == "completed"
        assert data["description"] == "Savings top-up"
        assert data["from_account_id"] == checking
        assert data["to_account_id"] == savings

        assert await balance(authenticated_client, checking) == 7500
        assert await balance(authenticated_client, savings) == 3000

    async def test_legs_are_readable_and_paired(self, authenticated_client, accounts):
        checking, savings = accounts
        data = (await post_transfer(authenticated_client, checking, savings)).json()

        out_leg = (await authenticated_client.get(f"/transactions/{data['from_transaction_id']}")).json()
        in_leg = (await authenticated_client.get(f"/transactions/{data['to_transaction_id']}")).json()

        assert out_leg["type"] == "transfer_out"
        assert in_leg["type"] == "transfer_in"
        assert out_leg["paired_transaction_id"] == in_leg["id"]
        assert in_leg["paired_transaction_id"] == out_leg["id"]
        assert out_leg["transfer_group_id"] == in_leg["transfer_group_id"] == data["id"]

    async def test_decimal_amount_is_exact(self, authenticated_client, accounts):
        checking, savings = accounts

        response = await post_transfer(authenticated_client, checking, savings, "19.99")

        assert response.json()["amount_cents"] == 1999
        assert await balance(authenticated_client, checking) == 8001

    async def test_fees_do_not_move_balances(self, authenticated_client, accounts):
        checking, savings = accounts

        response = await post_transfer(authenticated_client, checking, savings, "25.00", fees="1.50")

        assert response.json()["fees_cents"] == 150
        assert await balance(authenticated_client, checking) == 7500
        assert await balance(authenticated_client, savings) == 3000

    async def test_same_account_rejected(self, authenticated_client, accounts):
        checking, _ = accounts

        response = await post_transfer(authenticated_client, checking, checking)

        assert response.status_code == 422
        assert await balance(authenticated_client, checking) == 10000

    async def test_zero_amount_rejected(self, authenticated_client, accounts):
        checking, savings = accounts

        response = await post_transfer(authenticated_client, checking, savings, "0.00")

        assert response.status_code == 422

    async def test_other_household_account_is_not_found(
        self, authenticated_client, accounts, other_household_headers
    ):
        checking, _ = accounts
        theirs = await open_account(
            authenticated_client, "Theirs", "50.00", headers=other_household_headers
        )

        response = await post_transfer(authenticated_client, checking, theirs)

        assert response.status_code == 404
        assert response.json()["error_type"] == "account_not_found"
        assert await balance(authenticated_client, checking) == 10000

    async def test_storage_failure_is_500_and_persists_nothing(
        self, authenticated_client, accounts
    ):
        checking, savings = accounts

        with patch(
            "moneymove.services.money_movement_service.insert_transfer_movement",
            new=AsyncMock(side_effect=SQLAlchemyError("ledger insert failed")),
        ):
            response = await post_transfer(authenticated_client, checking, savings)

        assert response.status_code == 500
        assert response.json()["error_type"] == "system_error"
        assert await balance(authenticated_client, checking) == 10000
        assert await balance(authenticated_client, savings) == 500
        listed = await authenticated_client.get(f"/accounts/{checking}/transactions")
        assert listed.json() == []

    async def test_usage_failure_does_not_fail_transfer(self, authenticated_client, accounts):
        checking, savings = accounts

        with patch(
            "moneymove.services.usage_service.select",
            side_effect=SQLAlchemyError("usage table missing"),
        ):
            response = await post_transfer(authenticated_client, checking, savings)

        assert response.status_code == 201
        assert await balance(authenticated_client, checking) == 7500


class TestReadTransfers:
    """Tests for GET /transfers and GET /transfers/{id}."""

    async def test_get_and_list(self, authenticated_client, accounts):
        checking, savings = accounts
        first = (await post_transfer(authenticated_client, checking, savings, "1.00", date="2026-01-01")).json()
        second = (await post_transfer(authenticated_client, checking, savings, "2.00", date="2026-02-01")).json()

        fetched = await authenticated_client.get(f"/transfers/{first['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["amount_cents"] == 100

        listed = await authenticated_client.get("/transfers")
        assert [t["id"] for t in listed.json()] == [second["id"], first["id"]]

        bounded = await authenticated_client.get("/transfers", params={"from_date": "2026-01-15"})
        assert [t["id"] for t in bounded.json()] == [second["id"]]

    async def test_other_household_sees_nothing(
        self, authenticated_client, accounts, other_household_headers
    ):
        checking, savings = accounts
        created = (await post_transfer(authenticated_client, checking, savings)).json()

        fetched = await authenticated_client.get(
            f"/transfers/{created['id']}", headers=other_household_headers
        )
        listed = await authenticated_client.get("/transfers", headers=other_household_headers)

        assert fetched.status_code == 404
        assert fetched.json()["error_type"] == "transfer_not_found"
        assert listed.json() == []


class TestLinkTransfer:
    """Tests for POST /transfers/link."""

    async def test_link_keeps_balances(self, authenticated_client, accounts):
        checking, savings = accounts
        expense_id = await post_transaction(authenticated_client, checking, "expense", "40.00")
        income_id = await post_transaction(authenticated_client, savings, "income", "40.00")
        assert await balance(authenticated_client, checking) == 6000
        assert await balance(authenticated_client, savings) == 4500

        response = await authenticated_client.post(
            "/transfers/link",
            json={"first_transaction_id": income_id, "second_transaction_id": expense_id},
        )

        assert response.status_code == 201, response.text
        data = response.json()
        assert data["from_transaction_id"] == expense_id
        assert data["to_transaction_id"] == income_id
        assert await balance(authenticated_client, checking) == 6000
        assert await balance(authenticated_client, savings) == 4500

    async def test_mismatched_amounts_are_400(self, authenticated_client, accounts):
        checking, savings = accounts
        expense_id = await post_transaction(authenticated_client, checking, "expense", "40.00")
        income_id = await post_transaction(authenticated_client, savings, "income", "40.01")

        response = await authenticated_client.post(
            "/transfers/link",
            json={"first_transaction_id": expense_id, "second_transaction_id": income_id},
        )

        assert response.status_code == 400
        assert response.json()["error_type"] == "validation_error"

    async def test_two_expenses_conflict(self, authenticated_client, accounts):
        checking, savings = accounts
        first = await post_transaction(authenticated_client, checking, "expense", "40.00")
        second = await post_transaction(authenticated_client, savings, "expense", "40.00")

        response = await authenticated_client.post(
            "/transfers/link",
            json={"first_transaction_id": first, "second_transaction_id": second},
        )

        assert response.status_code == 409
        assert response.json()["error_type"] == "transfer_conflict"

    async def test_unknown_transaction_is_404(self, authenticated_client, accounts):
        checking, _ = accounts
        expense_id = await post_transaction(authenticated_client, checking, "expense", "40.00")

        response = await authenticated_client.post(
            "/transfers/link",
            json={"first_transaction_id": expense_id, "second_transaction_id": str(uuid.uuid4())},
        )

        assert response.status_code == 404
        assert response.json()["error_type"] == "transaction_not_found"


class TestConvertToTransfer:
    """Tests for POST /transactions/{id}/convert-to-transfer."""

    async def test_convert_expense(self, authenticated_client, accounts):
        checking, savings = accounts
        expense_id = await post_transaction(authenticated_client, checking, "expense", "15.00")

        response = await authenticated_client.post(
            f"/transactions/{expense_id}/convert-to-transfer",
            json={"target_account_id": savings},
        )

        assert response.status_code == 201, response.text
        assert response.json()["from_transaction_id"] == expense_id
        assert await balance(authenticated_client, checking) == 8500
        assert await balance(authenticated_client, savings) == 2000

    async def test_convert_twice_conflicts(self, authenticated_client, accounts):
        checking, savings = accounts
        expense_id = await post_transaction(authenticated_client, checking, "expense", "15.00")
        await authenticated_client.post(
            f"/transactions/{expense_id}/convert-to-transfer",
            json={"target_account_id": savings},
        )

        response = await authenticated_client.post(
            f"/transactions/{expense_id}/convert-to-transfer",
            json={"target_account_id": savings},
        )

        assert response.status_code == 409


class TestUpdateTransfer:
    """Tests for PATCH /transfers/{id} and PATCH /transactions/{id}/transfer."""

    async def test_patch_by_id(self, authenticated_client, accounts):
        checking, savings = accounts
        created = (await post_transfer(authenticated_client, checking, savings, notes="old")).json()

        response = await authenticated_client.patch(
            f"/transfers/{created['id']}", json={"description": "Rent share"}
        )

        assert response.status_code == 200, response.text
        assert response.json()["transfer_group_id"] == created["id"]
        fetched = (await authenticated_client.get(f"/transfers/{created['id']}")).json()
        assert fetched["description"] == "Rent share"
        assert fetched["notes"] == "old"
        leg = (await authenticated_client.get(f"/transactions/{created['to_transaction_id']}")).json()
        assert leg["description"] == "Rent share"

    async def test_null_notes_clears(self, authenticated_client, accounts):
        checking, savings = accounts
        created = (await post_transfer(authenticated_client, checking, savings, notes="old")).json()

        response = await authenticated_client.patch(
            f"/transactions/{created['from_transaction_id']}/transfer", json={"notes": None}
        )

        assert response.status_code == 200, response.text
        fetched = (await authenticated_client.get(f"/transfers/{created['id']}")).json()
        assert fetched["notes"] is None

    async def test_empty_body_is_400(self, authenticated_client, accounts):
        checking, savings = accounts
        created = (await post_transfer(authenticated_client, checking, savings)).json()

        response = await authenticated_client.patch(f"/transfers/{created['id']}", json={})

        assert response.status_code == 400
        assert response.json()["error_type"] == "validation_error"

    async def test_regular_transaction_conflicts(self, authenticated_client, accounts):
        checking, _ = accounts
        expense_id = await post_transaction(authenticated_client, checking, "expense", "3.00")

        response = await authenticated_client.patch(
            f"/transactions/{expense_id}/transfer", json={"description": "Nope"}
        )

        assert response.status_code == 409


class TestDeleteTransfer:
    """Tests for DELETE /transfers/{id} and DELETE /transactions/{id}/transfer."""

    async def test_delete_by_id_restores_balances(self, authenticated_client, accounts):
        checking, savings = accounts
        created = (await post_transfer(authenticated_client, checking, savings, "25.00")).json()

        response = await authenticated_client.delete(f"/transfers/{created['id']}")

        assert response.status_code == 200, response.text
        assert await balance(authenticated_client, checking) == 10000
        assert await balance(authenticated_client, savings) == 500
        gone = await authenticated_client.get(f"/transfers/{created['id']}")
        assert gone.status_code == 404
        leg = await authenticated_client.get(f"/transactions/{created['from_transaction_id']}")
        assert leg.status_code == 404

    async def test_delete_by_leg(self, authenticated_client, accounts):
        checking, savings = accounts
        created = (await post_transfer(authenticated_client, checking, savings, "25.00")).json()

        response = await authenticated_client.delete(
            f"/transactions/{created['to_transaction_id']}/transfer"
        )

        assert response.status_code == 200
        assert response.json()["from_transaction_id"] == created["from_transaction_id"]
        assert await balance(authenticated_client, checking) == 10000
        assert await balance(authenticated_client, savings) == 500

    async def test_other_household_cannot_delete(
        self, authenticated_client, accounts, other_household_headers
    ):
        checking, savings = accounts
        created = (await post_transfer(authenticated_client, checking, savings)).json()

        response = await authenticated_client.delete(
            f"/transfers/{created['id']}", headers=other_household_headers
        )

        assert response.status_code == 404
        assert await balance(authenticated_client, checking) == 7500


class TestAuthentication:
    """Every money endpoint requires a valid bearer token."""

    async def test_missing_token(self, client):
        response = await client.get("/transfers")
        assert response.status_code == 401

    async def test_tampered_token(self, client):
        response = await client.get(
            "/transfers", headers={"Authorization": "Bearer not-a-real-token"}
        )
        assert response.status_code == 401

    async def test_health_is_public(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
