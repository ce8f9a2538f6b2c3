#!/usr/bin/env python3
"""
Demo seed script — populates a running server with sample household data.

!! NOT FOR PRODUCTION !!
This script mints bearer tokens with the server's SECRET_KEY and writes fake
accounts and transactions. It is intended ONLY for local demos and frontend
development.

Usage:
    # With the API server running on localhost:8000 and the same .env:
    python demo/seed.py

    # Custom server URL, more months of history:
    python demo/seed.py --base-url http://localhost:9000 --months 3

What gets created per household:
    - Checking, savings and a credit card
    - Paychecks and everyday spending on checking and the card
    - Monthly checking -> savings transfers
    - A card payment imported as two separate entries, then linked
    - A checking expense converted into a transfer after the fact
    - One mistaken transfer that is deleted again
The script finishes by checking every stored balance against its recomputed
value.
"""

import argparse
import asyncio
import random
import sys
import uuid
from datetime import date, timedelta
from decimal import Decimal

import httpx

from moneymove.security import create_access_token

BASE_URL = "http://localhost:8000"

# ---------------------------------------------------------------------------
# Demo households
# ---------------------------------------------------------------------------

HOUSEHOLDS = [
    {
        "name": "Chen household",
        "accounts": [
            {"key": "checking", "name": "Everyday Checking", "account_type": "checking", "opening_balance": "850.00"},
            {"key": "savings", "name": "Rainy Day Savings", "account_type": "savings", "opening_balance": "5000.00"},
            {"key": "card", "name": "Visa Rewards", "account_type": "credit", "opening_balance": "-240.15"},
        ],
    },
    {
        "name": "Martinez household",
        "accounts": [
            {"key": "checking", "name": "Joint Checking", "account_type": "checking", "opening_balance": "1200.00"},
            {"key": "savings", "name": "Vacation Fund", "account_type": "savings", "opening_balance": "300.00"},
            {"key": "card", "name": "Mastercard", "account_type": "credit", "opening_balance": "0.00"},
        ],
    },
]

SPENDING_DESCRIPTIONS = [
    "Coffee shop", "Grocery store", "Gas station", "Online subscription",
    "Restaurant", "Utility bill", "Phone bill", "Pharmacy", "Hardware store",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def log(msg: str) -> None:
    print(f"  {msg}")


def random_amount(low: int, high: int) -> str:
    """Random currency amount between low and high cents, as a decimal string."""
    return str(Decimal(random.randint(low, high)).scaleb(-2))


async def post(client: httpx.AsyncClient, path: str, body: dict) -> dict:
    resp = await client.post(f"{BASE_URL}{path}", json=body)
    resp.raise_for_status()
    return resp.json()


async def record(client: httpx.AsyncClient, account_id: str, txn_type: str,
                 amount: str, day: date, description: str) -> dict:
    return await post(client, "/transactions", {
        "account_id": account_id,
        "type": txn_type,
        "amount": amount,
        "date": day.isoformat(),
        "description": description,
    })


async def transfer(client: httpx.AsyncClient, from_id: str, to_id: str,
                   amount: str, day: date, description: str) -> dict:
    return await post(client, "/transfers", {
        "from_account_id": from_id,
        "to_account_id": to_id,
        "amount": amount,
        "date": day.isoformat(),
        "description": description,
    })


# ---------------------------------------------------------------------------
# Seed logic
# ---------------------------------------------------------------------------

async def seed_household(client: httpx.AsyncClient, household: dict, months: int) -> None:
    accounts: dict[str, str] = {}
    for acct in household["accounts"]:
        data = await post(client, "/accounts", {
            "name": acct["name"],
            "account_type": acct["account_type"],
            "opening_balance": acct["opening_balance"],
        })
        accounts[acct["key"]] = data["id"]
        log(f"{acct['name']} opened with {acct['opening_balance']}")

    start = date.today().replace(day=1) - timedelta(days=30 * (months - 1))
    for month in range(months):
        month_start = start + timedelta(days=30 * month)

        for payday in (1, 15):
            await record(client, accounts["checking"], "income", random_amount(1_800_00, 3_200_00),
                         month_start + timedelta(days=payday - 1), "Payroll deposit")
        for _ in range(random.randint(6, 12)):
            account = random.choice([accounts["checking"], accounts["card"]])
            await record(client, account, "expense", random_amount(3_00, 120_00),
                         month_start + timedelta(days=random.randint(0, 27)),
                         random.choice(SPENDING_DESCRIPTIONS))

        await transfer(client, accounts["checking"], accounts["savings"],
                       random_amount(200_00, 600_00), month_start + timedelta(days=16),
                       "Monthly savings transfer")

        # Card payment imported from two statements: link the halves
        payment = random_amount(100_00, 400_00)
        pay_day = month_start + timedelta(days=20)
        out = await record(client, accounts["checking"], "expense", payment, pay_day, "CARD PAYMENT")
        inc = await record(client, accounts["card"], "income", payment, pay_day, "PAYMENT THANK YOU")
        await post(client, "/transfers/link", {
            "first_transaction_id": out["id"],
            "second_transaction_id": inc["id"],
        })
    log(f"{months} month(s) of history, transfers and linked card payments")

    expense = await record(client, accounts["checking"], "expense", "75.00",
                           date.today(), "Move to vacation fund")
    await post(client, f"/transactions/{expense['id']}/convert-to-transfer", {
        "target_account_id": accounts["savings"],
    })
    log("Converted an expense into a checking -> savings transfer")

    mistake = await transfer(client, accounts["savings"], accounts["card"], "999.00",
                             date.today(), "Oops, wrong account")
    resp = await client.delete(f"{BASE_URL}/transfers/{mistake['id']}")
    resp.raise_for_status()
    log("Created and deleted a mistaken transfer")

    for key, account_id in accounts.items():
        resp = await client.get(f"{BASE_URL}/accounts/{account_id}/balance")
        resp.raise_for_status()
        bal = resp.json()
        status = "ok" if bal["match"] else "MISMATCH"
        cents = bal["current_balance_cents"]
        log(f"{key:<9} {Decimal(cents).scaleb(-2):>12}  [{status}]")


async def seed(base_url: str, months: int) -> None:
    global BASE_URL
    BASE_URL = base_url

    print("\n========================================")
    print("  DEMO SEED — NOT FOR PRODUCTION")
    print("========================================\n")

    async with httpx.AsyncClient(timeout=30.0) as probe:
        try:
            health = await probe.get(f"{BASE_URL}/health")
            health.raise_for_status()
        except (httpx.ConnectError, httpx.HTTPStatusError):
            print(f"  ERROR: Cannot connect to {BASE_URL}")
            print("  Start the server first: uvicorn moneymove.main:app --reload\n")
            sys.exit(1)

    for household in HOUSEHOLDS:
        user_id, household_id = uuid.uuid4(), uuid.uuid4()
        token = create_access_token(user_id, household_id)
        print(f"{household['name']} ({household_id})")
        async with httpx.AsyncClient(
            timeout=30.0, headers={"Authorization": f"Bearer {token}"}
        ) as client:
            await seed_household(client, household, months)
        print()

    print("Done.\n")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo household data (NOT FOR PRODUCTION)")
    parser.add_argument("--base-url", default=BASE_URL, help="API server URL")
    parser.add_argument("--months", type=int, default=2, help="Months of history per household")
    args = parser.parse_args()
    asyncio.run(seed(args.base_url, args.months))


if __name__ == "__main__":
    main()
