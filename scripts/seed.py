"""Seed the system chart of accounts and a first operator with an API key."""
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

from sqlalchemy import select

from backoffice import models
from backoffice.config import get_settings
from backoffice.core.transaction import unit_of_work
from backoffice.db import init_engine
from backoffice.utils.apikey import gen_key

# (name, type, description); seeded accounts are system defaults.
DEFAULT_ACCOUNTS = [
    ("Cash", models.ChartOfAccountType.ASSET, "Cash on hand"),
    ("Bank", models.ChartOfAccountType.ASSET, "Operating bank account"),
    ("Accounts Receivable", models.ChartOfAccountType.ASSET, "Amounts owed by customers"),
    ("Inventory", models.ChartOfAccountType.ASSET, "Stock held for sale"),
    ("Accounts Payable", models.ChartOfAccountType.LIABILITY, "Amounts owed to vendors"),
    ("Owner's Equity", models.ChartOfAccountType.EQUITY, "Opening balances and capital"),
    ("Sales Revenue", models.ChartOfAccountType.REVENUE, "Income from sales"),
    ("Cost of Goods Sold", models.ChartOfAccountType.EXPENSE, "Cost of inventory sold"),
    ("Operating Expenses", models.ChartOfAccountType.EXPENSE, "General running costs"),
    ("Commission Expense", models.ChartOfAccountType.EXPENSE, "Sales agent commissions"),
]


def main() -> None:
    settings = get_settings()
    print(f"Using database: {settings.database_url}")
    init_engine()

    admin_email = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
    admin_name = os.getenv("SEED_ADMIN_NAME", "Administrator")

    with unit_of_work() as session:
        existing = set(session.scalars(select(models.ChartOfAccount.account_name)))
        for name, account_type, description in DEFAULT_ACCOUNTS:
            if name in existing:
                continue
            session.add(
                models.ChartOfAccount(
                    account_name=name,
                    account_type=account_type,
                    description=description,
                    path=name,
                    depth=0,
                    is_default=True,
                )
            )

        admin = session.scalars(select(models.User).where(models.User.email == admin_email)).first()
        if admin is None:
            admin = models.User(name=admin_name, email=admin_email)
            session.add(admin)
            session.flush()

        raw_token, prefix, key_hash = gen_key()
        session.add(
            models.ApiKey(
                name=f"seed-{prefix}",
                prefix=prefix,
                key_hash=key_hash,
                user_id=admin.id,
                is_active=True,
            )
        )

    print("==========================================")
    print("Seed data inserted.")
    print("Use this key in your Authorization header:")
    print(f"    Authorization: Bearer {raw_token}")
    print("==========================================")


if __name__ == "__main__":
    main()
