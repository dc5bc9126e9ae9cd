"""Account repository - trading accounts and their reconciled balance"""
from datetime import datetime
from typing import Optional
from models import Account
from ..connection import get_cursor


class AccountRepository:
    """PostgreSQL-backed account store"""

    def init_schema(self):
        with get_cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    initial_balance DOUBLE PRECISION NOT NULL,
                    current_balance DOUBLE PRECISION NOT NULL,
                    currency TEXT NOT NULL DEFAULT 'USD',
                    updated_at TIMESTAMP
                )
            """)

    def get_account(self, account_id: str) -> Optional[Account]:
        with get_cursor(dict_rows=True) as cur:
            cur.execute("""
                SELECT id, name, initial_balance, current_balance, currency, updated_at
                FROM accounts WHERE id = %s
            """, (account_id,))
            row = cur.fetchone()
        return Account.model_validate(row) if row else None

    def add(self, account: Account) -> Account:
        with get_cursor() as cur:
            cur.execute("""
                INSERT INTO accounts (id, name, initial_balance, current_balance, currency, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s)
            """, (
                account.id, account.name, account.initial_balance,
                account.current_balance, account.currency, account.updated_at or datetime.now()
            ))
        return account

    def update_balance(self, account_id: str, balance: float) -> None:
        with get_cursor() as cur:
            cur.execute(
                "UPDATE accounts SET current_balance = %s, updated_at = %s WHERE id = %s",
                (balance, datetime.now(), account_id)
            )
