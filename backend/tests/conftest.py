"""Pytest configuration and fixtures"""
from datetime import datetime, timedelta
from itertools import count
from typing import Iterable, Optional

import pytest

from config.trading import TradeDirection
from models import Trade, Account
from services import metrics_calculator


class InMemoryTradeStore:
    """TradeStore kept in a dict, for tests"""

    def __init__(self, trades: Iterable[Trade] = ()):
        self.trades: dict[str, Trade] = {t.id: t for t in trades}

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        return self.trades.get(trade_id)

    def get_trades(self, account_id: Optional[str] = None, include_open: bool = True) -> list[Trade]:
        return [
            t for t in self.trades.values()
            if (account_id is None or t.account_id == account_id)
            and (include_open or t.exit_price is not None)
        ]

    def get_closed_trades(self, account_id: str) -> list[Trade]:
        return [t for t in self.trades.values() if t.account_id == account_id and t.is_closed]

    def add(self, trade: Trade) -> Trade:
        self.trades[trade.id] = trade
        return trade

    def save(self, trade: Trade) -> Trade:
        self.trades[trade.id] = trade
        return trade

    def delete(self, trade_ids: Iterable[str]) -> list[Trade]:
        return [self.trades.pop(i) for i in list(trade_ids) if i in self.trades]


class InMemoryAccountStore:
    """AccountStore kept in a dict, for tests"""

    def __init__(self, accounts: Iterable[Account] = ()):
        self.accounts: dict[str, Account] = {a.id: a for a in accounts}
        self.balance_updates = 0

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.accounts.get(account_id)

    def update_balance(self, account_id: str, balance: float) -> None:
        self.accounts[account_id] = self.accounts[account_id].model_copy(update={"current_balance": balance})
        self.balance_updates += 1


@pytest.fixture
def make_trade():
    """Factory for trades; closed LONG 100 -> 110 x1 by default, metrics computed"""
    ids = count(1)
    base_date = datetime(2024, 1, 1, 10, 0)

    def factory(compute: bool = True, **overrides) -> Trade:
        n = next(ids)
        data = {
            "id": f"t{n}",
            "account_id": "acc-1",
            "symbol": "EURUSD",
            "direction": TradeDirection.LONG,
            "entry_price": 100.0,
            "quantity": 1.0,
            "entry_date": base_date + timedelta(days=n),
            "exit_price": 110.0,
            "exit_date": base_date + timedelta(days=n, hours=2),
        }
        data.update(overrides)
        trade = Trade(**data)
        return metrics_calculator.apply(trade) if compute else trade

    return factory


@pytest.fixture
def account():
    return Account(id="acc-1", name="Main", initial_balance=10000.0, current_balance=10000.0)


@pytest.fixture
def trade_store():
    return InMemoryTradeStore()


@pytest.fixture
def account_store(account):
    return InMemoryAccountStore([
        account,
        Account(id="acc-2", name="Swing", initial_balance=5000.0, current_balance=5000.0),
    ])
