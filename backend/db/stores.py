"""Storage contracts consumed by the services"""
from typing import Iterable, Optional, Protocol
from models import Trade, Account


class TradeStore(Protocol):
    def get_trade(self, trade_id: str) -> Optional[Trade]: ...

    def get_trades(self, account_id: Optional[str] = None, include_open: bool = True) -> list[Trade]: ...

    def get_closed_trades(self, account_id: str) -> list[Trade]:
        """Trades of the account with both exit price and exit date"""
        ...

    def add(self, trade: Trade) -> Trade: ...

    def save(self, trade: Trade) -> Trade: ...

    def delete(self, trade_ids: Iterable[str]) -> list[Trade]:
        """Delete trades, returning the ones that existed"""
        ...


class AccountStore(Protocol):
    def get_account(self, account_id: str) -> Optional[Account]: ...

    def update_balance(self, account_id: str, balance: float) -> None: ...
