"""Service errors"""


class JournalError(Exception):
    """Base class for trade journal errors"""


class InvalidTradeData(JournalError, ValueError):
    """Trade record fails input validation"""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class TradeNotFound(JournalError, LookupError):
    def __init__(self, trade_id: str):
        self.trade_id = trade_id
        super().__init__(f"Trade not found: {trade_id}")


class AccountNotFound(JournalError, LookupError):
    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")
