"""Domain models - Core business entities"""
from pydantic import BaseModel, Field, field_validator
from datetime import datetime, timezone
from config.trading import TradeDirection, TradeResult


def utc_naive(value: datetime | None) -> datetime | None:
    """Naive UTC form of a timestamp; naive input is taken as UTC already"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class TradeMetrics(BaseModel):
    """Derived per-trade metrics. All None for an open trade."""
    pnl: float | None = None
    pnl_percentage: float | None = None
    net_pnl: float | None = None
    efficiency: float | None = None
    r_multiple: float | None = None
    result: TradeResult | None = None


class Trade(BaseModel):
    id: str
    account_id: str
    symbol: str
    direction: TradeDirection
    entry_price: float
    quantity: float
    entry_date: datetime
    exit_price: float | None = None
    exit_date: datetime | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    max_favorable_price: float | None = None  # MFE
    max_adverse_price: float | None = None    # MAE
    max_potential_profit: float | None = None
    max_drawdown: float | None = None
    break_even_worked: bool | None = None     # None = unknown
    commission: float = Field(default=0.0)
    strategy: str | None = None
    notes: str | None = None

    # Derived, written by MetricsCalculator
    pnl: float | None = None
    pnl_percentage: float | None = None
    net_pnl: float | None = None
    efficiency: float | None = None
    r_multiple: float | None = None
    result: TradeResult | None = None

    @field_validator("entry_date", "exit_date")
    @classmethod
    def normalize_timestamp(cls, v: datetime | None) -> datetime | None:
        # Stored as TIMESTAMP without time zone
        return utc_naive(v)

    @property
    def is_open(self) -> bool:
        return self.exit_price is None

    @property
    def is_closed(self) -> bool:
        """Closed for reporting purposes: both exit price and exit date are known"""
        return self.exit_price is not None and self.exit_date is not None

    @property
    def is_long(self) -> bool:
        return self.direction == TradeDirection.LONG

    @property
    def closed_at(self) -> datetime:
        """Exit date, or entry date for a trade still open, as naive UTC"""
        return utc_naive(self.exit_date or self.entry_date)


class Account(BaseModel):
    id: str
    name: str
    initial_balance: float
    current_balance: float
    currency: str = "USD"
    updated_at: datetime | None = None


# Inputs whose change invalidates the derived metrics
METRIC_INPUT_FIELDS = frozenset({
    "direction", "entry_price", "quantity", "exit_price", "stop_loss",
    "max_favorable_price", "max_adverse_price", "commission",
})
