"""Trade repository - journal trades stored in PostgreSQL"""
from typing import Iterable, Optional
from models import Trade
from ..connection import get_cursor

# Column order shared by INSERT / UPDATE / SELECT
TRADE_COLUMNS = (
    "id", "account_id", "symbol", "direction", "entry_price", "quantity", "entry_date",
    "exit_price", "exit_date", "stop_loss", "take_profit",
    "max_favorable_price", "max_adverse_price", "max_potential_profit", "max_drawdown",
    "break_even_worked", "commission", "strategy", "notes",
    "pnl", "pnl_percentage", "net_pnl", "efficiency", "r_multiple", "result",
)

_SELECT = f"SELECT {', '.join(TRADE_COLUMNS)} FROM trades"


def _to_row(trade: Trade) -> tuple:
    data = trade.model_dump(mode="json")
    # Timestamps go through as datetimes, not ISO strings
    data["entry_date"] = trade.entry_date
    data["exit_date"] = trade.exit_date
    return tuple(data[column] for column in TRADE_COLUMNS)


class TradeRepository:
    """PostgreSQL-backed trade store"""

    def init_schema(self):
        with get_cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id TEXT PRIMARY KEY,
                    account_id TEXT NOT NULL,
                    symbol TEXT NOT NULL,
                    direction TEXT NOT NULL,
                    entry_price DOUBLE PRECISION NOT NULL,
                    quantity DOUBLE PRECISION NOT NULL,
                    entry_date TIMESTAMP NOT NULL,
                    exit_price DOUBLE PRECISION,
                    exit_date TIMESTAMP,
                    stop_loss DOUBLE PRECISION,
                    take_profit DOUBLE PRECISION,
                    max_favorable_price DOUBLE PRECISION,
                    max_adverse_price DOUBLE PRECISION,
                    max_potential_profit DOUBLE PRECISION,
                    max_drawdown DOUBLE PRECISION,
                    break_even_worked BOOLEAN,
                    commission DOUBLE PRECISION NOT NULL DEFAULT 0,
                    strategy TEXT,
                    notes TEXT,
                    pnl DOUBLE PRECISION,
                    pnl_percentage DOUBLE PRECISION,
                    net_pnl DOUBLE PRECISION,
                    efficiency DOUBLE PRECISION,
                    r_multiple DOUBLE PRECISION,
                    result TEXT
                )
            """)
            cur.execute("CREATE INDEX IF NOT EXISTS idx_trades_account_date ON trades(account_id, entry_date DESC)")

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        with get_cursor(dict_rows=True) as cur:
            cur.execute(f"{_SELECT} WHERE id = %s", (trade_id,))
            row = cur.fetchone()
        return Trade.model_validate(row) if row else None

    def get_trades(self, account_id: Optional[str] = None, include_open: bool = True) -> list[Trade]:
        clauses = []
        params = []
        if account_id is not None:
            clauses.append("account_id = %s")
            params.append(account_id)
        if not include_open:
            clauses.append("exit_price IS NOT NULL")

        query = _SELECT
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY entry_date, id"

        with get_cursor(dict_rows=True) as cur:
            cur.execute(query, params)
            return [Trade.model_validate(row) for row in cur.fetchall()]

    def get_closed_trades(self, account_id: str) -> list[Trade]:
        with get_cursor(dict_rows=True) as cur:
            cur.execute(f"""
                {_SELECT}
                WHERE account_id = %s AND exit_price IS NOT NULL AND exit_date IS NOT NULL
                ORDER BY exit_date, id
            """, (account_id,))
            return [Trade.model_validate(row) for row in cur.fetchall()]

    def add(self, trade: Trade) -> Trade:
        placeholders = ", ".join(["%s"] * len(TRADE_COLUMNS))
        with get_cursor() as cur:
            cur.execute(
                f"INSERT INTO trades ({', '.join(TRADE_COLUMNS)}) VALUES ({placeholders})",
                _to_row(trade)
            )
        return trade

    def save(self, trade: Trade) -> Trade:
        assignments = ", ".join(f"{column} = %s" for column in TRADE_COLUMNS[1:])
        row = _to_row(trade)
        with get_cursor() as cur:
            cur.execute(f"UPDATE trades SET {assignments} WHERE id = %s", row[1:] + (row[0],))
        return trade

    def delete(self, trade_ids: Iterable[str]) -> list[Trade]:
        trade_ids = list(trade_ids)
        if not trade_ids:
            return []
        with get_cursor(dict_rows=True) as cur:
            cur.execute(
                f"DELETE FROM trades WHERE id = ANY(%s) RETURNING {', '.join(TRADE_COLUMNS)}",
                (trade_ids,)
            )
            return [Trade.model_validate(row) for row in cur.fetchall()]
