"""Metrics service - derived P&L, return, R-multiple and efficiency for one trade"""
from config.trading import TradeDirection, TradeResult
from models import Trade, TradeMetrics
from .exceptions import InvalidTradeData


def directional_pnl(direction: TradeDirection, entry_price: float, exit_price: float, quantity: float) -> float:
    """Gross P&L of a position, positive when price moved in the trade's favor"""
    if direction == TradeDirection.LONG:
        return (exit_price - entry_price) * quantity
    return (entry_price - exit_price) * quantity


def pnl_percentage(pnl: float, entry_price: float, quantity: float) -> float:
    """P&L as a percentage of the capital committed at entry"""
    notional = entry_price * quantity
    if notional == 0:
        raise InvalidTradeData(
            f"entry_price ({entry_price}) and quantity ({quantity}) must both be non-zero"
        )
    return pnl / notional * 100


def classify_result(net_pnl: float) -> TradeResult:
    if net_pnl > 0:
        return TradeResult.WIN
    if net_pnl < 0:
        return TradeResult.LOSS
    return TradeResult.BREAKEVEN


class MetricsCalculator:
    """Computes derived metrics from a trade's inputs"""

    def calculate(self, trade: Trade) -> TradeMetrics:
        """Calculate metrics for a trade

        Open trades (no exit price) get an all-None result. A literal 0 exit price
        is a value, not a missing one.
        """
        if trade.exit_price is None:
            return TradeMetrics()

        pnl = directional_pnl(trade.direction, trade.entry_price, trade.exit_price, trade.quantity)
        net_pnl = pnl - (trade.commission or 0.0)

        return TradeMetrics(
            pnl=pnl,
            pnl_percentage=pnl_percentage(pnl, trade.entry_price, trade.quantity),
            net_pnl=net_pnl,
            efficiency=self._efficiency(trade, pnl),
            r_multiple=self._r_multiple(trade, net_pnl),
            result=classify_result(net_pnl),
        )

    def apply(self, trade: Trade) -> Trade:
        """Return a copy of the trade with its derived fields recomputed"""
        metrics = self.calculate(trade)
        return trade.model_copy(update=metrics.model_dump())

    def _r_multiple(self, trade: Trade, net_pnl: float) -> float | None:
        if trade.stop_loss is None:
            return None
        risk = abs(trade.entry_price - trade.stop_loss) * trade.quantity
        if risk <= 0:
            return None
        return net_pnl / risk

    def _efficiency(self, trade: Trade, pnl: float) -> float | None:
        if trade.max_favorable_price is None or trade.max_adverse_price is None:
            return None

        # LONG measures against the favorable extreme, SHORT against the adverse one
        if trade.direction == TradeDirection.LONG:
            max_possible_profit = (trade.max_favorable_price - trade.entry_price) * trade.quantity
        else:
            max_possible_profit = (trade.entry_price - trade.max_adverse_price) * trade.quantity

        if max_possible_profit <= 0:
            return None

        actual_profit = max(0.0, pnl)
        return max(0.0, min(100.0, actual_profit / max_possible_profit * 100))


# Global instance
metrics_calculator = MetricsCalculator()
