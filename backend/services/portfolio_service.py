"""Portfolio service - folds a trade collection into summary statistics"""
from typing import Iterable, Optional
from models import Trade, PortfolioStats
from .metrics_service import MetricsCalculator, metrics_calculator


class PortfolioAggregator:
    """Aggregates closed trades into PortfolioStats

    Wins and losses are partitioned on raw pnl, while a trade's own ``result``
    keys off net pnl. Both conventions are kept as they are.
    """

    def __init__(self, calculator: Optional[MetricsCalculator] = None):
        self.calculator = calculator or metrics_calculator

    def closed_trades(self, trades: Iterable[Trade]) -> list[Trade]:
        """Closed trades, with metrics computed for any that lack them"""
        closed = []
        for trade in trades:
            if not trade.is_closed:
                continue
            if trade.pnl is None:
                trade = self.calculator.apply(trade)
            closed.append(trade)
        return closed

    def aggregate(self, trades: Iterable[Trade]) -> PortfolioStats:
        closed = self.closed_trades(trades)
        if not closed:
            return PortfolioStats()

        wins = [t.pnl for t in closed if t.pnl > 0]
        losses = [t.pnl for t in closed if t.pnl < 0]
        breakevens = [t for t in closed if t.pnl == 0]

        total_pnl = sum(t.pnl for t in closed)
        total_commission = sum(t.commission or 0.0 for t in closed)

        avg_win = sum(wins) / len(wins) if wins else 0.0
        avg_loss = abs(sum(losses)) / len(losses) if losses else 0.0

        if avg_loss > 0:
            profit_factor = avg_win / avg_loss
        elif avg_win > 0:
            profit_factor = float("inf")
        else:
            profit_factor = 0.0

        # Missing r_multiple / efficiency count as 0 in the mean
        avg_r_multiple = sum(t.r_multiple or 0.0 for t in closed) / len(closed)
        avg_efficiency = sum(t.efficiency or 0.0 for t in closed) / len(closed)

        streaks = self._calc_streaks(closed)

        return PortfolioStats(
            total_trades=len(closed),
            win_trades=len(wins),
            loss_trades=len(losses),
            breakeven_trades=len(breakevens),
            win_rate=len(wins) / len(closed) * 100,
            total_pnl=total_pnl,
            net_pnl=total_pnl - total_commission,
            avg_win=avg_win,
            avg_loss=avg_loss,
            profit_factor=profit_factor,
            max_win=max(wins) if wins else 0.0,
            max_loss=min(losses) if losses else 0.0,
            avg_r_multiple=avg_r_multiple,
            avg_efficiency=avg_efficiency,
            total_commission=total_commission,
            **streaks
        )

    def _calc_streaks(self, closed: list[Trade]) -> dict:
        """Win/loss streaks in chronological order; a breakeven trade resets both"""
        ordered = sorted(closed, key=lambda t: t.closed_at)

        win_streak = loss_streak = 0
        max_win = max_loss = 0
        for trade in ordered:
            if trade.pnl > 0:
                win_streak += 1
                loss_streak = 0
                max_win = max(max_win, win_streak)
            elif trade.pnl < 0:
                loss_streak += 1
                win_streak = 0
                max_loss = max(max_loss, loss_streak)
            else:
                win_streak = loss_streak = 0

        return {
            "current_win_streak": win_streak,
            "current_loss_streak": loss_streak,
            "max_win_streak": max_win,
            "max_loss_streak": max_loss,
        }


# Global instance
portfolio_aggregator = PortfolioAggregator()
