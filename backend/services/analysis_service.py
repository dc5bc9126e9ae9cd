"""Analysis service - risk-adjusted returns and performance breakdowns of a portfolio"""
import statistics
from typing import Callable, Iterable, Optional

from config.logging import logger
from models import (
    Trade, PortfolioAnalysis, PortfolioOverview, PerformanceBreakdown, TimeBreakdown, RiskMetrics,
    HeatMap
)
from .portfolio_service import PortfolioAggregator, portfolio_aggregator

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def _net(trade: Trade) -> float:
    return trade.net_pnl or 0.0


def _risk_amount(trade: Trade) -> Optional[float]:
    """Money at risk between entry and stop, None without a stop"""
    if trade.stop_loss is None:
        return None
    return abs(trade.entry_price - trade.stop_loss) * trade.quantity


def _pstdev(values: list[float]) -> float:
    return statistics.pstdev(values) if values else 0.0


class PortfolioAnalyzer:
    """Closed-trade analysis beyond the summary statistics

    Trades are taken in chronological order of their exit, which is the order
    the equity curve and its drawdown follow.
    """

    def __init__(self, aggregator: Optional[PortfolioAggregator] = None):
        self.aggregator = aggregator or portfolio_aggregator

    def analyze(self, trades: Iterable[Trade]) -> PortfolioAnalysis:
        closed = sorted(self.aggregator.closed_trades(trades), key=lambda t: t.closed_at)

        analysis = PortfolioAnalysis(
            overview=self.overview(closed),
            by_symbol=self._group(closed, lambda t: t.symbol),
            by_strategy=self._group(closed, lambda t: t.strategy or "Unknown"),
            by_time=self.by_time(closed),
            risk_metrics=self.risk_metrics(closed),
            heat_map=self.heat_map(closed),
        )
        logger.info(
            "Portfolio analysis completed",
            trades=len(closed),
            symbols=len(analysis.by_symbol),
            max_drawdown=analysis.overview.max_drawdown
        )
        return analysis

    def overview(self, closed: list[Trade]) -> PortfolioOverview:
        if not closed:
            return PortfolioOverview()

        total_pnl = sum(_net(t) for t in closed)
        max_drawdown = self.max_drawdown(closed)

        return PortfolioOverview(
            total_trades=len(closed),
            total_pnl=total_pnl,
            win_rate=sum(1 for t in closed if t.pnl > 0) / len(closed) * 100,
            profit_factor=self.profit_factor(closed),
            sharpe_ratio=self.sharpe_ratio(closed),
            max_drawdown=max_drawdown,
            recovery_factor=total_pnl / max_drawdown if max_drawdown > 0 else 0.0,
        )

    @staticmethod
    def profit_factor(closed: list[Trade]) -> float:
        """Gross profit over gross loss, on raw pnl"""
        gross_profit = sum(t.pnl for t in closed if t.pnl > 0)
        gross_loss = abs(sum(t.pnl for t in closed if t.pnl < 0))
        if gross_loss > 0:
            return gross_profit / gross_loss
        return float("inf") if gross_profit > 0 else 0.0

    @staticmethod
    def sharpe_ratio(closed: list[Trade]) -> float:
        """Mean per-trade return over its population standard deviation (no risk-free rate)"""
        if not closed:
            return 0.0
        returns = [(t.pnl_percentage or 0.0) / 100 for t in closed]
        std = statistics.pstdev(returns)
        return statistics.mean(returns) / std if std > 0 else 0.0

    @staticmethod
    def max_drawdown(closed: list[Trade]) -> float:
        """Deepest fall of cumulative net pnl below its running peak, starting from 0"""
        running = peak = max_dd = 0.0
        for trade in closed:
            running += _net(trade)
            peak = max(peak, running)
            max_dd = max(max_dd, peak - running)
        return max_dd

    def by_time(self, closed: list[Trade]) -> TimeBreakdown:
        """Buckets keyed off the entry time, in calendar order"""
        return TimeBreakdown(
            by_hour=self._group(closed, lambda t: t.entry_date.hour, lambda h: f"{h:02d}:00"),
            by_weekday=self._group(closed, lambda t: t.entry_date.weekday(), lambda d: WEEKDAYS[d]),
            by_month=self._group(closed, lambda t: t.entry_date.month, lambda m: MONTHS[m - 1]),
        )

    def risk_metrics(self, closed: list[Trade]) -> RiskMetrics:
        risks = [r for r in map(_risk_amount, closed) if r is not None and r > 0]
        total_risk = sum(risks)

        return RiskMetrics(
            avg_risk_per_trade=total_risk / len(risks) if risks else 0.0,
            max_risk=max(risks, default=0.0),
            min_risk=min(risks, default=0.0),
            risk_std_dev=_pstdev(risks),
            return_std_dev=_pstdev([_net(t) for t in closed]),
            risk_adjusted_return=sum(_net(t) for t in closed) / total_risk if total_risk > 0 else 0.0,
        )

    def heat_map(self, closed: list[Trade]) -> HeatMap:
        totals = [[0.0] * 24 for _ in WEEKDAYS]
        counts = [[0] * 24 for _ in WEEKDAYS]
        for trade in closed:
            day, hour = trade.entry_date.weekday(), trade.entry_date.hour
            totals[day][hour] += _net(trade)
            counts[day][hour] += 1

        data = [
            [total / n if n else 0.0 for total, n in zip(day_totals, day_counts)]
            for day_totals, day_counts in zip(totals, counts)
        ]
        return HeatMap(data=data, counts=counts)

    def _group(self, closed: list[Trade], key: Callable[[Trade], object],
               label: Optional[Callable[[object], str]] = None) -> list[PerformanceBreakdown]:
        """One breakdown per key; string keys in first-seen order, numeric keys sorted"""
        groups: dict = {}
        for trade in closed:
            groups.setdefault(key(trade), []).append(trade)

        keys = sorted(groups) if label is not None else list(groups)
        breakdown = []
        for k in keys:
            group = groups[k]
            total = sum(_net(t) for t in group)
            breakdown.append(PerformanceBreakdown(
                label=label(k) if label is not None else str(k),
                total_trades=len(group),
                total_pnl=total,
                win_rate=sum(1 for t in group if t.pnl > 0) / len(group) * 100,
                avg_trade=total / len(group),
            ))
        return breakdown


# Global instance
portfolio_analyzer = PortfolioAnalyzer()
