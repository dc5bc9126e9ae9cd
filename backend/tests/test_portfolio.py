"""Portfolio aggregation tests"""
import math
from datetime import datetime, timedelta, timezone

import pytest

from models import PortfolioStats
from services import PortfolioAggregator


@pytest.fixture
def aggregator():
    return PortfolioAggregator()


class TestAggregate:
    """Aggregate statistics over closed trades"""

    def test_empty(self, aggregator):
        """Test that no trades give zeroed statistics"""
        assert aggregator.aggregate([]) == PortfolioStats()

    def test_only_closed_trades_count(self, aggregator, make_trade):
        """Test that open trades are left out"""
        trades = [
            make_trade(),
            make_trade(exit_price=None, exit_date=None),
            make_trade(exit_date=None),  # exit price without exit date
        ]
        assert aggregator.aggregate(trades).total_trades == 1

    def test_mixed_portfolio(self, aggregator, make_trade):
        """Test the statistics of a mixed win and loss portfolio"""
        trades = [
            make_trade(exit_price=120, commission=1, stop_loss=90),   # +20
            make_trade(exit_price=110, commission=1, stop_loss=90),   # +10
            make_trade(exit_price=95, commission=1, stop_loss=90),    # -5
            make_trade(exit_price=100, commission=1),                 # 0
        ]
        stats = aggregator.aggregate(trades)

        assert stats.total_trades == 4
        assert stats.win_trades == 2
        assert stats.loss_trades == 1
        assert stats.breakeven_trades == 1
        assert stats.win_rate == pytest.approx(50.0)
        assert stats.total_pnl == pytest.approx(25.0)
        assert stats.total_commission == pytest.approx(4.0)
        assert stats.net_pnl == pytest.approx(21.0)
        assert stats.avg_win == pytest.approx(15.0)
        assert stats.avg_loss == pytest.approx(5.0)
        assert stats.profit_factor == pytest.approx(3.0)
        assert stats.max_win == pytest.approx(20.0)
        assert stats.max_loss == pytest.approx(-5.0)

    def test_missing_r_multiple_counts_as_zero(self, aggregator, make_trade):
        """Test that a missing R-multiple counts as zero in the mean"""
        trades = [
            make_trade(exit_price=110, stop_loss=90),  # R = 1.0
            make_trade(exit_price=110),                # no stop
        ]
        assert aggregator.aggregate(trades).avg_r_multiple == pytest.approx(0.5)

    def test_profit_factor_without_losses_is_infinite(self, aggregator, make_trade):
        """Test that profit factor is infinite without losses"""
        stats = aggregator.aggregate([make_trade(), make_trade(exit_price=105)])
        assert math.isinf(stats.profit_factor)

    def test_profit_factor_without_wins_or_losses(self, aggregator, make_trade):
        """Test that profit factor is zero for flat trades only"""
        stats = aggregator.aggregate([make_trade(exit_price=100)])
        assert stats.profit_factor == 0.0

    def test_partition_uses_gross_pnl(self, aggregator, make_trade):
        """A small gross win eaten by commission still counts as a win"""
        trade = make_trade(exit_price=101, commission=5)
        stats = aggregator.aggregate([trade])

        assert trade.result.value == "LOSS"
        assert stats.win_trades == 1

    def test_computes_missing_metrics(self, aggregator, make_trade):
        """Test that closed trades lacking metrics are computed"""
        stats = aggregator.aggregate([make_trade(compute=False)])
        assert stats.total_pnl == pytest.approx(10.0)


class TestStreaks:
    """Win / loss streaks in exit order"""

    def _at(self, make_trade, day: int, exit_price: float):
        return make_trade(exit_price=exit_price, exit_date=datetime(2024, 2, day, 12))

    def test_streaks(self, aggregator, make_trade):
        """Test current and maximum win and loss streaks"""
        trades = [
            self._at(make_trade, 5, 90),
            self._at(make_trade, 1, 110),
            self._at(make_trade, 2, 110),
            self._at(make_trade, 3, 110),
            self._at(make_trade, 4, 90),
            self._at(make_trade, 6, 90),
        ]
        stats = aggregator.aggregate(trades)

        assert stats.max_win_streak == 3
        assert stats.max_loss_streak == 3
        assert stats.current_loss_streak == 3
        assert stats.current_win_streak == 0

    def test_breakeven_resets(self, aggregator, make_trade):
        """Test that a breakeven trade resets both streaks"""
        trades = [
            self._at(make_trade, 1, 110),
            self._at(make_trade, 2, 100),
            self._at(make_trade, 3, 110),
        ]
        stats = aggregator.aggregate(trades)

        assert stats.max_win_streak == 1
        assert stats.current_win_streak == 1

    def test_mixed_timezone_awareness(self, aggregator, make_trade):
        """Test that aware and naive exit dates are ordered together in UTC"""
        plus_five = timezone(timedelta(hours=5))
        # model_copy keeps the aware value as given
        loss = make_trade(exit_price=90).model_copy(
            update={"exit_date": datetime(2024, 3, 1, 11, 0, tzinfo=plus_five)}
        )
        win = make_trade(exit_price=110, exit_date=datetime(2024, 3, 1, 10, 0))

        stats = aggregator.aggregate([win, loss])

        assert stats.total_trades == 2
        assert stats.current_win_streak == 1
        assert stats.current_loss_streak == 0
