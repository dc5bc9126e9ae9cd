"""Portfolio analysis tests"""
import math
from datetime import datetime

import pytest

from services import PortfolioAnalyzer


@pytest.fixture
def analyzer():
    return PortfolioAnalyzer()


@pytest.fixture
def journal(make_trade):
    """Three closed trades over two months plus one open trade

    Net results in exit order: +10, -10, +4.
    """
    return [
        make_trade(exit_price=105, commission=1, stop_loss=None, strategy="breakout",
                   entry_date=datetime(2024, 3, 5, 9, 15), exit_date=datetime(2024, 3, 5, 11, 0)),
        make_trade(exit_price=110, stop_loss=95, strategy="breakout",
                   entry_date=datetime(2024, 1, 1, 9, 30), exit_date=datetime(2024, 2, 1, 12, 0)),
        make_trade(symbol="GBPUSD", exit_price=90, stop_loss=90,
                   entry_date=datetime(2024, 1, 1, 14, 0), exit_date=datetime(2024, 2, 2, 12, 0)),
        make_trade(exit_price=None, exit_date=None, stop_loss=50),
    ]


class TestOverview:
    """Headline risk-adjusted figures"""

    def test_overview(self, analyzer, journal):
        """Test totals, drawdown and ratios over closed trades"""
        overview = analyzer.analyze(journal).overview

        assert overview.total_trades == 3
        assert overview.total_pnl == pytest.approx(4.0)
        assert overview.win_rate == pytest.approx(200 / 3)
        assert overview.profit_factor == pytest.approx(1.5)
        assert overview.max_drawdown == pytest.approx(10.0)
        assert overview.recovery_factor == pytest.approx(0.4)
        assert overview.sharpe_ratio == pytest.approx(1 / math.sqrt(26))

    def test_empty(self, analyzer):
        """Test that no closed trades give an empty analysis"""
        analysis = analyzer.analyze([])

        assert analysis.overview.total_trades == 0
        assert analysis.overview.max_drawdown == 0
        assert analysis.by_symbol == []
        assert analysis.by_time.by_hour == []

    def test_single_trade_has_no_sharpe(self, analyzer, make_trade):
        """Test that zero return dispersion gives a zero Sharpe ratio"""
        assert analyzer.analyze([make_trade()]).overview.sharpe_ratio == 0

    def test_profit_factor_without_losses(self, analyzer, make_trade):
        """Test that profit factor is infinite without losing trades"""
        assert math.isinf(analyzer.analyze([make_trade(), make_trade()]).overview.profit_factor)

    def test_drawdown_follows_exit_order(self, analyzer, make_trade):
        """Test that drawdown is measured in exit order, not input order"""
        trades = [
            make_trade(exit_price=120, exit_date=datetime(2024, 2, 3, 12)),
            make_trade(exit_price=95, exit_date=datetime(2024, 2, 2, 12)),
            make_trade(exit_price=95, exit_date=datetime(2024, 2, 1, 12)),
        ]
        # -5, -5, +20: peak stays 0 until the last trade
        assert analyzer.analyze(trades).overview.max_drawdown == pytest.approx(10.0)


class TestBreakdowns:
    """Per symbol, strategy and time bucket"""

    def test_by_symbol(self, analyzer, journal):
        """Test symbol groups in first-seen exit order"""
        by_symbol = analyzer.analyze(journal).by_symbol

        assert [b.label for b in by_symbol] == ["EURUSD", "GBPUSD"]
        assert by_symbol[0].total_trades == 2
        assert by_symbol[0].total_pnl == pytest.approx(14.0)
        assert by_symbol[0].avg_trade == pytest.approx(7.0)
        assert by_symbol[1].win_rate == 0

    def test_by_strategy(self, analyzer, journal):
        """Test that trades without a strategy are grouped as Unknown"""
        by_strategy = analyzer.analyze(journal).by_strategy
        assert [(b.label, b.total_trades) for b in by_strategy] == [("breakout", 2), ("Unknown", 1)]

    def test_by_time(self, analyzer, journal):
        """Test hour, weekday and month buckets in calendar order"""
        by_time = analyzer.analyze(journal).by_time

        assert [(b.label, b.total_trades) for b in by_time.by_hour] == [("09:00", 2), ("14:00", 1)]
        assert [(b.label, b.total_pnl) for b in by_time.by_weekday] == [("Monday", 0.0), ("Tuesday", 4.0)]
        assert [b.label for b in by_time.by_month] == ["January", "March"]
        assert by_time.by_weekday[0].win_rate == pytest.approx(50.0)


class TestHeatMap:
    """Weekday by hour grid"""

    def test_heat_map(self, analyzer, journal):
        """Test averaged net pnl per weekday and hour cell"""
        heat_map = analyzer.analyze(journal).heat_map

        assert len(heat_map.data) == 7
        assert all(len(row) == 24 for row in heat_map.data)
        assert heat_map.counts[0][9] == 1
        assert heat_map.data[0][9] == pytest.approx(10.0)
        assert heat_map.data[0][14] == pytest.approx(-10.0)
        assert heat_map.data[1][9] == pytest.approx(4.0)
        assert sum(map(sum, heat_map.counts)) == 3


class TestRiskMetrics:
    """Risk from stop distance"""

    def test_risk_metrics(self, analyzer, journal):
        """Test risk spread and return per unit of risk"""
        risk = analyzer.analyze(journal).risk_metrics

        assert risk.avg_risk_per_trade == pytest.approx(7.5)
        assert risk.max_risk == pytest.approx(10.0)
        assert risk.min_risk == pytest.approx(5.0)
        assert risk.risk_std_dev == pytest.approx(2.5)
        assert risk.return_std_dev == pytest.approx(math.sqrt(72 - 16 / 9))
        assert risk.risk_adjusted_return == pytest.approx(4 / 15)

    def test_without_stops(self, analyzer, make_trade):
        """Test that trades without stops report no risk"""
        risk = analyzer.analyze([make_trade()]).risk_metrics

        assert risk.avg_risk_per_trade == 0
        assert risk.max_risk == 0
        assert risk.risk_adjusted_return == 0
