"""Stop loss / take profit suggestion tests"""
import pytest

from config.trading import TradeDirection
from services import RiskOptimizer


@pytest.fixture
def optimizer():
    return RiskOptimizer()


class TestStopLossSuggestions:
    """Suggestions from max drawdown vs. current stop"""

    def test_drawdown_through_stop_tightens(self, optimizer, make_trade):
        """Test the suggestion when drawdown went through the stop"""
        trade = make_trade(stop_loss=95, max_drawdown=94)
        [suggestion] = optimizer.suggest_stop_loss([trade])

        assert suggestion.trade_id == trade.id
        assert suggestion.suggested_stop_loss == pytest.approx(95.2)
        assert suggestion.risk_reduction == pytest.approx(4.0)
        assert suggestion.profit_protection == pytest.approx(8.0)
        assert suggestion.confidence == 70

    def test_survived_close_drawdown_widens(self, optimizer, make_trade):
        """Test that a close call suggests a wider stop"""
        trade = make_trade(stop_loss=95, max_drawdown=95.5)
        [suggestion] = optimizer.suggest_stop_loss([trade])

        assert suggestion.suggested_stop_loss == pytest.approx(94.6)
        assert suggestion.risk_reduction == pytest.approx(-8.0)
        assert suggestion.confidence == 60

    def test_comfortable_stop_is_kept(self, optimizer, make_trade):
        """Test that a comfortable stop is kept"""
        trade = make_trade(stop_loss=90, max_drawdown=98)
        [suggestion] = optimizer.suggest_stop_loss([trade])

        assert suggestion.suggested_stop_loss == 90
        assert suggestion.confidence == 80

    def test_short_direction(self, optimizer, make_trade):
        """Test stop suggestions for a SHORT trade"""
        trade = make_trade(direction=TradeDirection.SHORT, exit_price=90, stop_loss=105, max_drawdown=106)
        [suggestion] = optimizer.suggest_stop_loss([trade])
        assert suggestion.suggested_stop_loss == pytest.approx(104.8)

    def test_skips_incomplete_trades(self, optimizer, make_trade):
        """Test that trades without stop or drawdown are skipped"""
        assert optimizer.suggest_stop_loss([make_trade(stop_loss=95), make_trade(max_drawdown=97)]) == []


class TestTakeProfitSuggestions:
    """Suggestions from max potential profit vs. current target"""

    def test_extends_target(self, optimizer, make_trade):
        """Test that a far larger potential extends the target"""
        trade = make_trade(take_profit=110, max_potential_profit=130)
        [suggestion] = optimizer.suggest_take_profit([trade])

        assert suggestion.suggested_take_profit == pytest.approx(113.0)
        assert suggestion.additional_profit == pytest.approx(3.0)
        assert suggestion.capture_improvement == pytest.approx(10.0)
        assert suggestion.confidence == 65

    def test_pulls_target_in(self, optimizer, make_trade):
        """Test that an unreached target is pulled in"""
        trade = make_trade(take_profit=120, max_potential_profit=110)
        [suggestion] = optimizer.suggest_take_profit([trade])

        assert suggestion.suggested_take_profit == pytest.approx(118.0)
        assert suggestion.confidence == 70

    def test_keeps_reasonable_target(self, optimizer, make_trade):
        """Test that a fitting target is kept"""
        trade = make_trade(take_profit=110, max_potential_profit=111)
        [suggestion] = optimizer.suggest_take_profit([trade])

        assert suggestion.suggested_take_profit == 110
        assert suggestion.confidence == 75

    def test_skips_open_trades(self, optimizer, make_trade):
        """Test that open trades get no target suggestion"""
        trade = make_trade(exit_price=None, exit_date=None, take_profit=110, max_potential_profit=130)
        assert optimizer.suggest_take_profit([trade]) == []
