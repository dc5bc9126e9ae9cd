"""Trade validation tests"""
from datetime import datetime, timedelta, timezone

import pytest

from config.trading import TradeDirection
from services import TradeValidator, InvalidTradeData


@pytest.fixture
def validator():
    return TradeValidator()


class TestValidateTrade:
    """Core input rules"""

    def test_valid_trade(self, validator, make_trade):
        """Test that a well-formed trade has no errors"""
        assert validator.validate_trade(make_trade(stop_loss=95, take_profit=120)) == []

    def test_non_positive_inputs(self, validator, make_trade):
        """Test that zero or negative prices and quantity are reported"""
        errors = validator.validate_trade(make_trade(compute=False, entry_price=0, quantity=-1, exit_price=0))

        assert "Entry price must be greater than 0" in errors
        assert "Quantity must be greater than 0" in errors
        assert "Exit price must be greater than 0" in errors

    def test_blank_symbol(self, validator, make_trade):
        """Test that a blank symbol is reported"""
        assert "Symbol is required" in validator.validate_trade(make_trade(symbol="  "))

    def test_exit_before_entry(self, validator, make_trade):
        """Test that an exit before the entry is reported"""
        trade = make_trade()
        trade = trade.model_copy(update={"exit_date": trade.entry_date - timedelta(hours=1)})
        assert "Exit date must be after entry date" in validator.validate_trade(trade)

    def test_negative_commission(self, validator, make_trade):
        """Test that a negative commission is reported"""
        assert "Commission cannot be negative" in validator.validate_trade(make_trade(commission=-1))

    def test_long_levels(self, validator, make_trade):
        """Test stop and target sides for a LONG trade"""
        errors = validator.validate_trade(make_trade(stop_loss=101, take_profit=99))
        assert errors == [
            "Stop loss for LONG position must be below entry price",
            "Take profit for LONG position must be above entry price",
        ]

    def test_short_levels(self, validator, make_trade):
        """Test stop and target sides for a SHORT trade"""
        trade = make_trade(direction=TradeDirection.SHORT, exit_price=90, stop_loss=99, take_profit=101)
        assert validator.validate_trade(trade) == [
            "Stop loss for SHORT position must be above entry price",
            "Take profit for SHORT position must be below entry price",
        ]


class TestValidateBEFields:
    """Break-even analysis field consistency"""

    def test_valid(self, validator, make_trade):
        """Test that consistent BE fields pass"""
        result = validator.validate_be_fields(make_trade(max_potential_profit=120, max_drawdown=95))
        assert result.is_valid
        assert result.warnings == []

    def test_wrong_side_for_long(self, validator, make_trade):
        """Test that BE fields on the wrong side of a LONG entry fail"""
        result = validator.validate_be_fields(make_trade(max_potential_profit=90, max_drawdown=105))

        assert not result.is_valid
        assert len(result.errors) == 3

    def test_wrong_side_for_short(self, validator, make_trade):
        """Test that BE fields on the wrong side of a SHORT entry fail"""
        trade = make_trade(direction=TradeDirection.SHORT, exit_price=90,
                           max_potential_profit=110, max_drawdown=95)
        assert not validator.validate_be_fields(trade).is_valid

    def test_warnings(self, validator, make_trade):
        """Test warnings against take profit and stop loss"""
        trade = make_trade(take_profit=130, max_potential_profit=120, stop_loss=95, max_drawdown=90)
        result = validator.validate_be_fields(trade)

        assert result.is_valid
        assert len(result.warnings) == 2


class TestEnsureValid:
    def test_raises_with_all_errors(self, validator, make_trade):
        """Test that ensure_valid reports every violated rule"""
        trade = make_trade(stop_loss=101, max_drawdown=105)
        with pytest.raises(InvalidTradeData) as exc:
            validator.ensure_valid(trade)

        assert len(exc.value.errors) == 2
        assert isinstance(exc.value, ValueError)

    def test_returns_valid_trade(self, validator, make_trade):
        """Test that ensure_valid returns a valid trade unchanged"""
        trade = make_trade()
        assert validator.ensure_valid(trade) is trade


class TestTimestamps:
    """Time zone handling of trade dates"""

    def test_aware_dates_stored_as_naive_utc(self, make_trade):
        """Test that aware dates are converted to naive UTC on the model"""
        trade = make_trade(exit_date=datetime(2024, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2))))
        assert trade.exit_date == datetime(2024, 3, 1, 10, 0)
        assert trade.exit_date.tzinfo is None

    def test_mixed_awareness_compared_in_utc(self, validator, make_trade):
        """Test that an aware exit before a naive entry is reported, not raised"""
        trade = make_trade(entry_date=datetime(2024, 3, 1, 10, 0), exit_date=datetime(2024, 3, 1, 12, 0))
        # model_copy skips field validation, so the aware value reaches the validator as is
        trade = trade.model_copy(update={"exit_date": datetime(2024, 3, 1, 11, 0, tzinfo=timezone(timedelta(hours=3)))})

        assert "Exit date must be after entry date" in validator.validate_trade(trade)

    def test_mixed_awareness_in_order(self, validator, make_trade):
        """Test that an aware exit after a naive entry passes"""
        trade = make_trade(entry_date=datetime(2024, 3, 1, 10, 0), exit_date=datetime(2024, 3, 1, 12, 0))
        trade = trade.model_copy(update={"exit_date": datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)})

        assert validator.validate_trade(trade) == []
