"""Validation service - trade input checks run before metrics are computed"""
from models import Trade, BEValidation, utc_naive
from .exceptions import InvalidTradeData


class TradeValidator:
    """Input rules for trade records"""

    def validate_trade(self, trade: Trade) -> list[str]:
        """Return the list of violated rules, empty when the trade is valid"""
        errors = []

        if not trade.symbol.strip():
            errors.append("Symbol is required")

        if trade.entry_price <= 0:
            errors.append("Entry price must be greater than 0")

        if trade.quantity <= 0:
            errors.append("Quantity must be greater than 0")

        if trade.exit_price is not None and trade.exit_price <= 0:
            errors.append("Exit price must be greater than 0")

        if trade.exit_date is not None and utc_naive(trade.exit_date) < utc_naive(trade.entry_date):
            errors.append("Exit date must be after entry date")

        if trade.commission < 0:
            errors.append("Commission cannot be negative")

        if trade.stop_loss is not None:
            if trade.is_long and trade.stop_loss >= trade.entry_price:
                errors.append("Stop loss for LONG position must be below entry price")
            elif not trade.is_long and trade.stop_loss <= trade.entry_price:
                errors.append("Stop loss for SHORT position must be above entry price")

        if trade.take_profit is not None:
            if trade.is_long and trade.take_profit <= trade.entry_price:
                errors.append("Take profit for LONG position must be above entry price")
            elif not trade.is_long and trade.take_profit >= trade.entry_price:
                errors.append("Take profit for SHORT position must be below entry price")

        return errors

    def validate_be_fields(self, trade: Trade) -> BEValidation:
        """Consistency of the break-even analysis fields

        Errors make the record unusable, warnings flag suspicious but possible data.
        """
        errors = []
        warnings = []
        is_long = trade.is_long
        entry = trade.entry_price
        best = trade.max_potential_profit
        worst = trade.max_drawdown

        if best is not None:
            if is_long and best <= entry:
                errors.append("max_potential_profit must be higher than entry_price for LONG trades")
            elif not is_long and best >= entry:
                errors.append("max_potential_profit must be lower than entry_price for SHORT trades")

            if trade.take_profit is not None:
                if (is_long and best < trade.take_profit) or (not is_long and best > trade.take_profit):
                    warnings.append("max_potential_profit is less favorable than take_profit - check data accuracy")

        if worst is not None:
            if is_long and worst >= entry:
                errors.append("max_drawdown must be lower than entry_price for LONG trades")
            elif not is_long and worst <= entry:
                errors.append("max_drawdown must be higher than entry_price for SHORT trades")

            if trade.stop_loss is not None:
                if (is_long and worst < trade.stop_loss) or (not is_long and worst > trade.stop_loss):
                    warnings.append("max_drawdown is worse than stop_loss - trade should have been stopped out")

        if best is not None and worst is not None:
            if is_long and best < worst:
                errors.append("max_potential_profit cannot be less than max_drawdown for LONG trades")
            elif not is_long and best > worst:
                errors.append("max_potential_profit cannot be greater than max_drawdown for SHORT trades")

        return BEValidation(is_valid=not errors, errors=errors, warnings=warnings)

    def ensure_valid(self, trade: Trade) -> Trade:
        """Raise InvalidTradeData listing every violated rule"""
        errors = self.validate_trade(trade) + self.validate_be_fields(trade).errors
        if errors:
            raise InvalidTradeData(errors)
        return trade


# Global instance
trade_validator = TradeValidator()
