"""Risk optimizer - stop loss and take profit suggestions from recorded excursions"""
from typing import Iterable
from models import Trade, StopLossSuggestion, TakeProfitSuggestion


class RiskOptimizer:
    """Suggests stop / target levels from each trade's max drawdown and max potential profit"""

    def suggest_stop_loss(self, trades: Iterable[Trade]) -> list[StopLossSuggestion]:
        suggestions = []
        for trade in trades:
            if trade.stop_loss is None or trade.max_drawdown is None:
                continue

            entry = trade.entry_price
            drawdown_distance = abs(entry - trade.max_drawdown)
            stop_distance = abs(entry - trade.stop_loss)
            if stop_distance == 0:
                continue

            if trade.is_long:
                stopped_out = trade.max_drawdown <= trade.stop_loss
            else:
                stopped_out = trade.max_drawdown >= trade.stop_loss

            if stopped_out:
                distance = drawdown_distance * 0.8
                suggested = entry - distance if trade.is_long else entry + distance
                risk_reduction = (stop_distance - distance) / stop_distance * 100
                reason = "Tighter stop loss would reduce risk while maintaining trade viability"
                confidence = 70.0
            else:
                distance = drawdown_distance * 1.2
                if distance > stop_distance:
                    suggested = entry - distance if trade.is_long else entry + distance
                    risk_reduction = -(distance - stop_distance) / stop_distance * 100
                    reason = "Wider stop loss would give trade more room to work"
                    confidence = 60.0
                else:
                    suggested = trade.stop_loss
                    risk_reduction = 0.0
                    reason = "Current stop loss level appears optimal"
                    confidence = 80.0

            suggestions.append(StopLossSuggestion(
                trade_id=trade.id,
                current_stop_loss=trade.stop_loss,
                suggested_stop_loss=suggested,
                risk_reduction=risk_reduction,
                profit_protection=trade.pnl * 0.8 if trade.pnl is not None and trade.pnl > 0 else 0.0,
                confidence=confidence,
                reason=reason
            ))
        return suggestions

    def suggest_take_profit(self, trades: Iterable[Trade]) -> list[TakeProfitSuggestion]:
        suggestions = []
        for trade in trades:
            if trade.take_profit is None or trade.max_potential_profit is None or trade.exit_price is None:
                continue

            entry = trade.entry_price
            target_distance = abs(trade.take_profit - entry)
            potential_distance = abs(trade.max_potential_profit - entry)
            if target_distance == 0 or potential_distance == 0:
                continue

            additional_profit = 0.0
            if potential_distance > target_distance * 1.2:
                distance = target_distance * 1.3
                suggested = entry + distance if trade.is_long else entry - distance
                additional_profit = (distance - target_distance) * trade.quantity
                capture_improvement = (distance - target_distance) / potential_distance * 100
                reason = "More aggressive take profit could capture additional profits"
                confidence = 65.0
            elif potential_distance < target_distance * 0.8:
                distance = target_distance * 0.9
                suggested = entry + distance if trade.is_long else entry - distance
                capture_improvement = 10.0
                reason = "More conservative take profit would improve hit rate"
                confidence = 70.0
            else:
                suggested = trade.take_profit
                capture_improvement = 0.0
                reason = "Current take profit level appears well-positioned"
                confidence = 75.0

            suggestions.append(TakeProfitSuggestion(
                trade_id=trade.id,
                current_take_profit=trade.take_profit,
                suggested_take_profit=suggested,
                additional_profit=additional_profit,
                capture_improvement=capture_improvement,
                confidence=confidence,
                reason=reason
            ))
        return suggestions


# Global instance
risk_optimizer = RiskOptimizer()
