"""Break-even service - evaluates how break-even stop management affected results

The counterfactual "without BE" figures are heuristics, not a simulation.
"""
from typing import Iterable, Optional
from config.logging import logger

from config.trading import (
    BEStrategy, BE_DISTANCE_RATIO, BE_TRIGGER_MULTIPLIER, BE_PROTECTED_DISCOUNT,
    BE_MIN_SAMPLE_SIZE
)
from models import (
    Trade, BEResult, BEAnalysisMetrics, BEAlternative, BERecommendation,
    BEOptimizationScenario, BESettings, BEStatsByStrategy
)
from .metrics_service import MetricsCalculator, metrics_calculator


class BreakEvenAnalyzer:
    """Break-even efficiency, portfolio statistics, recommendations and what-if placements"""

    def __init__(self, calculator: Optional[MetricsCalculator] = None):
        self.calculator = calculator or metrics_calculator

    # ==================== PER TRADE ====================

    def calculate_be_efficiency(self, trade: Trade) -> BEResult:
        """BE metrics for one trade, in price units

        A missing exit price is read as the entry price, a missing stop as zero
        stop distance.
        """
        exit_price = trade.exit_price if trade.exit_price is not None else trade.entry_price
        actual_profit = abs(exit_price - trade.entry_price)

        if trade.max_potential_profit is not None:
            max_possible_profit = abs(trade.max_potential_profit - trade.entry_price)
        else:
            max_possible_profit = actual_profit

        stop_distance = abs(trade.entry_price - trade.stop_loss) if trade.stop_loss is not None else 0.0
        drawdown = abs(trade.max_drawdown - trade.entry_price) if trade.max_drawdown is not None else 0.0

        capture_rate = actual_profit / max_possible_profit * 100 if max_possible_profit > 0 else 0.0

        if trade.break_even_worked is None:
            be_efficiency = 0.0
        elif trade.break_even_worked:
            be_efficiency = min(100.0, capture_rate * 1.2) if capture_rate > 0 else 80.0
        else:
            be_efficiency = max(0.0, 100 - (100 - capture_rate) * 1.5)

        if trade.take_profit is not None:
            optimal_distance = abs(trade.take_profit - trade.entry_price) * BE_DISTANCE_RATIO
        else:
            optimal_distance = actual_profit * BE_DISTANCE_RATIO

        potential_improvement = None
        if trade.break_even_worked is False and max_possible_profit > actual_profit and actual_profit > 0:
            potential_improvement = (max_possible_profit - actual_profit) / actual_profit * 100

        return BEResult(
            profit_capture_rate=capture_rate,
            be_efficiency=be_efficiency,
            drawdown_tolerance=drawdown / stop_distance * 100 if stop_distance > 0 else 0.0,
            optimal_be_distance=optimal_distance,
            risk_reward_with_be=actual_profit / stop_distance if stop_distance > 0 else 0.0,
            potential_improvement=potential_improvement
        )

    # ==================== PORTFOLIO ====================

    def _pnl(self, trade: Trade) -> float:
        if trade.pnl is not None:
            return trade.pnl
        if trade.exit_price is not None:
            return self.calculator.calculate(trade).pnl
        return 0.0

    def calculate_portfolio_be_metrics(self, trades: Iterable[Trade]) -> BEAnalysisMetrics:
        trades = list(trades)
        with_be = [t for t in trades if t.break_even_worked is not None]
        worked = [t for t in with_be if t.break_even_worked]

        success_rate = len(worked) / len(with_be) * 100 if with_be else 0.0
        failure_rate = 100 - success_rate if with_be else 0.0

        capture_rates = []
        drawdowns = []
        protected = 0.0
        missed = 0.0
        for trade in with_be:
            result = self.calculate_be_efficiency(trade)
            if result.profit_capture_rate > 0:
                capture_rates.append(result.profit_capture_rate)
            if result.drawdown_tolerance > 0:
                drawdowns.append(result.drawdown_tolerance)

            if trade.break_even_worked:
                realised = trade.net_pnl if trade.net_pnl is not None else self._pnl(trade)
                protected += max(0.0, realised)
            else:
                actual = trade.pnl or 0.0
                if trade.max_potential_profit is not None:
                    max_possible = abs(trade.max_potential_profit - trade.entry_price)
                else:
                    max_possible = actual
                if max_possible > actual:
                    missed += max_possible - actual

        avg_capture = sum(capture_rates) / len(capture_rates) if capture_rates else 0.0
        avg_drawdown = sum(drawdowns) / len(drawdowns) if drawdowns else 0.0

        be_distances = [
            abs(t.take_profit - t.entry_price) * BE_DISTANCE_RATIO
            for t in with_be if t.take_profit is not None
        ]
        avg_be_distance = sum(be_distances) / len(be_distances) if be_distances else 0.0

        with_be_total = sum(self._pnl(t) for t in trades)
        without_be_total = with_be_total + missed - protected * BE_PROTECTED_DISCOUNT

        return BEAnalysisMetrics(
            trades_with_be=len(with_be),
            be_worked_count=len(worked),
            be_success_rate=success_rate,
            be_failure_rate=failure_rate,
            avg_be_distance=avg_be_distance,
            optimal_be_level=avg_be_distance * 1.1,
            avg_profit_capture_rate=avg_capture,
            missed_profit_from_be=missed,
            protected_profit_from_be=protected,
            avg_drawdown_before_be=avg_drawdown,
            drawdown_tolerance=avg_drawdown,
            risk_reduction_from_be=protected / max(1.0, abs(with_be_total)) * 100,
            performance_with_be=with_be_total,
            performance_without_be=without_be_total,
            be_impact=with_be_total - without_be_total
        )

    def calculate_be_stats_by_strategy(self, trades: Iterable[Trade]) -> list[BEStatsByStrategy]:
        """Portfolio BE metrics per strategy label, in first-seen order"""
        groups: dict[str, list[Trade]] = {}
        for trade in trades:
            groups.setdefault(trade.strategy or "Unknown", []).append(trade)

        stats = []
        for strategy, group in groups.items():
            metrics = self.calculate_portfolio_be_metrics(group)
            impact = metrics.be_impact
            stats.append(BEStatsByStrategy(
                strategy=strategy,
                total_trades=len(group),
                trades_with_be=metrics.trades_with_be,
                be_worked_count=metrics.be_worked_count,
                be_failed_count=metrics.trades_with_be - metrics.be_worked_count,
                be_success_rate=metrics.be_success_rate,
                profit_protected=metrics.protected_profit_from_be,
                profit_missed=metrics.missed_profit_from_be,
                net_be_impact=impact,
                current_be_settings=BESettings(
                    distance=metrics.avg_be_distance,
                    trigger=metrics.avg_be_distance * BE_TRIGGER_MULTIPLIER
                ),
                optimal_be_settings=BESettings(
                    distance=metrics.optimal_be_level,
                    trigger=metrics.optimal_be_level * BE_TRIGGER_MULTIPLIER
                ),
                expected_improvement=impact * 0.2 if impact > 0 else abs(impact) * 0.5
            ))
        return stats

    # ==================== RECOMMENDATION ====================

    def generate_be_recommendation(self, trades: Iterable[Trade]) -> BERecommendation:
        metrics = self.calculate_portfolio_be_metrics(trades)

        should_use_be = True
        confidence = 50.0
        reasoning = []

        if metrics.be_success_rate >= 70:
            reasoning.append(f"High BE success rate ({metrics.be_success_rate:.1f}%)")
            confidence += 20
        elif metrics.be_success_rate < 40:
            reasoning.append(f"Low BE success rate ({metrics.be_success_rate:.1f}%)")
            confidence -= 15
            should_use_be = False

        if metrics.be_impact > 0:
            reasoning.append(f"BE improves overall performance (+{metrics.be_impact:.2f})")
            confidence += 15
        elif metrics.be_impact < -100:
            reasoning.append(f"BE significantly hurts performance ({metrics.be_impact:.2f})")
            confidence -= 20
            should_use_be = False

        if metrics.avg_profit_capture_rate >= 80:
            reasoning.append(f"Excellent profit capture rate ({metrics.avg_profit_capture_rate:.1f}%)")
            confidence += 10
        elif metrics.avg_profit_capture_rate < 50:
            reasoning.append(f"Poor profit capture rate ({metrics.avg_profit_capture_rate:.1f}%)")
            confidence -= 10

        if metrics.trades_with_be < BE_MIN_SAMPLE_SIZE:
            reasoning.append("Limited data - recommendations may change with more trades")
            confidence = min(confidence, 60.0)

        impact = metrics.be_impact
        alternatives = [
            BEAlternative(
                strategy=BEStrategy.NO_BE,
                expected_improvement=abs(impact) if impact < 0 else -impact * 0.3,
                description="Never use break-even stops"),
            BEAlternative(
                strategy=BEStrategy.AGGRESSIVE_BE,
                expected_improvement=impact * 0.2 if metrics.be_success_rate > 60 else -impact * 0.1,
                description="Move to BE quickly (20-30% of target)"),
            BEAlternative(
                strategy=BEStrategy.CONSERVATIVE_BE,
                expected_improvement=impact * 0.15 if metrics.avg_profit_capture_rate < 70 else -impact * 0.05,
                description="Move to BE later (60-70% of target)"),
            BEAlternative(
                strategy=BEStrategy.TRAILING_BE,
                expected_improvement=impact * 0.3,
                description="Use trailing break-even stops"),
        ]
        alternatives.sort(key=lambda a: a.expected_improvement, reverse=True)

        confidence = max(0.0, min(100.0, confidence))
        logger.debug(
            "BE recommendation generated",
            should_use_be=should_use_be,
            confidence=confidence,
            sample=metrics.trades_with_be
        )

        return BERecommendation(
            should_use_be=should_use_be,
            optimal_be_distance=metrics.optimal_be_level,
            optimal_be_trigger=metrics.optimal_be_level * BE_TRIGGER_MULTIPLIER,
            confidence=confidence,
            reasoning=reasoning,
            alternatives=alternatives
        )

    def generate_be_optimization_scenarios(self, trades: Iterable[Trade]) -> list[BEOptimizationScenario]:
        base = self.calculate_portfolio_be_metrics(trades)
        success = base.be_success_rate
        capture = base.avg_profit_capture_rate

        scenarios = [
            BEOptimizationScenario(
                scenario_name="No Break-Even",
                description="Never use break-even stops - let trades run to original targets",
                be_level=0, be_trigger=0, use_trailing_be=False,
                expected_success_rate=0,
                expected_profit_capture=100,
                expected_risk_reduction=0,
                recommendation_score=85 if base.be_impact < 0 else 25),
            BEOptimizationScenario(
                scenario_name="Aggressive BE (25%)",
                description="Move to break-even quickly at 25% of target profit",
                be_level=25, be_trigger=30, use_trailing_be=False,
                expected_success_rate=min(100.0, success * 1.2),
                expected_profit_capture=max(40.0, capture * 0.8),
                expected_risk_reduction=70,
                recommendation_score=75 if success > 60 else 45),
            BEOptimizationScenario(
                scenario_name="Moderate BE (40%)",
                description="Standard break-even at 40% of target profit",
                be_level=40, be_trigger=50, use_trailing_be=False,
                expected_success_rate=success,
                expected_profit_capture=capture,
                expected_risk_reduction=50,
                recommendation_score=70),
            BEOptimizationScenario(
                scenario_name="Conservative BE (60%)",
                description="Late break-even at 60% of target profit",
                be_level=60, be_trigger=70, use_trailing_be=False,
                expected_success_rate=success * 0.8,
                expected_profit_capture=min(95.0, capture * 1.15),
                expected_risk_reduction=30,
                recommendation_score=80 if capture < 60 else 55),
            BEOptimizationScenario(
                scenario_name="Trailing BE",
                description="Use trailing break-even that follows price movement",
                be_level=30, be_trigger=40, use_trailing_be=True,
                expected_success_rate=min(100.0, success * 1.1),
                expected_profit_capture=min(90.0, capture * 1.2),
                expected_risk_reduction=60,
                recommendation_score=85),
        ]
        # Stable: equal scores keep the order above
        return sorted(scenarios, key=lambda s: s.recommendation_score, reverse=True)


# Global instance
breakeven_analyzer = BreakEvenAnalyzer()
