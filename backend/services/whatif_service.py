"""What-if service - replays the portfolio under counterfactual scenarios"""
from typing import Iterable, Optional, Sequence
from config.logging import logger

from models import (
    Trade, PortfolioStats, WhatIfScenario, Improvement, WhatIfResult,
    WhatIfSummary, WhatIfAnalysis
)
from .metrics_service import MetricsCalculator, metrics_calculator
from .portfolio_service import PortfolioAggregator, portfolio_aggregator
from .scenarios import ScenarioDefinition, default_registry

TOP_IMPROVEMENTS = 3

SCENARIO_TIPS: dict[str, list[str]] = {
    "better_entry": [
        "Focus on improving entry timing through better market analysis and patience.",
        "Consider using limit orders instead of market orders when possible.",
    ],
    "better_exit": [
        "Develop clear exit criteria and stick to your trading plan.",
        "Consider using trailing stops to capture more upside on winning trades.",
    ],
    "proper_position_sizing": [
        "Consistent 2% risk per trade provides better risk-adjusted returns.",
        "Use position sizing calculators to determine optimal trade size.",
    ],
    "winning_setups_only": [
        "Analyze losing trades to identify patterns and avoid similar setups.",
    ],
    "tighter_stops": [
        "Tighter stops can reduce losses but may increase the number of stopped-out trades.",
        "Balance stop loss placement with market volatility and support/resistance levels.",
    ],
    "scaling_out": [
        "Scaling out of positions can help lock in profits while maintaining upside potential.",
        "Consider partial profit-taking strategies for larger position sizes.",
    ],
    "optimal_stop_loss": [
        "Base stop distances on how far your trades actually move against you.",
        "Stops inside normal adverse movement get hit before the trade can work.",
    ],
    "remove_worst_trades": [
        "A handful of large losers drives most of the damage; review them one by one.",
        "A hard maximum loss per trade would cap these outliers.",
    ],
    "best_day_only": [
        "Your results cluster on a few strong days; note what those sessions have in common.",
        "Consider trading smaller or not at all when conditions do not match your best days.",
    ],
    "trailing_stops": [
        "A trailing stop would have kept more of the favorable move on these trades.",
        "Trail behind structure rather than at a fixed distance to avoid early exits.",
    ],
    "risk_reward_filter": [
        "Only take setups where the target is at least twice the stop distance.",
        "Plan stop and target before entry so the ratio is known upfront.",
    ],
    "market_condition_filter": [
        "Trades in unusually volatile conditions distort your results.",
        "Define volatility conditions in which you stand aside.",
    ],
}


def _delta(improved: float, original: float) -> float:
    # inf - inf would be nan; equal values are no change
    if improved == original:
        return 0.0
    return improved - original


class WhatIfEngine:
    """Applies the scenario registry to a trade collection and ranks the outcomes"""

    def __init__(self, registry: Optional[Sequence[ScenarioDefinition]] = None,
                 aggregator: Optional[PortfolioAggregator] = None,
                 calculator: Optional[MetricsCalculator] = None):
        self.registry = tuple(registry) if registry is not None else default_registry()
        self.aggregator = aggregator or portfolio_aggregator
        self.calculator = calculator or metrics_calculator

    @property
    def scenarios(self) -> list[WhatIfScenario]:
        return [definition.descriptor for definition in self.registry]

    def _select(self, scenario_ids: Optional[Iterable[str]]) -> tuple[ScenarioDefinition, ...]:
        if scenario_ids is None:
            return self.registry

        wanted = set(scenario_ids)
        known = {definition.id for definition in self.registry}
        unknown = wanted - known
        if unknown:
            raise ValueError(
                f"Unknown scenario(s): {', '.join(sorted(unknown))}. "
                f"Valid: {', '.join(d.id for d in self.registry)}"
            )
        return tuple(d for d in self.registry if d.id in wanted)

    def _prepare(self, trades: Iterable[Trade]) -> tuple[Trade, ...]:
        """Snapshot the input, computing metrics for exited trades that lack them"""
        return tuple(
            self.calculator.apply(t) if t.exit_price is not None and t.pnl is None else t
            for t in trades
        )

    def run(self, trades: Iterable[Trade], scenario_ids: Optional[Iterable[str]] = None) -> WhatIfAnalysis:
        definitions = self._select(scenario_ids)
        prepared = self._prepare(trades)

        if not prepared:
            return WhatIfAnalysis(
                original_stats=PortfolioStats(),
                scenarios=[],
                top_improvements=[],
                summary=WhatIfSummary(
                    best_scenario=None,
                    total_potential_improvement=0.0,
                    key_insights=["No trades available for analysis."]
                )
            )

        original_stats = self.aggregator.aggregate(prepared)
        results = [self._evaluate(d, prepared, original_stats) for d in definitions]

        # sorted() is stable: ties keep registry order
        ranked = sorted(results, key=lambda r: r.improvement.total_pnl_improvement, reverse=True)
        top = ranked[:TOP_IMPROVEMENTS]
        best = top[0] if top else None
        total_potential = sum(max(0.0, r.improvement.total_pnl_improvement) for r in top)

        logger.info(
            "What-if analysis completed",
            trades=len(prepared),
            scenarios=len(results),
            best=best.scenario.id if best else None
        )

        return WhatIfAnalysis(
            original_stats=original_stats,
            scenarios=ranked,
            top_improvements=top,
            summary=WhatIfSummary(
                best_scenario=best,
                total_potential_improvement=total_potential,
                key_insights=self._key_insights(ranked, top, best)
            )
        )

    def _evaluate(self, definition: ScenarioDefinition, trades: tuple[Trade, ...],
                  original: PortfolioStats) -> WhatIfResult:
        modified, affected = definition.transform(trades)
        improved = self.aggregator.aggregate(modified)

        pnl_delta = improved.net_pnl - original.net_pnl
        pnl_delta_percent = pnl_delta / abs(original.net_pnl) * 100 if original.net_pnl != 0 else 0.0

        improvement = Improvement(
            total_pnl_improvement=pnl_delta,
            total_pnl_improvement_percent=pnl_delta_percent,
            win_rate_improvement=improved.win_rate - original.win_rate,
            profit_factor_improvement=_delta(improved.profit_factor, original.profit_factor),
            avg_r_multiple_improvement=improved.avg_r_multiple - original.avg_r_multiple,
            trades_affected=affected
        )

        logger.debug(
            "Scenario evaluated",
            scenario=definition.id,
            affected=affected,
            pnl_improvement=round(pnl_delta, 2)
        )

        return WhatIfResult(
            scenario=definition.descriptor,
            original_stats=original,
            improved_stats=improved,
            improvement=improvement,
            insights=self._insights(definition.id, original, improved, improvement, len(trades))
        )

    def _insights(self, scenario_id: str, original: PortfolioStats, improved: PortfolioStats,
                  improvement: Improvement, total_trades: int) -> list[str]:
        insights = []

        if improvement.total_pnl_improvement > 0:
            insights.append(
                f"This scenario could improve your total P&L by ${improvement.total_pnl_improvement:.2f} "
                f"({improvement.total_pnl_improvement_percent:.1f}%)."
            )

        if improvement.win_rate_improvement > 5:
            insights.append(
                f"Win rate would increase by {improvement.win_rate_improvement:.1f}%, "
                f"from {original.win_rate:.1f}% to {improved.win_rate:.1f}%."
            )

        if improvement.profit_factor_improvement > 0.2:
            insights.append(
                f"Profit factor would improve from {original.profit_factor:.2f} to {improved.profit_factor:.2f}."
            )

        if scenario_id == "winning_setups_only" and total_trades:
            affected_percent = improvement.trades_affected / total_trades * 100
            insights.append(f"{affected_percent:.1f}% of your trades were losing setups that could be avoided.")

        insights.extend(SCENARIO_TIPS.get(scenario_id, []))
        return insights

    def _key_insights(self, results: list[WhatIfResult], top: list[WhatIfResult],
                      best: Optional[WhatIfResult]) -> list[str]:
        if best is None:
            return []

        key_insights = [
            f"{best.scenario.name} offers the highest improvement potential: "
            f"${best.improvement.total_pnl_improvement:.2f}."
        ]

        high_impact = [r for r in top if r.improvement.total_pnl_improvement_percent > 10]
        if high_impact:
            key_insights.append(f"{len(high_impact)} scenarios could improve your returns by more than 10%.")

        win_rate_movers = [r for r in results if r.improvement.win_rate_improvement > 5]
        if win_rate_movers:
            key_insights.append(
                f"Focus on {win_rate_movers[0].scenario.name.lower()} to significantly improve win rate."
            )

        return key_insights


# Global instance
whatif_engine = WhatIfEngine()
