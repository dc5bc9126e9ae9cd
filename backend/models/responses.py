"""Response models - analysis result schemas"""
from pydantic import BaseModel
from config.trading import ScenarioCategory, BEStrategy


class PortfolioStats(BaseModel):
    """Aggregate statistics over the closed trades of a collection"""
    total_trades: int = 0
    win_trades: int = 0
    loss_trades: int = 0
    breakeven_trades: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    net_pnl: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0  # may be +inf when there are no losses
    max_win: float = 0.0
    max_loss: float = 0.0
    avg_r_multiple: float = 0.0
    avg_efficiency: float = 0.0
    total_commission: float = 0.0
    current_win_streak: int = 0
    current_loss_streak: int = 0
    max_win_streak: int = 0
    max_loss_streak: int = 0


# Portfolio analysis
class PortfolioOverview(BaseModel):
    total_trades: int = 0
    total_pnl: float = 0.0  # net of commission
    win_rate: float = 0.0
    profit_factor: float = 0.0  # gross wins / gross losses, may be +inf
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    recovery_factor: float = 0.0


class PerformanceBreakdown(BaseModel):
    """Performance of the trades sharing one symbol, strategy or time bucket"""
    label: str
    total_trades: int
    total_pnl: float
    win_rate: float
    avg_trade: float


class TimeBreakdown(BaseModel):
    by_hour: list[PerformanceBreakdown] = []
    by_weekday: list[PerformanceBreakdown] = []
    by_month: list[PerformanceBreakdown] = []


class RiskMetrics(BaseModel):
    """Risk taken per trade, from the stop distance"""
    avg_risk_per_trade: float = 0.0
    max_risk: float = 0.0
    min_risk: float = 0.0
    risk_std_dev: float = 0.0
    return_std_dev: float = 0.0
    risk_adjusted_return: float = 0.0


class HeatMap(BaseModel):
    """Average net pnl per entry weekday (rows, Monday first) and hour (columns)"""
    data: list[list[float]]
    counts: list[list[int]]


class PortfolioAnalysis(BaseModel):
    overview: PortfolioOverview
    by_symbol: list[PerformanceBreakdown]
    by_strategy: list[PerformanceBreakdown]
    by_time: TimeBreakdown
    risk_metrics: RiskMetrics
    heat_map: HeatMap


# What-if analysis
class WhatIfScenario(BaseModel):
    id: str
    name: str
    description: str
    category: ScenarioCategory
    color: str


class Improvement(BaseModel):
    total_pnl_improvement: float
    total_pnl_improvement_percent: float
    win_rate_improvement: float
    profit_factor_improvement: float
    avg_r_multiple_improvement: float
    trades_affected: int


class WhatIfResult(BaseModel):
    scenario: WhatIfScenario
    original_stats: PortfolioStats
    improved_stats: PortfolioStats
    improvement: Improvement
    insights: list[str]


class WhatIfSummary(BaseModel):
    best_scenario: WhatIfResult | None
    total_potential_improvement: float
    key_insights: list[str]


class WhatIfAnalysis(BaseModel):
    original_stats: PortfolioStats
    scenarios: list[WhatIfResult]
    top_improvements: list[WhatIfResult]
    summary: WhatIfSummary


# Break-even analysis
class BEResult(BaseModel):
    """Break-even metrics for a single trade"""
    profit_capture_rate: float
    be_efficiency: float
    drawdown_tolerance: float
    optimal_be_distance: float
    risk_reward_with_be: float
    potential_improvement: float | None = None


class BEAnalysisMetrics(BaseModel):
    trades_with_be: int = 0
    be_worked_count: int = 0
    be_success_rate: float = 0.0
    be_failure_rate: float = 0.0
    avg_be_distance: float = 0.0
    optimal_be_level: float = 0.0
    avg_profit_capture_rate: float = 0.0
    missed_profit_from_be: float = 0.0
    protected_profit_from_be: float = 0.0
    avg_drawdown_before_be: float = 0.0
    drawdown_tolerance: float = 0.0
    risk_reduction_from_be: float = 0.0
    performance_with_be: float = 0.0
    performance_without_be: float = 0.0
    be_impact: float = 0.0


class BEAlternative(BaseModel):
    strategy: BEStrategy
    expected_improvement: float
    description: str


class BERecommendation(BaseModel):
    should_use_be: bool
    optimal_be_distance: float  # price distance from entry
    optimal_be_trigger: float   # profit distance before moving the stop
    confidence: float           # 0-100
    reasoning: list[str]
    alternatives: list[BEAlternative]


class BEOptimizationScenario(BaseModel):
    scenario_name: str
    description: str
    be_level: float      # % of target where the stop is placed
    be_trigger: float    # % of target that triggers the move
    use_trailing_be: bool
    expected_success_rate: float
    expected_profit_capture: float
    expected_risk_reduction: float
    recommendation_score: float


class BESettings(BaseModel):
    distance: float
    trigger: float


class BEStatsByStrategy(BaseModel):
    strategy: str
    total_trades: int
    trades_with_be: int
    be_worked_count: int
    be_failed_count: int
    be_success_rate: float
    profit_protected: float
    profit_missed: float
    net_be_impact: float
    current_be_settings: BESettings
    optimal_be_settings: BESettings
    expected_improvement: float


class BEValidation(BaseModel):
    is_valid: bool
    errors: list[str]
    warnings: list[str]


# Stop / target optimization
class StopLossSuggestion(BaseModel):
    trade_id: str
    current_stop_loss: float
    suggested_stop_loss: float
    risk_reduction: float  # % of the current stop distance, negative = wider
    profit_protection: float
    confidence: float
    reason: str


class TakeProfitSuggestion(BaseModel):
    trade_id: str
    current_take_profit: float
    suggested_take_profit: float
    additional_profit: float
    capture_improvement: float
    confidence: float
    reason: str
