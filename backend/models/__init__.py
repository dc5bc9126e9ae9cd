"""Models module - Pydantic schemas"""
from .domain import Trade, TradeMetrics, Account, METRIC_INPUT_FIELDS, utc_naive
from .responses import (
    PortfolioStats, PortfolioOverview, PerformanceBreakdown, TimeBreakdown, RiskMetrics,
    PortfolioAnalysis, HeatMap, WhatIfScenario, Improvement, WhatIfResult, WhatIfSummary,
    WhatIfAnalysis, BEResult, BEAnalysisMetrics, BEAlternative, BERecommendation,
    BEOptimizationScenario, BESettings, BEStatsByStrategy, BEValidation,
    StopLossSuggestion, TakeProfitSuggestion
)

__all__ = [
    # Domain models
    'Trade', 'TradeMetrics', 'Account', 'METRIC_INPUT_FIELDS', 'utc_naive',
    # Portfolio / what-if
    'PortfolioStats', 'PortfolioOverview', 'PerformanceBreakdown', 'TimeBreakdown',
    'RiskMetrics', 'PortfolioAnalysis', 'HeatMap', 'WhatIfScenario', 'Improvement', 'WhatIfResult',
    'WhatIfSummary', 'WhatIfAnalysis',
    # Break-even
    'BEResult', 'BEAnalysisMetrics', 'BEAlternative', 'BERecommendation',
    'BEOptimizationScenario', 'BESettings', 'BEStatsByStrategy', 'BEValidation',
    # Stop / target optimization
    'StopLossSuggestion', 'TakeProfitSuggestion',
]
