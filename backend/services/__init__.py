"""Services module"""
from .exceptions import JournalError, InvalidTradeData, TradeNotFound, AccountNotFound
from .metrics_service import MetricsCalculator, metrics_calculator
from .portfolio_service import PortfolioAggregator, portfolio_aggregator
from .analysis_service import PortfolioAnalyzer, portfolio_analyzer
from .scenarios import ScenarioDefinition, default_registry
from .whatif_service import WhatIfEngine, whatif_engine
from .breakeven_service import BreakEvenAnalyzer, breakeven_analyzer
from .balance_service import BalanceReconciler, ReconciliationQueue
from .validation import TradeValidator, trade_validator
from .trade_service import TradeService
from .risk_optimizer import RiskOptimizer, risk_optimizer

__all__ = [
    'JournalError', 'InvalidTradeData', 'TradeNotFound', 'AccountNotFound',
    'MetricsCalculator', 'metrics_calculator',
    'PortfolioAggregator', 'portfolio_aggregator',
    'PortfolioAnalyzer', 'portfolio_analyzer',
    'ScenarioDefinition', 'default_registry',
    'WhatIfEngine', 'whatif_engine',
    'BreakEvenAnalyzer', 'breakeven_analyzer',
    'BalanceReconciler', 'ReconciliationQueue',
    'TradeValidator', 'trade_validator',
    'TradeService',
    'RiskOptimizer', 'risk_optimizer',
]
