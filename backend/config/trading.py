"""Trading enums and fixed analysis constants"""
from enum import Enum


class TradeDirection(str, Enum):
    """Side of a trade"""
    LONG = "LONG"
    SHORT = "SHORT"


class TradeResult(str, Enum):
    """Outcome classification, keyed off net P&L"""
    WIN = "WIN"
    LOSS = "LOSS"
    BREAKEVEN = "BREAKEVEN"


class ScenarioCategory(str, Enum):
    """What-if scenario families"""
    ENTRY = "entry"
    EXIT = "exit"
    RISK = "risk"
    SELECTION = "selection"
    MANAGEMENT = "management"


class BEStrategy(str, Enum):
    """Alternative break-even management strategies"""
    NO_BE = "no-be"
    AGGRESSIVE_BE = "aggressive-be"
    CONSERVATIVE_BE = "conservative-be"
    TRAILING_BE = "trailing-be"


# What-if price shifts
PRICE_IMPROVEMENT = 0.05        # 5% better entry / exit
STOP_TIGHTENING = 0.20          # 20% tighter stop distance
TRAILING_LOCK_RATIO = 0.70      # trailing stop keeps 70% of the MFE move
SCALE_OUT_FRACTION = 0.5        # half the position leaves at the midpoint
SCALE_OUT_COMMISSION_FACTOR = 1.5
WORST_TRADES_FRACTION = 0.10
BEST_DAYS_FRACTION = 0.60
MIN_RISK_REWARD = 2.0

# Break-even heuristics
BE_DISTANCE_RATIO = 0.40        # optimal BE at 40% of the target distance
BE_TRIGGER_MULTIPLIER = 1.5
BE_PROTECTED_DISCOUNT = 0.30
BE_MIN_SAMPLE_SIZE = 10
