"""What-if scenario registry

Each scenario pairs a descriptor with a pure transform
``trades -> (modified_trades, trades_affected)``. Transforms never mutate the
sequence they receive or any trade in it; modified trades are copies.
"""
import math
import statistics
from dataclasses import dataclass
from datetime import date
from functools import partial
from typing import Callable, Optional, Sequence

from config.settings import settings
from config.trading import (
    ScenarioCategory, PRICE_IMPROVEMENT, STOP_TIGHTENING, TRAILING_LOCK_RATIO,
    SCALE_OUT_FRACTION, SCALE_OUT_COMMISSION_FACTOR, WORST_TRADES_FRACTION,
    BEST_DAYS_FRACTION, MIN_RISK_REWARD
)
from models import Trade, WhatIfScenario
from .metrics_service import directional_pnl, pnl_percentage, classify_result, metrics_calculator

ScenarioTransform = Callable[[Sequence[Trade]], tuple[list[Trade], int]]


@dataclass(frozen=True)
class ScenarioDefinition:
    descriptor: WhatIfScenario
    transform: ScenarioTransform

    @property
    def id(self) -> str:
        return self.descriptor.id


def _reprice(trade: Trade, **changes) -> Trade:
    """Copy a closed trade with new inputs and every derived metric recomputed"""
    return metrics_calculator.apply(trade.model_copy(update=changes))


def _has_exit(trade: Trade) -> bool:
    return trade.exit_price is not None


# Price shifts

def better_entry(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Entry 5% better in the trade's favor: lower for LONG, higher for SHORT"""
    modified = []
    for trade in trades:
        if not _has_exit(trade):
            modified.append(trade)
            continue
        factor = 1 - PRICE_IMPROVEMENT if trade.is_long else 1 + PRICE_IMPROVEMENT
        modified.append(_reprice(trade, entry_price=trade.entry_price * factor))
    return modified, sum(1 for t in trades if _has_exit(t))


def better_exit(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Exit 5% better in the trade's favor: higher for LONG, lower for SHORT"""
    modified = []
    for trade in trades:
        if not _has_exit(trade):
            modified.append(trade)
            continue
        factor = 1 + PRICE_IMPROVEMENT if trade.is_long else 1 - PRICE_IMPROVEMENT
        modified.append(_reprice(trade, exit_price=trade.exit_price * factor))
    return modified, sum(1 for t in trades if _has_exit(t))


# Risk

def proper_position_sizing(trades: Sequence[Trade], account_size: float,
                           risk_percent: float) -> tuple[list[Trade], int]:
    """Resize every stopped trade so its stop risks ``risk_percent`` of the account"""
    target_risk = account_size * risk_percent
    modified = []
    for trade in trades:
        if not _has_exit(trade) or trade.stop_loss is None:
            modified.append(trade)
            continue

        risk_per_unit = abs(trade.entry_price - trade.stop_loss)
        if risk_per_unit <= 0:
            modified.append(trade)
            continue

        new_quantity = math.floor(target_risk / risk_per_unit)
        if new_quantity <= 0:
            modified.append(trade)
            continue

        commission = (trade.commission / trade.quantity) * new_quantity
        modified.append(_reprice(trade, quantity=new_quantity, commission=commission))

    affected = sum(1 for t in trades if _has_exit(t) and t.stop_loss is not None)
    return modified, affected


def _stop_breached(trade: Trade, stop: float) -> bool:
    if trade.max_adverse_price is None:
        return False
    if trade.is_long:
        return trade.max_adverse_price <= stop
    return trade.max_adverse_price >= stop


def _apply_stop(trade: Trade, stop: float) -> Trade:
    """Move the stop; stop the trade out there if its MAE reached the new level"""
    if _stop_breached(trade, stop):
        return _reprice(trade, stop_loss=stop, exit_price=stop)
    return trade.model_copy(update={"stop_loss": stop})


def tighter_stops(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Stop distance 20% closer to entry"""
    modified = []
    for trade in trades:
        if trade.stop_loss is None or not _has_exit(trade):
            modified.append(trade)
            continue
        distance = abs(trade.entry_price - trade.stop_loss) * (1 - STOP_TIGHTENING)
        stop = trade.entry_price - distance if trade.is_long else trade.entry_price + distance
        modified.append(_apply_stop(trade, stop))

    affected = sum(1 for t in trades if t.stop_loss is not None and _has_exit(t))
    return modified, affected


def optimal_stop_loss(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Stop width set to mean + 1 stddev of the portfolio's relative adverse excursion"""
    excursions = [
        abs(t.entry_price - t.max_adverse_price) / t.entry_price
        for t in trades
        if _has_exit(t) and t.max_adverse_price is not None
    ]
    if len(excursions) < 2:
        return list(trades), 0

    width = statistics.mean(excursions) + statistics.pstdev(excursions)
    if width <= 0:
        return list(trades), 0

    modified = []
    affected = 0
    for trade in trades:
        if not _has_exit(trade) or trade.max_adverse_price is None:
            modified.append(trade)
            continue
        stop = trade.entry_price * (1 - width) if trade.is_long else trade.entry_price * (1 + width)
        modified.append(_apply_stop(trade, stop))
        affected += 1
    return modified, affected


# Selection

def winning_setups_only(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Keep only trades with positive gross pnl"""
    kept = [t for t in trades if t.pnl is not None and t.pnl > 0]
    return kept, len(trades) - len(kept)


def remove_worst_trades(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Drop the bottom decile of closed trades by net pnl"""
    closed = [i for i, t in enumerate(trades) if _has_exit(t) and t.net_pnl is not None]
    count = math.ceil(len(closed) * WORST_TRADES_FRACTION)
    worst = set(sorted(closed, key=lambda i: (trades[i].net_pnl, i))[:count])
    kept = [t for i, t in enumerate(trades) if i not in worst]
    return kept, len(worst)


def _trading_day(trade: Trade) -> date:
    return trade.closed_at.date()


def best_day_only(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Keep closed trades from the best 60% of net-profitable calendar days"""
    day_totals: dict[date, float] = {}
    for trade in trades:
        if _has_exit(trade):
            day = _trading_day(trade)
            day_totals[day] = day_totals.get(day, 0.0) + (trade.net_pnl or 0.0)

    profitable = sorted(
        ((day, total) for day, total in day_totals.items() if total > 0),
        key=lambda item: (-item[1], item[0])
    )
    if not profitable:
        return [], len(trades)

    keep_count = max(1, math.ceil(len(profitable) * BEST_DAYS_FRACTION))
    best_days = {day for day, _ in profitable[:keep_count]}
    kept = [t for t in trades if _has_exit(t) and _trading_day(t) in best_days]
    return kept, len(trades) - len(kept)


def risk_reward_ratio(trade: Trade) -> Optional[float]:
    """Planned reward / risk, None when it cannot be determined"""
    if trade.stop_loss is None or trade.take_profit is None:
        return None
    risk = abs(trade.entry_price - trade.stop_loss)
    if risk == 0:
        return None
    return abs(trade.take_profit - trade.entry_price) / risk


def risk_reward_filter(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Keep only trades planned with at least 1:2 risk-reward"""
    kept = []
    for trade in trades:
        ratio = risk_reward_ratio(trade)
        if ratio is not None and ratio >= MIN_RISK_REWARD:
            kept.append(trade)
    return kept, len(trades) - len(kept)


def _relative_excursion(trade: Trade) -> Optional[float]:
    if trade.max_favorable_price is not None and trade.max_adverse_price is not None:
        return abs(trade.max_favorable_price - trade.max_adverse_price) / trade.entry_price
    if _has_exit(trade):
        return abs(trade.exit_price - trade.entry_price) / trade.entry_price
    return None


def market_condition_filter(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Drop trades whose price excursion is an outlier (> mean + 2 stddev)"""
    excursions = [_relative_excursion(t) for t in trades]
    samples = [x for x in excursions if x is not None]
    if len(samples) < 2:
        return list(trades), 0

    threshold = statistics.mean(samples) + 2 * statistics.pstdev(samples)
    kept = [t for t, x in zip(trades, excursions) if x is None or x <= threshold]
    return kept, len(trades) - len(kept)


# Management

def scaling_out(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Winners exit half the position halfway to the actual exit"""
    modified = []
    for trade in trades:
        if not _has_exit(trade) or trade.pnl is None or trade.pnl <= 0:
            modified.append(trade)
            continue

        half = trade.quantity * SCALE_OUT_FRACTION
        scale_price = trade.entry_price + (trade.exit_price - trade.entry_price) * 0.5
        pnl = (directional_pnl(trade.direction, trade.entry_price, scale_price, half)
               + directional_pnl(trade.direction, trade.entry_price, trade.exit_price, trade.quantity - half))
        commission = trade.commission * SCALE_OUT_COMMISSION_FACTOR

        modified.append(trade.model_copy(update={
            "pnl": pnl,
            "pnl_percentage": pnl_percentage(pnl, trade.entry_price, trade.quantity),
            "commission": commission,
            "net_pnl": pnl - commission,
            "result": classify_result(pnl - commission),
        }))

    return modified, sum(1 for t in trades if t.pnl is not None and t.pnl > 0)


def trailing_stops(trades: Sequence[Trade]) -> tuple[list[Trade], int]:
    """Exit at a trailing level locking 70% of the MFE move, when that beats the actual exit"""
    modified = []
    affected = 0
    for trade in trades:
        if not _has_exit(trade) or trade.max_favorable_price is None:
            modified.append(trade)
            continue

        if trade.is_long:
            move = trade.max_favorable_price - trade.entry_price
        else:
            move = trade.entry_price - trade.max_favorable_price
        if move <= 0:
            modified.append(trade)
            continue

        locked = move * TRAILING_LOCK_RATIO
        level = trade.entry_price + locked if trade.is_long else trade.entry_price - locked
        current_pnl = trade.pnl
        if current_pnl is None:
            current_pnl = directional_pnl(trade.direction, trade.entry_price, trade.exit_price, trade.quantity)

        if directional_pnl(trade.direction, trade.entry_price, level, trade.quantity) > current_pnl:
            modified.append(_reprice(trade, exit_price=level))
            affected += 1
        else:
            modified.append(trade)
    return modified, affected


SCENARIO_DESCRIPTORS: tuple[WhatIfScenario, ...] = (
    WhatIfScenario(
        id="better_entry", name="Better Entry Timing",
        description="What if you had 5% better entry prices on all trades?",
        category=ScenarioCategory.ENTRY, color="#10B981"),
    WhatIfScenario(
        id="better_exit", name="Better Exit Timing",
        description="What if you had 5% better exit prices on all trades?",
        category=ScenarioCategory.EXIT, color="#3B82F6"),
    WhatIfScenario(
        id="proper_position_sizing", name="Proper Position Sizing",
        description="What if you risked exactly 2% on every trade?",
        category=ScenarioCategory.RISK, color="#8B5CF6"),
    WhatIfScenario(
        id="winning_setups_only", name="Winning Setups Only",
        description="What if you only traded your winning setups?",
        category=ScenarioCategory.SELECTION, color="#F59E0B"),
    WhatIfScenario(
        id="tighter_stops", name="Tighter Stop Losses",
        description="What if you had 20% tighter stop losses?",
        category=ScenarioCategory.RISK, color="#EF4444"),
    WhatIfScenario(
        id="scaling_out", name="Position Scaling",
        description="What if you scaled out 50% at first target?",
        category=ScenarioCategory.MANAGEMENT, color="#06B6D4"),
    WhatIfScenario(
        id="optimal_stop_loss", name="Optimal Stop Loss",
        description="What if you used data-driven optimal stop loss levels?",
        category=ScenarioCategory.RISK, color="#DC2626"),
    WhatIfScenario(
        id="remove_worst_trades", name="Remove Worst 10%",
        description="What if you avoided your worst 10% of trades?",
        category=ScenarioCategory.SELECTION, color="#EA580C"),
    WhatIfScenario(
        id="best_day_only", name="Best Trading Days",
        description="What if you only traded on your most profitable days?",
        category=ScenarioCategory.SELECTION, color="#CA8A04"),
    WhatIfScenario(
        id="trailing_stops", name="Trailing Stop Loss",
        description="What if you used trailing stops to maximize profits?",
        category=ScenarioCategory.MANAGEMENT, color="#0891B2"),
    WhatIfScenario(
        id="risk_reward_filter", name="1:2 Risk-Reward Filter",
        description="What if you only took trades with 1:2+ risk-reward?",
        category=ScenarioCategory.SELECTION, color="#7C2D12"),
    WhatIfScenario(
        id="market_condition_filter", name="Market Condition Filter",
        description="What if you avoided trading in unfavorable conditions?",
        category=ScenarioCategory.SELECTION, color="#4338CA"),
)


def default_registry(account_size: Optional[float] = None,
                     risk_percent: Optional[float] = None) -> tuple[ScenarioDefinition, ...]:
    """The fixed, ordered scenario registry"""
    transforms: dict[str, ScenarioTransform] = {
        "better_entry": better_entry,
        "better_exit": better_exit,
        "proper_position_sizing": partial(
            proper_position_sizing,
            account_size=account_size if account_size is not None else settings.reference_account_size,
            risk_percent=risk_percent if risk_percent is not None else settings.target_risk_percent,
        ),
        "winning_setups_only": winning_setups_only,
        "tighter_stops": tighter_stops,
        "scaling_out": scaling_out,
        "optimal_stop_loss": optimal_stop_loss,
        "remove_worst_trades": remove_worst_trades,
        "best_day_only": best_day_only,
        "trailing_stops": trailing_stops,
        "risk_reward_filter": risk_reward_filter,
        "market_condition_filter": market_condition_filter,
    }
    return tuple(
        ScenarioDefinition(descriptor=descriptor, transform=transforms[descriptor.id])
        for descriptor in SCENARIO_DESCRIPTORS
    )
