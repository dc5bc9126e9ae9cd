"""Trade service - create / update / delete trades and keep balances in step"""
from typing import Iterable, Optional
from pydantic import ValidationError

from config.logging import logger
from db.stores import TradeStore
from models import Trade, TradeMetrics, METRIC_INPUT_FIELDS
from .balance_service import ReconciliationQueue
from .exceptions import InvalidTradeData, TradeNotFound
from .metrics_service import MetricsCalculator, metrics_calculator
from .validation import TradeValidator, trade_validator

DERIVED_FIELDS = frozenset(TradeMetrics.model_fields)


class TradeService:
    """Mutation boundary for trades

    Every mutation is validated, gets its derived metrics recomputed and is
    persisted before a balance reconciliation is queued for each affected
    account. Queueing problems are logged, the mutation still succeeds.
    """

    def __init__(self, trade_store: TradeStore, reconciliation: ReconciliationQueue,
                 validator: Optional[TradeValidator] = None,
                 calculator: Optional[MetricsCalculator] = None):
        self.trade_store = trade_store
        self.reconciliation = reconciliation
        self.validator = validator or trade_validator
        self.calculator = calculator or metrics_calculator

    def _schedule_reconciliation(self, account_ids: Iterable[str]):
        for account_id in sorted(set(account_ids)):
            try:
                self.reconciliation.enqueue(account_id)
            except Exception as e:
                logger.error("Failed to queue balance reconciliation", account_id=account_id, error=str(e))

    def get_trade(self, trade_id: str) -> Trade:
        trade = self.trade_store.get_trade(trade_id)
        if trade is None:
            raise TradeNotFound(trade_id)
        return trade

    def create_trade(self, trade: Trade) -> Trade:
        self.validator.ensure_valid(trade)
        saved = self.trade_store.add(self.calculator.apply(trade))

        logger.info("Trade created", trade_id=saved.id, account_id=saved.account_id, symbol=saved.symbol)
        self._schedule_reconciliation([saved.account_id])
        return saved

    def update_trade(self, trade_id: str, **changes) -> Trade:
        """Apply field changes to a stored trade

        Derived metric fields cannot be set directly; they are recomputed when
        a field they depend on changes.
        """
        current = self.get_trade(trade_id)

        errors = []
        derived = DERIVED_FIELDS & changes.keys()
        if derived:
            errors.append(f"Derived field(s) cannot be set: {', '.join(sorted(derived))}")
        unknown = changes.keys() - Trade.model_fields.keys()
        if unknown:
            errors.append(f"Unknown field(s): {', '.join(sorted(unknown))}")
        if "id" in changes and changes["id"] != current.id:
            errors.append("Trade id cannot be changed")
        if errors:
            raise InvalidTradeData(errors)

        try:
            merged = Trade.model_validate({**current.model_dump(), **changes})
        except ValidationError as e:
            raise InvalidTradeData([f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]) from e

        self.validator.ensure_valid(merged)
        if METRIC_INPUT_FIELDS & changes.keys():
            merged = self.calculator.apply(merged)

        saved = self.trade_store.save(merged)
        logger.info("Trade updated", trade_id=trade_id, fields=sorted(changes))
        self._schedule_reconciliation([current.account_id, saved.account_id])
        return saved

    def delete_trade(self, trade_id: str) -> Trade:
        deleted = self.trade_store.delete([trade_id])
        if not deleted:
            raise TradeNotFound(trade_id)

        logger.info("Trade deleted", trade_id=trade_id, account_id=deleted[0].account_id)
        self._schedule_reconciliation(t.account_id for t in deleted)
        return deleted[0]

    def bulk_delete(self, trade_ids: Iterable[str]) -> int:
        """Delete the given trades; ids that do not exist are ignored"""
        trade_ids = list(dict.fromkeys(trade_ids))
        if not trade_ids:
            return 0

        deleted = self.trade_store.delete(trade_ids)
        logger.info("Trades deleted", requested=len(trade_ids), deleted=len(deleted))
        self._schedule_reconciliation(t.account_id for t in deleted)
        return len(deleted)
