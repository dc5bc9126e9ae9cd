"""Balance service - keeps account balances consistent with their closed trades"""
import queue
import threading
import time
from typing import Optional

from config.settings import settings
from config.logging import logger
from db.stores import TradeStore, AccountStore
from .exceptions import AccountNotFound
from .metrics_service import MetricsCalculator, metrics_calculator


class BalanceReconciler:
    """Recomputes ``current_balance = initial_balance + sum(net_pnl)`` from a full scan

    Always a full recomputation, never an incremental delta, so running it
    twice or concurrently for the same account converges on the same value.
    """

    def __init__(self, trade_store: TradeStore, account_store: AccountStore,
                 calculator: Optional[MetricsCalculator] = None):
        self.trade_store = trade_store
        self.account_store = account_store
        self.calculator = calculator or metrics_calculator

    def realised_pnl(self, account_id: str) -> float:
        total = 0.0
        for trade in self.trade_store.get_closed_trades(account_id):
            net_pnl = trade.net_pnl
            if net_pnl is None:
                net_pnl = self.calculator.calculate(trade).net_pnl
            total += net_pnl or 0.0
        return total

    def recalculate(self, account_id: str) -> float:
        """Write and return the reconciled balance for an account"""
        account = self.account_store.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)

        balance = account.initial_balance + self.realised_pnl(account_id)
        self.account_store.update_balance(account_id, balance)

        logger.info(
            "Account balance reconciled",
            account_id=account_id,
            previous_balance=account.current_balance,
            balance=balance
        )
        return balance


class ReconciliationQueue:
    """Background reconciliation of account balances

    Account ids already waiting in the queue are collapsed into one job.
    Failures are retried with exponential backoff, then logged and dropped;
    they never reach the code that enqueued the job.
    """

    def __init__(self, reconciler: BalanceReconciler,
                 max_retries: Optional[int] = None,
                 backoff_seconds: Optional[float] = None):
        self.reconciler = reconciler
        self.max_retries = settings.reconcile_max_retries if max_retries is None else max_retries
        self.backoff_seconds = (settings.reconcile_retry_backoff_seconds
                                if backoff_seconds is None else backoff_seconds)
        self._queue: "queue.Queue[Optional[str]]" = queue.Queue()
        self._pending: set[str] = set()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def start(self):
        if self.is_running:
            return
        self._thread = threading.Thread(target=self._run, name="balance-reconciler", daemon=True)
        self._thread.start()
        logger.info("Reconciliation worker started")

    def stop(self, timeout: float = 5.0):
        if not self.is_running:
            return
        self._queue.put(None)
        self._thread.join(timeout)
        self._thread = None
        logger.info("Reconciliation worker stopped")

    def enqueue(self, account_id: str) -> bool:
        """Schedule a reconciliation; False when one is already pending"""
        with self._lock:
            if account_id in self._pending:
                return False
            self._pending.add(account_id)
        self._queue.put(account_id)
        logger.debug("Reconciliation queued", account_id=account_id)
        return True

    def drain(self):
        """Block until every queued job has been processed

        Without a running worker the jobs are processed on the calling thread.
        """
        if self.is_running:
            self._queue.join()
            return

        while True:
            try:
                account_id = self._queue.get_nowait()
            except queue.Empty:
                break
            try:
                if account_id is not None:
                    self._process(account_id)
            finally:
                self._queue.task_done()

    def _run(self):
        while True:
            account_id = self._queue.get()
            try:
                if account_id is None:
                    break
                self._process(account_id)
            finally:
                self._queue.task_done()

    def _process(self, account_id: str) -> bool:
        # Released before running so a mutation during the job queues a fresh pass
        with self._lock:
            self._pending.discard(account_id)

        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                self.reconciler.recalculate(account_id)
                return True
            except AccountNotFound as e:
                logger.warning("Reconciliation skipped", account_id=account_id, error=str(e))
                return False
            except Exception as e:
                if attempt == attempts:
                    logger.error(
                        "Balance reconciliation failed",
                        account_id=account_id,
                        attempts=attempts,
                        error=str(e)
                    )
                    return False
                delay = self.backoff_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "Balance reconciliation failed, retrying",
                    account_id=account_id,
                    attempt=attempt,
                    retry_in=delay,
                    error=str(e)
                )
                time.sleep(delay)
        return False
