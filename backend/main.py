"""Trade journal analytics - command line entry point

Usage:
    python main.py init-db
    python main.py import-trades FILE
    python main.py delete-trades TRADE_ID [TRADE_ID ...]
    python main.py reconcile ACCOUNT_ID
    python main.py stats ACCOUNT_ID
    python main.py analysis ACCOUNT_ID
    python main.py whatif ACCOUNT_ID [--scenario ID ...]
    python main.py breakeven ACCOUNT_ID [--by-strategy]
    python main.py optimize ACCOUNT_ID
"""
import argparse
import json
import sys

from config.logging import logger
from db import TradeRepository, AccountRepository, close_pool
from models import Trade
from services import (
    JournalError, BalanceReconciler, ReconciliationQueue, TradeService, portfolio_aggregator,
    portfolio_analyzer, whatif_engine, breakeven_analyzer, risk_optimizer
)


def _print(payload):
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json")
    elif isinstance(payload, list):
        payload = [p.model_dump(mode="json") for p in payload]
    print(json.dumps(payload, indent=2, default=str))


def cmd_init_db(args, trades: TradeRepository, accounts: AccountRepository):
    trades.init_schema()
    accounts.init_schema()
    logger.info("Database schema ready")


def _trade_service(trades: TradeRepository, accounts: AccountRepository) -> tuple[TradeService, ReconciliationQueue]:
    queue = ReconciliationQueue(BalanceReconciler(trades, accounts))
    return TradeService(trades, queue), queue


def cmd_import_trades(args, trades: TradeRepository, accounts: AccountRepository):
    """Create trades from a JSON array of trade records"""
    with open(args.file, encoding="utf-8") as fh:
        records = json.load(fh)

    service, queue = _trade_service(trades, accounts)
    created = []
    try:
        for record in records:
            created.append(service.create_trade(Trade.model_validate(record)))
    finally:
        # Trades already written still get their balances reconciled
        queue.drain()

    _print({"imported": len(created), "accounts": sorted({t.account_id for t in created})})


def cmd_delete_trades(args, trades: TradeRepository, accounts: AccountRepository):
    service, queue = _trade_service(trades, accounts)
    try:
        deleted = service.bulk_delete(args.trade_ids)
    finally:
        queue.drain()
    _print({"deleted": deleted})


def cmd_reconcile(args, trades: TradeRepository, accounts: AccountRepository):
    balance = BalanceReconciler(trades, accounts).recalculate(args.account_id)
    _print({"account_id": args.account_id, "current_balance": balance})


def cmd_stats(args, trades: TradeRepository, accounts: AccountRepository):
    _print(portfolio_aggregator.aggregate(trades.get_trades(args.account_id)))


def cmd_analysis(args, trades: TradeRepository, accounts: AccountRepository):
    _print(portfolio_analyzer.analyze(trades.get_trades(args.account_id)))


def cmd_whatif(args, trades: TradeRepository, accounts: AccountRepository):
    _print(whatif_engine.run(trades.get_trades(args.account_id), scenario_ids=args.scenario))


def cmd_breakeven(args, trades: TradeRepository, accounts: AccountRepository):
    account_trades = trades.get_trades(args.account_id)
    if args.by_strategy:
        _print(breakeven_analyzer.calculate_be_stats_by_strategy(account_trades))
        return
    _print({
        "metrics": breakeven_analyzer.calculate_portfolio_be_metrics(account_trades).model_dump(mode="json"),
        "recommendation": breakeven_analyzer.generate_be_recommendation(account_trades).model_dump(mode="json"),
        "scenarios": [
            s.model_dump(mode="json")
            for s in breakeven_analyzer.generate_be_optimization_scenarios(account_trades)
        ],
    })


def cmd_optimize(args, trades: TradeRepository, accounts: AccountRepository):
    account_trades = trades.get_trades(args.account_id)
    _print({
        "stop_loss": [s.model_dump(mode="json") for s in risk_optimizer.suggest_stop_loss(account_trades)],
        "take_profit": [s.model_dump(mode="json") for s in risk_optimizer.suggest_take_profit(account_trades)],
    })


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Trade journal analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables").set_defaults(func=cmd_init_db)

    p = sub.add_parser("import-trades", help="Create trades from a JSON file and reconcile balances")
    p.add_argument("file")
    p.set_defaults(func=cmd_import_trades)

    p = sub.add_parser("delete-trades", help="Delete trades and reconcile balances")
    p.add_argument("trade_ids", nargs="+")
    p.set_defaults(func=cmd_delete_trades)

    for name, func, help_text in (
        ("reconcile", cmd_reconcile, "Recompute an account balance from its closed trades"),
        ("stats", cmd_stats, "Portfolio statistics"),
        ("analysis", cmd_analysis, "Risk metrics and performance breakdowns"),
        ("optimize", cmd_optimize, "Stop loss / take profit suggestions"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("account_id")
        p.set_defaults(func=func)

    p = sub.add_parser("whatif", help="What-if scenario analysis")
    p.add_argument("account_id")
    p.add_argument("--scenario", action="append", help="Scenario id (repeatable, default: all)")
    p.set_defaults(func=cmd_whatif)

    p = sub.add_parser("breakeven", help="Break-even analysis")
    p.add_argument("account_id")
    p.add_argument("--by-strategy", action="store_true", help="Group statistics by strategy")
    p.set_defaults(func=cmd_breakeven)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        args.func(args, TradeRepository(), AccountRepository())
    except (JournalError, ValueError, OSError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        return 1
    finally:
        close_pool()
    return 0


if __name__ == "__main__":
    sys.exit(main())
