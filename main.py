import argparse
import logging
import os
import sys

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.account_dao import AccountDAO
from database.transaction_dao import TransactionDAO
from database.recurring_dao import RecurringDAO
from database.balance_override_dao import BalanceOverrideDAO

from services.recurring_service import RecurringService
from services.forecast_service import ForecastService
from services.chart_service import ChartService

from engine.exceptions import NotFoundError, ValidationError
from engine.projector import summarize
from utils.app_config import get_db_folder, get_horizon_months, get_seed_balance
from utils.constants import APP_NAME
from utils.currency import format_currency, format_signed
from utils.date_helpers import friendly_month, parse_date


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cashflow-forecast", description=APP_NAME)
    parser.add_argument("--db", help="Path to the SQLite database file")
    parser.add_argument("--months", type=int, help="Number of months to project")
    parser.add_argument("--account", type=int, help="Only project this account id")
    parser.add_argument("--start", help="First projected month, any date in it (YYYY-MM-DD)")
    parser.add_argument("--ledger", action="store_true", help="Print ledger rows per account")
    parser.add_argument("--chart", help="Write a PNG balance chart for --account to this path")
    parser.add_argument("--currency", help="Store the currency symbol used for output")
    parser.add_argument("--no-materialize", action="store_true",
                        help="Do not store forecasted transactions for due rules")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level")
    return parser


def print_projection(projections, show_ledger: bool = False, symbol: str = "$"):
    for month in projections:
        print(f"\n{friendly_month(month.month)}")
        if not month.accounts_data:
            print("  (no accounts)")
        for data in month.accounts_data:
            line = (
                f"  {data.account.name:<20} start {format_currency(data.starting, symbol):>12}"
                f"  end {format_currency(data.ending, symbol):>12}"
                f"  min {format_currency(data.min, symbol):>12}"
                f"  max {format_currency(data.max, symbol):>12}"
            )
            if data.interest:
                line += f"  interest {format_signed(data.interest, symbol)}"
            print(line)
            if show_ledger:
                for entry in data.ledger_entries:
                    mark = "" if entry.is_confirmed else " *"
                    print(
                        f"      {entry.date.isoformat()}  {entry.description[:28]:<28}"
                        f" {format_signed(entry.delta, symbol):>12} {format_currency(entry.balance, symbol):>12}{mark}"
                    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ── Database ─────────────────────────────────────────────────────────────
    if args.db:
        db = DatabaseManager(args.db)
        db.initialize()
    else:
        db = DatabaseManager.open_in_folder(get_db_folder())

    # ── DAOs ─────────────────────────────────────────────────────────────────
    account_dao = AccountDAO(db)
    tx_dao = TransactionDAO(db)
    recurring_dao = RecurringDAO(db)
    override_dao = BalanceOverrideDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    recurring_svc = RecurringService(recurring_dao, tx_dao)
    forecast_svc = ForecastService(
        account_dao, recurring_dao, tx_dao, override_dao, seed_balance=get_seed_balance()
    )

    try:
        if args.currency:
            db.set_setting("currency_symbol", args.currency)
        if not args.no_materialize:
            recurring_svc.materialize_due()

        months = args.months if args.months is not None else get_horizon_months()
        start = parse_date(args.start) if args.start else None
        if args.start and start is None:
            raise ValidationError(f"Invalid start date {args.start!r}.")

        projections = forecast_svc.build_projection(months, account_id=args.account, start=start)
        symbol = db.get_setting("currency_symbol", "$")
        print_projection(projections, show_ledger=args.ledger, symbol=symbol)

        for summary in summarize(projections).values():
            print(
                f"\n{summary.account.name}: lowest {format_currency(summary.lowest, symbol)}"
                f" ({friendly_month(summary.lowest_month)}),"
                f" final {format_currency(summary.final, symbol)}"
            )

        if args.chart:
            if args.account is None:
                raise ValidationError("--chart needs --account.")
            if not ChartService().render_account_balances(projections, args.account, args.chart):
                print("No data to chart.", file=sys.stderr)
    except (ValidationError, NotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
