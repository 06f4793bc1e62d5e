"""
trademate.cli
~~~~~~~~~~~~~
Command-line interface for trademate.

Entry point registered in pyproject.toml::

    [project.scripts]
    trademate = "trademate.cli:main"

Usage examples
--------------
    trademate --version

    trademate register --email sam@example.com --name "Sam Sparks"
    trademate login --email sam@example.com

    # Scan up to five photos, confirm and save the readable ones
    trademate scan receipts/*.jpg --save

    # Manual entry
    trademate add --vendor Screwfix --amount 42.50 --vat 7.08 --category tools

    trademate list --month 2024-03 --category fuel
    trademate stats --month 2024-03
    trademate quota
    trademate export --month 2024-03 --output-dir exports/

    # Use a custom DB path
    trademate --db /tmp/trademate.db stats
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from datetime import date
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Optional

from trademate.config import Config
from trademate.exceptions import QuotaExceededError, TradeMateError, ValidationFailedError
from trademate.models import Account, ExpenseDraft, ExpenseRecord, parse_category
from trademate.prompts import RECEIPT_CATEGORIES
from trademate.tracker import ExpenseTracker
from trademate.utils import parse_month, parse_spend_date, to_money, utc_now


# ---------------------------------------------------------------------------
# CLI class
# ---------------------------------------------------------------------------

class TradeMateCLI:
    """Every command returns a process exit code."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self.config = Config(db_path=db_path) if db_path else Config()

    def _open(self) -> ExpenseTracker:
        return ExpenseTracker(config=self.config)

    @staticmethod
    def _require_login(tracker: ExpenseTracker) -> Optional[Account]:
        account = tracker.accounts.current_account()
        if account is None:
            print("[error] Not logged in. Run: trademate login --email …", file=sys.stderr)
        return account

    @staticmethod
    def _print_record(r: ExpenseRecord) -> None:
        print(
            f"  {r.spend_date}  {r.vendor:<24.24} {str(r.category):<14.14}"
            f" {r.amount:>9.2f}  VAT {r.vat_amount:>7.2f}"
        )

    # ------------------------------------------------------------------
    # Utility
    # ------------------------------------------------------------------

    def print_version(self) -> None:
        try:
            print(f"trademate version: {version('trademate')}")
        except PackageNotFoundError:
            print("trademate version: unknown")

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def register(self, email: str, password: str, name: str = "") -> int:
        with self._open() as tracker:
            account = tracker.accounts.register(email, password, name)
            tracker.accounts.login(email, password)
        print(f"✓  Registered {account.email} ({account.name}) on the {account.plan} plan.")
        return 0

    def login(self, email: str, password: str) -> int:
        with self._open() as tracker:
            account = tracker.accounts.login(email, password)
        print(f"✓  Logged in as {account.name} <{account.email}>")
        return 0

    def logout(self) -> int:
        with self._open() as tracker:
            tracker.accounts.logout()
        print("Logged out.")
        return 0

    def whoami(self) -> int:
        with self._open() as tracker:
            account = self._require_login(tracker)
            if account is None:
                return 1
            status = tracker.quota.quota_status(account)
        limit = "∞" if status.limit is None else str(status.limit)
        print(f"{account.name} <{account.email}>  plan: {account.plan}")
        print(f"Receipts this month: {status.usage} / {limit}")
        return 0

    def upgrade(self) -> int:
        with self._open() as tracker:
            account = self._require_login(tracker)
            if account is None:
                return 1
            account = tracker.accounts.upgrade_plan(account.id)
        print(f"✓  {account.email} is now on the {account.plan} plan — unlimited receipts.")
        return 0

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def scan(self, files: list[str], save: bool = False, verbose: bool = False) -> int:
        missing = [f for f in files if not Path(f).exists()]
        if missing:
            for f in missing:
                print(f"[error] File not found: {f}", file=sys.stderr)
            return 1

        with self._open() as tracker:
            account = self._require_login(tracker)
            if account is None:
                return 1
            results = tracker.scan(account, [Path(f) for f in files])

            failed = 0
            for result in results:
                name = Path(result.source or "").name
                if not result.success:
                    failed += 1
                    print(f"✗  {name}  [{result.error_tag}] {result.error_message}")
                    continue
                d = result.draft
                print(f"✓  {name}  {d.vendor or '—'}  {d.amount:.2f}  "
                      f"VAT {d.vat_amount:.2f}  {d.category}  {d.spend_date or '—'}")
                if not save:
                    continue
                try:
                    record = tracker.save(account, d)
                except (ValidationFailedError, QuotaExceededError) as exc:
                    failed += 1
                    print(f"   not saved: {exc}")
                else:
                    if verbose:
                        print(f"   saved as {record.id}")
        return 1 if failed else 0

    def add(
        self,
        vendor: str,
        amount: str,
        vat: str = "0",
        category: str = "miscellaneous",
        spend_date: Optional[str] = None,
    ) -> int:
        parsed_date = parse_spend_date(spend_date)
        if spend_date and parsed_date is None:
            print(f"[error] Invalid date {spend_date!r}; expected YYYY-MM-DD.", file=sys.stderr)
            return 1
        try:
            draft = ExpenseDraft(
                vendor=vendor,
                amount=to_money(amount),
                vat_amount=to_money(vat),
                category=parse_category(category),
                spend_date=parsed_date,
            )
        except ValueError as exc:
            print(f"[error] {exc}", file=sys.stderr)
            return 1

        with self._open() as tracker:
            account = self._require_login(tracker)
            if account is None:
                return 1
            record = tracker.save(account, draft)
        print("✓  Saved:")
        self._print_record(record)
        return 0

    def list_expenses(self, month: Optional[str] = None, category: Optional[str] = None) -> int:
        with self._open() as tracker:
            account = self._require_login(tracker)
            if account is None:
                return 1
            if month:
                year, mon = parse_month(month)
                records = tracker.expenses.list_for_spend_month(account.id, year, mon, category)
            else:
                records = [
                    r for r in tracker.expenses.list_by_account(account.id)
                    if category is None or str(r.category) == category
                ]
        if not records:
            print("No receipts found.")
            return 0
        for r in records:
            self._print_record(r)
        return 0

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def stats(self, month: Optional[str] = None) -> int:
        if month:
            year, mon = parse_month(month)
            ref = date(year, mon, 1)
        else:
            ref = utc_now().date()
        with self._open() as tracker:
            account = self._require_login(tracker)
            if account is None:
                return 1
            print(tracker.monthly_stats(account.id, ref).summary())
        return 0

    def quota(self) -> int:
        with self._open() as tracker:
            account = self._require_login(tracker)
            if account is None:
                return 1
            status = tracker.quota.quota_status(account)
        if status.limit is None:
            print(f"Unlimited plan — {status.usage} receipt(s) this month.")
            return 0
        print(f"{status.usage} / {status.limit} receipts this month "
              f"({status.remaining} left, resets on {status.resets_on}).")
        if status.exceeded:
            print("You have reached your monthly limit. Run `trademate upgrade` for unlimited receipts.")
        return 0

    def export(
        self,
        month: str,
        output_dir: str | Path = ".",
        category: Optional[str] = None,
    ) -> int:
        year, mon = parse_month(month)
        with self._open() as tracker:
            account = self._require_login(tracker)
            if account is None:
                return 1
            path = tracker.export_month(account, year, mon, output_dir, category)
        print(f"CSV saved to {path}")
        return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trademate",
        description="trademate: photograph receipts, track expenses, export monthly CSVs.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--version", action="store_true",
        help="Show package version and exit.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose output.",
    )
    parser.add_argument(
        "--db", default=None, metavar="FILE",
        help="SQLite database path (default: ~/.trademate/trademate.db).",
    )

    sub = parser.add_subparsers(dest="command")

    # -- Accounts ---------------------------------------------------------
    p = sub.add_parser("register", help="Create an account and log in.")
    p.add_argument("--email", required=True)
    p.add_argument("--password", default=None, help="Prompted for when omitted.")
    p.add_argument("--name", default="", help="Display name (default: email local part).")

    p = sub.add_parser("login", help="Log in.")
    p.add_argument("--email", required=True)
    p.add_argument("--password", default=None, help="Prompted for when omitted.")

    sub.add_parser("logout", help="Clear the current session.")
    sub.add_parser("whoami", help="Show the logged-in account.")
    sub.add_parser("upgrade", help="Move the logged-in account to the unlimited plan.")

    # -- Expenses ---------------------------------------------------------
    p = sub.add_parser("scan", help="Extract expenses from receipt photos.")
    p.add_argument("files", nargs="+", metavar="IMAGE")
    p.add_argument("--save", action="store_true", help="Save every readable receipt.")

    p = sub.add_parser("add", help="Enter an expense by hand.")
    p.add_argument("--vendor", required=True)
    p.add_argument("--amount", required=True, help="Total including VAT, e.g. 42.50")
    p.add_argument("--vat", default="0", help="VAT included in the amount.")
    p.add_argument("--category", default="miscellaneous",
                   help=f"One of {', '.join(RECEIPT_CATEGORIES)} or free text.")
    p.add_argument("--date", default=None, metavar="YYYY-MM-DD",
                   help="Spend date (default: today).")

    p = sub.add_parser("list", help="List saved expenses, newest spend date first.")
    p.add_argument("--month", default=None, metavar="YYYY-MM")
    p.add_argument("--category", default=None)

    # -- Reports ----------------------------------------------------------
    p = sub.add_parser("stats", help="Monthly totals by spend date.")
    p.add_argument("--month", default=None, metavar="YYYY-MM",
                   help="Month to summarise (default: current month).")

    sub.add_parser("quota", help="Receipts used this month against the plan limit.")

    p = sub.add_parser("export", help="Write a month's expenses to CSV.")
    p.add_argument("--month", required=True, metavar="YYYY-MM")
    p.add_argument("--category", default=None)
    p.add_argument("--output-dir", default=".", metavar="DIR")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _dispatch(cli: TradeMateCLI, args: argparse.Namespace) -> Optional[int]:
    cmd = args.command
    if cmd == "register":
        password = args.password or getpass.getpass("Password: ")
        return cli.register(args.email, password, args.name)
    if cmd == "login":
        password = args.password or getpass.getpass("Password: ")
        return cli.login(args.email, password)
    if cmd == "logout":
        return cli.logout()
    if cmd == "whoami":
        return cli.whoami()
    if cmd == "upgrade":
        return cli.upgrade()
    if cmd == "scan":
        return cli.scan(args.files, save=args.save, verbose=args.verbose)
    if cmd == "add":
        return cli.add(args.vendor, args.amount, args.vat, args.category, args.date)
    if cmd == "list":
        return cli.list_expenses(args.month, args.category)
    if cmd == "stats":
        return cli.stats(args.month)
    if cmd == "quota":
        return cli.quota()
    if cmd == "export":
        return cli.export(args.month, args.output_dir, args.category)
    return None


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args   = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)-8s %(name)s — %(message)s",
        )

    cli = TradeMateCLI(db_path=Path(args.db) if args.db else None)

    if args.version:
        cli.print_version()
        return 0

    try:
        code = _dispatch(cli, args)
    except TradeMateError as exc:
        print(f"✗  {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1

    if code is None:
        parser.print_help()
        return 0
    return code


if __name__ == "__main__":
    sys.exit(main())
