"""
examples/scan_receipts.py
~~~~~~~~~~~~~~~~~~~~~~~~~
Scan a folder of receipt photos for one account, save the readable ones and
print the month's dashboard.

Usage
-----
    python -m examples.scan_receipts --email sam@example.com --password secret
    python -m examples.scan_receipts --input-dir examples/receipts --db /tmp/demo.db
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

logging.basicConfig(level=logging.WARNING, format="%(levelname)s  %(name)s — %(message)s")

from trademate import Config, ExpenseTracker, QuotaExceededError, TradeMateError, ValidationFailedError
from trademate.utils import utc_now

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".webp", ".heic"}


def scan_folder(tracker: ExpenseTracker, account, input_dir: Path) -> tuple[int, int]:
    """Scan every photo in ``input_dir`` in batches; return (saved, failed)."""
    photos = sorted(p for p in input_dir.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES)
    if not photos:
        print(f"No receipt photos found in {input_dir.resolve()}")
        return 0, 0

    saved = failed = 0
    size = tracker.config.max_batch_size
    for start in range(0, len(photos), size):
        for result in tracker.scan(account, photos[start:start + size]):
            name = Path(result.source or "").name
            if not result.success:
                failed += 1
                print(f"✗ {name}: [{result.error_tag}] {result.error_message}")
                continue
            try:
                record = tracker.save(account, result.draft)
            except ValidationFailedError as exc:
                failed += 1
                print(f"✗ {name}: needs editing ({exc})")
                continue
            saved += 1
            print(f"✓ {name}: {record.vendor}  {record.amount:.2f}  {record.category}")
    return saved, failed


def main() -> int:
    parser = argparse.ArgumentParser(description="Scan a folder of receipt photos.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--input-dir", type=Path, default=Path("examples/receipts"))
    parser.add_argument("--db", type=Path, default=None)
    args = parser.parse_args()

    if not args.input_dir.is_dir():
        print(f"[error] Directory not found: {args.input_dir}", file=sys.stderr)
        return 1

    config = Config(db_path=args.db) if args.db else Config()
    with ExpenseTracker(config=config) as tracker:
        try:
            account = tracker.accounts.login(args.email, args.password)
            saved, failed = scan_folder(tracker, account, args.input_dir)
        except QuotaExceededError as exc:
            print(f"Stopped: {exc}")
            return 1
        except TradeMateError as exc:
            print(f"[error] {exc}", file=sys.stderr)
            return 1

        print(f"\n{' Scan Report ':=^44}")
        print(f"Saved: {saved}   Failed: {failed}")
        dash = tracker.dashboard(account, utc_now())
        print(dash.stats.summary())
        limit = "unlimited" if dash.quota.limit is None else f"{dash.quota.usage} / {dash.quota.limit}"
        print(f"Quota: {limit}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
