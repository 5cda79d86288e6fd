# src/ozark_collab/scripts/reconcile_votes.py
"""Recompute cached vote counters from the vote tables.

Usage:
    python -m ozark_collab.scripts.reconcile_votes [--dry-run]
"""
from __future__ import annotations

import argparse
import logging
import sys

from ozark_collab.db.session import SessionLocal
from ozark_collab.services.reconcile import reconcile_vote_counts


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="report drifted counters without writing",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    db = SessionLocal()
    try:
        report = reconcile_vote_counts(db, dry_run=args.dry_run)
    finally:
        db.close()

    verb = "would fix" if args.dry_run else "fixed"
    print(f"Posts {verb}: {report.posts_fixed}, comments {verb}: {report.comments_fixed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
