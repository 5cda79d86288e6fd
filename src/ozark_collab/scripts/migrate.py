# src/ozark_collab/scripts/migrate.py
"""Apply Alembic migrations to the configured database.

Usage:
    python -m ozark_collab.scripts.migrate [revision]
"""
from __future__ import annotations

import argparse
import os

from alembic import command
from alembic.config import Config

from ozark_collab.core.settings import settings

MIGRATIONS_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations"))


def alembic_config() -> Config:
    cfg = Config(os.path.join(MIGRATIONS_DIR, "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    return cfg


def run_upgrade_head(revision: str = "head") -> None:
    command.upgrade(alembic_config(), revision)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Upgrade the collaboration schema")
    parser.add_argument("revision", nargs="?", default="head", help="target revision (default: head)")
    args = parser.parse_args(argv)
    run_upgrade_head(args.revision)


if __name__ == "__main__":
    main()
