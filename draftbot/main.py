"""
draftbot -- Instagram DM outreach from a row store
===================================================

Usage:
  1. pip install -e .
  2. playwright install chromium
  3. Copy .env.example to .env and fill it in
  4. draftbot --login        (once: log in by hand, session is kept in browser-data/)
  5. draftbot --dry-run      (see who would be processed)
  6. draftbot                (draft, or send when SEND_MESSAGE=true)

With ROW_STORE=sqlite, `draftbot --import-csv leads.csv` loads a sheet
export into the local database first.
"""
import argparse
import logging
import sys
from pathlib import Path

from draftbot.config import Settings
from draftbot.errors import ConfigurationError, DraftbotError
from draftbot.instagram.browser import BrowserSession
from draftbot.store.base import RowStore
from draftbot.worker.orchestrator import OutreachOrchestrator, setup_logging

logger = logging.getLogger("draftbot")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="draftbot",
        description="Draft (and optionally send) personalized Instagram DMs to rows from a sheet.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Load and select rows, print the worklist, do not open a browser or write to the store",
    )
    parser.add_argument(
        "--login",
        action="store_true",
        help="Open the persistent browser profile for a manual Instagram login",
    )
    parser.add_argument(
        "--import-csv",
        metavar="PATH",
        type=Path,
        help="Import a CSV with the sheet header into the local SQL store and exit",
    )
    return parser


def build_store(settings: Settings) -> RowStore:
    if settings.row_store == "sqlite":
        from draftbot.store.sql import SqlRowStore

        return SqlRowStore(settings.database_url)

    from draftbot.store.sheets import SheetsRowStore

    return SheetsRowStore(settings)


def seed_login(settings: Settings) -> int:
    session = BrowserSession(settings).launch()
    try:
        session.seed_login()
    finally:
        session.close()
    return 0


def import_csv(settings: Settings, csv_path: Path) -> int:
    from draftbot.database import make_session_factory
    from draftbot.services.migrate_csv import import_leads_csv

    count = import_leads_csv(csv_path, make_session_factory(settings.database_url))
    print(f"Imported {count} row(s) into {settings.database_url}")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    setup_logging(settings)

    try:
        if args.login:
            return seed_login(settings)
        if args.import_csv:
            return import_csv(settings, args.import_csv)

        settings.validate()
        orchestrator = OutreachOrchestrator(settings, build_store(settings))
        summary = orchestrator.run(dry_run=args.dry_run)
        return 1 if summary.aborted else 0

    except ConfigurationError as e:
        print(f"\n[!] {e}")
        print("    Check your .env file.")
        return 1
    except DraftbotError as e:
        logger.error(f"Fatal error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n\n[!] Interrupted by user. Exiting.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
