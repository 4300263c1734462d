#!/usr/bin/env python3
"""Remove superseded inventory reports, keeping the newest row per period and date range."""

from __future__ import annotations

import argparse
import asyncio
import json
import os

from stockroom.common import dispose_engines, get_session_factory, lifespan_session
from stockroom.inventory_service.app.main import DEFAULT_DATABASE_URL
from stockroom.inventory_service.app.repository import ReportRepository


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Deduplicate inventory reports by (period, start date, end date)")
    parser.add_argument(
        "--database-url",
        default=os.getenv("INVENTORY_DATABASE_URL", DEFAULT_DATABASE_URL),
        help="SQLAlchemy async database URL (default: %(default)s or INVENTORY_DATABASE_URL)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the report ids that would be removed without deleting them",
    )
    return parser.parse_args()


async def dedupe_reports(database_url: str, *, dry_run: bool) -> dict[str, object]:
    session_factory = get_session_factory(database_url)
    async with lifespan_session(session_factory) as session:
        repository = ReportRepository(session)
        if dry_run:
            report_ids = await repository.find_duplicate_report_ids()
            await session.rollback()
        else:
            report_ids = await repository.delete_duplicate_reports()
    return {
        "dry_run": dry_run,
        "removed": 0 if dry_run else len(report_ids),
        "report_ids": report_ids,
    }


async def main_async() -> int:
    args = parse_args()
    try:
        summary = await dedupe_reports(args.database_url, dry_run=args.dry_run)
    finally:
        await dispose_engines()

    print(json.dumps(summary, indent=2, sort_keys=True))
    return 0


def main() -> None:
    try:
        exit_code = asyncio.run(main_async())
    except Exception as exc:
        print(json.dumps({"error": str(exc)}))
        exit_code = 1
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
