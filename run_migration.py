#!/usr/bin/env python3
"""
Backfill vector stores for every knowledge source.

Usage:
    python run_migration.py
    python run_migration.py --run-id migration-manual --verbose

Exits non-zero when any source failed, so it can gate a deploy step.
Safe to re-run: sources and items that are already synced are skipped.
"""

import argparse
import asyncio
import logging
import sys

from app.core.config import settings
from app.features.knowledge import MigrationRunner
from app.shared.logging_config import setup_logging

logger = logging.getLogger("LinkAI.Migration.CLI")


async def main(run_id=None) -> int:
    runner = MigrationRunner()
    report = await runner.run(run_id=run_id)

    print(f"\nMigration {report.run_id}")
    print("=" * 60)
    for outcome in report.sources:
        line = f"  {outcome.status:<12} {outcome.source_id}"
        if outcome.status == "migrated":
            line += f"  synced={outcome.items_synced} skipped={outcome.items_skipped}"
        if outcome.error:
            line += f"  error={outcome.error}"
        print(line)
    print("=" * 60)
    print(f"{len(report.sources)} sources, {len(report.failed)} failed")

    return 1 if report.failed else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Backfill knowledge source vector stores")
    parser.add_argument("--run-id", help="Correlation id for this run")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    setup_logging(settings.SERVICE_NAME, level="DEBUG" if args.verbose else None)
    sys.exit(asyncio.run(main(run_id=args.run_id)))
