#!/usr/bin/env python3
"""
Repair job coordinates that are missing, (0,0) or outside Israel.

Usage:
    python scripts/repair_job_coordinates.py [--apply|--dry-run] [--limit=N] [--concurrency=N]

Dry-run (default) computes the changes without writing them. Prints a JSON
summary to stdout; setup errors go to stderr as JSON with exit code 1.
"""
import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Process environment wins over .env.local
load_dotenv(PROJECT_ROOT / ".env.local", override=False)

from crm_geo.config import configure_logging, settings
from crm_geo.database.connection import create_session_factory
from crm_geo.repositories.job_repository import JobRepository
from crm_geo.services.backfill import DEFAULT_CONCURRENCY, DEFAULT_LIMIT, BackfillJob
from crm_geo.services.providers import GoogleGeocoder, NominatimGeocoder


def _positive_int(value):
    """Non-positive or unparseable values are ignored (defaults are kept)"""
    try:
        parsed = int(float(value))
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Repair unusable job coordinates")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--apply", dest="dry_run", action="store_false", help="write changes")
    mode.add_argument("--dry-run", dest="dry_run", action="store_true", help="only report (default)")
    parser.add_argument("--limit", type=_positive_int, default=DEFAULT_LIMIT)
    parser.add_argument("--concurrency", type=_positive_int, default=DEFAULT_CONCURRENCY)
    parser.set_defaults(dry_run=True)

    options = parser.parse_args(argv)
    if options.limit is None:
        options.limit = DEFAULT_LIMIT
    if options.concurrency is None:
        options.concurrency = DEFAULT_CONCURRENCY
    return options


async def run(options: argparse.Namespace, session_factory=None) -> dict:
    session_factory = session_factory or create_session_factory(
        settings.database_url or os.getenv("DATABASE_URL")
    )
    if session_factory is None:
        raise RuntimeError("Missing DATABASE_URL")

    job_repository = JobRepository(session_factory)
    async with GoogleGeocoder(api_key=settings.google_maps_server_api_key) as google, \
            NominatimGeocoder() as nominatim:
        job = BackfillJob(
            job_repository,
            providers=[google, nominatim],
            dry_run=options.dry_run,
            limit=options.limit,
            concurrency=options.concurrency
        )
        report = await job.run()
    return report.to_dict()


def main(argv=None) -> int:
    configure_logging("WARNING")
    options = parse_args(argv)
    try:
        result = asyncio.run(run(options))
    except Exception as e:
        print(json.dumps({"ok": False, "error": str(e)}, indent=2, ensure_ascii=False), file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
