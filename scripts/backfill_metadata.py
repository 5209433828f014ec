"""Backfill poster, genres and metadata from TMDB.

Looks up every movie missing any of the three (by IMDB link when the
poster is one, else by title) and stores what TMDB returns.

Usage:
    python scripts/backfill_metadata.py [--dry-run] [--limit N]
"""

import argparse
import sys

from config import config, get_logger
from database.db import UnifiedDatabase
from database.services.voting import VotingService
from vendors.tmdb import TMDBClient

logger = get_logger(__name__).bind(component="backfill")


def main():
    parser = argparse.ArgumentParser(description="Backfill movie metadata from TMDB")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without making changes",
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Limit number of movies to process",
    )
    parser.add_argument(
        "--db",
        default=config.DB_PATH,
        help="SQLite database path (default: MOVIENIGHT_DB_PATH)",
    )
    args = parser.parse_args()

    api_key = config.get_tmdb_key()
    if not api_key:
        print("TMDB_API_KEY is not set", file=sys.stderr)
        sys.exit(1)

    logger.info("starting backfill", dry_run=args.dry_run, limit=args.limit, db_path=args.db)

    with UnifiedDatabase(args.db) as db, TMDBClient(api_key, timeout=config.TMDB_TIMEOUT_SECONDS) as client:
        service = VotingService(db, metadata_client=client)
        stats = service.backfill_metadata(dry_run=args.dry_run, limit=args.limit)

    logger.info("backfill complete", **stats)

    if args.dry_run:
        print(f"\nDry run - would update {stats['updated']} of {stats['found']} movies")
    else:
        print(f"\nBackfill complete: {stats['updated']} of {stats['found']} movies updated")


if __name__ == "__main__":
    main()
