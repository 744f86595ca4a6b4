#!/usr/bin/env python
"""Demo data seeder CLI.

Fill the chat application's tables with reproducible demo activity so every
dashboard chart has something to show.

Usage:
    # Generate 50 users with 90 days of activity
    uv run python scripts/seed_demo.py --seed 42 --users 50 --days 90 --confirm

    # Preview deletion of demo rows
    uv run python scripts/seed_demo.py --delete --dry-run

    # Delete demo rows
    uv run python scripts/seed_demo.py --delete --confirm
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dashboard.core.config import get_settings
from dashboard.core.logging import configure_logging
from dashboard.shared.seeder import DemoDataSeeder, SeederConfig


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Seed or delete demo data for the analytics dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--delete", action="store_true", help="Delete demo rows instead")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--users", type=int, default=50, help="Users to generate (default: 50)")
    parser.add_argument("--days", type=int, default=90, help="Days of activity (default: 90)")
    parser.add_argument(
        "--email-domain",
        default="demo.invalid",
        help="Email domain marking demo users (default: demo.invalid)",
    )
    parser.add_argument("--confirm", action="store_true", help="Required to write or delete")
    parser.add_argument("--dry-run", action="store_true", help="Only show what would be deleted")
    return parser


async def run(args: argparse.Namespace) -> int:
    """Execute the requested operation.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Process exit code.
    """
    settings = get_settings()
    if settings.is_production and not args.dry_run:
        print("[FAIL] Refusing to seed or delete demo data in production")
        return 1

    config = SeederConfig(
        seed=args.seed,
        users=args.users,
        days=args.days,
        email_domain=args.email_domain,
    )
    seeder = DemoDataSeeder(config)

    engine = create_async_engine(settings.database_url)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with session_maker() as db:
            if args.delete:
                counts = await seeder.delete_data(db, dry_run=args.dry_run)
                verb = "Would delete" if args.dry_run else "Deleted"
                for table, count in counts.items():
                    print(f"{verb} {count:>8} rows from {table}")
                return 0

            result = await seeder.generate_full(db)
            print(f"Seeded demo data (seed={result.seed})")
            print(f"  users:           {result.users_count}")
            print(f"  accounts:        {result.accounts_count}")
            print(f"  message logs:    {result.messages_count}")
            print(f"  request logs:    {result.requests_count}")
            print(f"  payment intents: {result.payment_intents_count}")
            print(f"  payment records: {result.payment_records_count}")
            return 0
    finally:
        await engine.dispose()


def main() -> None:
    parser = create_parser()
    args = parser.parse_args()

    if not args.confirm and not args.dry_run:
        parser.error("pass --confirm to write to the database (or --dry-run with --delete)")
    if args.dry_run and not args.delete:
        parser.error("--dry-run only applies to --delete")

    configure_logging()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
