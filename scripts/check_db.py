#!/usr/bin/env python
"""Check database connectivity and that the dashboard's tables exist.

Usage:
    uv run python scripts/check_db.py
"""

import asyncio
import sys

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from dashboard.core.config import get_settings
from dashboard.core.database import Base
from dashboard.features.data_platform import models  # noqa: F401  (registers tables)


async def check_database() -> int:
    """Verify connectivity and table presence."""
    settings = get_settings()

    print("Analytics Dashboard - Database Check")
    print("=" * 40)
    print(f"Database URL: {settings.database_url.split('@')[-1]}")  # Hide credentials
    print()

    engine = create_async_engine(settings.database_url)

    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            assert result.scalar() == 1
            print("[OK] Basic connectivity")

            existing = set(await conn.run_sync(lambda sync: inspect(sync).get_table_names()))
            missing = sorted(set(Base.metadata.tables) - existing)
            for table in sorted(Base.metadata.tables):
                marker = "[WARN]" if table in missing else "[OK]"
                print(f"{marker} table {table}")

        print()
        if missing:
            print(f"{len(missing)} table(s) missing. Run the chat front end's migrations first.")
            return 1
        print("Database check completed successfully!")
        return 0

    except (SQLAlchemyError, OSError) as e:
        print(f"[FAIL] Connection failed: {e}")
        print()
        print("Troubleshooting:")
        print("  1. Check DATABASE_URL in .env file")
        print("  2. Check DB_TABLE_PREFIX matches the front end's table prefix")
        return 1

    finally:
        await engine.dispose()


def main() -> None:
    sys.exit(asyncio.run(check_database()))


if __name__ == "__main__":
    main()
