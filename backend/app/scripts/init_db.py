from __future__ import annotations

import argparse
import asyncio

from sqlalchemy.engine import make_url

from app.core.config import settings
from app.db.session import Database

# Registers the tables on Base.metadata.
import app.models  # noqa: F401


async def _run(database_url: str, drop: bool) -> None:
    db = Database(database_url, echo=settings.database_echo)
    await db.connect()
    try:
        if drop:
            await db.drop_all()
        await db.create_all()
    finally:
        await db.dispose()
    print(f"Schema ready on {make_url(database_url).render_as_string(hide_password=True)}.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the candidate tables.")
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first.")
    args = parser.parse_args()
    asyncio.run(_run(args.database_url, args.drop))


if __name__ == "__main__":
    main()
