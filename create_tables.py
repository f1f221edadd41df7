"""
Create (or drop) the PlanPDF tables directly from the models.

Handy for local development against Docker Postgres; production schemas
go through alembic.

Usage:
    python create_tables.py          # create jobs, profiles, subscriptions
    python create_tables.py --drop   # drop them
"""
import asyncio
import sys

from planpdf.database import engine
from planpdf.models.base import Base
# Register every model on Base.metadata
from planpdf.models.job import Job  # noqa: F401
from planpdf.models.profile import Profile  # noqa: F401
from planpdf.models.subscription import Subscription  # noqa: F401


async def create_all_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")


async def drop_all_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    print("All PlanPDF tables dropped")


async def main(argv: list[str]):
    if "--drop" in argv:
        await drop_all_tables()
    else:
        await create_all_tables()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
