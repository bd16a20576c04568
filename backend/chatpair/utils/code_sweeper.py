"""Retire chat codes whose validity window has passed.

Expired codes stop resolving immediately, but their digits stay reserved
until they are retired. Run periodically, e.g. from cron:

    python -m chatpair.utils.code_sweeper
"""
import asyncio

from chatpair.core.database import SessionLocal, engine, Base
from chatpair import models  # noqa: F401
from chatpair.services.code_registry import CodeRegistry

async def sweep_expired_codes() -> int:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        retired = await CodeRegistry(db).retire_expired_codes()
    print(f"Retired {retired} expired chat codes")
    return retired

if __name__ == "__main__":
    asyncio.run(sweep_expired_codes())
