"""
Seed the sample catalog (three categories, three products).

Safe to re-run: categories are upserted by slug and products by name.

Run from the backend/ directory:
    python scripts/seed_catalog.py
"""
import asyncio
import os
import sys

# Add backend/ to path so we can import config
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import async_session, init_db  # noqa: E402
from services import seed_service  # noqa: E402


async def main() -> None:
    os.makedirs("data", exist_ok=True)
    await init_db()
    async with async_session() as db:
        counts = await seed_service.seed_sample_data(db)
        await db.commit()
    print(f"✅ Seeded {counts['categories']} categories and {counts['products']} products")


if __name__ == "__main__":
    asyncio.run(main())
