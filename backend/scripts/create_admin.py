"""
Promote an existing account to the admin role.

The account must have signed up first. Run from the backend/ directory:
    python scripts/create_admin.py owner@zamsmart.ng
"""
import asyncio
import os
import sys

# Add backend/ to path so we can import config
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import async_session, init_db  # noqa: E402
from domain.errors import NotFoundError  # noqa: E402
from services import auth_service  # noqa: E402


async def main(email: str) -> int:
    await init_db()
    async with async_session() as db:
        try:
            profile = await auth_service.promote_to_admin(db, email=email)
        except NotFoundError:
            print(f"❌ No account for {email}. Sign up first, then re-run.")
            return 1
        await db.commit()
    print(f"✅ {profile.email} is now an admin (id={profile.id})")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/create_admin.py EMAIL")
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1])))
