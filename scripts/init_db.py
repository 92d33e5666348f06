"""
Create the donations table directly (development / first deploy without Alembic).
"""
import asyncio

from sammilan.database import close_db, init_db


async def main():
    await init_db()
    await close_db()
    print("Database tables created")


if __name__ == "__main__":
    asyncio.run(main())
