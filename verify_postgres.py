import asyncio
import sys

import asyncpg

from backend.app.core.config import settings

# asyncpg takes a plain postgresql:// DSN
db_url = settings.database_url.replace("+asyncpg", "")

print(f"Testing connection to: {db_url.split('@')[-1]}")


async def check_db():
    try:
        conn = await asyncpg.connect(db_url)
    except (OSError, asyncpg.PostgresError) as e:
        print(f"❌ Connection Failed: {e}")
        sys.exit(1)

    try:
        count = await conn.fetchval(
            "SELECT count(*) FROM information_schema.tables WHERE table_name IN ('users', 'shipments')"
        )
        print(f"✅ Connection Successful! ({count}/2 tables present)")
    finally:
        await conn.close()


if __name__ == "__main__":
    asyncio.run(check_db())
