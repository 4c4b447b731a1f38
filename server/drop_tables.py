"""
Script to drop the users table and wipe stored chat history.
This will remove all data - use with caution!
"""

import asyncio
import logging
import os

import asyncpg
from dotenv import load_dotenv
from redis.asyncio import Redis

from core.history import HISTORY_KEY_TEMPLATE

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

TABLES_TO_DROP = ["users"]


async def drop_all_tables(database_url: str) -> None:
    """Drop all relational tables to start fresh."""
    conn = await asyncpg.connect(database_url)
    try:
        for table in TABLES_TO_DROP:
            await conn.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
            logger.info("Dropped table: %s", table)
    finally:
        await conn.close()


async def clear_history(client: Redis) -> int:
    """Delete every per-user history key; returns how many were removed."""
    removed = 0
    async for key in client.scan_iter(match=HISTORY_KEY_TEMPLATE.format(user_id="*")):
        removed += await client.delete(key)
    logger.info("Removed %d history keys", removed)
    return removed


async def main() -> bool:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL environment variable is not set")
        return False

    await drop_all_tables(database_url)

    client = Redis.from_url(os.getenv("REDIS_URL", "redis://localhost:6379/0"), decode_responses=True)
    try:
        await clear_history(client)
    finally:
        await client.aclose()

    logger.info("Storage reset. Restart the server to recreate the schema.")
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
    asyncio.run(main())
