"""
Async PostgreSQL connection pool module.

This module provides an async PostgreSQL connection pool using asyncpg. Both the
FastAPI application and the sentiment backfill job obtain their connections here.

Key Components:
- Global connection pool singleton (_pool)
- init_db(): Initialize the connection pool at startup
- get_db_pool(): Get the pool instance (initializes if needed)
- close_db(): Gracefully close the pool at shutdown

Connection Pool Configuration:
- min_size: 1 (the backfill is strictly sequential and needs a single connection)
- max_size: 10 (request handlers share the pool)
- command_timeout: 60 seconds (query timeout)

JSON columns:
    ``submissions.data`` and ``submissions.analysis`` are jsonb. Every pooled
    connection registers a json/jsonb codec so those columns arrive as Python
    dicts and parameters may be passed as dicts.

Usage:
    await init_db()

    pool = await get_db_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow("SELECT * FROM submissions WHERE id = $1", submission_id)

    await close_db()
"""

import json
from typing import Optional

import asyncpg
from asyncpg import Connection, Pool

from cx_sentiment.core.config import get_settings


# =============================================================================
# Global Pool Singleton
# =============================================================================

# None until init_db() is called
_pool: Optional[Pool] = None


async def _init_connection(conn: Connection) -> None:
    """Register json/jsonb codecs so jsonb columns round-trip as dicts."""
    for type_name in ('json', 'jsonb'):
        await conn.set_type_codec(
            type_name,
            encoder=json.dumps,
            decoder=json.loads,
            schema='pg_catalog',
        )


# =============================================================================
# Pool Lifecycle Functions
# =============================================================================

async def init_db() -> Pool:
    """
    Initialize the database connection pool.

    Idempotent: if the pool already exists it is returned unchanged.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is None:
        settings = get_settings()

        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=1,
            max_size=10,
            command_timeout=60,
            init=_init_connection,
        )

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the database connection pool, initializing if needed.

    Returns:
        Pool: The asyncpg connection pool instance.
    """
    global _pool

    if _pool is None:
        await init_db()

    assert _pool is not None, "Pool should be initialized after init_db()"

    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Safe to call when the pool was never opened. After closing, the next
    get_db_pool() call creates a fresh pool.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
