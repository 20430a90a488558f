"""
Core infrastructure package for the CX sentiment backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL database connectivity via asyncpg

Only configuration and the pool lifecycle are re-exported here. FastAPI
dependencies live in ``cx_sentiment.core.dependencies`` and are imported from
there directly, so the backfill job can use the core package without pulling
in the web layer.

Usage Examples:
    from cx_sentiment.core import get_settings, get_db_pool

    settings = get_settings()
    pool = await get_db_pool()
"""

from cx_sentiment.core.config import Settings, get_settings
from cx_sentiment.core.database import init_db, close_db, get_db_pool


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
]
