"""
FastAPI dependency injection module for the CX sentiment backend.

Provides reusable dependencies for database connections, configuration access
and the AI service client, so route handlers stay free of infrastructure setup
and tests can swap any of them through ``app.dependency_overrides``.

Key Dependencies Provided:
- get_db_session: Async generator yielding database connections from the pool
- get_settings_dependency: Returns the cached Settings singleton
- get_ai_client: Async generator yielding a SentimentAIClient bound to settings
- SettingsDep / DBSessionDep / AIClientDep: Annotated aliases for endpoints

Usage Examples:
    @router.post("/submissions/{submission_id}/analyze")
    async def analyze_stored_submission(
        submission_id: int,
        db: DBSessionDep,
        ai_client: AIClientDep,
    ) -> dict:
        row = await db.fetchrow(FETCH_SUBMISSION_BY_ID, submission_id)
        ...
"""

from typing import AsyncGenerator, Annotated

from fastapi import Depends
from asyncpg import Connection

from cx_sentiment.core.config import Settings, get_settings
from cx_sentiment.core.database import get_db_pool
from cx_sentiment.services.ai_client import SentimentAIClient


# =============================================================================
# Database Session Dependency
# =============================================================================

async def get_db_session() -> AsyncGenerator[Connection, None]:
    """
    Yield an async database connection from the pool.

    The connection is released back to the pool when the endpoint completes,
    whether or not the handler raised.

    Yields:
        asyncpg.Connection: An active database connection from the pool.
    """
    pool = await get_db_pool()
    async with pool.acquire() as connection:
        yield connection


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# =============================================================================
# AI Client Dependency
# =============================================================================

async def get_ai_client(
    settings: Annotated[Settings, Depends(get_settings_dependency)],
) -> AsyncGenerator[SentimentAIClient, None]:
    """Yield a SentimentAIClient for the duration of one request."""
    async with SentimentAIClient.from_settings(settings) as client:
        yield client


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

DBSessionDep = Annotated[Connection, Depends(get_db_session)]

AIClientDep = Annotated[SentimentAIClient, Depends(get_ai_client)]
