"""
FastAPI application entry point for the CX Sentiment API.

Registers the sentiment router and manages the asyncpg pool lifecycle.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import asyncpg
from fastapi import FastAPI

from cx_sentiment.core.config import get_settings
from cx_sentiment.core.database import init_db, close_db
from cx_sentiment.api import api_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the database pool on startup and close it on shutdown.

    A failed pool initialization is logged and startup continues; the pool is
    created lazily by the first request that needs it.
    """
    logging.getLogger().setLevel(get_settings().log_level)

    logger.info("CX Sentiment API starting")
    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except (OSError, asyncpg.PostgresError) as e:
        logger.error(f"Failed to initialize database: {e}")

    yield

    logger.info("CX Sentiment API shutting down")
    await close_db()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="CX Sentiment API",
    version="1.0.0",
    description=(
        "AI sentiment analysis for survey submissions, with close-the-loop "
        "alerting for negative responses."
    ),
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancer probes."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {
        "name": "CX Sentiment API",
        "version": "1.0.0",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cx_sentiment.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
