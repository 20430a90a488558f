"""
SQL query module for the CX sentiment backend.

All statements use asyncpg positional parameters ($1, $2, ...) and are
re-exported here so callers can import from cx_sentiment.sql directly.
"""

from cx_sentiment.sql.sentiment_queries import (
    UNANALYZED_CONDITION,
    GET_ACTIVE_AI_PROVIDER,
    COUNT_UNANALYZED_SUBMISSIONS,
    FETCH_UNANALYZED_BATCH,
    FETCH_SUBMISSION_BY_ID,
    UPDATE_SUBMISSION_ANALYSIS,
    INSERT_CTL_ALERT,
)

__all__ = [
    'UNANALYZED_CONDITION',
    'GET_ACTIVE_AI_PROVIDER',
    'COUNT_UNANALYZED_SUBMISSIONS',
    'FETCH_UNANALYZED_BATCH',
    'FETCH_SUBMISSION_BY_ID',
    'UPDATE_SUBMISSION_ANALYSIS',
    'INSERT_CTL_ALERT',
]
