"""
Batch jobs for the CX sentiment backend.

- backfill_sentiment: analyzes historical submissions that have no sentiment
  analysis yet, rate limited and resumable.

Usage:
    from cx_sentiment.jobs import run_backfill

    stats = await run_backfill(limit=500, dry_run=True)
    print(stats.to_dict())
"""

from cx_sentiment.jobs.backfill_sentiment import (
    BackfillConfigurationError,
    BackfillStats,
    get_ai_config,
    process_batch,
    run_backfill,
    main,
)

__all__ = [
    'BackfillConfigurationError',
    'BackfillStats',
    'get_ai_config',
    'process_batch',
    'run_backfill',
    'main',
]
