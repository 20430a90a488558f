"""
Sentiment Analysis Backfill Job.

Batch processes historical submissions that have no sentiment analysis yet
(``analysis IS NULL OR analysis->'sentiment' IS NULL``), newest first.

Processing is strictly sequential: each submission is extracted, sent to the
AI service, parsed and persisted before the next one starts, and the job
sleeps a fixed delay after every submission whatever its outcome. With the
default 200ms that caps the provider at 5 requests/second (300/minute).

Run Phases:
1. Configuration: load the single active AI provider; abort if there is none.
2. Count: number of unanalyzed submissions, capped by --limit.
3. Batch loop: fetch up to backfill_batch_size rows at a time with
   LIMIT/OFFSET. Rows written during a batch drop out of the unanalyzed set,
   so the offset only advances past rows that are still unanalyzed. An empty
   fetch ends the run early.
4. Summary: total/processed/success/skipped/failed, success rate and an
   estimated full-backfill duration.

Dry-run mode calls the AI service but performs no database writes.

The job is resumable: interrupting it leaves every already-written submission
analyzed, and a re-run only selects what is still missing.

Usage:
    cx-sentiment-backfill [--limit=1000] [--dry-run]
    python -m cx_sentiment.jobs.backfill_sentiment --limit=50 --dry-run

Exit codes:
    0: run completed, including "nothing to process"
    1: no active AI provider, or an unhandled error (e.g. a database failure)
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence

from asyncpg import Connection
from pydantic import ValidationError

from cx_sentiment.core.config import Settings, get_settings
from cx_sentiment.core.database import close_db, get_db_pool
from cx_sentiment.models.enums import SubmissionOutcome
from cx_sentiment.models.schemas import AIConfig
from cx_sentiment.services.ai_client import SentimentAIClient
from cx_sentiment.services.sentiment import (
    analyze_submission,
    load_ai_config,
    persist_analysis,
)
from cx_sentiment.sql.sentiment_queries import (
    COUNT_UNANALYZED_SUBMISSIONS,
    FETCH_UNANALYZED_BATCH,
)


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


# =============================================================================
# Errors and Stats
# =============================================================================

class BackfillConfigurationError(Exception):
    """Raised when the run cannot start, e.g. no active AI provider."""


@dataclass
class BackfillStats:
    """
    Counters for one backfill run.

    Every processed submission lands in exactly one of success, skipped
    (no analyzable text) or failed (AI error, timeout or unparseable reply).
    """
    total: int = 0
    processed: int = 0
    success: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: SubmissionOutcome) -> None:
        self.processed += 1
        if outcome == SubmissionOutcome.SUCCESS:
            self.success += 1
        elif outcome == SubmissionOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    @property
    def success_rate(self) -> float:
        """Percentage of processed submissions that succeeded (0.0 if none)."""
        if self.processed == 0:
            return 0.0
        return self.success / self.processed * 100

    def estimated_minutes(self, delay_ms: int) -> float:
        """Lower bound for a full backfill, from the per-item delay alone."""
        return self.total * delay_ms / 1000 / 60

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Configuration
# =============================================================================

async def get_ai_config(conn: Connection) -> AIConfig:
    """
    Load the active AI provider configuration.

    Raises:
        BackfillConfigurationError: If no provider is active or the active
            row has no provider name or API key.
    """
    try:
        ai_config = await load_ai_config(conn)
    except ValidationError as e:
        raise BackfillConfigurationError(
            f"Active AI provider is misconfigured: {e.error_count()} invalid field(s)"
        ) from e

    if ai_config is None:
        raise BackfillConfigurationError(
            "No active AI provider found. Please configure an AI provider first."
        )

    return ai_config


async def count_unanalyzed(conn: Connection, limit: Optional[int] = None) -> int:
    """Count submissions lacking sentiment analysis, capped at ``limit`` if given."""
    count = await conn.fetchval(COUNT_UNANALYZED_SUBMISSIONS) or 0
    if limit:
        return min(int(count), limit)
    return int(count)


# =============================================================================
# Batch Processing
# =============================================================================

async def process_batch(
    conn: Connection,
    submissions: Sequence[Any],
    ai_config: AIConfig,
    client: SentimentAIClient,
    stats: BackfillStats,
    dry_run: bool = False,
    delay_ms: int = 200,
) -> int:
    """
    Run every submission of one batch through the pipeline.

    Args:
        conn: Connection used for the UPDATE/INSERT pair.
        submissions: Rows with id, tenant_id, form_id and data.
        ai_config: Active provider configuration.
        client: Open AI service client.
        stats: Updated in place.
        dry_run: Skip all writes.
        delay_ms: Sleep after each submission, whatever its outcome.

    Returns:
        Number of submissions whose analysis was written (always 0 in dry-run).

    Raises:
        asyncpg.PostgresError: Persistence failures are not caught.
    """
    written = 0

    for submission in submissions:
        submission_id = submission['id']
        logger.info(
            f"Processing submission {submission_id} ({stats.processed + 1}/{stats.total})..."
        )

        outcome, record = await analyze_submission(
            submission['data'],
            ai_config,
            client,
            submission_id=submission_id,
        )
        stats.record(outcome)

        if outcome == SubmissionOutcome.SUCCESS:
            if not dry_run:
                await persist_analysis(conn, submission, record)
                written += 1

            aggregate = record.sentiment['aggregate']
            logger.info(
                f"Sentiment analyzed for submission {submission_id} "
                f"(score={aggregate['score']}, emotion={aggregate['emotion']})"
            )
        elif outcome == SubmissionOutcome.SKIPPED:
            logger.warning(f"Skipped submission {submission_id} (no analyzable text)")
        else:
            logger.warning(f"Failed submission {submission_id} (AI call or parse error)")

        await asyncio.sleep(delay_ms / 1000)

    return written


async def run_backfill(
    limit: Optional[int] = None,
    dry_run: bool = False,
    settings: Optional[Settings] = None,
    client: Optional[SentimentAIClient] = None,
) -> BackfillStats:
    """
    Backfill sentiment analysis for unanalyzed submissions.

    Args:
        limit: Maximum number of submissions to process (None or 0 = all).
        dry_run: Call the AI service but write nothing.
        settings: Defaults to get_settings().
        client: AI service client; one is opened from settings if omitted.

    Returns:
        BackfillStats for the run.

    Raises:
        BackfillConfigurationError: No usable AI provider; nothing is processed.
        asyncpg.PostgresError: On any database failure.
    """
    settings = settings or get_settings()
    stats = BackfillStats()

    logger.info("Starting sentiment analysis backfill...")
    if dry_run:
        logger.info("DRY RUN MODE - No changes will be made")
    if limit:
        logger.info(f"Processing up to {limit} submissions")

    pool = await get_db_pool()

    async with pool.acquire() as conn:
        ai_config = await get_ai_config(conn)
        logger.info(f"Using AI provider: {ai_config.provider}")

        stats.total = await count_unanalyzed(conn, limit)
        logger.info(f"Found {stats.total} submissions without sentiment analysis")

        if stats.total == 0:
            logger.info("No submissions to process. Exiting.")
            return stats

        if client is None:
            async with SentimentAIClient.from_settings(settings) as owned_client:
                await _run_batches(conn, ai_config, owned_client, stats, dry_run, settings)
        else:
            await _run_batches(conn, ai_config, client, stats, dry_run, settings)

    log_summary(stats, settings.backfill_delay_ms)
    return stats


async def _run_batches(
    conn: Connection,
    ai_config: AIConfig,
    client: SentimentAIClient,
    stats: BackfillStats,
    dry_run: bool,
    settings: Settings,
) -> None:
    offset = 0

    while stats.processed < stats.total:
        batch_limit = min(settings.backfill_batch_size, stats.total - stats.processed)

        logger.info(f"Fetching batch: offset={offset}, limit={batch_limit}")
        submissions: List[Any] = await conn.fetch(FETCH_UNANALYZED_BATCH, batch_limit, offset)

        if not submissions:
            logger.info("No more unanalyzed submissions returned; stopping early")
            break

        written = await process_batch(
            conn,
            submissions,
            ai_config,
            client,
            stats,
            dry_run=dry_run,
            delay_ms=settings.backfill_delay_ms,
        )

        # Written rows no longer match the unanalyzed filter
        offset += len(submissions) - written

        logger.info(f"Batch complete. Progress: {stats.processed}/{stats.total}")


def log_summary(stats: BackfillStats, delay_ms: int) -> None:
    logger.info("=== Backfill Complete ===")
    logger.info(f"Total submissions: {stats.total}")
    logger.info(f"Processed: {stats.processed}")
    logger.info(f"Success: {stats.success}")
    logger.info(f"Skipped: {stats.skipped}")
    logger.info(f"Failed: {stats.failed}")
    logger.info(f"Success rate: {stats.success_rate:.1f}%")
    logger.info(
        f"Estimated time for full backfill: {stats.estimated_minutes(delay_ms):.1f} minutes"
    )


# =============================================================================
# CLI
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cx-sentiment-backfill',
        description="Backfill AI sentiment analysis for submissions that have none.",
    )
    parser.add_argument(
        "--limit", type=int, default=0,
        help="Process at most N submissions (0 = all)",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Call the AI service but don't write analysis or alerts",
    )
    return parser


async def _backfill_and_close(limit: Optional[int], dry_run: bool) -> BackfillStats:
    try:
        return await run_backfill(limit=limit, dry_run=dry_run)
    finally:
        await close_db()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error(f"Invalid configuration: {e}")
        return 1

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    limit = args.limit if args.limit > 0 else None

    try:
        asyncio.run(_backfill_and_close(limit, args.dry_run))
    except BackfillConfigurationError as e:
        logger.error(str(e))
        return 1
    except Exception:
        logger.exception("Backfill failed")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
