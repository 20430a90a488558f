"""
Tests for the sentiment backfill job.

Test Classes:
- TestBackfillStats: counters, success rate and time estimate
- TestConfiguration: active provider resolution and count capping
- TestProcessBatch: per-item classification, dry-run and pacing
- TestRunBackfill: batch loop, offset advancement and early termination
- TestMain: CLI arguments and exit codes
"""

import json
from typing import Any, Callable, Dict, List
from unittest.mock import AsyncMock, Mock, call, patch

import pytest

from cx_sentiment.jobs.backfill_sentiment import (
    BackfillConfigurationError,
    BackfillStats,
    count_unanalyzed,
    get_ai_config,
    main,
    process_batch,
    run_backfill,
)
from cx_sentiment.models.enums import SubmissionOutcome
from cx_sentiment.models.schemas import AIConfig
from cx_sentiment.services.ai_client import AIServiceError
from cx_sentiment.sql.sentiment_queries import (
    COUNT_UNANALYZED_SUBMISSIONS,
    FETCH_UNANALYZED_BATCH,
    UPDATE_SUBMISSION_ANALYSIS,
)


POSITIVE_TEXT = {'feedback': 'This is a great product that I really enjoy using!'}
NO_TEXT = {'rating': 4}


# =============================================================================
# BackfillStats
# =============================================================================

class TestBackfillStats:

    def test_record_buckets(self) -> None:
        stats = BackfillStats(total=3)

        stats.record(SubmissionOutcome.SUCCESS)
        stats.record(SubmissionOutcome.SKIPPED)
        stats.record(SubmissionOutcome.FAILED)

        assert stats.to_dict() == {
            'total': 3, 'processed': 3, 'success': 1, 'skipped': 1, 'failed': 1
        }

    def test_success_rate(self) -> None:
        stats = BackfillStats(total=4, processed=4, success=3, skipped=1)
        assert stats.success_rate == 75.0

    def test_success_rate_without_processed_items(self) -> None:
        assert BackfillStats().success_rate == 0.0

    def test_estimated_minutes(self) -> None:
        assert BackfillStats(total=300).estimated_minutes(200) == 1.0


# =============================================================================
# Configuration
# =============================================================================

@pytest.mark.asyncio
class TestConfiguration:

    async def test_active_provider(self, mock_conn: AsyncMock, provider_row: Dict[str, Any]) -> None:
        mock_conn.fetchrow.return_value = provider_row

        config = await get_ai_config(mock_conn)

        assert config.provider == 'openai'
        assert config.apiKey == 'sk-test'

    async def test_no_provider_raises(self, mock_conn: AsyncMock) -> None:
        mock_conn.fetchrow.return_value = None

        with pytest.raises(BackfillConfigurationError, match='No active AI provider'):
            await get_ai_config(mock_conn)

    async def test_provider_without_key_raises(self, mock_conn: AsyncMock) -> None:
        mock_conn.fetchrow.return_value = {'provider': 'openai', 'api_key': None}

        with pytest.raises(BackfillConfigurationError, match='misconfigured'):
            await get_ai_config(mock_conn)

    async def test_count_is_capped_by_limit(self, mock_conn: AsyncMock) -> None:
        mock_conn.fetchval.return_value = 250

        assert await count_unanalyzed(mock_conn, limit=100) == 100
        assert await count_unanalyzed(mock_conn, limit=1000) == 250
        assert await count_unanalyzed(mock_conn) == 250
        mock_conn.fetchval.assert_awaited_with(COUNT_UNANALYZED_SUBMISSIONS)


# =============================================================================
# process_batch
# =============================================================================

@pytest.mark.asyncio
class TestProcessBatch:

    async def test_classifies_each_submission(
        self,
        mock_conn: AsyncMock,
        ai_config: AIConfig,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        mock_ai_client.analyze.side_effect = [
            '{"aggregate": {"score": 0.6, "emotion": "happy"}}',
            AIServiceError('AI service returned 503', status_code=503),
            'garbage',
        ]
        submissions = [
            submission_factory(1, POSITIVE_TEXT),
            submission_factory(2, NO_TEXT),
            submission_factory(3, POSITIVE_TEXT),
            submission_factory(4, POSITIVE_TEXT),
        ]
        stats = BackfillStats(total=4)

        written = await process_batch(
            mock_conn, submissions, ai_config, mock_ai_client, stats, delay_ms=0
        )

        assert written == 1
        assert stats.to_dict() == {
            'total': 4, 'processed': 4, 'success': 1, 'skipped': 1, 'failed': 2
        }
        assert mock_ai_client.analyze.await_count == 3
        mock_conn.execute.assert_awaited_once()
        assert mock_conn.execute.await_args.args[0] == UPDATE_SUBMISSION_ANALYSIS
        assert mock_conn.execute.await_args.args[2] == 1

    async def test_flagged_submission_gets_alert(
        self,
        mock_conn: AsyncMock,
        ai_config: AIConfig,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        mock_ai_client.analyze.return_value = (
            '{"aggregate": {"score": -0.8, "emotion": "angry", "confidence": 0.9}}'
        )
        stats = BackfillStats(total=1)

        await process_batch(
            mock_conn, [submission_factory(1, POSITIVE_TEXT)], ai_config, mock_ai_client,
            stats, delay_ms=0,
        )

        assert mock_conn.execute.await_count == 2
        assert mock_conn.execute.await_args_list[1].args[4] == 'critical'

    async def test_odd_keywords_do_not_fail_the_submission(
        self,
        mock_conn: AsyncMock,
        ai_config: AIConfig,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        mock_ai_client.analyze.return_value = json.dumps({
            'aggregate': {'score': -0.8, 'emotion': 'angry', 'confidence': 0.9},
            'fields': {'feedback': {'score': -0.8, 'keywords': None}},
            'themes': 'billing',
            'summary': 12,
        })
        stats = BackfillStats(total=1)

        written = await process_batch(
            mock_conn, [submission_factory(1, POSITIVE_TEXT)], ai_config, mock_ai_client,
            stats, delay_ms=0,
        )

        assert written == 1
        assert stats.success == 1
        assert stats.failed == 0
        stored = mock_conn.execute.await_args_list[0].args[1]
        assert stored['sentiment']['fields'] == {'feedback': {'score': -0.8, 'keywords': None}}
        assert stored['sentiment']['themes'] == 'billing'
        assert mock_conn.execute.await_args_list[1].args[4] == 'critical'

    async def test_dry_run_writes_nothing(
        self,
        mock_conn: AsyncMock,
        ai_config: AIConfig,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        stats = BackfillStats(total=2)

        written = await process_batch(
            mock_conn,
            [submission_factory(1, POSITIVE_TEXT), submission_factory(2, POSITIVE_TEXT)],
            ai_config, mock_ai_client, stats, dry_run=True, delay_ms=0,
        )

        assert written == 0
        assert stats.success == 2
        assert mock_ai_client.analyze.await_count == 2
        mock_conn.execute.assert_not_awaited()

    async def test_sleeps_after_every_item(
        self,
        mock_conn: AsyncMock,
        ai_config: AIConfig,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        mock_ai_client.analyze.side_effect = AIServiceError('down')
        submissions = [
            submission_factory(1, POSITIVE_TEXT),
            submission_factory(2, NO_TEXT),
            submission_factory(3, POSITIVE_TEXT),
        ]

        with patch('cx_sentiment.jobs.backfill_sentiment.asyncio.sleep', new_callable=AsyncMock) as sleep:
            await process_batch(
                mock_conn, submissions, ai_config, mock_ai_client, BackfillStats(total=3),
                delay_ms=200,
            )

        assert sleep.await_args_list == [call(0.2)] * 3

    async def test_persistence_error_propagates(
        self,
        mock_conn: AsyncMock,
        ai_config: AIConfig,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        mock_conn.execute.side_effect = ConnectionError('db down')

        with pytest.raises(ConnectionError):
            await process_batch(
                mock_conn, [submission_factory(1, POSITIVE_TEXT)], ai_config, mock_ai_client,
                BackfillStats(total=1), delay_ms=0,
            )


# =============================================================================
# run_backfill
# =============================================================================

@pytest.mark.asyncio
class TestRunBackfill:

    @pytest.fixture
    def db(
        self,
        mock_database: AsyncMock,
        mock_conn: AsyncMock,
        provider_row: Dict[str, Any]
    ) -> AsyncMock:
        mock_conn.fetchrow.return_value = provider_row
        return mock_conn

    async def test_offset_skips_only_rows_still_unanalyzed(
        self,
        db: AsyncMock,
        mock_settings: Mock,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        db.fetchval.return_value = 3
        db.fetch.side_effect = [
            [submission_factory(1, POSITIVE_TEXT), submission_factory(2, NO_TEXT)],
            [submission_factory(3, POSITIVE_TEXT)],
        ]

        stats = await run_backfill(settings=mock_settings, client=mock_ai_client)

        # Submission 1 was written and left the unanalyzed set; 2 was not
        assert db.fetch.await_args_list == [
            call(FETCH_UNANALYZED_BATCH, 2, 0),
            call(FETCH_UNANALYZED_BATCH, 1, 1),
        ]
        assert stats.to_dict() == {
            'total': 3, 'processed': 3, 'success': 2, 'skipped': 1, 'failed': 0
        }
        assert db.execute.await_count == 2

    async def test_dry_run_advances_past_every_row(
        self,
        db: AsyncMock,
        mock_settings: Mock,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        db.fetchval.return_value = 3
        db.fetch.side_effect = [
            [submission_factory(1, POSITIVE_TEXT), submission_factory(2, POSITIVE_TEXT)],
            [submission_factory(3, POSITIVE_TEXT)],
        ]

        stats = await run_backfill(dry_run=True, settings=mock_settings, client=mock_ai_client)

        assert db.fetch.await_args_list[1] == call(FETCH_UNANALYZED_BATCH, 1, 2)
        assert stats.success == 3
        db.execute.assert_not_awaited()

    async def test_limit_caps_total(
        self,
        db: AsyncMock,
        mock_settings: Mock,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        db.fetchval.return_value = 500
        db.fetch.side_effect = [
            [submission_factory(1, POSITIVE_TEXT), submission_factory(2, POSITIVE_TEXT)],
            [submission_factory(3, POSITIVE_TEXT)],
        ]

        stats = await run_backfill(limit=3, settings=mock_settings, client=mock_ai_client)

        assert stats.total == 3
        assert stats.processed == 3
        assert db.fetch.await_count == 2

    async def test_empty_fetch_stops_early(
        self,
        db: AsyncMock,
        mock_settings: Mock,
        mock_ai_client: Mock,
    ) -> None:
        db.fetchval.return_value = 5
        db.fetch.return_value = []

        stats = await run_backfill(settings=mock_settings, client=mock_ai_client)

        assert stats.total == 5
        assert stats.processed == 0
        db.fetch.assert_awaited_once()

    async def test_failed_rows_are_stepped_over(
        self,
        db: AsyncMock,
        mock_settings: Mock,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        mock_settings.backfill_batch_size = 1
        mock_ai_client.analyze.side_effect = [
            AIServiceError('timeout'),
            '{"aggregate": {"score": 0.1}}',
        ]
        db.fetchval.return_value = 2
        db.fetch.side_effect = [
            [submission_factory(1, POSITIVE_TEXT)],
            [submission_factory(2, POSITIVE_TEXT)],
        ]

        stats = await run_backfill(settings=mock_settings, client=mock_ai_client)

        assert db.fetch.await_args_list == [
            call(FETCH_UNANALYZED_BATCH, 1, 0),
            call(FETCH_UNANALYZED_BATCH, 1, 1),
        ]
        assert stats.failed == 1
        assert stats.success == 1

    async def test_nothing_to_process(
        self,
        db: AsyncMock,
        mock_settings: Mock,
        mock_ai_client: Mock,
    ) -> None:
        db.fetchval.return_value = 0

        stats = await run_backfill(settings=mock_settings, client=mock_ai_client)

        assert stats.total == 0
        db.fetch.assert_not_awaited()
        mock_ai_client.analyze.assert_not_awaited()

    async def test_missing_provider_aborts_before_counting(
        self,
        mock_database: AsyncMock,
        mock_conn: AsyncMock,
        mock_settings: Mock,
        mock_ai_client: Mock,
    ) -> None:
        mock_conn.fetchrow.return_value = None

        with pytest.raises(BackfillConfigurationError):
            await run_backfill(settings=mock_settings, client=mock_ai_client)

        mock_conn.fetchval.assert_not_awaited()

    async def test_opens_client_from_settings(
        self,
        db: AsyncMock,
        mock_settings: Mock,
        mock_ai_client: Mock,
        submission_factory: Callable[..., Dict[str, Any]],
    ) -> None:
        db.fetchval.return_value = 1
        db.fetch.return_value = [submission_factory(1, POSITIVE_TEXT)]

        client_context = AsyncMock()
        client_context.__aenter__.return_value = mock_ai_client
        client_context.__aexit__.return_value = False

        with patch('cx_sentiment.jobs.backfill_sentiment.SentimentAIClient') as client_cls:
            client_cls.from_settings.return_value = client_context
            stats = await run_backfill(settings=mock_settings)

        client_cls.from_settings.assert_called_once_with(mock_settings)
        client_context.__aexit__.assert_awaited_once()
        assert stats.success == 1


# =============================================================================
# CLI
# =============================================================================

class TestMain:

    @pytest.fixture
    def cli_env(self, mock_settings: Mock):
        with patch('cx_sentiment.jobs.backfill_sentiment.get_settings', return_value=mock_settings), \
                patch('cx_sentiment.jobs.backfill_sentiment.close_db', new=AsyncMock()) as close_db, \
                patch('cx_sentiment.jobs.backfill_sentiment.run_backfill', new=AsyncMock()) as run:
            run.return_value = BackfillStats()
            yield run, close_db

    def test_arguments_are_forwarded(self, cli_env) -> None:
        run, close_db = cli_env

        assert main(['--limit=25', '--dry-run']) == 0

        run.assert_awaited_once_with(limit=25, dry_run=True)
        close_db.assert_awaited_once()

    def test_defaults(self, cli_env) -> None:
        run, _ = cli_env

        assert main([]) == 0

        run.assert_awaited_once_with(limit=None, dry_run=False)

    def test_configuration_error_exits_one(self, cli_env) -> None:
        run, close_db = cli_env
        run.side_effect = BackfillConfigurationError('No active AI provider found.')

        assert main([]) == 1
        close_db.assert_awaited_once()

    def test_unhandled_error_exits_one(self, cli_env) -> None:
        run, _ = cli_env
        run.side_effect = ConnectionError('db down')

        assert main([]) == 1

    @pytest.mark.parametrize('argv', [['--limit=0'], ['--limit=-5']])
    def test_non_positive_limit_means_all(self, cli_env, argv: List[str]) -> None:
        run, _ = cli_env

        assert main(argv) == 0

        run.assert_awaited_once_with(limit=None, dry_run=False)

    @pytest.mark.parametrize('argv', [['--limit=abc'], ['--batch=5']])
    def test_invalid_arguments(self, cli_env, argv: List[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(argv)

        assert exc_info.value.code == 2
