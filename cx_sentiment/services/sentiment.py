"""
Single-submission sentiment step.

Runs one submission through the whole pipeline and optionally persists it:

    extract_text_fields -> build_sentiment_prompt -> SentimentAIClient.analyze
        -> parse_sentiment_response -> should_trigger_alert / get_flag_reason

Outcome classification:
- SKIPPED: no analyzable text; the AI service is never called
- FAILED: the AI call raised AIServiceError or its reply could not be parsed
- SUCCESS: an analysis record was produced

Both the backfill job and the sentiment router go through analyze_submission()
and persist_analysis(), so batch and request-time results are identical.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Tuple

from asyncpg import Connection

from cx_sentiment.models.enums import AlertLevel, SubmissionOutcome
from cx_sentiment.models.schemas import (
    AIConfig,
    CTLAlert,
    SentimentAnalysisRecord,
    SentimentAnalysisResult,
)
from cx_sentiment.services.ai_client import AIServiceError, SentimentAIClient
from cx_sentiment.services.alerting import (
    get_ctl_alert_level,
    get_flag_reason,
    should_trigger_alert,
)
from cx_sentiment.services.prompt_builder import build_sentiment_prompt
from cx_sentiment.services.response_parser import parse_sentiment_response
from cx_sentiment.services.text_extraction import extract_text_fields
from cx_sentiment.sql.sentiment_queries import (
    GET_ACTIVE_AI_PROVIDER,
    INSERT_CTL_ALERT,
    UPDATE_SUBMISSION_ANALYSIS,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Provider Configuration
# =============================================================================

async def load_ai_config(conn: Connection) -> Optional[AIConfig]:
    """
    Load the single active AI provider.

    Returns:
        AIConfig, or None when no provider is active.

    Raises:
        pydantic.ValidationError: If the active row lacks a provider or API key.
    """
    row = await conn.fetchrow(GET_ACTIVE_AI_PROVIDER)
    if row is None:
        return None
    return AIConfig.from_provider_row(row)


# =============================================================================
# Payload Construction
# =============================================================================

def build_analysis_payload(
    result: SentimentAnalysisResult,
    provider: str
) -> SentimentAnalysisRecord:
    """
    Wrap a parsed result into the record stored on ``submissions.analysis``.

    The sentiment dict is the result itself plus ``flagged`` and
    ``flagReason``; flagReason is None unless the result is flagged.
    """
    flagged = should_trigger_alert(result)

    sentiment = result.to_dict()
    sentiment['flagged'] = flagged
    sentiment['flagReason'] = get_flag_reason(result) if flagged else None

    return SentimentAnalysisRecord(provider=provider, sentiment=sentiment)


def get_record_alert_level(record: SentimentAnalysisRecord) -> Optional[AlertLevel]:
    """Alert level of a stored record; None unless it is flagged."""
    if not record.flagged:
        return None
    return get_ctl_alert_level(record.sentiment['aggregate']['score'])


def build_ctl_alert(
    submission: Mapping,
    record: SentimentAnalysisRecord
) -> Optional[CTLAlert]:
    """Build the CTL alert row for a flagged record, or None if it does not alert."""
    alert_level = get_record_alert_level(record)
    if alert_level is None:
        return None

    aggregate = record.sentiment['aggregate']

    return CTLAlert(
        tenantId=submission['tenant_id'],
        formId=submission['form_id'],
        submissionId=submission['id'],
        alertLevel=alert_level,
        scoreValue=aggregate['score'],
        sentiment=aggregate.get('emotion'),
    )


# =============================================================================
# Analysis
# =============================================================================

async def analyze_submission(
    data: Any,
    ai_config: AIConfig,
    client: SentimentAIClient,
    form_definition: Optional[Mapping] = None,
    submission_id: Any = None,
) -> Tuple[SubmissionOutcome, Optional[SentimentAnalysisRecord]]:
    """
    Analyze one submission's answers.

    Args:
        data: The submission answer map (may be None or malformed).
        ai_config: Active provider configuration.
        client: Open AI service client.
        form_definition: Optional form definition for label lookup.
        submission_id: Used for log context only.

    Returns:
        (outcome, record). record is set only when outcome is SUCCESS.
        AIServiceError is caught and reported as FAILED; nothing else is.
    """
    text_fields = extract_text_fields(data, form_definition)

    if not text_fields:
        logger.debug(f"No text fields to analyze for submission {submission_id}")
        return SubmissionOutcome.SKIPPED, None

    prompt = build_sentiment_prompt(text_fields)

    try:
        ai_response = await client.analyze(prompt, ai_config)
    except AIServiceError as e:
        logger.error(f"Sentiment analysis failed for submission {submission_id}: {e}")
        return SubmissionOutcome.FAILED, None

    result = parse_sentiment_response(ai_response)
    if result is None:
        logger.error(f"Failed to parse sentiment response for submission {submission_id}")
        return SubmissionOutcome.FAILED, None

    return SubmissionOutcome.SUCCESS, build_analysis_payload(result, ai_config.provider)


# =============================================================================
# Persistence
# =============================================================================

async def persist_analysis(
    conn: Connection,
    submission: Mapping,
    record: SentimentAnalysisRecord
) -> Optional[AlertLevel]:
    """
    Write the analysis onto the submission and insert its CTL alert if flagged.

    The two statements run independently, outside a transaction. Both are safe
    to repeat: the UPDATE overwrites and the INSERT ignores conflicts.

    Returns:
        The alert level inserted, or None when the record is not flagged.

    Raises:
        asyncpg.PostgresError: If either statement fails.
    """
    await conn.execute(
        UPDATE_SUBMISSION_ANALYSIS,
        record.model_dump(mode='json'),
        submission['id'],
    )

    alert = build_ctl_alert(submission, record)
    if alert is None:
        return None

    await conn.execute(
        INSERT_CTL_ALERT,
        alert.tenantId,
        alert.formId,
        alert.submissionId,
        alert.alertLevel.value,
        alert.scoreValue,
        alert.scoreType,
        alert.sentiment,
    )

    logger.info(
        f"CTL alert ({alert.alertLevel.value}) recorded for submission {alert.submissionId}"
    )

    return alert.alertLevel
