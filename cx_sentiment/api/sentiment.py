"""
FastAPI router for request-time sentiment analysis.

Implements:
- POST /sentiment/analyze: run the pipeline over a posted answer map; nothing
  is written to the database.
- POST /sentiment/submissions/{submission_id}/analyze: run the pipeline over a
  stored submission and persist the analysis (plus its CTL alert when
  flagged). ``?dry_run=true`` skips the writes.

Both endpoints use the same single-submission step as the backfill job.

Error mapping:
- no active AI provider (or a misconfigured one): 503
- unknown submission: 404
- AI service error, timeout or unparseable reply: 502
- no analyzable text: 200 with outcome "skipped" and ``data: null``
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import ValidationError

from cx_sentiment.core.dependencies import AIClientDep, DBSessionDep
from cx_sentiment.models.enums import SubmissionOutcome
from cx_sentiment.models.schemas import (
    AIConfig,
    AnalyzeSentimentRequest,
    AnalyzeSentimentResponse,
)
from cx_sentiment.services.sentiment import (
    analyze_submission,
    get_record_alert_level,
    load_ai_config,
    persist_analysis,
)
from cx_sentiment.sql.sentiment_queries import FETCH_SUBMISSION_BY_ID


logger = logging.getLogger(__name__)


router = APIRouter(prefix="/sentiment", tags=["sentiment"])


async def _require_ai_config(db: Any) -> AIConfig:
    try:
        ai_config = await load_ai_config(db)
    except ValidationError:
        logger.error("Active AI provider is missing its provider name or API key")
        ai_config = None

    if ai_config is None:
        raise HTTPException(
            status_code=503,
            detail="No active AI provider configured"
        )
    return ai_config


def _raise_for_failure(outcome: SubmissionOutcome) -> None:
    if outcome == SubmissionOutcome.FAILED:
        raise HTTPException(
            status_code=502,
            detail="Sentiment analysis failed: AI service error or unparseable response"
        )


@router.post("/analyze", response_model=AnalyzeSentimentResponse)
async def analyze_sentiment(
    request: AnalyzeSentimentRequest,
    db: DBSessionDep,
    ai_client: AIClientDep,
) -> AnalyzeSentimentResponse:
    """
    Analyze the sentiment of an answer map without persisting anything.

    Returns:
        AnalyzeSentimentResponse with the analysis record, or outcome
        "skipped" when no answer is long enough to analyze.

    Raises:
        HTTPException 503: No active AI provider.
        HTTPException 502: The AI call failed or its reply was unusable.
    """
    ai_config = await _require_ai_config(db)

    outcome, record = await analyze_submission(
        request.data,
        ai_config,
        ai_client,
        form_definition=request.formDefinition,
    )
    _raise_for_failure(outcome)

    if record is None:
        return AnalyzeSentimentResponse(
            outcome=outcome.value,
            message="No analyzable text fields",
        )

    return AnalyzeSentimentResponse(
        outcome=outcome.value,
        alertLevel=get_record_alert_level(record),
        data=record,
    )


@router.post(
    "/submissions/{submission_id}/analyze",
    response_model=AnalyzeSentimentResponse
)
async def analyze_stored_submission(
    submission_id: int,
    db: DBSessionDep,
    ai_client: AIClientDep,
    dry_run: bool = Query(False, description="Analyze without writing analysis or alerts"),
) -> AnalyzeSentimentResponse:
    """
    Analyze a stored submission and persist the result.

    Raises:
        HTTPException 404: Submission not found.
        HTTPException 503: No active AI provider.
        HTTPException 502: The AI call failed or its reply was unusable.
    """
    submission = await db.fetchrow(FETCH_SUBMISSION_BY_ID, submission_id)
    if submission is None:
        raise HTTPException(
            status_code=404,
            detail=f"Submission '{submission_id}' not found"
        )

    ai_config = await _require_ai_config(db)

    outcome, record = await analyze_submission(
        submission['data'],
        ai_config,
        ai_client,
        submission_id=submission_id,
    )
    _raise_for_failure(outcome)

    if record is None:
        return AnalyzeSentimentResponse(
            outcome=outcome.value,
            message="No analyzable text fields",
        )

    if dry_run:
        return AnalyzeSentimentResponse(
            outcome=outcome.value,
            message="Dry run: nothing was written",
            alertLevel=get_record_alert_level(record),
            data=record,
        )

    alert_level = await persist_analysis(db, submission, record)

    logger.info(f"Sentiment analysis stored for submission {submission_id}")

    return AnalyzeSentimentResponse(
        outcome=outcome.value,
        message="Analysis stored",
        alertLevel=alert_level,
        data=record,
    )
