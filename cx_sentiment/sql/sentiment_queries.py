"""
Parameterized SQL for the sentiment pipeline's persistence contract.

Tables touched:
    ai_providers   read   single active provider (provider, api_key)
    submissions    read   rows lacking analysis->'sentiment'
                   write  analysis (jsonb)
    ctl_alerts     write  one row per flagged submission, conflict-ignored

"Unanalyzed" means ``analysis IS NULL OR analysis->'sentiment' IS NULL``; a
submission leaves that set as soon as its analysis is written, which is what
makes the backfill resumable.
"""


UNANALYZED_CONDITION = "(analysis IS NULL OR analysis->'sentiment' IS NULL)"


# =============================================================================
# AI Provider
# =============================================================================

GET_ACTIVE_AI_PROVIDER = """
    SELECT provider, api_key
    FROM ai_providers
    WHERE is_active = true
    LIMIT 1
"""


# =============================================================================
# Submissions
# =============================================================================

COUNT_UNANALYZED_SUBMISSIONS = f"""
    SELECT COUNT(*) AS count
    FROM submissions
    WHERE {UNANALYZED_CONDITION}
"""

# $1 = batch size, $2 = offset
FETCH_UNANALYZED_BATCH = f"""
    SELECT id, tenant_id, form_id, data
    FROM submissions
    WHERE {UNANALYZED_CONDITION}
    ORDER BY created_at DESC
    LIMIT $1 OFFSET $2
"""

# $1 = submission id
FETCH_SUBMISSION_BY_ID = """
    SELECT id, tenant_id, form_id, data
    FROM submissions
    WHERE id = $1
"""

# $1 = analysis payload (jsonb), $2 = submission id
UPDATE_SUBMISSION_ANALYSIS = """
    UPDATE submissions
    SET analysis = $1
    WHERE id = $2
"""


# =============================================================================
# Close-The-Loop Alerts
# =============================================================================

INSERT_CTL_ALERT = """
    INSERT INTO ctl_alerts (
        tenant_id, form_id, submission_id,
        alert_level, score_value, score_type, sentiment
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7)
    ON CONFLICT DO NOTHING
"""
