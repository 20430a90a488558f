"""
CX Sentiment Backend Package.

AI sentiment analysis for survey submissions: free-text extraction, PII
redaction, prompt construction, AI service calls, response normalization and
close-the-loop (CTL) alert classification, plus a rate-limited backfill job for
historical submissions.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, and dependencies
    - models: Pydantic schemas and enums
    - services: Sentiment pipeline stages and orchestration
    - jobs: Backfill job and CLI
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
