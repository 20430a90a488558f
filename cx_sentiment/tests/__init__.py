'''
CX Sentiment Backend Test Suite

Test Modules:
-------------
- test_text_extraction.py: length filter, answer shapes, labels
- test_pii.py: email/phone redaction, idempotence
- test_prompt_builder.py: entry format, redaction, fixed instructions
- test_normalization.py: score/confidence clamps and their defaults
- test_response_parser.py: JSON slicing, rejection, in-place correction
- test_alerting.py: CTL thresholds, flag decision, flag reason
- test_ai_client.py: AI service contract over httpx.MockTransport
- test_sentiment_service.py: single-submission step, end-to-end scenario,
  persistence
- test_backfill.py: batch loop, offset advancement, dry-run, CLI exit codes
- test_api.py: sentiment router via FastAPI TestClient

Running Tests:
--------------
    pip install -e ".[test]"
    pytest

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
