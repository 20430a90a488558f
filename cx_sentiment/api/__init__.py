"""
API package for the CX sentiment backend.

Router modules:
- sentiment: request-time sentiment analysis for posted answers and stored
  submissions
"""

from fastapi import APIRouter

from cx_sentiment.api.sentiment import router as sentiment_router

# Create main API router
api_router = APIRouter()

api_router.include_router(sentiment_router)  # sentiment router has its own prefix
