"""
Async client for the AI service's sentiment endpoint.

The AI service owns provider SDKs and credentials handling; this side only
posts the rendered prompt plus the active provider config and hands the
``sentiment`` member of the reply to the response parser.

    POST {ai_service_url}/analyze-sentiment
    {"prompt": "...", "aiConfig": {"provider": ..., "apiKey": ..., "model": ...}}

    200 {"sentiment": "<raw model text>" | {...}}

Every failure (non-2xx status, timeout, connection error, undecodable body)
surfaces as AIServiceError so callers have a single exception to classify.
"""

import logging
from typing import Any, Optional

import httpx

from cx_sentiment.core.config import Settings
from cx_sentiment.models.schemas import AIConfig


logger = logging.getLogger(__name__)

ANALYZE_SENTIMENT_PATH: str = '/analyze-sentiment'


class AIServiceError(Exception):
    """Raised when the AI service call does not yield a usable reply."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SentimentAIClient:
    """
    Thin async wrapper around the AI service.

    Use as an async context manager so the underlying connection pool is
    closed. An externally supplied ``http_client`` is not closed here; its
    owner is responsible for it.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._base_url = base_url.rstrip('/')
        self._timeout = httpx.Timeout(timeout, connect=min(timeout, 5.0))
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self._timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SentimentAIClient":
        return cls(base_url=settings.ai_service_url, timeout=settings.ai_request_timeout)

    async def __aenter__(self) -> "SentimentAIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def analyze(self, prompt: str, ai_config: AIConfig) -> Any:
        """
        Send a sentiment prompt to the AI service.

        Args:
            prompt: Output of build_sentiment_prompt(); must not be empty.
            ai_config: Active provider configuration.

        Returns:
            The ``sentiment`` member of the reply, either raw text or an
            already-decoded object. None if the reply has no such member.

        Raises:
            AIServiceError: On non-2xx status, timeout or transport failure.
        """
        url = f"{self._base_url}{ANALYZE_SENTIMENT_PATH}"

        try:
            response = await self._http.post(
                url,
                json={'prompt': prompt, 'aiConfig': ai_config.model_dump()},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise AIServiceError(f"AI service timed out after {self._timeout.read}s") from e
        except httpx.HTTPError as e:
            raise AIServiceError(f"AI service request failed: {e}") from e

        if not response.is_success:
            raise AIServiceError(
                f"AI service returned {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AIServiceError(
                "AI service returned a non-JSON body",
                status_code=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise AIServiceError(
                f"AI service returned {type(data).__name__}, expected an object",
                status_code=response.status_code,
            )

        logger.debug(f"AI service replied {response.status_code} for provider {ai_config.provider}")

        return data.get('sentiment')
