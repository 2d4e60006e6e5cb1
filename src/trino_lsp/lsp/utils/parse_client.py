"""
HTTP client for the external SQL parsing/formatting service.

The service exposes a single endpoint that takes ``{"sql": text}`` and
returns the formatted text, completion suggestions and any parse error.
"""

import logging
from typing import Optional

import httpx

from .models import ParseResponse

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_URL = "http://localhost:4567/v1/parse"
DEFAULT_SERVICE_TIMEOUT = 10.0


class ParseServiceError(Exception):
    """Raised when the parsing service cannot be reached or answers badly."""
    pass


class ParseServiceClient:
    """
    Client for the parsing/formatting service.

    Each call opens its own ``httpx.AsyncClient``, so the client holds no
    connection state between requests and needs no explicit teardown.
    """

    def __init__(
        self,
        url: str = DEFAULT_SERVICE_URL,
        timeout: float = DEFAULT_SERVICE_TIMEOUT,
        include_auto_suggestions: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            url: Full URL of the parse endpoint
            timeout: Request timeout in seconds
            include_auto_suggestions: Ask the service for grammar-driven suggestions
            transport: Optional httpx transport, used by tests
        """
        if not url:
            raise ValueError("Parse service URL is required")

        self.url = url
        self.timeout = timeout
        self.include_auto_suggestions = include_auto_suggestions
        self._transport = transport

    async def parse(self, sql: str) -> ParseResponse:
        """
        Send text to the service.

        Args:
            sql: The document text, sent as-is

        Returns:
            The parsed service response

        Raises:
            ParseServiceError: If the request fails or the response is malformed
        """
        if not isinstance(sql, str):
            raise ParseServiceError(f"SQL must be a string, got {type(sql).__name__}")

        payload = {"sql": sql}
        if self.include_auto_suggestions:
            payload["include_auto_suggestions"] = True

        logger.debug(f"Sending {len(sql)} characters to parse service at {self.url}")
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(self.url, json=payload, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise ParseServiceError(
                f"Parse service returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ParseServiceError(f"Parse service request failed: {e}") from e
        except ValueError as e:
            raise ParseServiceError(f"Parse service returned invalid JSON: {e}") from e

        try:
            result = ParseResponse.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ParseServiceError(f"Unexpected parse service response: {e}") from e

        logger.debug(
            f"Parse service answered: error={result.has_error()}, "
            f"{len(result.suggestions)} suggestions"
        )
        return result
