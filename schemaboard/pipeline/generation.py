"""The schema generation step, as seen by the pipeline.

Generation itself is an external service.  The orchestrator only needs a
binary outcome, so it depends on the :class:`SchemaGenerator` protocol and
anything with a ``generate(page_id)`` method that raises on failure will do.
"""

from __future__ import annotations

from typing import Optional, Protocol

import httpx

from schemaboard.config import settings
from schemaboard.errors import ConfigurationError, GenerationError
from schemaboard.logger import logger


class SchemaGenerator(Protocol):
    def generate(self, page_id: str) -> None:
        """Generate structured data for *page_id*; raise on failure."""
        ...


class HttpSchemaGenerator:
    """Invoke a remote generation endpoint with ``POST {"page_id": ...}``.

    Args:
        endpoint: URL of the generation service.  ``None`` makes every call
            fail with :class:`~schemaboard.errors.ConfigurationError`.
        client: Optional pre-built :class:`httpx.Client`.
    """

    def __init__(
        self,
        endpoint: Optional[str],
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.endpoint = endpoint
        self._client = client

    def _post(self, page_id: str) -> httpx.Response:
        payload = {"page_id": page_id}
        if self._client is not None:
            return self._client.post(self.endpoint, json=payload)  # type: ignore[arg-type]
        with httpx.Client(timeout=settings.request_timeout) as client:
            return client.post(self.endpoint, json=payload)  # type: ignore[arg-type]

    def generate(self, page_id: str) -> None:
        if not self.endpoint:
            raise ConfigurationError("Schema generator endpoint is not configured")

        logger.info("Requesting schema generation for page {}", page_id)
        try:
            response = self._post(page_id)
        except httpx.HTTPError as exc:
            raise GenerationError(f"Schema generation failed: {exc}") from exc

        if not response.is_success:
            raise GenerationError(
                f"Schema generation failed: {response.status_code} {response.text[:200]}"
            )
