"""Transports that submit ingestion batches to the backend."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx


logger = logging.getLogger(__name__)

INGESTION_PATH = "/api/public/ingestion"
REQUEST_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class IngestionResponse:
    """Status and decoded body of one ingestion request."""
    status_code: int
    body: Any = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_retryable(self) -> bool:
        """Server errors and rate limiting are worth another attempt."""
        return self.status_code >= 500 or self.status_code == 429


class Transport(ABC):
    """
    Abstract destination for ingestion batches.

    Implementations return the backend's response for any HTTP status and
    raise only when the request could not be completed at all.
    """

    @abstractmethod
    def send(self, payload: dict[str, Any]) -> IngestionResponse:
        """Submit one batch payload ({"batch": [...]})."""
        ...


@dataclass
class HttpTransport(Transport):
    """
    Posts batches to <host>/api/public/ingestion with basic auth.

    Config:
        host: Backend base URL
        public_key / secret_key: Basic auth username / password
        headers: Extra headers added to every request
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (e.g. httpx.MockTransport)
    """
    host: str
    public_key: str
    secret_key: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = REQUEST_TIMEOUT_SECONDS
    transport: httpx.BaseTransport | None = None

    def send(self, payload: dict[str, Any]) -> IngestionResponse:
        logger.debug(f"POST {self.host}{INGESTION_PATH} ({len(payload.get('batch', []))} events)")
        with httpx.Client(
            base_url=self.host,
            auth=httpx.BasicAuth(self.public_key, self.secret_key),
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            response = client.post(
                INGESTION_PATH,
                json=payload,
                headers=self.headers,
            )

        return IngestionResponse(
            status_code=response.status_code,
            body=self._decode(response),
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
