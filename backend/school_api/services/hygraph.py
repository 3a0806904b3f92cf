"""
Hygraph GraphQL client: POST {query, variables} with a Bearer token.
Read queries retry on 429/5xx and transport errors (tenacity); mutations are sent exactly once
so a timed-out write is never replayed.
"""
import logging
import threading
from typing import Any

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from school_api.config import settings
from school_api.errors import HygraphError

logger = logging.getLogger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    """Retry on rate limit, server errors and network failures."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, HygraphError) and exc.status_code is not None:
        return exc.status_code == 429 or exc.status_code >= 500
    return False


class HygraphClient:
    # Overridden in tests to avoid sleeping between attempts.
    retry_wait = wait_exponential(multiplier=0.5, min=0.5, max=8)

    def __init__(
        self,
        endpoint: str,
        token: str,
        mutation_token: str | None = None,
        timeout: float = 15.0,
        max_attempts: int = 3,
        transport: httpx.BaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self.token = token
        self.mutation_token = mutation_token or token
        self.max_attempts = max(1, max_attempts)
        self._http = httpx.Client(timeout=timeout, transport=transport)

    def _post(self, document: str, variables: dict | None, token: str) -> dict:
        response = self._http.post(
            self.endpoint,
            json={"query": document, "variables": variables or {}},
            headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
        )
        if response.status_code >= 400:
            raise HygraphError(f"HTTP error! status: {response.status_code}", status_code=response.status_code)
        try:
            payload = response.json()
        except ValueError as e:
            raise HygraphError("Invalid JSON from Hygraph", status_code=response.status_code) from e
        errors = payload.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            message = first.get("message") if isinstance(first, dict) else str(first)
            raise HygraphError(message or "GraphQL error")
        data = payload.get("data")
        if data is None:
            raise HygraphError("No data returned from GraphQL query")
        return data

    def query(self, document: str, variables: dict | None = None) -> dict[str, Any]:
        """Run a read query; retried on transient failures."""

        @retry(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            reraise=True,
        )
        def _run():
            return self._post(document, variables, self.token)

        try:
            return _run()
        except httpx.TransportError as e:
            logger.warning("Hygraph query failed after %s attempt(s): %s", self.max_attempts, e)
            raise HygraphError(f"Hygraph request failed: {e}") from e

    def mutate(self, document: str, variables: dict | None = None) -> dict[str, Any]:
        """Run a mutation once with the mutation token."""
        try:
            return self._post(document, variables, self.mutation_token)
        except httpx.TransportError as e:
            logger.warning("Hygraph mutation failed: %s", e)
            raise HygraphError(f"Hygraph request failed: {e}") from e

    def close(self) -> None:
        self._http.close()


_client: HygraphClient | None = None
_client_lock = threading.Lock()


def get_hygraph_client() -> HygraphClient:
    """Process-wide client, created on first use from settings."""
    global _client
    with _client_lock:
        if _client is None:
            endpoint = (settings.hygraph_endpoint or "").strip()
            token = (settings.hygraph_token or "").strip()
            if not endpoint or not token:
                raise HygraphError("Hygraph client not initialized. Set HYGRAPH_ENDPOINT and HYGRAPH_TOKEN.")
            _client = HygraphClient(
                endpoint,
                token,
                mutation_token=settings.mutation_token,
                timeout=settings.hygraph_timeout_seconds,
                max_attempts=settings.hygraph_max_attempts,
            )
        return _client


def reset_hygraph_client() -> None:
    """Drop the cached client (shutdown, or after settings change in tests)."""
    global _client
    with _client_lock:
        if _client is not None:
            _client.close()
        _client = None
