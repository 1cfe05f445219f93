"""Category suggestions from an external text-in/text-out service."""

from __future__ import annotations

from typing import Any, Protocol

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from rate_ledger.utils.logger import get_logger

LOGGER = get_logger(__name__)


class CategorySuggestionError(RuntimeError):
    """The suggestion service failed or returned an unusable answer."""


class CategorySuggester(Protocol):
    """Contract for anything that maps a product name to one category.

    Implementations must be free of side effects on the ledger; their output
    only ever pre-fills the ``category`` metadata field.
    """

    def suggest(self, product_name: str) -> str:
        ...  # pragma: no cover - protocol definition


class HTTPCategorySuggester:
    """Ask a JSON endpoint for a category, retrying transport failures.

    The endpoint receives ``{"productName": "..."}`` and must answer with
    ``{"category": "..."}``.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        timeout: float = 10,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        session: requests.Session | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("endpoint is required")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.endpoint = endpoint
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if api_key:
            self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    def _post(self, product_name: str) -> Any:
        response = self.session.post(
            self.endpoint,
            json={"productName": product_name},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def suggest(self, product_name: str) -> str:
        if not product_name or not product_name.strip():
            raise CategorySuggestionError("product_name is required")
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=30),
            retry=retry_if_exception_type(
                (requests.ConnectionError, requests.Timeout)
            ),
            before_sleep=lambda state: LOGGER.debug(
                "Retrying category suggestion (attempt %s): %s",
                state.attempt_number,
                state.outcome.exception() if state.outcome else None,
            ),
            reraise=True,
        )
        try:
            payload = retrying(self._post, product_name.strip())
        except (requests.RequestException, ValueError) as exc:
            raise CategorySuggestionError(f"Category suggestion failed: {exc}") from exc

        category = payload.get("category") if isinstance(payload, dict) else None
        if not isinstance(category, str) or not category.strip():
            raise CategorySuggestionError(
                "The suggestion service did not return a valid category."
            )
        return category.strip()


__all__ = ["CategorySuggester", "CategorySuggestionError", "HTTPCategorySuggester"]
