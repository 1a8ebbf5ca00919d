"""
Scryfall API client.

Async wrapper over the three endpoints the checklist reads:

- /cards/search: free-text card search with cursor pagination
- /sets/{code}/cards: direct "all cards in set" listing (may 404)
- /sets/{code}: set metadata (name, card count, parent set)

Every failure is raised as a ScryfallError subclass so callers can decide
whether it is fatal. The reconciliation pipeline never treats it as fatal.

API docs: https://scryfall.com/docs/api
"""

import asyncio
import logging
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any

import httpx

from setkeeper.config import settings

logger = logging.getLogger(__name__)


class ScryfallError(Exception):
    """Base class for Scryfall failures."""

    pass


class TransportError(ScryfallError):
    """Network failure or unreachable API."""

    pass


class NotFoundError(ScryfallError):
    """The API reports the query or set as nonexistent."""

    pass


class ApiReportedError(ScryfallError):
    """The API returned an error payload other than not_found."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class MalformedResponseError(ScryfallError):
    """The payload did not have the expected shape."""

    pass


@dataclass
class SearchPage:
    """One page of card records."""

    records: list[dict[str, Any]] = field(default_factory=list)
    next_page: str | None = None  # only set when the API reports has_more
    total_cards: int | None = None


@dataclass
class SetMetadata:
    """Set-level information from /sets/{code}."""

    code: str
    name: str
    card_count: int | None = None
    parent_set_code: str | None = None


class ScryfallClient:
    """
    Async Scryfall client.

    Use as an async context manager, or pass an existing httpx.AsyncClient
    (the caller then owns its lifecycle).
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        request_delay: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.scryfall_api_url).rstrip("/")
        self.request_delay = settings.request_delay if request_delay is None else request_delay
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=settings.request_timeout,
            headers={
                "User-Agent": settings.scryfall_user_agent,
                "Accept": "application/json",
            },
            follow_redirects=True,
        )
        self._requests_made = 0

    async def __aenter__(self) -> "ScryfallClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """
        GET a URL and return the decoded JSON object.

        Raises:
            TransportError: On network failure
            NotFoundError: On 404 or a not_found error payload
            ApiReportedError: On any other error status or payload
            MalformedResponseError: If the body is not a JSON object
        """
        if self._requests_made and self.request_delay > 0:
            await asyncio.sleep(self.request_delay)
        self._requests_made += 1

        logger.debug("GET %s %s", url, params or "")
        try:
            response = await self._client.get(url, params=params)
        except httpx.RequestError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and payload.get("object") == "error":
            code = payload.get("code")
            details = payload.get("details", "")
            if code == "not_found" or response.status_code == 404:
                raise NotFoundError(details or f"Not found: {url}")
            raise ApiReportedError(
                details or f"Scryfall error {code}", status_code=response.status_code, code=code
            )

        if response.status_code == 404:
            raise NotFoundError(f"Not found: {url}")
        if response.is_error:
            raise ApiReportedError(
                f"HTTP {response.status_code} from {url}", status_code=response.status_code
            )

        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Expected JSON object from {url}")
        return payload

    @staticmethod
    def _to_page(payload: dict[str, Any]) -> SearchPage:
        data = payload.get("data")
        if not isinstance(data, list):
            raise MalformedResponseError("List response is missing its data array")

        records = [record for record in data if isinstance(record, dict)]
        next_page = payload.get("next_page") if payload.get("has_more") else None
        total = payload.get("total_cards")
        return SearchPage(
            records=records,
            next_page=str(next_page) if next_page else None,
            total_cards=total if isinstance(total, int) else None,
        )

    async def search(self, query: str, unique: str | None = None) -> SearchPage:
        """
        Run a card search.

        Args:
            query: Scryfall search syntax, e.g. ``set:tla frame:showcase``
            unique: Optional uniqueness mode (``prints`` returns every printing)
        """
        params = {"q": query}
        if unique:
            params["unique"] = unique
        payload = await self._get_json(f"{self.base_url}/cards/search", params)
        return self._to_page(payload)

    async def set_cards(self, set_code: str) -> SearchPage:
        """Fetch the direct card listing for a set."""
        payload = await self._get_json(f"{self.base_url}/sets/{set_code.lower()}/cards")
        return self._to_page(payload)

    async def fetch_page(self, url: str) -> SearchPage:
        """Follow a continuation URL returned by a previous page."""
        payload = await self._get_json(url)
        return self._to_page(payload)

    async def set_metadata(self, set_code: str) -> SetMetadata:
        """Fetch display name, card count, and parent set for a set."""
        payload = await self._get_json(f"{self.base_url}/sets/{set_code.lower()}")
        if "name" not in payload:
            raise MalformedResponseError(f"Set payload for {set_code} has no name")

        card_count = payload.get("card_count")
        return SetMetadata(
            code=str(payload.get("code", set_code)).lower(),
            name=str(payload["name"]),
            card_count=card_count if isinstance(card_count, int) else None,
            parent_set_code=payload.get("parent_set_code"),
        )
