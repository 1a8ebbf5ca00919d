from collections.abc import Callable
from typing import Any

import pytest

from setkeeper.services.scryfall_client import NotFoundError, SearchPage, SetMetadata

CardFactory = Callable[..., dict[str, Any]]


def _make_card(
    card_id: str,
    number: int | str,
    set_code: str = "tla",
    name: str | None = None,
    image: bool = True,
    faces: bool = False,
) -> dict[str, Any]:
    """Build a minimal Scryfall card object."""
    record: dict[str, Any] = {
        "object": "card",
        "id": card_id,
        "name": name or f"Card {number}",
        "collector_number": str(number),
        "set": set_code,
        "set_name": "Avatar: The Last Airbender",
    }
    if faces:
        record["card_faces"] = [
            {
                "name": f"{record['name']} (front)",
                "image_uris": {"normal": f"https://cards.scryfall.io/normal/front/{card_id}.jpg"},
            },
            {
                "name": f"{record['name']} (back)",
                "image_uris": {"normal": f"https://cards.scryfall.io/normal/back/{card_id}.jpg"},
            },
        ]
    elif image:
        record["image_uris"] = {"normal": f"https://cards.scryfall.io/normal/{card_id}.jpg"}
    return record


class FakeScryfall:
    """
    In-memory stand-in for ScryfallClient.

    Unregistered queries behave like Scryfall does for an empty search: they
    raise NotFoundError.
    """

    def __init__(self) -> None:
        self.searches: dict[tuple[str, str | None], SearchPage | Exception] = {}
        self.listings: dict[str, SearchPage | Exception] = {}
        self.pages: dict[str, SearchPage | Exception] = {}
        self.metadata: dict[str, SetMetadata | Exception] = {}
        self.calls: list[str] = []

    def add_search(
        self,
        query: str,
        response: SearchPage | Exception,
        unique: str | None = None,
    ) -> None:
        self.searches[(query, unique)] = response

    @staticmethod
    def _resolve(response: SearchPage | Exception | None, what: str) -> SearchPage:
        if response is None:
            raise NotFoundError(f"No cards found for {what}")
        if isinstance(response, Exception):
            raise response
        return response

    async def search(self, query: str, unique: str | None = None) -> SearchPage:
        self.calls.append(query if unique is None else f"{query} [unique={unique}]")
        return self._resolve(self.searches.get((query, unique)), query)

    async def set_cards(self, set_code: str) -> SearchPage:
        self.calls.append(f"/sets/{set_code}/cards")
        return self._resolve(self.listings.get(set_code), set_code)

    async def fetch_page(self, url: str) -> SearchPage:
        self.calls.append(url)
        return self._resolve(self.pages.get(url), url)

    async def set_metadata(self, set_code: str) -> SetMetadata:
        self.calls.append(f"/sets/{set_code}")
        response = self.metadata.get(set_code)
        if response is None:
            raise NotFoundError(f"Unknown set {set_code}")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def make_card() -> CardFactory:
    """Factory for raw Scryfall card objects."""
    return _make_card


@pytest.fixture
def fake_scryfall() -> FakeScryfall:
    """Scryfall fake with no registered responses."""
    return FakeScryfall()
