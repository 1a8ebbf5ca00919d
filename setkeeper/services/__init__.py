"""
SetKeeper services.

Scryfall access and collection persistence.
"""

from setkeeper.services.collection_store import CollectionStore
from setkeeper.services.scryfall_client import (
    ApiReportedError,
    MalformedResponseError,
    NotFoundError,
    ScryfallClient,
    ScryfallError,
    SearchPage,
    SetMetadata,
    TransportError,
)

__all__ = [
    "ApiReportedError",
    "CollectionStore",
    "MalformedResponseError",
    "NotFoundError",
    "ScryfallClient",
    "ScryfallError",
    "SearchPage",
    "SetMetadata",
    "TransportError",
]
