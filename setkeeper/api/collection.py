"""
Collection API endpoints.

Reads and updates per-card collected/foil status.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from setkeeper.api.dependencies import get_collection_store, get_reconciler
from setkeeper.models.collection import CollectionEntry
from setkeeper.reconcile.reconciler import SetReconciler
from setkeeper.services.collection_store import CollectionStore

router = APIRouter(prefix="/collection", tags=["collection"])


class EntryStatus(BaseModel):
    """Collected/foil flags of one card."""

    collected: bool = False
    foil: bool = False


class EntryResponse(BaseModel):
    """Collection status of one card."""

    set_code: str
    card_id: str
    collected: bool
    foil: bool


class ToggleRequest(BaseModel):
    """New value for a collected or foil flag."""

    value: bool = Field(..., description="Desired flag value")


class SetCollectionResponse(BaseModel):
    """All recorded entries for a set."""

    set_code: str
    collected: int = 0
    foil: int = 0
    entries: dict[str, EntryStatus] = Field(default_factory=dict)


def _entry_response(set_code: str, card_id: str, entry: CollectionEntry) -> EntryResponse:
    return EntryResponse(
        set_code=set_code,
        card_id=card_id,
        collected=entry.collected,
        foil=entry.foil,
    )


@router.get("/{set_code}", response_model=SetCollectionResponse)
async def get_set_collection(
    set_code: str,
    reconciler: Annotated[SetReconciler, Depends(get_reconciler)],
    store: Annotated[CollectionStore, Depends(get_collection_store)],
) -> SetCollectionResponse:
    """Get every recorded entry for a set."""
    code = reconciler.definition(set_code).code
    entries = await store.entries(code)
    return SetCollectionResponse(
        set_code=code,
        collected=await store.collected_count(code),
        foil=await store.foil_count(code),
        entries={
            card_id: EntryStatus(collected=entry.collected, foil=entry.foil)
            for card_id, entry in entries.items()
        },
    )


@router.put("/{set_code}/{card_id}/collected", response_model=EntryResponse)
async def set_collected(
    set_code: str,
    card_id: str,
    request: ToggleRequest,
    reconciler: Annotated[SetReconciler, Depends(get_reconciler)],
    store: Annotated[CollectionStore, Depends(get_collection_store)],
) -> EntryResponse:
    """
    Mark a card collected or not.

    Uncollecting a card also clears its foil flag.
    """
    code = reconciler.definition(set_code).code
    entry = await store.set_collected(code, card_id, request.value)
    return _entry_response(code, card_id, entry)


@router.put("/{set_code}/{card_id}/foil", response_model=EntryResponse)
async def set_foil(
    set_code: str,
    card_id: str,
    request: ToggleRequest,
    reconciler: Annotated[SetReconciler, Depends(get_reconciler)],
    store: Annotated[CollectionStore, Depends(get_collection_store)],
) -> EntryResponse:
    """
    Mark a collected card foil or not.

    Has no effect on cards that are not collected; the unchanged status is
    returned.
    """
    code = reconciler.definition(set_code).code
    entry = await store.set_foil(code, card_id, request.value)
    return _entry_response(code, card_id, entry)
