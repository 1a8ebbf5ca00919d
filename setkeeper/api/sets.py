"""
Set API endpoints.

Serves reconciled card lists and progress statistics for tracked sets.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from setkeeper.api.dependencies import get_collection_store, get_reconciler
from setkeeper.models.card import CardRecord
from setkeeper.models.failure import ApiResponse, SetUnavailableError, create_success
from setkeeper.reconcile.reconciler import ReconciledSet, SetReconciler
from setkeeper.services.collection_store import CollectionStore

router = APIRouter(prefix="/sets", tags=["sets"])


class SetSummary(BaseModel):
    """A tracked set."""

    code: str
    name: str
    expected_total: int
    loaded: bool = Field(
        default=False,
        description="True if the card list is already cached for this session",
    )


class CardResponse(BaseModel):
    """One card in a reconciled set list."""

    id: str
    name: str
    collector_number: str
    set: str
    image_uris: list[str] = Field(default_factory=list)
    is_placeholder: bool = False
    collected: bool = False
    foil: bool = False


class SetStats(BaseModel):
    """Progress statistics. The denominator is the configured expected total."""

    collected: int
    foil: int = 0
    expected_total: int
    loaded: int
    discovered: int
    placeholders: int
    api_card_count: int | None = None


class SetCardsResponse(BaseModel):
    """Reconciled card list plus statistics."""

    code: str
    name: str
    cards: list[CardResponse] = Field(default_factory=list)
    stats: SetStats
    unresolved_numbers: list[int] = Field(default_factory=list)


async def _load(reconciler: SetReconciler, set_code: str) -> ReconciledSet:
    result = await reconciler.reconcile(set_code)
    if result.exhausted:
        raise SetUnavailableError(result.set_code, result.failed_queries)
    return result


async def _stats(result: ReconciledSet, store: CollectionStore) -> SetStats:
    return SetStats(
        collected=await store.collected_count(result.set_code),
        foil=await store.foil_count(result.set_code),
        expected_total=result.expected_total,
        loaded=result.loaded_count,
        discovered=result.discovered_count,
        placeholders=result.placeholder_count,
        api_card_count=result.api_card_count,
    )


def _card_response(card: CardRecord, collected: bool, foil: bool) -> CardResponse:
    return CardResponse(
        id=card.identity,
        name=card.name,
        collector_number=card.collector_number_raw,
        set=card.set_code,
        image_uris=list(card.image_uris),
        is_placeholder=card.is_placeholder,
        collected=collected,
        foil=foil,
    )


@router.get("", response_model=list[SetSummary])
async def list_sets(
    reconciler: Annotated[SetReconciler, Depends(get_reconciler)],
) -> list[SetSummary]:
    """List the tracked sets."""
    return [
        SetSummary(
            code=set_def.code,
            name=set_def.name,
            expected_total=set_def.expected_total,
            loaded=reconciler.get_cached_set(set_def.code) is not None,
        )
        for set_def in reconciler.definitions.values()
    ]


@router.get("/{set_code}/cards", response_model=ApiResponse[SetCardsResponse])
async def get_set_cards(
    set_code: str,
    reconciler: Annotated[SetReconciler, Depends(get_reconciler)],
    store: Annotated[CollectionStore, Depends(get_collection_store)],
    search: Annotated[str, Query(description="Filter by name or collector number")] = "",
) -> ApiResponse[SetCardsResponse]:
    """
    Get the reconciled card list for a set.

    The first request for a set queries Scryfall; later requests are served
    from the session cache. Each card carries its collection status.
    """
    result = await _load(reconciler, set_code)
    entries = await store.entries(result.set_code)

    cards = []
    for card in result.cards:
        if not card.matches_search(search):
            continue
        entry = entries.get(card.identity)
        cards.append(
            _card_response(
                card,
                collected=entry.collected if entry else False,
                foil=entry.foil if entry else False,
            )
        )

    return create_success(
        SetCardsResponse(
            code=result.set_code,
            name=result.set_name,
            cards=cards,
            stats=await _stats(result, store),
            unresolved_numbers=result.unresolved_numbers,
        )
    )


@router.get("/{set_code}/stats", response_model=ApiResponse[SetStats])
async def get_set_stats(
    set_code: str,
    reconciler: Annotated[SetReconciler, Depends(get_reconciler)],
    store: Annotated[CollectionStore, Depends(get_collection_store)],
) -> ApiResponse[SetStats]:
    """Collected count against the set's expected total."""
    result = await _load(reconciler, set_code)
    return create_success(await _stats(result, store))
