"""
Set reconciler.

Sequences the discovery phases into one deterministic pipeline per set:

    metadata -> primary -> (fallback) -> variant -> recovery -> placeholders
    -> dedupe by identity -> stable sort by collector number

Individual query failures are recorded in the phase results and never stop
the pipeline. The only blocking outcome is the exhausted state: primary
discovery and every fallback query produced no card at all.

Successful results are cached per set code for the lifetime of the
reconciler. A per-set lock serializes concurrent calls for the same set;
the second caller waits and then reads the cache.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from setkeeper.models.card import CardRecord
from setkeeper.models.set_definition import SETS, SetDefinition, get_set_definition
from setkeeper.reconcile.accumulator import CardAccumulator
from setkeeper.reconcile.cascade import (
    PhaseResult,
    fallback_queries,
    primary_queries,
    run_cascade,
    variant_queries,
)
from setkeeper.reconcile.placeholders import inject_placeholders
from setkeeper.reconcile.recovery import recover_missing_cards
from setkeeper.services.scryfall_client import ScryfallClient, ScryfallError, SetMetadata

logger = logging.getLogger(__name__)


@dataclass
class ReconciledSet:
    """Final card list for a set plus the statistics shown alongside it."""

    set_code: str
    set_name: str
    expected_total: int
    cards: list[CardRecord] = field(default_factory=list)
    exhausted: bool = False
    api_card_count: int | None = None
    parent_set_code: str | None = None
    phases: list[PhaseResult] = field(default_factory=list)
    unresolved_numbers: list[int] = field(default_factory=list)

    @property
    def loaded_count(self) -> int:
        return len(self.cards)

    @property
    def placeholder_count(self) -> int:
        return sum(1 for card in self.cards if card.is_placeholder)

    @property
    def discovered_count(self) -> int:
        """Cards actually returned by Scryfall."""
        return self.loaded_count - self.placeholder_count

    @property
    def failed_queries(self) -> int:
        return sum(len(phase.failures) for phase in self.phases)


def finalize_cards(cards: Iterable[CardRecord]) -> list[CardRecord]:
    """
    Drop repeated identities (first occurrence wins) and sort by number.

    The sort is stable, so cards sharing a collector number keep their
    accumulation order.
    """
    unique: list[CardRecord] = []
    seen: set[str] = set()
    for card in cards:
        if card.identity in seen:
            continue
        seen.add(card.identity)
        unique.append(card)

    return sorted(unique, key=lambda card: card.collector_number)


class SetReconciler:
    """Builds and caches reconciled card lists for the configured sets."""

    def __init__(
        self,
        client: ScryfallClient,
        definitions: dict[str, SetDefinition] | None = None,
    ) -> None:
        self.client = client
        self.definitions = SETS if definitions is None else definitions
        self._cache: dict[str, ReconciledSet] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def definition(self, set_code: str) -> SetDefinition:
        """
        Look up a configured set.

        Raises:
            UnknownSetError: If the set code is not configured
        """
        return get_set_definition(set_code, self.definitions)

    def get_cached_set(self, set_code: str) -> ReconciledSet | None:
        """Return the cached result for a set, or None if not loaded yet."""
        return self._cache.get(set_code.lower())

    async def reconcile(self, set_code: str) -> ReconciledSet:
        """
        Get the reconciled card list for a set, building it on first use.

        Raises:
            UnknownSetError: If the set code is not configured
        """
        set_def = self.definition(set_code)
        code = set_def.code

        cached = self._cache.get(code)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(code, asyncio.Lock())
        async with lock:
            cached = self._cache.get(code)
            if cached is not None:
                return cached

            result = await self._build(set_def)
            # Exhausted results are not cached so a later request can retry
            if not result.exhausted:
                self._cache[code] = result
            return result

    async def _fetch_metadata(self, set_code: str) -> SetMetadata | None:
        try:
            metadata = await self.client.set_metadata(set_code)
        except ScryfallError as e:
            logger.info("Set metadata unavailable for %s: %s", set_code, e)
            return None

        logger.info("Set info: %s, card count: %s", metadata.name, metadata.card_count)
        if metadata.parent_set_code:
            logger.info("%s has parent set %s", set_code, metadata.parent_set_code)
        return metadata

    async def _build(self, set_def: SetDefinition) -> ReconciledSet:
        accumulator = CardAccumulator(set_def.code)
        result = ReconciledSet(
            set_code=set_def.code,
            set_name=set_def.name,
            expected_total=set_def.expected_total,
        )

        metadata = await self._fetch_metadata(set_def.code)
        if metadata is not None:
            result.api_card_count = metadata.card_count
            result.parent_set_code = metadata.parent_set_code

        logger.info("Querying Scryfall for all %s cards...", set_def.name)
        primary = await run_cascade(
            self.client, primary_queries(set_def), accumulator, phase="primary"
        )
        result.phases.append(primary)

        if not primary.added:
            logger.warning("Primary discovery for %s found nothing, trying fallbacks", set_def.code)
            fallback = await run_cascade(
                self.client,
                fallback_queries(set_def),
                accumulator,
                phase="fallback",
                stop_on_first_hit=True,
            )
            result.phases.append(fallback)
            if not fallback.added:
                if primary.all_failed and fallback.all_failed:
                    logger.error(
                        "Unable to load cards for %s: all %d queries failed",
                        set_def.code,
                        result.failed_queries,
                    )
                else:
                    logger.error(
                        "Unable to load cards for %s: no query returned a card of this set",
                        set_def.code,
                    )
                result.exhausted = True
                return result

        logger.info("Main set loaded: %d cards. Checking for variants...", len(accumulator))
        variant = await run_cascade(
            self.client, variant_queries(set_def), accumulator, phase="variant"
        )
        result.phases.append(variant)

        recovery = await recover_missing_cards(self.client, set_def, accumulator)
        result.phases.extend([recovery.by_number, recovery.by_number_and_name])
        result.unresolved_numbers = recovery.unresolved

        inject_placeholders(accumulator, set_def)

        result.cards = finalize_cards(accumulator.cards)
        logger.info(
            "Final total: %d cards loaded for %s (%d placeholders, expected %d)",
            result.loaded_count,
            set_def.code,
            result.placeholder_count,
            set_def.expected_total,
        )
        return result
