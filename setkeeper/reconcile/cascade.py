"""
Query cascade executor.

A cascade is an ordered list of alternative queries run one after another
against Scryfall. Results accumulate: every query may contribute cards the
earlier ones missed, and a card already in the accumulator is never added
twice. Running the same cascade twice is therefore a no-op the second time.

A record survives a query only if it:
1. is not already known by identity
2. is attributed to the requested set code (fuzzy text queries can match
   cards from other sets; those are rejected)
3. has a displayable image
4. passes the caller's extra predicate, if any

Query failures are logged and recorded in the PhaseResult. They never abort
the cascade.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from setkeeper.config import MAX_PAGES
from setkeeper.models.card import CardRecord, identity_of, is_displayable
from setkeeper.models.set_definition import SetDefinition
from setkeeper.reconcile.accumulator import CardAccumulator
from setkeeper.reconcile.pages import RecordPredicate, walk_pages
from setkeeper.services.scryfall_client import (
    MalformedResponseError,
    NotFoundError,
    ScryfallClient,
    ScryfallError,
    SearchPage,
    TransportError,
)

logger = logging.getLogger(__name__)

# Print treatments Scryfall does not always return under a plain set: query
VARIANT_TERMS = (
    "(is:showcase or is:extendedart or is:borderless or is:promo)",
    "frame:showcase",
    "frame:extendedart",
    "frame:borderless",
    "borderless",
    '(borderless or "battle pose" or "neon")',
)


class QueryKind(str, Enum):
    """Which endpoint a query descriptor targets."""

    SEARCH = "search"
    SET_LISTING = "set_listing"


@dataclass(frozen=True)
class QueryDescriptor:
    """
    One step of a cascade.

    For SEARCH the query is Scryfall search syntax; for SET_LISTING it is the
    set code. An alternate descriptor only runs when the step before it
    failed (e.g. ``s:tla`` after ``set:tla`` was rejected).
    """

    query: str
    kind: QueryKind = QueryKind.SEARCH
    unique: str | None = None
    alternate: bool = False

    def describe(self) -> str:
        if self.kind == QueryKind.SET_LISTING:
            return f"/sets/{self.query}/cards"
        if self.unique:
            return f"{self.query} [unique={self.unique}]"
        return self.query


@dataclass
class QueryFailure:
    """A query that raised instead of returning a page."""

    query: str
    kind: str  # transport, not_found, malformed, api_error
    message: str


@dataclass
class PhaseResult:
    """Outcome of running one cascade (or one pass of a phase)."""

    phase: str
    attempted: int = 0
    added: list[CardRecord] = field(default_factory=list)
    failures: list[QueryFailure] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        return len(self.added)

    @property
    def all_failed(self) -> bool:
        """True if at least one query ran and every one of them failed."""
        return self.attempted > 0 and len(self.failures) == self.attempted

    def merge(self, other: "PhaseResult") -> None:
        """Fold another result for the same phase into this one."""
        self.attempted += other.attempted
        self.added.extend(other.added)
        self.failures.extend(other.failures)


def _failure_kind(error: ScryfallError) -> str:
    if isinstance(error, TransportError):
        return "transport"
    if isinstance(error, NotFoundError):
        return "not_found"
    if isinstance(error, MalformedResponseError):
        return "malformed"
    return "api_error"


def belongs_to_set(record: dict[str, Any], set_code: str) -> bool:
    """Check that a record is attributed to exactly this set (case-insensitive)."""
    record_set = record.get("set")
    return isinstance(record_set, str) and record_set.lower() == set_code.lower()


async def _execute(client: ScryfallClient, descriptor: QueryDescriptor) -> SearchPage:
    if descriptor.kind == QueryKind.SET_LISTING:
        return await client.set_cards(descriptor.query)
    return await client.search(descriptor.query, unique=descriptor.unique)


async def run_cascade(
    client: ScryfallClient,
    descriptors: list[QueryDescriptor],
    accumulator: CardAccumulator,
    phase: str,
    accept: RecordPredicate | None = None,
    stop_on_first_hit: bool = False,
    max_pages: int = MAX_PAGES,
) -> PhaseResult:
    """
    Run queries in order, merging survivors into the accumulator.

    Args:
        client: Scryfall client
        descriptors: Ordered queries
        accumulator: Cards found so far; updated in place
        phase: Name used in logs and the result
        accept: Extra predicate a record must pass
        stop_on_first_hit: Stop after the first query that adds a card
        max_pages: Page cap handed to the page walker

    Returns:
        PhaseResult with the cards this cascade added and any failures
    """
    result = PhaseResult(phase=phase)
    set_code = accumulator.set_code
    previous_failed = False

    def keep(record: dict[str, Any]) -> bool:
        if not belongs_to_set(record, set_code):
            return False
        return accept is None or accept(record)

    for descriptor in descriptors:
        if descriptor.alternate and not previous_failed:
            continue

        label = descriptor.describe()
        result.attempted += 1
        try:
            page = await _execute(client, descriptor)
        except ScryfallError as e:
            kind = _failure_kind(e)
            logger.info("[%s] query %r failed (%s): %s", phase, label, kind, e)
            result.failures.append(QueryFailure(query=label, kind=kind, message=str(e)))
            previous_failed = True
            continue
        previous_failed = False

        seen = accumulator.identities()
        survivors: list[dict[str, Any]] = []
        for record in page.records:
            if not is_displayable(record):
                continue
            identity = identity_of(record)
            if not identity:
                logger.warning("[%s] dropping record without an id: %r", phase, record.get("name"))
                continue
            if identity in seen or not keep(record):
                continue
            survivors.append(record)
            seen.add(identity)

        if page.next_page:
            survivors.extend(
                await walk_pages(
                    client.fetch_page,
                    page.next_page,
                    seen=seen,
                    accept=keep,
                    max_pages=max_pages,
                )
            )

        added = [card for card in map(CardRecord.from_scryfall, survivors) if accumulator.add(card)]
        result.added.extend(added)
        logger.info(
            "[%s] query %r returned %d records (total hint %s), added %d",
            phase,
            label,
            len(page.records),
            page.total_cards if page.total_cards is not None else "unknown",
            len(added),
        )

        if stop_on_first_hit and added:
            break

    return result


# --- Cascade builders ---


def primary_queries(set_def: SetDefinition) -> list[QueryDescriptor]:
    """All cards nominally in the set, with the ``s:`` form if ``set:`` is rejected."""
    return [
        QueryDescriptor(f"set:{set_def.code}"),
        QueryDescriptor(f"s:{set_def.code}", alternate=True),
    ]


def fallback_queries(set_def: SetDefinition) -> list[QueryDescriptor]:
    """Broader queries tried when primary discovery found nothing."""
    descriptors = [
        QueryDescriptor(f"set:{set_def.code}"),
        QueryDescriptor(f"s:{set_def.code}"),
        QueryDescriptor(f'set:"{set_def.name}"'),
    ]
    descriptors.extend(QueryDescriptor(f'set:"{alias}"') for alias in set_def.search_aliases)
    return descriptors


def variant_queries(set_def: SetDefinition) -> list[QueryDescriptor]:
    """
    Alternate print treatments.

    The direct set listing goes first since it is the most complete; the
    ``unique=prints`` search only runs if the listing is unavailable.
    """
    code = set_def.code
    descriptors = [
        QueryDescriptor(code, kind=QueryKind.SET_LISTING),
        QueryDescriptor(f"set:{code}", unique="prints", alternate=True),
    ]
    descriptors.extend(
        QueryDescriptor(f"set:{code} {term}", unique="prints") for term in VARIANT_TERMS
    )
    return descriptors
