"""
Missing-card recovery.

Some collector numbers never come back from the set-wide queries. For each
number configured as possibly absent (and genuinely absent from the
accumulator), recovery searches by number with progressively looser query
templates. The first template that yields a matching card wins.

Two passes run over the same cascade executor:
1. by number: set code, quoted set name, set-name keyword
2. by number and name: set code OR set-name keyword, then number alone

Survivors must still carry the exact collector number and the requested
set code. Whatever neither pass finds is left to the placeholder injector.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from setkeeper.models.card import extract_number
from setkeeper.models.set_definition import SetDefinition
from setkeeper.reconcile.accumulator import CardAccumulator
from setkeeper.reconcile.cascade import PhaseResult, QueryDescriptor, run_cascade
from setkeeper.reconcile.pages import RecordPredicate
from setkeeper.services.scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)

TemplateBuilder = Callable[[SetDefinition, int], list[QueryDescriptor]]


@dataclass
class RecoveryResult:
    """Outcome of both recovery passes."""

    requested: list[int] = field(default_factory=list)
    searched: list[int] = field(default_factory=list)
    by_number: PhaseResult = field(default_factory=lambda: PhaseResult(phase="recovery:number"))
    by_number_and_name: PhaseResult = field(
        default_factory=lambda: PhaseResult(phase="recovery:number-and-name")
    )
    unresolved: list[int] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        return self.by_number.added_count + self.by_number_and_name.added_count


def absent_numbers(numbers: Iterable[int], accumulator: CardAccumulator) -> list[int]:
    """Numbers with no card in the accumulator, in input order, without repeats."""
    absent: list[int] = []
    for number in numbers:
        if accumulator.has_number(number):
            logger.info("Card #%d already present, skipping search", number)
            continue
        if number not in absent:
            absent.append(number)
    return absent


def number_queries(set_def: SetDefinition, number: int) -> list[QueryDescriptor]:
    """Templates for the first pass: locate a number within the set."""
    code = set_def.code
    return [
        QueryDescriptor(f"set:{code} number:{number}"),
        QueryDescriptor(f'set:"{set_def.name}" number:{number}'),
        QueryDescriptor(f'setname:"{set_def.keyword}" number:{number}'),
        QueryDescriptor(f"number:{number} set:{code}"),
        QueryDescriptor(f"cn:{number} set:{code}"),
        QueryDescriptor(f"collector:{number} set:{code}"),
    ]


def number_and_name_queries(set_def: SetDefinition, number: int) -> list[QueryDescriptor]:
    """Templates for the last-resort pass: associate by set name instead of code."""
    scope = f'(set:{set_def.code} or setname:"{set_def.keyword}")'
    return [
        QueryDescriptor(f"cn:{number} {scope}"),
        QueryDescriptor(f"number:{number} {scope}"),
        QueryDescriptor(f"collector:{number} {scope}"),
        QueryDescriptor(f"cn:{number}"),
    ]


def _has_number(number: int) -> RecordPredicate:
    def accept(record: dict[str, Any]) -> bool:
        return extract_number(record) == number

    return accept


async def _recovery_pass(
    client: ScryfallClient,
    set_def: SetDefinition,
    numbers: list[int],
    accumulator: CardAccumulator,
    result: PhaseResult,
    templates: TemplateBuilder,
) -> list[int]:
    still_missing: list[int] = []
    for number in numbers:
        outcome = await run_cascade(
            client,
            templates(set_def, number),
            accumulator,
            phase=result.phase,
            accept=_has_number(number),
            stop_on_first_hit=True,
        )
        result.merge(outcome)
        if outcome.added:
            found = outcome.added[0]
            logger.info("Found card #%d: %s (set %s)", number, found.name, found.set_code)
        else:
            still_missing.append(number)
    return still_missing


async def recover_missing_cards(
    client: ScryfallClient,
    set_def: SetDefinition,
    accumulator: CardAccumulator,
    numbers: Iterable[int] | None = None,
) -> RecoveryResult:
    """
    Search for configured missing collector numbers.

    Args:
        client: Scryfall client
        set_def: Set being reconciled
        accumulator: Cards found so far; updated in place
        numbers: Numbers to look for (defaults to the set's missing list)

    Returns:
        RecoveryResult with per-pass results and the unresolved numbers
    """
    requested = list(set_def.missing_numbers if numbers is None else numbers)
    result = RecoveryResult(requested=requested)
    result.searched = absent_numbers(requested, accumulator)

    if not result.searched:
        if requested:
            logger.info("All missing cards for %s are already present", set_def.code)
        return result

    logger.info(
        "Looking for missing cards in %s: %s",
        set_def.code,
        ", ".join(str(n) for n in result.searched),
    )
    remaining = await _recovery_pass(
        client, set_def, result.searched, accumulator, result.by_number, number_queries
    )
    if remaining:
        remaining = await _recovery_pass(
            client,
            set_def,
            remaining,
            accumulator,
            result.by_number_and_name,
            number_and_name_queries,
        )

    for number in remaining:
        logger.warning("Could not find card #%d in %s", number, set_def.name)
    result.unresolved = remaining
    return result
