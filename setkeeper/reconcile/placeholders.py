"""
Placeholder injection for cards Scryfall does not expose.

Presence is checked by collector number, not identity: a real card and its
placeholder are mutually exclusive by number. This also makes injection
idempotent.
"""

import logging

from setkeeper.models.card import CardRecord
from setkeeper.models.set_definition import SetDefinition
from setkeeper.reconcile.accumulator import CardAccumulator

logger = logging.getLogger(__name__)


def inject_placeholders(accumulator: CardAccumulator, set_def: SetDefinition) -> list[CardRecord]:
    """
    Append a zero-image stand-in for each configured number still absent.

    Returns:
        The placeholders added by this call
    """
    added: list[CardRecord] = []
    for descriptor in set_def.placeholders:
        number = descriptor.collector_number
        if accumulator.has_number(number):
            continue

        card = CardRecord.placeholder(set_def.code, number, descriptor.display_name)
        if accumulator.add(card):
            added.append(card)
            logger.info("Added placeholder card #%d - %s", number, descriptor.display_name)

    return added
