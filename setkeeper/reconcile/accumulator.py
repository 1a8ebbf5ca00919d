"""
Accumulator threaded through the reconciliation phases.

Holds the in-progress card list for one set together with the identity set
and collector-number index used for the "already known" and "already
present" checks. Each reconciliation owns its own accumulator, so two sets
can be reconciled concurrently without sharing state.
"""

from collections import Counter

from setkeeper.models.card import CardRecord


class CardAccumulator:
    """Ordered, identity-unique collection of cards for one set."""

    def __init__(self, set_code: str) -> None:
        self.set_code = set_code.lower()
        self.cards: list[CardRecord] = []
        self._identities: set[str] = set()
        self._numbers: Counter[int] = Counter()

    def __len__(self) -> int:
        return len(self.cards)

    def __contains__(self, identity: object) -> bool:
        return identity in self._identities

    def add(self, card: CardRecord) -> bool:
        """
        Append a card unless its identity is already present.

        Returns True if the card was added.
        """
        if card.identity in self._identities:
            return False
        self.cards.append(card)
        self._identities.add(card.identity)
        # Malformed numbers parse to 0 and must not satisfy presence checks
        if card.has_valid_number:
            self._numbers[card.collector_number] += 1
        return True

    def has_number(self, number: int) -> bool:
        """Check whether any card with a valid collector number equal to `number` is present."""
        return self._numbers[number] > 0

    def identities(self) -> set[str]:
        """Copy of the known identities."""
        return set(self._identities)
