"""
Per-set collection state.

Persisted layout (one JSON object):

    {"tla": {"<card id>": {"collected": true, "foil": false}, ...}, "tle": {...}}

Older clients stored a flat mapping with no set nesting, where each value
was either a bool (collected) or the collected/foil pair. Those blobs are
attributed to the default set on load.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CollectionEntry:
    """Ownership status of one card. Foil only counts while collected."""

    collected: bool = False
    foil: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {"collected": self.collected, "foil": self.foil}

    @classmethod
    def from_value(cls, value: Any) -> "CollectionEntry":
        """Read a stored value: a bool (legacy) or a collected/foil mapping."""
        if isinstance(value, bool):
            return cls(collected=value, foil=False)
        if isinstance(value, dict):
            collected = value.get("collected") is True
            return cls(collected=collected, foil=collected and value.get("foil") is True)
        return cls()


@dataclass
class CollectionState:
    """Collection entries keyed by set code, then card identity."""

    sets: dict[str, dict[str, CollectionEntry]] = field(default_factory=dict)

    def entries(self, set_code: str) -> dict[str, CollectionEntry]:
        """Entries for a set (created empty on first access)."""
        return self.sets.setdefault(set_code.lower(), {})

    def entry(self, set_code: str, card_id: str) -> CollectionEntry:
        """Current status of a card; absent cards are uncollected."""
        return self.sets.get(set_code.lower(), {}).get(card_id, CollectionEntry())

    def set_collected(self, set_code: str, card_id: str, collected: bool) -> CollectionEntry:
        """
        Mark a card collected or not.

        Uncollecting always resets foil. Collecting a card that was not
        collected starts it as non-foil.
        """
        current = self.entry(set_code, card_id)
        updated = CollectionEntry(
            collected=collected,
            foil=current.foil if (collected and current.collected) else False,
        )
        self.entries(set_code)[card_id] = updated
        return updated

    def set_foil(self, set_code: str, card_id: str, foil: bool) -> CollectionEntry:
        """
        Mark a collected card foil or not.

        No-op for uncollected cards: the stored state is left untouched.
        """
        current = self.entry(set_code, card_id)
        if not current.collected:
            return current

        updated = CollectionEntry(collected=True, foil=foil)
        self.entries(set_code)[card_id] = updated
        return updated

    def collected_count(self, set_code: str) -> int:
        """Number of collected cards recorded for a set."""
        return sum(1 for entry in self.sets.get(set_code.lower(), {}).values() if entry.collected)

    def foil_count(self, set_code: str) -> int:
        return sum(1 for entry in self.sets.get(set_code.lower(), {}).values() if entry.foil)

    def to_blob(self) -> dict[str, dict[str, dict[str, bool]]]:
        """Serialize to the persisted layout."""
        return {
            set_code: {card_id: entry.to_dict() for card_id, entry in entries.items()}
            for set_code, entries in self.sets.items()
        }

    @classmethod
    def empty(cls, set_codes: Iterable[str]) -> "CollectionState":
        return cls(sets={code.lower(): {} for code in set_codes})


def migrate_blob(
    blob: dict[str, Any],
    known_sets: Iterable[str],
    default_set: str,
) -> tuple[CollectionState, bool]:
    """
    Build collection state from a persisted blob.

    A blob is in the nested layout if any top-level key names a known set.
    Anything else is a legacy flat blob and is attributed to `default_set`.

    Returns:
        Tuple of (state, migrated) where migrated is True if the blob was in
        the legacy layout and should be saved back.
    """
    known = {code.lower() for code in known_sets}
    state = CollectionState()

    if any(key.lower() in known for key in blob):
        for set_code, entries in blob.items():
            if not isinstance(entries, dict):
                continue
            target = state.entries(set_code)
            for card_id, value in entries.items():
                target[card_id] = CollectionEntry.from_value(value)
        return state, False

    target = state.entries(default_set)
    for card_id, value in blob.items():
        target[card_id] = CollectionEntry.from_value(value)
    return state, True
