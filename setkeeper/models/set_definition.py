"""
Operator-authored set definitions.

Each tracked set declares its expected card count (the progress denominator,
independent of how many cards Scryfall actually exposes), the collector
numbers known to be absent from the API, and placeholder names for numbers
that can never be found.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from setkeeper.models.failure import FailureKind, KnownError


@dataclass(frozen=True)
class PlaceholderDescriptor:
    """A curated name for a collector number the API does not expose."""

    collector_number: int
    display_name: str


@dataclass(frozen=True)
class SetDefinition:
    """Static description of a tracked set."""

    code: str
    name: str
    expected_total: int
    missing_numbers: tuple[int, ...] = ()
    placeholders: tuple[PlaceholderDescriptor, ...] = ()
    # Alternate quoted set names tried by the fallback cascade
    search_aliases: tuple[str, ...] = ()
    # Substring matched against set names during missing-card recovery
    name_keyword: str = ""

    @property
    def keyword(self) -> str:
        """Set-name keyword for recovery queries, defaulting to the first word."""
        return self.name_keyword or self.name.split(":")[0].split()[0]


class UnknownSetError(KnownError):
    """Raised when a set code is not configured."""

    def __init__(self, set_code: str, known_codes: Iterable[str] | None = None):
        self.set_code = set_code
        known = sorted(SETS if known_codes is None else known_codes)
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Set '{set_code}' is not tracked.",
            suggestion=f"Use one of: {', '.join(known)}.",
            status_code=404,
        )


def _basic_lands(start: int) -> tuple[PlaceholderDescriptor, ...]:
    names = ("Plains", "Island", "Swamp", "Mountain", "Forest")
    return tuple(
        PlaceholderDescriptor(collector_number=start + offset, display_name=names[offset % 5])
        for offset in range(10)
    )


SETS: dict[str, SetDefinition] = {
    "tla": SetDefinition(
        code="tla",
        name="Avatar: The Last Airbender",
        expected_total=394,
        missing_numbers=(363, 393, 394),
        placeholders=_basic_lands(287),
        search_aliases=("Avatar The Last Airbender",),
        name_keyword="Avatar",
    ),
    "tle": SetDefinition(
        code="tle",
        name="Avatar: The Last Airbender Eternal",
        expected_total=317,
        search_aliases=("Avatar The Last Airbender Eternal",),
        name_keyword="Avatar",
    ),
}


def get_set_definition(
    set_code: str, definitions: dict[str, SetDefinition] | None = None
) -> SetDefinition:
    """
    Look up a tracked set by code (case-insensitive).

    Searches `definitions` when given, otherwise the built-in SETS table.

    Raises:
        UnknownSetError: If the set code is not configured
    """
    table = SETS if definitions is None else definitions
    definition = table.get(set_code.lower())
    if definition is None:
        raise UnknownSetError(set_code, table)
    return definition
