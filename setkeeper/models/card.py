"""
Card identity and display filtering.

Decides whether a raw Scryfall record can be shown in the checklist and
extracts the two keys the reconciliation pipeline relies on:

- identity: the opaque Scryfall ``id``, used for deduplication
- collector number: the printed ordinal, used for ordering and for the
  "is this missing number already present" checks

Collector numbers arrive as strings ("287", "363★", "A-12"). They are parsed
leniently: leading digits are taken, anything else yields 0.
"""

import re
from dataclasses import dataclass
from typing import Any

_LEADING_DIGITS = re.compile(r"\s*\+?(\d+)")

PLACEHOLDER_PREFIX = "placeholder"


def _first_face(record: dict[str, Any]) -> dict[str, Any] | None:
    faces = record.get("card_faces")
    if isinstance(faces, list) and faces and isinstance(faces[0], dict):
        return faces[0]
    return None


# Preferred face image sizes; any other URL in the mapping is a last resort
_FACE_IMAGE_KEYS = ("normal", "large", "png", "border_crop", "small")


def _face_image(face: dict[str, Any]) -> str | None:
    image_uris = face.get("image_uris")
    if not isinstance(image_uris, dict):
        return None
    for key in _FACE_IMAGE_KEYS:
        if image_uris.get(key):
            return str(image_uris[key])
    for url in image_uris.values():
        if isinstance(url, str) and url:
            return url
    return None


def is_displayable(record: dict[str, Any]) -> bool:
    """
    Check whether a record exposes a usable image.

    Single-faced cards carry ``image_uris.normal``. Double-faced cards carry
    their images on ``card_faces``; the first face is what gets shown.
    A face counts if it has any image URL; ``normal`` is preferred.
    """
    image_uris = record.get("image_uris")
    if isinstance(image_uris, dict) and image_uris.get("normal"):
        return True

    face = _first_face(record)
    return face is not None and _face_image(face) is not None


def _parse_number(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if not isinstance(raw, str):
        return None
    match = _LEADING_DIGITS.match(raw)
    if match is None:
        return None
    return int(match.group(1))


def extract_number(record: dict[str, Any]) -> int:
    """
    Parse the collector number of a record.

    Returns 0 when the field is missing or has no leading digits. Records
    with unparseable numbers therefore sort first and share key 0.
    """
    number = _parse_number(record.get("collector_number"))
    return number if number is not None else 0


def identity_of(record: dict[str, Any]) -> str:
    """Get the stable Scryfall identity of a record (empty if it has none)."""
    identity = record.get("id")
    return str(identity) if identity else ""


def _image_references(record: dict[str, Any]) -> tuple[str, ...]:
    image_uris = record.get("image_uris")
    if isinstance(image_uris, dict) and image_uris.get("normal"):
        return (str(image_uris["normal"]),)

    refs: list[str] = []
    for face in record.get("card_faces") or []:
        if not isinstance(face, dict):
            continue
        url = _face_image(face)
        if url is not None:
            refs.append(url)
    return tuple(refs)


def placeholder_identity(set_code: str, number: int) -> str:
    """Deterministic identity for a synthesized placeholder card."""
    return f"{PLACEHOLDER_PREFIX}:{set_code.lower()}:{number}"


@dataclass(frozen=True)
class CardRecord:
    """
    A card as it appears in a reconciled set list.

    Identities are unique within one reconciled list. Collector numbers are
    not: the API may emit several prints sharing a displayed number.
    """

    identity: str
    collector_number: int
    collector_number_raw: str
    name: str
    set_code: str
    set_name: str = ""
    image_uris: tuple[str, ...] = ()
    is_placeholder: bool = False

    @property
    def has_valid_number(self) -> bool:
        """True if the raw collector number actually parsed to an integer."""
        return _parse_number(self.collector_number_raw) is not None

    @classmethod
    def from_scryfall(cls, record: dict[str, Any]) -> "CardRecord":
        """Build a CardRecord from a raw Scryfall card object."""
        name = record.get("name")
        if not name:
            face = _first_face(record)
            name = face.get("name") if face else None

        raw_number = record.get("collector_number")
        return cls(
            identity=identity_of(record),
            collector_number=extract_number(record),
            collector_number_raw="" if raw_number is None else str(raw_number),
            name=str(name or ""),
            set_code=str(record.get("set", "")).lower(),
            set_name=str(record.get("set_name", "")),
            image_uris=_image_references(record),
        )

    @classmethod
    def placeholder(cls, set_code: str, number: int, name: str) -> "CardRecord":
        """Build a zero-image stand-in for a card the API never returned."""
        return cls(
            identity=placeholder_identity(set_code, number),
            collector_number=number,
            collector_number_raw=str(number),
            name=name,
            set_code=set_code.lower(),
            is_placeholder=True,
        )

    def matches_search(self, term: str) -> bool:
        """Case-insensitive match on name or collector number substring."""
        term = term.strip().lower()
        if not term:
            return True
        return term in self.name.lower() or term in self.collector_number_raw
