"""
Collection state persistence.

Keeps the collection state in memory and mirrors it to a single JSON blob
in the database after every change. Storage failures are logged and never
propagated: if a save fails, the in-memory state stays authoritative for
the rest of the session.
"""

import asyncio
import json
import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from setkeeper.config import settings
from setkeeper.db.operations import get_blob, put_blob
from setkeeper.models.collection import CollectionEntry, CollectionState, migrate_blob
from setkeeper.models.set_definition import SETS

logger = logging.getLogger(__name__)


class CollectionStore:
    """Loads, mutates, and persists collection state."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage_key: str | None = None,
        known_sets: Iterable[str] | None = None,
        default_set: str | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.storage_key = storage_key or settings.storage_key
        self.known_sets = list(SETS if known_sets is None else known_sets)
        self.default_set = default_set or settings.default_set_code
        self.state = CollectionState.empty(self.known_sets)
        self._loaded = False
        self._lock = asyncio.Lock()

    async def _read_blob(self) -> Any | None:
        async with self.session_factory() as session:
            return await get_blob(session, self.storage_key)

    async def load(self) -> CollectionState:
        """
        Load state from storage, migrating a legacy blob once.

        Empty storage and unreadable blobs start every tracked set empty. If
        the read itself fails, the current in-memory state is kept and the
        store stays unloaded: saves are refused until a later load succeeds,
        so a transient error can never overwrite the stored collection.
        """
        try:
            blob = await self._read_blob()
        except SQLAlchemyError as e:
            logger.error("Error loading collection state: %s", e)
            return self.state

        if isinstance(blob, str):
            try:
                blob = json.loads(blob)
            except ValueError as e:
                logger.error("Stored collection state is not valid JSON: %s", e)
                blob = None

        migrated = False
        if blob is None:
            self.state = CollectionState.empty(self.known_sets)
        elif not isinstance(blob, dict):
            logger.error("Stored collection state has unexpected type %s", type(blob).__name__)
            self.state = CollectionState.empty(self.known_sets)
        else:
            self.state, migrated = migrate_blob(blob, self.known_sets, self.default_set)

        self._loaded = True
        if migrated:
            logger.info(
                "Migrated legacy collection state (%d cards) to set %s",
                len(blob),
                self.default_set,
            )
            await self.save()
        return self.state

    async def ensure_loaded(self) -> CollectionState:
        if not self._loaded:
            await self.load()
        return self.state

    async def save(self) -> bool:
        """
        Persist the current state.

        Returns:
            True if saved, False if storage failed or the stored state was
            never read (both are logged)
        """
        if not self._loaded:
            logger.warning("Collection state not loaded from storage, skipping save")
            return False

        try:
            async with self.session_factory() as session:
                await put_blob(session, self.storage_key, self.state.to_blob())
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Error saving collection state: %s", e)
            return False
        return True

    async def set_collected(self, set_code: str, card_id: str, collected: bool) -> CollectionEntry:
        """Mark a card collected or not (uncollecting resets foil) and persist."""
        async with self._lock:
            await self.ensure_loaded()
            entry = self.state.set_collected(set_code, card_id, collected)
            await self.save()
            return entry

    async def set_foil(self, set_code: str, card_id: str, foil: bool) -> CollectionEntry:
        """Mark a collected card foil or not and persist. No-op while uncollected."""
        async with self._lock:
            await self.ensure_loaded()
            before = self.state.entry(set_code, card_id)
            entry = self.state.set_foil(set_code, card_id, foil)
            if entry != before:
                await self.save()
            return entry

    async def entries(self, set_code: str) -> dict[str, CollectionEntry]:
        """Copy of the entries recorded for a set."""
        state = await self.ensure_loaded()
        return dict(state.sets.get(set_code.lower(), {}))

    async def collected_count(self, set_code: str) -> int:
        state = await self.ensure_loaded()
        return state.collected_count(set_code)

    async def foil_count(self, set_code: str) -> int:
        state = await self.ensure_loaded()
        return state.foil_count(set_code)
