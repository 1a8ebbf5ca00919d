"""
Database operations for stored JSON blobs.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from setkeeper.models.db import StoredBlobDB


async def get_blob(session: AsyncSession, key: str) -> Any | None:
    """
    Read the JSON value stored under a key.

    Returns None if nothing is stored.
    """
    result = await session.execute(select(StoredBlobDB).where(StoredBlobDB.key == key))
    row = result.scalar_one_or_none()
    return None if row is None else row.value


async def put_blob(session: AsyncSession, key: str, value: Any) -> StoredBlobDB:
    """
    Insert or replace the JSON value stored under a key.
    """
    result = await session.execute(select(StoredBlobDB).where(StoredBlobDB.key == key))
    existing = result.scalar_one_or_none()

    if existing:
        existing.value = value
        await session.flush()
        return existing

    row = StoredBlobDB(key=key, value=value)
    session.add(row)
    await session.flush()
    return row
