"""
Per-client durable key/value storage.

Stands in for the browser's local storage: each client id owns a handful of
JSON documents under fixed keys. Writes replace the whole document
(read-modify-write); two writers racing on the same key means the last one
wins. Reads and writes are best-effort: failures are logged and reported
through the return value, never raised.
"""
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.models.client_storage import StorageEntry, utcnow

logger = get_logger()

SAVED_SEARCHES = "savedSearches"
RECENT_SEARCHES = "recentSearches"
USER_PREFERENCES = "userPreferences"


class ClientStorage:
    def __init__(self, session: AsyncSession, client_id: str):
        self.session = session
        self.client_id = client_id

    def _entry_query(self, key: str):
        return select(StorageEntry).where(
            StorageEntry.client_id == self.client_id,
            StorageEntry.key == key,
        )

    async def get(self, key: str, default: Any = None) -> Any:
        try:
            result = await self.session.execute(self._entry_query(key))
            entry = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.warning("Storage read failed", client_id=self.client_id, key=key, error=str(e))
            return default
        if entry is None or entry.value is None:
            return default
        return entry.value

    async def set(self, key: str, value: Any) -> bool:
        try:
            result = await self.session.execute(self._entry_query(key))
            entry = result.scalar_one_or_none()
            if entry is None:
                self.session.add(StorageEntry(client_id=self.client_id, key=key, value=value))
            else:
                entry.value = value
                entry.updated_at = utcnow()
            await self.session.commit()
            return True
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Storage write failed", client_id=self.client_id, key=key, error=str(e))
            return False

    async def remove(self, key: str) -> bool:
        try:
            await self.session.execute(
                delete(StorageEntry).where(
                    StorageEntry.client_id == self.client_id,
                    StorageEntry.key == key,
                )
            )
            await self.session.commit()
            return True
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Storage delete failed", client_id=self.client_id, key=key, error=str(e))
            return False
