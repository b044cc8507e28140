import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError
from structlog import get_logger

from app.schemas.filters import FilterState
from app.schemas.saved_search import SavedSearch
from app.services.storage import SAVED_SEARCHES, ClientStorage

logger = get_logger()


class SavedSearchStore:
    """Named query + filter snapshots, most recent first.

    Every mutation rewrites the whole collection.
    """

    def __init__(self, storage: ClientStorage):
        self.storage = storage

    async def all(self) -> List[SavedSearch]:
        raw = await self.storage.get(SAVED_SEARCHES, [])
        if not isinstance(raw, list):
            logger.warning("Discarding malformed saved searches", client_id=self.storage.client_id)
            return []
        searches = []
        for item in raw:
            try:
                searches.append(SavedSearch.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping unreadable saved search", client_id=self.storage.client_id,
                               error=str(e))
        return searches

    async def _write(self, searches: List[SavedSearch]) -> None:
        await self.storage.set(SAVED_SEARCHES, [s.model_dump(mode="json") for s in searches])

    async def save(
        self,
        name: str,
        query: str = "",
        filters: Optional[FilterState] = None,
        alerts_enabled: bool = False,
    ) -> Optional[SavedSearch]:
        """Prepend a new saved search. Blank names are ignored and return None."""
        if not name or not name.strip():
            return None
        now = datetime.now(timezone.utc)
        entry = SavedSearch(
            id=uuid.uuid4().hex,
            name=name.strip(),
            query=query or "",
            filters=(filters or FilterState()).model_copy(deep=True),
            alerts_enabled=alerts_enabled,
            created_at=now,
            last_run=now,
            result_count=0,
        )
        searches = await self.all()
        await self._write([entry, *searches])
        logger.info("Search saved", client_id=self.storage.client_id, search_id=entry.id, name=entry.name)
        return entry

    async def load(self, search_id: str) -> Optional[SavedSearch]:
        for search in await self.all():
            if search.id == search_id:
                return search
        return None

    async def delete(self, search_id: str) -> bool:
        searches = await self.all()
        remaining = [s for s in searches if s.id != search_id]
        if len(remaining) == len(searches):
            return False
        await self._write(remaining)
        return True

    async def _update(self, search_id: str, **changes) -> Optional[SavedSearch]:
        searches = await self.all()
        updated = None
        for i, search in enumerate(searches):
            if search.id == search_id:
                updated = search.model_copy(update=changes)
                searches[i] = updated
                break
        if updated is not None:
            await self._write(searches)
        return updated

    async def toggle_alerts(self, search_id: str) -> Optional[SavedSearch]:
        current = await self.load(search_id)
        if current is None:
            return None
        return await self._update(search_id, alerts_enabled=not current.alerts_enabled)

    async def record_run(self, search_id: str, result_count: int) -> Optional[SavedSearch]:
        return await self._update(
            search_id,
            last_run=datetime.now(timezone.utc),
            result_count=max(0, result_count),
        )
