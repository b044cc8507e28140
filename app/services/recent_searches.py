from typing import List, Optional

from app.config import settings
from app.services.storage import RECENT_SEARCHES, ClientStorage


class RecentSearches:
    """Most-recent-first query history, de-duplicated case-insensitively."""

    def __init__(self, storage: ClientStorage, limit: Optional[int] = None):
        self.storage = storage
        self.limit = limit or settings.MAX_RECENT_SEARCHES

    async def all(self) -> List[str]:
        raw = await self.storage.get(RECENT_SEARCHES, [])
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, str) and item.strip()][: self.limit]

    async def add(self, query: str) -> List[str]:
        term = (query or "").strip()
        current = await self.all()
        if not term:
            return current
        recents = [term] + [item for item in current if item.lower() != term.lower()]
        recents = recents[: self.limit]
        await self.storage.set(RECENT_SEARCHES, recents)
        return recents

    async def clear(self) -> None:
        await self.storage.remove(RECENT_SEARCHES)
