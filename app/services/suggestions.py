from structlog import get_logger

from app.schemas.search import SuggestionResponse
from app.services import marketplace
from app.services.recent_searches import RecentSearches

logger = get_logger()

MAX_SUGGESTIONS = 8


async def suggest(query: str, recents: RecentSearches) -> SuggestionResponse:
    """Autocomplete entries for the search bar.

    A blank query shows the client's recent searches; anything else asks the
    marketplace. A failed lookup yields an empty list.
    """
    term = (query or "").strip()
    if not term:
        return SuggestionResponse(query="", suggestions=await recents.all(), source="recent")
    try:
        items = await marketplace.fetch_suggestions(term)
    except Exception as e:
        logger.warning("Suggestions failed", query=term, error=str(e))
        items = []
    return SuggestionResponse(query=term, suggestions=items[:MAX_SUGGESTIONS], source="remote")
