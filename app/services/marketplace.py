import httpx
from app.config import settings
from app.schemas.filters import ANY_COUNT, ANY_TYPE, AISearchResult, FilterState, SortKey
from app.services.normalizer import extract_records
from app.utils.retry import retry_api
from structlog import get_logger
from typing import Any, Dict, List, Optional
from pybreaker import CircuitBreaker

logger = get_logger()
breaker = CircuitBreaker(fail_max=5, reset_timeout=60)
ai_breaker = CircuitBreaker(fail_max=3, reset_timeout=60)

# Sort names understood by the marketplace search endpoints
REMOTE_SORT = {
    SortKey.newest: "newest",
    SortKey.price_low: "price_low",
    SortKey.price_high: "price_high",
    SortKey.sqft_large: "size",
    SortKey.bedrooms: "bedrooms",
}


class MarketplaceError(Exception):
    """Raised when the marketplace API answers with an error or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MarketplaceUnavailable(MarketplaceError):
    """Network failure or 5xx; worth retrying."""


def _client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.MARKETPLACE_API_URL,
        timeout=timeout,
        follow_redirects=True,
    )


def _check(response: httpx.Response, what: str) -> Any:
    status = response.status_code
    if status >= 500:
        logger.error(f"{what} failed", status_code=status)
        raise MarketplaceUnavailable(f"{what} failed with status {status}", status_code=status)
    if not 200 <= status < 300:
        logger.error(f"{what} rejected", status_code=status)
        raise MarketplaceError(f"{what} failed with status {status}", status_code=status)
    try:
        return response.json()
    except ValueError:
        logger.error(f"{what} returned a non-JSON body", status_code=status)
        raise MarketplaceError(f"{what} returned malformed JSON", status_code=status)


def property_query_params(filters: Optional[FilterState] = None, sort_by: SortKey = SortKey.newest) -> Dict[str, str]:
    params = {"status": "active", "sortBy": REMOTE_SORT.get(sort_by, "newest")}
    if filters is None:
        return params
    if filters.property_type != ANY_TYPE:
        params["propertyType"] = filters.property_type
    if filters.bedrooms != ANY_COUNT:
        params["minBedrooms"] = filters.bedrooms
    if filters.bathrooms != ANY_COUNT:
        params["minBathrooms"] = filters.bathrooms
    if filters.listing_type != ANY_TYPE:
        params["listingType"] = filters.listing_type
    if filters.search_term:
        params["searchTerm"] = filters.search_term
    low, high = filters.price_range
    params["minPrice"] = f"{low:g}"
    params["maxPrice"] = f"{high:g}"
    return params


@retry_api(
    tries=settings.FETCH_RETRY_ATTEMPTS,
    delay=settings.FETCH_RETRY_DELAY,
    retry_on=(MarketplaceUnavailable,),
)
async def fetch_properties(filters: Optional[FilterState] = None, sort_by: SortKey = SortKey.newest) -> List[Any]:
    """GET /api/properties and return the raw records, envelope removed."""
    params = property_query_params(filters, sort_by)
    with breaker.calling():
        try:
            async with _client(settings.HTTP_TIMEOUT_SECONDS) as client:
                response = await client.get("/api/properties", params=params)
        except httpx.TransportError as e:
            logger.error("Property fetch transport error", error=str(e))
            raise MarketplaceUnavailable(f"Property fetch failed: {e}") from e
        payload = _check(response, "Property fetch")
    records = extract_records(payload)
    logger.info("Properties fetched", count=len(records))
    return records


async def interpret_query(query: str) -> AISearchResult:
    """POST /api/search/ai; no retries, the caller falls back locally instead."""
    # Unusable answers count as failures too
    with ai_breaker.calling():
        try:
            async with _client(settings.AI_SEARCH_TIMEOUT_SECONDS) as client:
                response = await client.post("/api/search/ai", json={"query": query})
        except httpx.TransportError as e:
            raise MarketplaceUnavailable(f"AI search failed: {e}") from e
        payload = _check(response, "AI search")
        if not isinstance(payload, dict):
            raise MarketplaceError("AI search returned an unexpected body", status_code=response.status_code)
        try:
            return AISearchResult.model_validate(payload)
        except ValueError as e:
            raise MarketplaceError(f"AI search returned an unusable body: {e}",
                                   status_code=response.status_code) from e


async def keyword_search(query: str, sort_by: SortKey = SortKey.newest, limit: int = 50) -> List[Any]:
    """GET /api/search, the marketplace's own keyword search."""
    params = {"q": query, "sort": REMOTE_SORT.get(sort_by, "newest"), "limit": str(limit)}
    with breaker.calling():
        try:
            async with _client(settings.HTTP_TIMEOUT_SECONDS) as client:
                response = await client.get("/api/search", params=params)
        except httpx.TransportError as e:
            raise MarketplaceUnavailable(f"Keyword search failed: {e}") from e
        payload = _check(response, "Keyword search")
    return extract_records(payload)


async def fetch_suggestions(query: str) -> List[str]:
    """GET /api/suggest; accepts a bare list or {"suggestions": [...]}."""
    try:
        async with _client(settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get("/api/suggest", params={"q": query})
    except httpx.TransportError as e:
        raise MarketplaceUnavailable(f"Suggestions failed: {e}") from e
    payload = _check(response, "Suggestions")
    if isinstance(payload, dict):
        payload = payload.get("suggestions")
    if not isinstance(payload, list):
        raise MarketplaceError("Suggestions returned an unexpected body", status_code=response.status_code)
    return [str(item) for item in payload if isinstance(item, (str, int, float)) and str(item).strip()]
