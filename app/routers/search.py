from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pybreaker import CircuitBreakerError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.config import settings
from app.database import get_session
from app.dependencies.client import get_optional_client_id, get_storage
from app.dependencies.rate_limit import search_rate_limit
from app.schemas.filters import ANY_COUNT, ANY_TYPE, DEFAULT_PRICE_RANGE, FilterState, SortKey, ViewMode
from app.schemas.property import Property
from app.schemas.search import (
    PropertyListResponse,
    RecentSearchesResponse,
    SearchRequest,
    SearchResponse,
    SuggestionResponse,
)
from app.services import marketplace
from app.services.filtering import active_filter_count, filter_and_sort
from app.services.normalizer import normalize_properties
from app.services.preferences import PreferencesStore
from app.services.recent_searches import RecentSearches
from app.services.resolver import SearchValidationError, resolve_search
from app.services.storage import ClientStorage
from app.services.suggestions import suggest
from app.services.views import render_view

logger = get_logger()
router = APIRouter(prefix="/api/v1", tags=["search"])


def filter_params(
    min_price: float = Query(DEFAULT_PRICE_RANGE[0], ge=0),
    max_price: float = Query(DEFAULT_PRICE_RANGE[1], ge=0),
    property_type: str = ANY_TYPE,
    bedrooms: str = ANY_COUNT,
    bathrooms: str = ANY_COUNT,
    listing_type: str = ANY_TYPE,
    q: str = "",
) -> FilterState:
    try:
        return FilterState(
            price_range=(min_price, max_price),
            property_type=property_type,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            listing_type=listing_type,
            search_term=q,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))


async def load_properties(filters: Optional[FilterState] = None, sort_by: SortKey = SortKey.newest) -> List[Property]:
    records = await marketplace.fetch_properties(filters, sort_by)
    return normalize_properties(records, demo_coordinates=settings.DEMO_COORDINATES)


@router.get("/properties", response_model=PropertyListResponse)
async def list_properties(
    filters: FilterState = Depends(filter_params),
    sort_by: Optional[SortKey] = None,
    view: Optional[ViewMode] = None,
    client_id: Optional[str] = Depends(get_optional_client_id),
    db: AsyncSession = Depends(get_session),
):
    # Unset sort/view fall back to the client's saved defaults
    if client_id and (sort_by is None or view is None):
        prefs = await PreferencesStore(ClientStorage(db, client_id)).get()
        sort_by = sort_by or prefs.search_filters.default_sort_by
        view = view or prefs.search_filters.default_view_mode
    sort_by = sort_by or SortKey.newest
    view = view or ViewMode.grid

    try:
        properties = await load_properties(filters, sort_by)
    except (marketplace.MarketplaceError, CircuitBreakerError) as e:
        logger.error("Property listing failed", error=str(e))
        raise HTTPException(
            status_code=502,
            detail={"message": "We couldn't load properties right now.", "retryable": True},
        )

    # The marketplace may ignore some query params; the engine is authoritative
    results = filter_and_sort(properties, filters, sort_by)
    response = render_view(results, view)
    response.active_filters = active_filter_count(filters)
    logger.info("Properties listed", view=view.value, sort_by=sort_by.value, result_count=len(results))
    return response


@router.post("/search", response_model=SearchResponse, dependencies=[Depends(search_rate_limit)])
async def search_properties(request: SearchRequest, storage: ClientStorage = Depends(get_storage)):
    try:
        result = await resolve_search(
            request.query,
            request.filters,
            sort_by=request.sort_by,
            loader=load_properties,
        )
    except SearchValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    await RecentSearches(storage).add(request.query)
    logger.info("Property search executed", client_id=storage.client_id, query=request.query.strip(),
                source=result.source, result_count=result.total)
    return result


@router.get("/search/suggestions", response_model=SuggestionResponse)
async def search_suggestions(q: str = "", storage: ClientStorage = Depends(get_storage)):
    return await suggest(q, RecentSearches(storage))


@router.get("/search/recent", response_model=RecentSearchesResponse)
async def recent_searches(storage: ClientStorage = Depends(get_storage)):
    return RecentSearchesResponse(searches=await RecentSearches(storage).all())


@router.delete("/search/recent", response_model=RecentSearchesResponse)
async def clear_recent_searches(storage: ClientStorage = Depends(get_storage)):
    await RecentSearches(storage).clear()
    return RecentSearchesResponse(searches=[])
