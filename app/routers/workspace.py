from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Response
from structlog import get_logger

from app.dependencies.client import get_client_id, get_storage
from app.schemas.comparison import ComparisonResponse
from app.schemas.preferences import PreferenceUpdate, UserPreferences
from app.schemas.saved_search import RecordRunRequest, SavedSearch, SavedSearchList, SaveSearchRequest
from app.services.comparison import ComparisonSet, comparison_registry, comparison_table
from app.services.normalizer import normalize_property
from app.services.preferences import PreferenceError, PreferencesStore
from app.services.saved_searches import SavedSearchStore
from app.services.storage import ClientStorage

logger = get_logger()
router = APIRouter(prefix="/api/v1", tags=["workspace"])


# Saved searches

@router.get("/saved-searches", response_model=SavedSearchList)
async def list_saved_searches(storage: ClientStorage = Depends(get_storage)):
    return SavedSearchList(searches=await SavedSearchStore(storage).all())


@router.post("/saved-searches", response_model=SavedSearch, status_code=201)
async def save_search(request: SaveSearchRequest, storage: ClientStorage = Depends(get_storage)):
    saved = await SavedSearchStore(storage).save(
        request.name, request.query, request.filters, request.alerts_enabled
    )
    if saved is None:
        raise HTTPException(status_code=422, detail="Search name is required")
    return saved


@router.get("/saved-searches/{search_id}", response_model=SavedSearch)
async def load_saved_search(search_id: str, storage: ClientStorage = Depends(get_storage)):
    saved = await SavedSearchStore(storage).load(search_id)
    if saved is None:
        raise HTTPException(status_code=404, detail="Saved search not found")
    return saved


@router.delete("/saved-searches/{search_id}", status_code=204)
async def delete_saved_search(search_id: str, storage: ClientStorage = Depends(get_storage)):
    if not await SavedSearchStore(storage).delete(search_id):
        raise HTTPException(status_code=404, detail="Saved search not found")
    return Response(status_code=204)


@router.post("/saved-searches/{search_id}/alerts", response_model=SavedSearch)
async def toggle_saved_search_alerts(search_id: str, storage: ClientStorage = Depends(get_storage)):
    saved = await SavedSearchStore(storage).toggle_alerts(search_id)
    if saved is None:
        raise HTTPException(status_code=404, detail="Saved search not found")
    logger.info("Saved search alerts toggled", search_id=search_id, alerts_enabled=saved.alerts_enabled)
    return saved


@router.post("/saved-searches/{search_id}/run", response_model=SavedSearch)
async def record_saved_search_run(
    search_id: str, request: RecordRunRequest, storage: ClientStorage = Depends(get_storage)
):
    saved = await SavedSearchStore(storage).record_run(search_id, request.result_count)
    if saved is None:
        raise HTTPException(status_code=404, detail="Saved search not found")
    return saved


# Comparison

def _comparison_response(comparison: ComparisonSet, **extra) -> ComparisonResponse:
    properties = comparison.properties
    return ComparisonResponse(
        properties=properties,
        count=len(properties),
        max_size=comparison.max_size,
        table=comparison_table(properties),
        **extra,
    )


@router.get("/comparison", response_model=ComparisonResponse)
async def get_comparison(client_id: str = Depends(get_client_id)):
    return _comparison_response(comparison_registry.get(client_id))


@router.post("/comparison", response_model=ComparisonResponse)
async def add_to_comparison(record: Dict[str, Any], client_id: str = Depends(get_client_id)):
    if record.get("id") in (None, ""):
        raise HTTPException(status_code=422, detail="Property id is required")
    comparison, added, notice = comparison_registry.add(client_id, normalize_property(record))
    if not added:
        logger.info("Comparison add rejected", client_id=client_id, property_id=record.get("id"), notice=notice)
    return _comparison_response(comparison, added=added, notice=notice)


@router.delete("/comparison/{property_id}", response_model=ComparisonResponse)
async def remove_from_comparison(property_id: str, client_id: str = Depends(get_client_id)):
    return _comparison_response(comparison_registry.remove(client_id, property_id))


@router.delete("/comparison", response_model=ComparisonResponse)
async def clear_comparison(client_id: str = Depends(get_client_id)):
    comparison_registry.discard(client_id)
    return _comparison_response(comparison_registry.get(client_id))


# Preferences

@router.get("/preferences", response_model=UserPreferences)
async def get_preferences(storage: ClientStorage = Depends(get_storage)):
    return await PreferencesStore(storage).get()


@router.patch("/preferences", response_model=UserPreferences)
async def update_preference(request: PreferenceUpdate, storage: ClientStorage = Depends(get_storage)):
    try:
        return await PreferencesStore(storage).update(request.category, request.key, request.value)
    except PreferenceError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/preferences", response_model=UserPreferences)
async def reset_preferences(storage: ClientStorage = Depends(get_storage)):
    return await PreferencesStore(storage).reset()
