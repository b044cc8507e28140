from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.filters import FilterState, SortKey, ViewMode
from app.schemas.property import Property


class SearchRequest(BaseModel):
    query: str
    filters: FilterState = Field(default_factory=FilterState)
    sort_by: SortKey = SortKey.newest

    class Config:
        json_schema_extra = {
            "example": {
                "query": "3 bedroom houses in Maun under 2 million",
                "filters": {"price_range": [0, 5000000]},
                "sort_by": "price-low",
            }
        }


class SearchResponse(BaseModel):
    results: List[Property]
    total: int
    source: str
    applied_filters: Optional[FilterState] = None
    explanation: Optional[str] = None
    confidence: Optional[float] = None
    notice: Optional[str] = None


class MapViewport(BaseModel):
    latitude: float
    longitude: float
    zoom: float


class PropertyListResponse(BaseModel):
    view: ViewMode
    properties: List[Property]
    total: int
    # Map view only: properties left off the map for lack of usable coordinates
    hidden_count: int = 0
    viewport: Optional[MapViewport] = None
    active_filters: int = 0


class SuggestionResponse(BaseModel):
    query: str
    suggestions: List[str]
    source: str


class RecentSearchesResponse(BaseModel):
    searches: List[str]
