from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from app.schemas.filters import FilterState


class SavedSearch(BaseModel):
    id: str
    name: str
    query: str = ""
    filters: FilterState = Field(default_factory=FilterState)
    alerts_enabled: bool = False
    created_at: datetime
    last_run: datetime
    result_count: int = 0


class SaveSearchRequest(BaseModel):
    name: str
    query: str = ""
    filters: FilterState = Field(default_factory=FilterState)
    alerts_enabled: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Houses in Gaborone under 2M",
                "query": "houses in Gaborone",
                "filters": {"price_range": [0, 2000000], "property_type": "house"},
                "alerts_enabled": True,
            }
        }


class RecordRunRequest(BaseModel):
    result_count: int = Field(ge=0)


class SavedSearchList(BaseModel):
    searches: List[SavedSearch]
