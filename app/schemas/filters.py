import enum
import math
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class PropertyKind(str, enum.Enum):
    house = "house"
    apartment = "apartment"
    townhouse = "townhouse"
    commercial = "commercial"
    farm = "farm"
    land = "land"


class ListingKind(str, enum.Enum):
    agent = "agent"
    owner = "owner"


class SortKey(str, enum.Enum):
    newest = "newest"
    price_low = "price-low"
    price_high = "price-high"
    sqft_large = "sqft-large"
    bedrooms = "bedrooms"


class ViewMode(str, enum.Enum):
    grid = "grid"
    list = "list"
    map = "map"


ANY_TYPE = "all"
ANY_COUNT = "any"
DEFAULT_PRICE_RANGE: Tuple[float, float] = (0.0, 5_000_000.0)

PROPERTY_TYPES = {kind.value for kind in PropertyKind}
LISTING_TYPES = {kind.value for kind in ListingKind}


def _normalize_count(value: Any) -> str:
    if value is None:
        return ANY_COUNT
    text = str(value).strip().lower().rstrip("+")
    if text in ("", ANY_COUNT):
        return ANY_COUNT
    if not text.isdigit():
        raise ValueError("must be 'any' or a non-negative whole number")
    return str(int(text))


class FilterState(BaseModel):
    price_range: Tuple[float, float] = DEFAULT_PRICE_RANGE
    property_type: str = ANY_TYPE
    bedrooms: str = ANY_COUNT
    bathrooms: str = ANY_COUNT
    listing_type: str = ANY_TYPE
    search_term: str = ""

    class Config:
        json_schema_extra = {
            "example": {
                "price_range": [0, 2000000],
                "property_type": "house",
                "bedrooms": "3",
                "bathrooms": "any",
                "listing_type": "owner",
                "search_term": "Gaborone",
            }
        }

    @field_validator("price_range")
    def check_price_range(cls, v):
        low, high = v
        if not (math.isfinite(low) and math.isfinite(high)):
            raise ValueError("price bounds must be finite numbers")
        if low < 0 or high < 0:
            raise ValueError("price bounds must be non-negative")
        if low > high:
            raise ValueError("price range low bound exceeds high bound")
        return (float(low), float(high))

    @field_validator("property_type", mode="before")
    def check_property_type(cls, v):
        value = str(v or ANY_TYPE).strip().lower()
        if value != ANY_TYPE and value not in PROPERTY_TYPES:
            raise ValueError(f"unknown property type '{v}'")
        return value

    @field_validator("listing_type", mode="before")
    def check_listing_type(cls, v):
        value = str(v or ANY_TYPE).strip().lower()
        if value != ANY_TYPE and value not in LISTING_TYPES:
            raise ValueError(f"unknown listing type '{v}'")
        return value

    @field_validator("bedrooms", "bathrooms", mode="before")
    def check_counts(cls, v):
        return _normalize_count(v)

    @field_validator("search_term", mode="before")
    def strip_search_term(cls, v):
        return str(v or "").strip()

    @property
    def min_bedrooms(self) -> Optional[int]:
        return None if self.bedrooms == ANY_COUNT else int(self.bedrooms)

    @property
    def min_bathrooms(self) -> Optional[int]:
        return None if self.bathrooms == ANY_COUNT else int(self.bathrooms)


class AIFilterPayload(BaseModel):
    """Structured filters returned by the remote query interpreter."""

    min_price: Optional[float] = Field(default=None, alias="minPrice")
    max_price: Optional[float] = Field(default=None, alias="maxPrice")
    property_type: Optional[str] = Field(default=None, alias="propertyType")
    min_bedrooms: Optional[int] = Field(default=None, alias="minBedrooms")
    min_bathrooms: Optional[int] = Field(default=None, alias="minBathrooms")
    listing_type: Optional[str] = Field(default=None, alias="listingType")
    # Sent by the interpreter but not part of the filter panel
    city: Optional[str] = None
    features: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        extra = "ignore"


class AISearchResult(BaseModel):
    explanation: str = ""
    confidence: float = 0.0
    filters: Optional[AIFilterPayload] = None
    results: Optional[List[Dict[str, Any]]] = None

    class Config:
        extra = "ignore"

    @field_validator("confidence", mode="before")
    def clamp_confidence(cls, v):
        if v is None:
            return 0.0
        return min(1.0, max(0.0, float(v)))

    @model_validator(mode="after")
    def require_payload(self):
        if self.filters is None and self.results is None:
            raise ValueError("interpreter response carries neither filters nor results")
        return self
