"""
Coerces loosely-typed marketplace records into ``Property`` objects.

The marketplace API does not enforce its wire contract: prices arrive as
numbers or strings ("P1,200,000"), coordinates may be strings, zero or
missing, and images may be a list, a single URL or a JSON-encoded list.
Nothing in here raises on bad input; every record yields a usable Property.
"""
import json
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from structlog import get_logger

from app.schemas.property import Property

logger = get_logger()

# Gaborone city centre
DEFAULT_CENTER: Tuple[float, float] = (-24.6282, 25.9231)
DEMO_OFFSET = 0.01

_PRICE_NOISE = re.compile(r"[^0-9.\-]")


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def parse_number(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _PRICE_NOISE.sub("", value)
        try:
            number = float(cleaned)
        except ValueError:
            return default
    else:
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def parse_count(value: Any) -> int:
    return max(0, int(parse_number(value)))


def parse_coordinate(value: Any) -> Optional[float]:
    """Return the coordinate as a float, or None when it is unusable.

    0 is the backend's "not geocoded" sentinel and counts as missing.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number) or number == 0:
        return None
    return number


def has_valid_coordinates(latitude: Any, longitude: Any) -> bool:
    lat = parse_coordinate(latitude)
    lng = parse_coordinate(longitude)
    if lat is None or lng is None:
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except ValueError:
                return [text]
            return parsed if isinstance(parsed, list) else [parsed]
        return [text] if text else []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _image_url(raw: Dict[str, Any]) -> Optional[str]:
    for item in _as_list(_first(raw, "images", "image", "imageUrl", "image_url", "photos")):
        if isinstance(item, dict):
            item = item.get("url")
        if item:
            return str(item)
    return None


def normalize_property(raw: Any, index: int = 0, demo_coordinates: bool = False) -> Property:
    if not isinstance(raw, dict):
        logger.warning("Skipping non-object property record", index=index, kind=type(raw).__name__)
        raw = {}

    identifier = _first(raw, "id", "property_id", "propertyId")
    if identifier is None:
        identifier = f"property-{index + 1}"
    elif not isinstance(identifier, (int, str)):
        identifier = str(identifier)

    city = str(_first(raw, "city") or "")
    address = str(_first(raw, "address") or "")
    location = str(_first(raw, "location", "address", "city") or "")

    square_feet = _first(raw, "square_feet", "squareFeet", "sqft", "size")

    latitude = parse_coordinate(_first(raw, "latitude", "lat"))
    longitude = parse_coordinate(_first(raw, "longitude", "lng", "lon"))
    if not has_valid_coordinates(latitude, longitude):
        latitude, longitude = None, None
        if demo_coordinates:
            latitude = DEFAULT_CENTER[0] + index * DEMO_OFFSET
            longitude = DEFAULT_CENTER[1] + index * DEMO_OFFSET

    return Property(
        id=identifier,
        title=str(_first(raw, "title", "name") or f"Property {index + 1}"),
        price=parse_number(_first(raw, "price", "cost")),
        location=location,
        address=address or location,
        city=city,
        description=str(_first(raw, "description") or ""),
        property_type=str(_first(raw, "property_type", "propertyType", "type") or "").strip().lower(),
        listing_type=str(_first(raw, "listing_type", "listingType") or "").strip().lower(),
        bedrooms=parse_count(_first(raw, "bedrooms")),
        bathrooms=parse_count(_first(raw, "bathrooms")),
        square_feet=parse_number(square_feet) if square_feet is not None else None,
        image_url=_image_url(raw),
        features=[str(f) for f in _as_list(raw.get("features")) if f not in (None, "")],
        latitude=latitude,
        longitude=longitude,
    )


def normalize_properties(records: Iterable[Any], demo_coordinates: bool = False) -> List[Property]:
    return [normalize_property(raw, i, demo_coordinates) for i, raw in enumerate(records)]


def extract_records(payload: Any) -> List[Any]:
    """Unwrap the envelope shapes the marketplace API responds with."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "results", "properties"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    logger.warning("Unrecognised property payload", kind=type(payload).__name__)
    return []
