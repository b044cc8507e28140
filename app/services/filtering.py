"""
Filter and sort engine for property result sets.

All functions are pure: they never mutate their inputs and always return new
lists. Filters compose with logical AND.
"""
from typing import Callable, Dict, List, Sequence, Union

from structlog import get_logger

from app.schemas.filters import ANY_COUNT, ANY_TYPE, DEFAULT_PRICE_RANGE, FilterState, SortKey
from app.schemas.property import Property

logger = get_logger()


def _matches_term(prop: Property, term: str) -> bool:
    needle = term.lower()
    return needle in prop.title.lower() or needle in prop.location.lower()


def matches_filters(prop: Property, filters: FilterState) -> bool:
    """True when ``prop`` satisfies every active predicate in ``filters``."""
    if filters.search_term and not _matches_term(prop, filters.search_term):
        return False
    if filters.property_type != ANY_TYPE and prop.property_type != filters.property_type:
        return False
    if filters.listing_type != ANY_TYPE and prop.listing_type != filters.listing_type:
        return False
    low, high = filters.price_range
    if prop.price < low or prop.price > high:
        return False
    if filters.min_bedrooms is not None and prop.bedrooms < filters.min_bedrooms:
        return False
    if filters.min_bathrooms is not None and prop.bathrooms < filters.min_bathrooms:
        return False
    return True


def apply_filters(properties: Sequence[Property], filters: FilterState) -> List[Property]:
    return [p for p in properties if matches_filters(p, filters)]


_SORT_KEYS: Dict[SortKey, Callable[[Property], float]] = {
    SortKey.price_low: lambda p: p.price,
    SortKey.price_high: lambda p: -p.price,
    SortKey.sqft_large: lambda p: -(p.square_feet or 0),
    SortKey.bedrooms: lambda p: -(p.bedrooms or 0),
}


def apply_sort(properties: Sequence[Property], sort_by: Union[SortKey, str] = SortKey.newest) -> List[Property]:
    """Stable sort; ``newest`` keeps the source order."""
    try:
        key = SortKey(sort_by)
    except ValueError:
        logger.warning("Unknown sort key, keeping source order", sort_by=sort_by)
        key = SortKey.newest
    if key is SortKey.newest:
        return list(properties)
    return sorted(properties, key=_SORT_KEYS[key])


def filter_and_sort(
    properties: Sequence[Property],
    filters: FilterState,
    sort_by: Union[SortKey, str] = SortKey.newest,
) -> List[Property]:
    filtered = apply_filters(properties, filters)
    logger.debug("Filters applied", total=len(properties), matching=len(filtered), sort_by=str(sort_by))
    return apply_sort(filtered, sort_by)


def active_filter_count(filters: FilterState) -> int:
    """Number of filter fields that differ from their defaults."""
    count = 0
    if tuple(filters.price_range) != DEFAULT_PRICE_RANGE:
        count += 1
    if filters.property_type != ANY_TYPE:
        count += 1
    if filters.listing_type != ANY_TYPE:
        count += 1
    if filters.bedrooms != ANY_COUNT:
        count += 1
    if filters.bathrooms != ANY_COUNT:
        count += 1
    if filters.search_term:
        count += 1
    return count
