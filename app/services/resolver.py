"""
Free-text search resolution.

A query first goes to the marketplace's AI interpreter. The interpreter either
returns ready-made results, or structured filters that are merged into the
caller's FilterState and run through the local filter engine. When the
interpreter is unreachable or answers with something unusable the query is
matched locally against the loaded properties instead; that path never turns
into an error for the caller.
"""
import math
import re
from typing import Awaitable, Callable, List, Optional, Sequence

from structlog import get_logger

from app.schemas.filters import (
    AIFilterPayload,
    ANY_TYPE,
    FilterState,
    LISTING_TYPES,
    PROPERTY_TYPES,
    SortKey,
)
from app.schemas.property import Property
from app.schemas.search import SearchResponse
from app.services import marketplace
from app.services.filtering import apply_sort, filter_and_sort
from app.services.normalizer import normalize_properties

logger = get_logger()

MIN_QUERY_LENGTH = 2
FALLBACK_NOTICE = "Smart search is unavailable right now, showing keyword matches instead."
LOAD_FAILED_NOTICE = "We couldn't load properties right now, so these results may be incomplete. Please try again."

# Words that describe what is wanted rather than where; dropped before keyword matching
_STOPWORDS = {
    "a", "an", "and", "the", "in", "at", "near", "around", "for", "with", "of", "to", "on",
    "under", "over", "below", "above", "than", "less", "more", "between", "cheap", "affordable",
    "house", "houses", "home", "homes", "apartment", "apartments", "flat", "flats",
    "townhouse", "townhouses", "plot", "plots", "land", "farm", "farms", "property",
    "properties", "commercial", "sale", "rent", "buy", "bed", "beds", "bedroom", "bedrooms",
    "bath", "baths", "bathroom", "bathrooms", "million", "thousand", "pula", "bwp",
}
_TOKEN = re.compile(r"[\w'-]+")

PropertyLoader = Callable[[], Awaitable[List[Property]]]


class SearchValidationError(ValueError):
    """The query was rejected before any network call."""


def validate_query(query: Optional[str]) -> str:
    term = (query or "").strip()
    if not term:
        raise SearchValidationError("Please enter a search query")
    if len(term) < MIN_QUERY_LENGTH:
        raise SearchValidationError(f"Search query must be at least {MIN_QUERY_LENGTH} characters long")
    return term


def merge_ai_filters(current: FilterState, payload: AIFilterPayload) -> FilterState:
    """Overlay the interpreter's filters; fields it leaves out keep their current value."""
    low, high = current.price_range
    if payload.min_price is not None and math.isfinite(payload.min_price):
        low = max(0.0, float(payload.min_price))
    if payload.max_price is not None and math.isfinite(payload.max_price):
        high = max(0.0, float(payload.max_price))
    if low > high:
        high = low
    update = {"price_range": (low, high)}

    if payload.property_type:
        kind = payload.property_type.strip().lower()
        if kind == ANY_TYPE or kind in PROPERTY_TYPES:
            update["property_type"] = kind
        else:
            logger.info("Ignoring unknown property type from interpreter", property_type=payload.property_type)
    if payload.listing_type:
        kind = payload.listing_type.strip().lower()
        if kind == ANY_TYPE or kind in LISTING_TYPES:
            update["listing_type"] = kind
        else:
            logger.info("Ignoring unknown listing type from interpreter", listing_type=payload.listing_type)
    if payload.min_bedrooms is not None:
        update["bedrooms"] = str(max(0, int(payload.min_bedrooms)))
    if payload.min_bathrooms is not None:
        update["bathrooms"] = str(max(0, int(payload.min_bathrooms)))
    return current.model_copy(update=update)


def _haystack(prop: Property) -> str:
    return " ".join((prop.title, prop.description, prop.location, prop.city, prop.address)).lower()


def keywords(query: str) -> List[str]:
    return [
        token
        for token in _TOKEN.findall(query.lower())
        if token not in _STOPWORDS and not token.replace(".", "").isdigit() and len(token) >= MIN_QUERY_LENGTH
    ]


def local_match(properties: Sequence[Property], query: str) -> List[Property]:
    """Case-insensitive substring match over title, description and location fields.

    The whole query is tried first; if nothing contains it, every remaining
    keyword (stopwords and numbers removed) must appear somewhere in the record.
    """
    needle = query.strip().lower()
    if not needle:
        return []
    exact = [p for p in properties if needle in _haystack(p)]
    if exact:
        return exact
    terms = keywords(needle)
    if not terms:
        return []
    return [p for p in properties if all(term in _haystack(p) for term in terms)]


async def _resolve_properties(
    properties: Optional[Sequence[Property]], loader: Optional[PropertyLoader]
) -> Optional[List[Property]]:
    """Loaded properties, or None when the loader failed."""
    if properties is not None:
        return list(properties)
    if loader is None:
        return []
    try:
        return await loader()
    except Exception as e:
        logger.warning("Could not load properties for local search", error=str(e))
        return None


async def _fallback(
    term: str,
    properties: List[Property],
    sort_by: SortKey,
    current_filters: FilterState,
) -> SearchResponse:
    if properties:
        matches = local_match(properties, term)
    else:
        # Nothing loaded locally; the marketplace's keyword search is the last resort
        try:
            matches = normalize_properties(await marketplace.keyword_search(term, sort_by))
        except Exception as e:
            logger.warning("Keyword search fallback failed", query=term, error=str(e))
            matches = []
    results = apply_sort(matches, sort_by)
    logger.info("Search resolved locally", query=term, result_count=len(results))
    return SearchResponse(
        results=results,
        total=len(results),
        source="fallback",
        applied_filters=current_filters,
        notice=FALLBACK_NOTICE,
    )


async def resolve_search(
    query: str,
    current_filters: Optional[FilterState] = None,
    properties: Optional[Sequence[Property]] = None,
    sort_by: SortKey = SortKey.newest,
    loader: Optional[PropertyLoader] = None,
) -> SearchResponse:
    """Resolve ``query`` into a result list.

    ``properties`` is the already-loaded list used for filter re-derivation
    and the local fallback. When it is None, ``loader`` is awaited lazily
    and only if one of those paths needs it.

    Raises:
        SearchValidationError: the query is blank or shorter than two characters.
    """
    term = validate_query(query)
    current = current_filters or FilterState()

    try:
        interpretation = await marketplace.interpret_query(term)
    except Exception as e:
        logger.warning("AI search failed, falling back to local match", query=term, error=str(e))
        loaded = await _resolve_properties(properties, loader)
        return await _fallback(term, loaded or [], sort_by, current)

    merged = None
    if interpretation.filters is not None:
        merged = merge_ai_filters(current, interpretation.filters)

    if interpretation.results:
        results = apply_sort(normalize_properties(interpretation.results), sort_by)
        logger.info("Search resolved by interpreter", query=term, result_count=len(results),
                    confidence=interpretation.confidence)
        return SearchResponse(
            results=results,
            total=len(results),
            source="ai",
            applied_filters=merged,
            explanation=interpretation.explanation,
            confidence=interpretation.confidence,
        )

    if merged is not None:
        loaded = await _resolve_properties(properties, loader)
        results = filter_and_sort(loaded or [], merged, sort_by)
        logger.info("Search resolved by interpreted filters", query=term, result_count=len(results),
                    confidence=interpretation.confidence)
        return SearchResponse(
            results=results,
            total=len(results),
            source="filters",
            applied_filters=merged,
            explanation=interpretation.explanation,
            confidence=interpretation.confidence,
            notice=LOAD_FAILED_NOTICE if loaded is None else None,
        )

    logger.warning("AI search returned neither results nor filters", query=term)
    loaded = await _resolve_properties(properties, loader)
    return await _fallback(term, loaded or [], sort_by, current)
