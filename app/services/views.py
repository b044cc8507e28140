import math
from typing import List, Sequence

from structlog import get_logger

from app.schemas.filters import ViewMode
from app.schemas.property import Property
from app.schemas.search import MapViewport, PropertyListResponse
from app.services.normalizer import DEFAULT_CENTER, has_valid_coordinates

logger = get_logger()

DEFAULT_ZOOM = 11.0
MIN_ZOOM = 8.0
MAX_ZOOM = 12.0


def mappable(properties: Sequence[Property]) -> List[Property]:
    return [p for p in properties if has_valid_coordinates(p.latitude, p.longitude)]


def map_viewport(properties: Sequence[Property]) -> MapViewport:
    """Centre and zoom that fit every marker; Gaborone when there are none."""
    if not properties:
        return MapViewport(latitude=DEFAULT_CENTER[0], longitude=DEFAULT_CENTER[1], zoom=DEFAULT_ZOOM)
    if len(properties) == 1:
        only = properties[0]
        return MapViewport(latitude=only.latitude, longitude=only.longitude, zoom=DEFAULT_ZOOM)

    lats = [p.latitude for p in properties]
    lngs = [p.longitude for p in properties]
    span = max(max(lngs) - min(lngs), max(lats) - min(lats))
    if span <= 0:
        zoom = MAX_ZOOM
    else:
        zoom = min(MAX_ZOOM, max(MIN_ZOOM, MAX_ZOOM - math.log2(span / 0.1)))
    return MapViewport(
        latitude=(min(lats) + max(lats)) / 2,
        longitude=(min(lngs) + max(lngs)) / 2,
        zoom=zoom,
    )


def render_view(properties: Sequence[Property], mode: ViewMode = ViewMode.grid) -> PropertyListResponse:
    if mode is not ViewMode.map:
        return PropertyListResponse(view=mode, properties=list(properties), total=len(properties))

    markers = mappable(properties)
    hidden = len(properties) - len(markers)
    if hidden:
        logger.info("Properties without usable coordinates left off the map", hidden=hidden)
    return PropertyListResponse(
        view=mode,
        properties=markers,
        total=len(properties),
        hidden_count=hidden,
        viewport=map_viewport(markers),
    )
