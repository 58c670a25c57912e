from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ..engine.client import ElasticsearchEngine, EngineError
from .errors import MissingLocation, QueryFailed
from .models import Restaurant, SearchResult
from .stats import record_search, record_skipped_hit

logger = logging.getLogger(__name__)

TEXT_FIELDS = ["name", "tags"]


def require_location(lat: str | None, lng: str | None) -> tuple[str, str]:
    """Return ``(lat, lng)`` or raise ``MissingLocation`` if either is missing or empty."""
    if not lat or not lng:
        raise MissingLocation()
    return lat, lng


def build_geo_query(term: str, lat: str, lng: str) -> dict[str, Any]:
    """
    Build the compound query for ``term`` near the point (``lat``, ``lng``).

    The ``must`` clause scores a multi-field match on name and tags; the
    ``filter`` clause keeps only restaurants whose delivery area contains the
    point and does not affect scoring. Coordinates use GeoJSON order
    ``[lng, lat]`` and are passed through unparsed. An empty ``term`` matches
    nothing.
    """
    return {
        "bool": {
            "must": {
                "multi_match": {
                    "query": term,
                    "fields": list(TEXT_FIELDS),
                }
            },
            "filter": {
                "geo_shape": {
                    "delivery_area": {
                        "shape": {"type": "point", "coordinates": [lng, lat]},
                        "relation": "intersects",
                    }
                }
            },
        }
    }


class GeoSearchHandler:
    """Search ``index`` for restaurants matching a term that deliver to a point."""

    def __init__(self, engine: ElasticsearchEngine, index: str) -> None:
        self._engine = engine
        self._index = index

    def _decode_hits(self, hits: list[dict[str, Any]]) -> list[Restaurant]:
        restaurants: list[Restaurant] = []
        for hit in hits:
            try:
                restaurants.append(Restaurant.model_validate(hit.get("_source") or {}))
            except ValidationError:
                record_skipped_hit()
                logger.warning(
                    "Skipping undecodable hit %r in %r", hit.get("_id"), self._index, exc_info=True
                )
        return restaurants

    def search(self, term: str | None, lat: str | None, lng: str | None) -> SearchResult:
        lat, lng = require_location(lat, lng)
        query = build_geo_query(term or "", lat, lng)
        logger.debug("Search query on %r: %s", self._index, query)

        try:
            hits = self._engine.search(self._index, query)
        except EngineError as exc:
            logger.error("Search on %r failed", self._index, exc_info=True)
            raise QueryFailed() from exc

        restaurants = self._decode_hits(hits)
        record_search(len(restaurants))
        return SearchResult(restaurants=restaurants)
