from __future__ import annotations

import logging
from typing import Any

from ..restaurants.errors import SchemaInitFailed
from .client import ElasticsearchEngine, EngineError
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig

logger = logging.getLogger(__name__)

TEXT_FIELDS = ["id", "name", "url", "image_url", "address", "tags", "food_tags"]


def build_mappings(geo_tree: str = "quadtree", geo_precision: str = "1m") -> dict[str, Any]:
    """
    Return the restaurant index mapping.

    ``delivery_area`` is a geo_shape indexed with a ``geo_tree`` prefix tree
    at ``geo_precision``. Pass an empty ``geo_tree`` for clusters that only
    support the default BKD-backed geo_shape.
    """
    delivery_area: dict[str, Any] = {"type": "geo_shape"}
    if geo_tree:
        delivery_area["tree"] = geo_tree
        delivery_area["precision"] = geo_precision

    properties: dict[str, Any] = {name: {"type": "text"} for name in TEXT_FIELDS}
    properties.update({
        "open": {"type": "boolean"},
        "rating": {"type": "integer"},
        "price": {"type": "integer"},
        "delivery_area": delivery_area,
    })
    return {"properties": properties}


RESTAURANT_MAPPINGS = build_mappings()


def _uses_prefix_tree(mappings: dict[str, Any]) -> bool:
    return "tree" in mappings["properties"].get("delivery_area", {})


def select_mappings(config: EngineConfig, major_version: int | None) -> dict[str, Any]:
    """Prefix-tree geo_shape only where the cluster still accepts it (before 8.0)."""
    if major_version is not None and major_version >= 8:
        return build_mappings("")
    return build_mappings(config.geo_tree, config.geo_precision)


def ensure_restaurant_index(
    engine: ElasticsearchEngine,
    index: str,
    mappings: dict[str, Any] = RESTAURANT_MAPPINGS,
    timeout: float | None = None,
) -> bool:
    """
    Create ``index`` with the restaurant mapping unless it already exists.

    If the engine rejects a prefix-tree mapping, creation is retried once
    with the plain geo_shape mapping so ``delivery_area`` is never left to
    dynamic mapping. Returns ``True`` if the index was created, ``False`` if
    it was already present. Raises ``SchemaInitFailed`` when the check or
    creation fails.
    """
    try:
        if engine.index_exists(index, timeout=timeout):
            return False
        try:
            engine.create_index(index, mappings, timeout=timeout)
        except EngineError:
            if not _uses_prefix_tree(mappings):
                raise
            logger.warning(
                "Prefix-tree mapping rejected for %r, retrying with plain geo_shape",
                index,
                exc_info=True,
            )
            engine.create_index(index, build_mappings(""), timeout=timeout)
    except EngineError as exc:
        raise SchemaInitFailed(str(exc)) from exc

    logger.info("Created index %r with restaurant mapping", index)
    return True


def initialize_schema(
    engine: ElasticsearchEngine,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> bool:
    """Boot-time schema check. Logs failures instead of raising."""
    try:
        ensure_restaurant_index(
            engine,
            config.index_name,
            mappings=select_mappings(config, engine.major_version),
            timeout=config.schema_timeout,
        )
    except SchemaInitFailed:
        logger.error(
            "Schema initialisation failed for %r, continuing startup",
            config.index_name,
            exc_info=True,
        )
        return False
    return True
