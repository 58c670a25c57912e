from __future__ import annotations

import copy
import re
from collections import Counter
from typing import Any

import pytest

from backend.app import app, get_engine
from backend.engine.client import EngineError
from backend.restaurants.stats import clear_stats

_TOKEN = re.compile(r"\w+")


def _tokens(value: Any) -> set[str]:
    if isinstance(value, list):
        return set().union(*(_tokens(v) for v in value)) if value else set()
    return set(_TOKEN.findall(str(value or "").lower()))


def _in_ring(ring: list[list[float]], x: float, y: float) -> bool:
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def _covers(area: dict | None, lng: float, lat: float) -> bool:
    if not area or not area.get("coordinates"):
        return False
    outer, *holes = area["coordinates"]
    return _in_ring(outer, lng, lat) and not any(_in_ring(h, lng, lat) for h in holes)


class FakeEngine:
    """
    In-memory stand-in for the Elasticsearch adapter.

    Understands only the query shape built by ``build_geo_query``: token
    overlap scoring on the multi_match fields and ray-casting containment
    for the geo_shape point filter.
    """

    def __init__(self) -> None:
        self.mappings: dict[str, dict] = {}
        self.documents: dict[str, dict[str, dict]] = {}
        self.calls: Counter[str] = Counter()
        self.fail_bulk = False
        self.fail_search = False
        self.reject_prefix_tree = False
        self.major_version: int | None = None
        self.last_query: dict | None = None

    def index_exists(self, index: str, timeout: float | None = None) -> bool:
        self.calls["index_exists"] += 1
        return index in self.mappings

    def create_index(self, index: str, mappings: dict, timeout: float | None = None) -> None:
        self.calls["create_index"] += 1
        if self.reject_prefix_tree and "tree" in mappings["properties"]["delivery_area"]:
            raise EngineError("mapper_parsing_exception: unknown parameter [tree]")
        self.mappings[index] = mappings
        self.documents.setdefault(index, {})

    def bulk_upsert(self, index: str, documents) -> None:
        self.calls["bulk_upsert"] += 1
        if self.fail_bulk:
            raise EngineError("bulk rejected")
        store = self.documents.setdefault(index, {})
        for doc_id, doc in documents:
            store[doc_id] = copy.deepcopy(doc)

    def put_raw(self, index: str, doc_id: str, source: dict) -> None:
        self.documents.setdefault(index, {})[doc_id] = source

    def search(self, index: str, query: dict) -> list[dict]:
        self.calls["search"] += 1
        self.last_query = query
        if self.fail_search:
            raise EngineError("search rejected")

        match = query["bool"]["must"]["multi_match"]
        shape = query["bool"]["filter"]["geo_shape"]["delivery_area"]["shape"]
        try:
            lng, lat = (float(c) for c in shape["coordinates"])
        except ValueError as exc:
            raise EngineError(f"failed to parse point: {exc}") from exc

        wanted = _tokens(match["query"])
        scored = []
        for doc_id, source in self.documents.get(index, {}).items():
            if not _covers(source.get("delivery_area"), lng, lat):
                continue
            score = sum(len(wanted & _tokens(source.get(f))) for f in match["fields"])
            if score == 0:
                continue
            scored.append((score, doc_id, source))

        scored.sort(key=lambda s: s[0], reverse=True)
        return [
            {"_id": doc_id, "_score": float(score), "_source": copy.deepcopy(source)}
            for score, doc_id, source in scored
        ]


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture(autouse=True)
def override_engine(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    clear_stats()
    yield
    app.dependency_overrides.pop(get_engine, None)
