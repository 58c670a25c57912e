from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .engine.client import ElasticsearchEngine
from .engine.config import DEFAULT_ENGINE_CONFIG
from .engine.connection import EngineConnector
from .engine.schema import initialize_schema
from .restaurants.errors import EngineUnavailable, RestaurantAPIError
from .restaurants.ingestion import IngestionHandler, decode_restaurants
from .restaurants.models import Restaurant, SearchResult
from .restaurants.search import GeoSearchHandler, require_location
from .restaurants.stats import get_search_stats

connector = EngineConnector(
    DEFAULT_ENGINE_CONFIG,
    on_ready=lambda engine: initialize_schema(engine, DEFAULT_ENGINE_CONFIG),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    connector.start()
    try:
        yield
    finally:
        await run_in_threadpool(connector.stop)


app = FastAPI(title="Restaurant Geo-Search API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RestaurantAPIError)
async def restaurant_api_error(request: Request, exc: RestaurantAPIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# ── Dependencies ─────────────────────────────────────────────────────────
# Request validation dependencies are declared ahead of the handler ones so
# that 400s are answered before the engine is looked up.


async def read_restaurant_batch(request: Request) -> list[Restaurant]:
    # Raw body so malformed JSON maps to InvalidInput rather than a 422.
    return decode_restaurants(await request.body())


def location_params(lat: str | None = None, lng: str | None = None) -> tuple[str, str]:
    return require_location(lat, lng)


def get_engine() -> ElasticsearchEngine:
    """Return the shared engine handle, or 503 until the connector is ready."""
    engine = connector.engine
    if engine is None:
        raise EngineUnavailable()
    return engine


def get_ingestion_handler(engine: ElasticsearchEngine = Depends(get_engine)) -> IngestionHandler:
    return IngestionHandler(engine, DEFAULT_ENGINE_CONFIG.index_name)


def get_search_handler(engine: ElasticsearchEngine = Depends(get_engine)) -> GeoSearchHandler:
    return GeoSearchHandler(engine, DEFAULT_ENGINE_CONFIG.index_name)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "engine": connector.state.value}


@app.get("/stats")
def stats() -> dict:
    return get_search_stats()


@app.post("/restaurants")
async def create_restaurants(
    restaurants: list[Restaurant] = Depends(read_restaurant_batch),
    handler: IngestionHandler = Depends(get_ingestion_handler),
) -> Response:
    await run_in_threadpool(handler.ingest, restaurants)
    return Response(status_code=200)


@app.get("/search", response_model=SearchResult)
def search_restaurants(
    q: str = "",
    location: tuple[str, str] = Depends(location_params),
    handler: GeoSearchHandler = Depends(get_search_handler),
) -> SearchResult:
    lat, lng = location
    return handler.search(q, lat, lng)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "9000")))
