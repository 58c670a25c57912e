"""Errors raised by the ingestion and search handlers.

Each error carries the HTTP status the transport layer answers with and a
short client-facing message. Engine details stay in the logs.
"""
from __future__ import annotations


class RestaurantAPIError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(RestaurantAPIError):
    """Ingestion payload did not decode into a list of restaurants."""

    status_code = 400
    default_message = "Invalid JSON"


class MissingLocation(RestaurantAPIError):
    """Search request lacked ``lat`` or ``lng``."""

    status_code = 400
    default_message = "No location params"


class IngestionFailed(RestaurantAPIError):
    """The engine rejected or failed the bulk upsert. Safe to retry."""

    status_code = 400
    default_message = "Restaurant creation failed"


class QueryFailed(RestaurantAPIError):
    """The engine rejected or failed the search query."""

    status_code = 500
    default_message = "Query failed"


class EngineUnavailable(RestaurantAPIError):
    """No engine connection has been established yet."""

    status_code = 503
    default_message = "Search engine unavailable"


class SchemaInitFailed(RestaurantAPIError):
    """Boot-time index check or creation failed. Logged, never returned."""

    default_message = "Index initialisation failed"
