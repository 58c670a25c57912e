from __future__ import annotations

from typing import Any, Iterable

from elasticsearch import ApiError, Elasticsearch, TransportError

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig


class EngineError(Exception):
    """Any failure reported by, or while talking to, the search engine."""


def create_client(config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> Elasticsearch:
    """Build an Elasticsearch client for the configured URL. Does not connect."""
    return Elasticsearch(config.url, request_timeout=config.request_timeout)


def _first_bulk_error(response: Any) -> str:
    for item in response["items"]:
        for action in item.values():
            error = action.get("error")
            if error:
                reason = error.get("reason", error) if isinstance(error, dict) else error
                return f"document {action.get('_id')!r}: {reason}"
    return "bulk request reported errors"


class ElasticsearchEngine:
    """
    Thin adapter over a shared ``Elasticsearch`` client.

    The client is thread-safe and owns its connection pool, so one instance
    serves every request. Each method performs exactly one round trip and
    raises ``EngineError`` on any engine-side failure.
    """

    def __init__(
        self,
        client: Elasticsearch,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        self._client = client
        self._config = config
        self.major_version: int | None = None

    def _scoped(self, timeout: float | None = None) -> Elasticsearch:
        return self._client.options(request_timeout=timeout or self._config.request_timeout)

    def index_exists(self, index: str, timeout: float | None = None) -> bool:
        try:
            return bool(self._scoped(timeout).indices.exists(index=index))
        except (ApiError, TransportError) as exc:
            raise EngineError(f"index existence check failed for {index!r}: {exc}") from exc

    def create_index(
        self,
        index: str,
        mappings: dict[str, Any],
        timeout: float | None = None,
    ) -> None:
        try:
            self._scoped(timeout).indices.create(index=index, mappings=mappings)
        except (ApiError, TransportError) as exc:
            raise EngineError(f"index creation failed for {index!r}: {exc}") from exc

    def bulk_upsert(self, index: str, documents: Iterable[tuple[str, dict[str, Any]]]) -> None:
        """Index (insert or overwrite) every ``(id, document)`` pair in one request."""
        operations: list[dict[str, Any]] = []
        for doc_id, document in documents:
            operations.append({"index": {"_index": index, "_id": doc_id}})
            operations.append(document)

        try:
            response = self._scoped().bulk(
                operations=operations,
                refresh=self._config.bulk_refresh,
            )
        except (ApiError, TransportError) as exc:
            raise EngineError(f"bulk request failed: {exc}") from exc

        if response["errors"]:
            raise EngineError(_first_bulk_error(response))

    def search(self, index: str, query: dict[str, Any]) -> list[dict[str, Any]]:
        """Run ``query`` against ``index`` and return the raw ranked hits."""
        try:
            response = self._scoped().search(index=index, query=query)
        except (ApiError, TransportError) as exc:
            raise EngineError(f"search failed on {index!r}: {exc}") from exc
        return list(response["hits"]["hits"])

    def ping(self) -> dict[str, Any]:
        """Fetch cluster info and record its major version. Raises the client's own errors."""
        info = dict(self._client.info())
        number = str(info.get("version", {}).get("number", ""))
        major = number.split(".", 1)[0]
        self.major_version = int(major) if major.isdigit() else None
        return info

    def close(self) -> None:
        self._client.close()
