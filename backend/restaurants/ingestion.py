from __future__ import annotations

import logging

from pydantic import TypeAdapter, ValidationError

from ..engine.client import ElasticsearchEngine, EngineError
from .errors import IngestionFailed, InvalidInput
from .models import Restaurant

logger = logging.getLogger(__name__)

_batch_adapter = TypeAdapter(list[Restaurant])


def decode_restaurants(raw: bytes | str) -> list[Restaurant]:
    """Parse a JSON array of restaurants. Any error rejects the whole batch."""
    try:
        return _batch_adapter.validate_json(raw)
    except ValidationError as exc:
        logger.info("Rejected ingestion payload: %d validation error(s)", exc.error_count())
        raise InvalidInput() from exc


class IngestionHandler:
    """Validate a batch of restaurants and upsert it into ``index`` in one bulk call."""

    def __init__(self, engine: ElasticsearchEngine, index: str) -> None:
        self._engine = engine
        self._index = index

    def decode(self, raw: bytes | str) -> list[Restaurant]:
        return decode_restaurants(raw)

    def ingest(self, restaurants: list[Restaurant]) -> int:
        """Upsert ``restaurants`` keyed by id. Returns the number submitted."""
        if not restaurants:
            return 0

        documents = [(r.id, r.to_document()) for r in restaurants]
        try:
            self._engine.bulk_upsert(self._index, documents)
        except EngineError as exc:
            logger.error("Bulk upsert of %d restaurants failed", len(documents), exc_info=True)
            raise IngestionFailed() from exc

        logger.info("Indexed %d restaurants into %r", len(documents), self._index)
        return len(documents)

    def ingest_json(self, raw: bytes | str) -> int:
        return self.ingest(self.decode(raw))
