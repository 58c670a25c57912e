from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable

from elasticsearch import Elasticsearch

from .client import ElasticsearchEngine, create_client
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    disconnected = "disconnected"
    connecting = "connecting"
    ready = "ready"


class EngineConnector:
    """
    Acquire the process-wide engine handle.

    Retries with capped exponential backoff until the cluster answers, then
    publishes the handle and moves to ``ready``. ``stop()`` interrupts a
    pending backoff so shutdown never waits on an unreachable cluster.
    """

    def __init__(
        self,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
        client_factory: Callable[[EngineConfig], Elasticsearch] = create_client,
        on_ready: Callable[[ElasticsearchEngine], object] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._on_ready = on_ready
        self._state = EngineState.disconnected
        self._engine: ElasticsearchEngine | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.attempts = 0

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def engine(self) -> ElasticsearchEngine | None:
        return self._engine

    def _next_delay(self, delay: float) -> float:
        return min(delay * self._config.retry_multiplier, self._config.retry_max_delay)

    def connect(self) -> bool:
        """Block until connected (``True``) or stopped (``False``)."""
        if self._state is EngineState.ready:
            return True

        self._state = EngineState.connecting
        delay = self._config.retry_initial_delay

        while not self._stop.is_set():
            self.attempts += 1
            engine: ElasticsearchEngine | None = None
            try:
                engine = ElasticsearchEngine(self._client_factory(self._config), self._config)
                engine.ping()
            except Exception:
                if engine is not None:
                    engine.close()
                logger.warning(
                    "Engine at %s not reachable (attempt %d), retrying in %.1fs",
                    self._config.url,
                    self.attempts,
                    delay,
                    exc_info=True,
                )
                if self._stop.wait(delay):
                    break
                delay = self._next_delay(delay)
                continue

            logger.info("Connected to engine at %s", self._config.url)
            # Requests only see the engine once on_ready (schema setup) is done.
            if self._on_ready is not None and not self._stop.is_set():
                self._on_ready(engine)
            if self._stop.is_set():
                engine.close()
                break

            self._engine = engine
            self._state = EngineState.ready
            return True

        self._state = EngineState.disconnected
        logger.info("Engine connection attempts stopped")
        return False

    def start(self) -> None:
        """Run ``connect()`` on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.connect, name="engine-connector", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        if self._engine is not None:
            self._engine.close()
            self._engine = None
        self._state = EngineState.disconnected
