from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _refresh_setting(raw: str) -> str | bool:
    lowered = raw.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    return lowered


@dataclass(frozen=True)
class EngineConfig:
    url: str = os.getenv("ELASTICSEARCH_URL", "http://localhost:9200")
    index_name: str = os.getenv("ELASTICSEARCH_INDEX", "restaurants")
    request_timeout: float = float(os.getenv("ELASTICSEARCH_TIMEOUT", "10"))
    schema_timeout: float = 1.0
    retry_initial_delay: float = 1.0
    retry_max_delay: float = 10.0
    retry_multiplier: float = 2.0
    bulk_refresh: str | bool = _refresh_setting(os.getenv("ELASTICSEARCH_REFRESH", "wait_for"))
    # Empty tree selects the plain geo_shape mapping (Elasticsearch 8 indices)
    geo_tree: str = os.getenv("ELASTICSEARCH_GEO_TREE", "quadtree")
    geo_precision: str = "1m"


DEFAULT_ENGINE_CONFIG = EngineConfig()
