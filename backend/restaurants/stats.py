from __future__ import annotations

import threading

_lock = threading.Lock()
_searches: int = 0
_results_returned: int = 0
_skipped_hits: int = 0


def record_search(returned: int) -> None:
    global _searches, _results_returned
    with _lock:
        _searches += 1
        _results_returned += returned


def record_skipped_hit() -> None:
    global _skipped_hits
    with _lock:
        _skipped_hits += 1


def get_search_stats() -> dict:
    return {
        "searches": _searches,
        "results_returned": _results_returned,
        "skipped_hits": _skipped_hits,
    }


def clear_stats() -> None:
    global _searches, _results_returned, _skipped_hits
    with _lock:
        _searches = 0
        _results_returned = 0
        _skipped_hits = 0
