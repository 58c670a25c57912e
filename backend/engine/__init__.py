"""
Elasticsearch integration layer.

Responsibilities:
- Manage the connection target and per-request timeouts.
- Acquire the shared client with backoff and expose its readiness state.
- Ensure the restaurant index exists with its geo-shape mapping.
- Wrap engine calls so failures surface as a single error type.
"""
