"""
Restaurant ingestion and geo-search.

Responsibilities:
- Define the Restaurant record and the search result envelope.
- Validate ingestion batches and bulk-upsert them keyed by restaurant id.
- Build the text + delivery-area query and map engine hits back to records.
- Translate failures into the API error taxonomy.
"""
