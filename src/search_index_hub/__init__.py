"""
SearchIndexHub - document enrichment core for search indexing.

Assembles search-engine-ready documents from raw entity rows through
per-entity-type enrichment providers run concurrently and merged in
priority order.
"""

__version__ = "0.1.0"
