"""
Infrastructure Layer

Components:
- registry: Keyed lazy registry carrying indexers and the active entity type
- concurrency: Executors for provider fan-out
- datasource: Provider registry, factory, resolver and merge policy
- search: Interval range search and range aggregation
- indexing: Fulltext indexer and reindex queue boundary

Usage:
    from search_index_hub.infrastructure.datasource import DocumentMappingResolver
    from search_index_hub.infrastructure.indexing import FulltextIndexer
"""

__all__: list[str] = []
