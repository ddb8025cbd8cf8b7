"""Keyed lazy registry holding indexers and the active entity type."""

from .indexer_registry import (
    IDENTIFIER,
    DuplicateKeyError,
    IndexerRegistry,
    active_entity_type,
)

__all__ = [
    "IDENTIFIER",
    "DuplicateKeyError",
    "IndexerRegistry",
    "active_entity_type",
]
