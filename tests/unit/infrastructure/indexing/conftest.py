"""Fixtures for the reindex flow tests."""

from typing import Any, Dict, List, Optional, Sequence
from unittest.mock import MagicMock

import pytest

from search_index_hub.infrastructure.registry import IndexerRegistry


class InMemoryDocumentSource:
    """Rows held in memory, paged by primary key like a resource model."""

    primary_key = "entity_id"

    def __init__(self, rows: List[Dict[str, Any]]) -> None:
        self.rows = sorted(rows, key=lambda row: row["entity_id"])
        self.calls: List[tuple] = []

    def get_indexable_documents(
        self,
        store_id: int,
        ids: Optional[Sequence[Any]] = None,
        last_entity_id: Optional[Any] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        self.calls.append((store_id, ids, last_entity_id, limit))
        page = [
            dict(row, store_id=store_id)
            for row in self.rows
            if row["entity_id"] > (last_entity_id or 0)
            and (ids is None or row["entity_id"] in ids)
        ]
        return page[:limit]


@pytest.fixture
def document_source() -> InMemoryDocumentSource:
    return InMemoryDocumentSource(
        [{"entity_id": n, "sku": f"SKU-{n}"} for n in range(1, 6)]
    )


@pytest.fixture
def index_writer() -> MagicMock:
    return MagicMock()


@pytest.fixture
def registry() -> IndexerRegistry:
    return IndexerRegistry()
