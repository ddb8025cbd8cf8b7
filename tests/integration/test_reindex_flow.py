"""End-to-end reindex flow.

YAML datasource configuration -> registry -> concurrent resolver ->
fulltext indexer -> index writer, triggered through the reindex queue
boundary.
"""

import textwrap
from typing import Any, Dict, List

import pytest

from search_index_hub.config import load_datasources_config, register_datasources
from search_index_hub.infrastructure.concurrency import PoolExecutor
from search_index_hub.infrastructure.datasource import (
    DocumentMappingResolver,
    EntityDataSourceRegistry,
)
from search_index_hub.infrastructure.indexing import (
    FulltextIndexer,
    IndexerConsumer,
    Reindexer,
    ReindexAction,
)
from search_index_hub.infrastructure.registry import IDENTIFIER, IndexerRegistry

PROVIDERS_MODULE = textwrap.dedent(
    '''
    import time

    from search_index_hub.infrastructure.datasource import (
        BaseDataProvider,
        ProviderCapability,
    )


    class NameProvider(BaseDataProvider):
        sort_order = 5
        capabilities = ProviderCapability.TRANSFORMS

        def transform(self, attribute, value, store_id):
            return value.strip() if isinstance(value, str) else value


    class PricingProvider(BaseDataProvider):
        sort_order = 10
        capabilities = ProviderCapability.APPENDS

        def append(self, document, store_id):
            time.sleep(0.002)
            return {"price": document["id"] * 1.5, "tags": ["priced"]}


    class StockProvider(BaseDataProvider):
        capabilities = ProviderCapability.APPENDS

        def append(self, document, store_id):
            return {"in_stock": store_id == 1, "tags": ["stocked"]}


    class ColorFacet(BaseDataProvider):
        capabilities = ProviderCapability.APPENDS

        def append(self, document, store_id):
            return {"facets": {"color": "red"}}


    class SizeFacet(BaseDataProvider):
        capabilities = ProviderCapability.APPENDS

        def append(self, document, store_id):
            return {"facets": {"size": "M"}}
    '''
)

DATASOURCES = textwrap.dedent(
    """
    datasources:
      product:
        names: flow_providers.NameProvider
        pricing: flow_providers.PricingProvider
        stock:
          class: flow_providers.StockProvider
          priority: 20
        facets:
          color: flow_providers.ColorFacet
          size: {class: flow_providers.SizeFacet, priority: 30}
    """
)


class MemorySource:
    primary_key = "entity_id"

    def __init__(self, rows):
        self.rows = rows

    def get_indexable_documents(self, store_id, ids=None, last_entity_id=None, limit=100):
        page = [
            dict(row)
            for row in self.rows
            if row["entity_id"] > (last_entity_id or 0) and (ids is None or row["entity_id"] in ids)
        ]
        return page[:limit]


class MemoryIndex:
    def __init__(self):
        self.stores: Dict[int, Dict[Any, Dict[str, Any]]] = {}

    def clean_index(self, store_id):
        self.stores[store_id] = {}

    def delete_index(self, store_id, ids):
        for entity_id in ids:
            self.stores.setdefault(store_id, {}).pop(entity_id, None)

    def save_index(self, store_id, documents):
        self.stores.setdefault(store_id, {}).update(documents)


class LoopbackPublisher:
    """Delivers published messages straight to a consumer."""

    def __init__(self):
        self.consumer = None
        self.published: List[dict] = []

    def dispatch(self, queue_name, payload):
        self.published.append(payload)
        self.consumer.handle(payload)


@pytest.fixture
def environment(tmp_path, monkeypatch):
    (tmp_path / "flow_providers.py").write_text(PROVIDERS_MODULE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    config_path = tmp_path / "datasources.yml"
    config_path.write_text(DATASOURCES, encoding="utf-8")

    datasource_registry = EntityDataSourceRegistry()
    register_datasources(datasource_registry, load_datasources_config(str(config_path)))

    rows = [{"entity_id": n, "name": f"  item {n} "} for n in range(1, 8)]
    source = MemorySource(rows)
    index = MemoryIndex()
    indexers: Dict[str, FulltextIndexer] = {}
    registry = IndexerRegistry(loader=indexers.__getitem__)

    executor = PoolExecutor(4)
    resolver = DocumentMappingResolver(
        datasource_registry, executor=executor, indexer_registry=registry
    )
    indexers["product"] = FulltextIndexer(
        "product", source, resolver, index, registry, store_ids=[1, 2], batch_size=3
    )

    yield {"registry": registry, "index": index, "source": source}
    executor.shutdown()


@pytest.mark.integration
def test_full_reindex_builds_enriched_documents(environment):
    indexer = environment["registry"].get("product")

    indexer.execute_full()

    index = environment["index"]
    assert sorted(index.stores) == [1, 2]
    assert len(index.stores[1]) == 7
    assert index.stores[1][3] == {
        "id": 3,
        "name": "item 3",
        "price": 4.5,
        "tags": ["priced", "stocked"],
        "in_stock": True,
        "facets": {"color": "red", "size": "M"},
    }
    assert index.stores[2][3]["in_stock"] is False
    assert not environment["registry"].is_registered(IDENTIFIER)


@pytest.mark.integration
def test_queued_row_reindex_updates_single_document(environment):
    registry = environment["registry"]
    index = environment["index"]
    registry.get("product").execute_full()

    environment["source"].rows[1]["name"] = " renamed "
    publisher = LoopbackPublisher()
    publisher.consumer = IndexerConsumer(registry)

    message = Reindexer(publisher, registry).reindex("product", ids=[2])

    assert message is not None
    assert publisher.published == [{"ids": 2, "action": "index_row", "indexer_id": "product"}]
    assert index.stores[1][2]["name"] == "renamed"
    assert index.stores[1][3]["name"] == "item 3"


@pytest.mark.integration
def test_queued_list_reindex_rebuilds_everything(environment):
    registry = environment["registry"]
    publisher = LoopbackPublisher()
    publisher.consumer = IndexerConsumer(registry)

    Reindexer(publisher, registry).reindex("product", action=ReindexAction.LIST, record_id=1)

    assert len(environment["index"].stores[2]) == 7
