"""Unit tests for the fulltext indexer."""

from unittest.mock import MagicMock, call

import pytest

from search_index_hub.infrastructure.indexing import FulltextIndexer
from search_index_hub.infrastructure.registry import IDENTIFIER


def _passthrough_resolver():
    resolver = MagicMock()
    resolver.map.side_effect = lambda documents, store_id, entity_type=None: {
        key: dict(value, mapped_for=entity_type) for key, value in documents.items()
    }
    return resolver


@pytest.fixture
def resolver():
    return _passthrough_resolver()


@pytest.fixture
def indexer(document_source, resolver, index_writer, registry):
    return FulltextIndexer(
        "product",
        document_source,
        resolver,
        index_writer,
        registry,
        store_ids=[1, 2],
        batch_size=2,
    )


@pytest.mark.unit
class TestRebuildStoreIndex:
    def test_pages_until_empty(self, indexer, document_source):
        rows = list(indexer.rebuild_store_index(1))

        assert [entity_id for entity_id, _ in rows] == [1, 2, 3, 4, 5]
        assert [c[2] for c in document_source.calls] == [0, 2, 4, 5]

    def test_primary_key_folded_into_id(self, indexer):
        entity_id, document = next(indexer.rebuild_store_index(1))

        assert entity_id == 1
        assert document == {"id": 1, "sku": "SKU-1", "store_id": 1}

    def test_only_requested_ids(self, indexer):
        rows = list(indexer.rebuild_store_index(1, ids=[2, 4]))

        assert [entity_id for entity_id, _ in rows] == [2, 4]

    def test_stalled_cursor_stops_paging(self, resolver, index_writer, registry):
        source = MagicMock()
        source.primary_key = "entity_id"
        source.get_indexable_documents.return_value = [{"entity_id": 0}]
        indexer = FulltextIndexer("product", source, resolver, index_writer, registry, [1], 10)

        assert list(indexer.rebuild_store_index(1)) == [(0, {"id": 0})]


@pytest.mark.unit
class TestRuns:
    def test_execute_full_cleans_then_saves_every_store(self, indexer, index_writer, registry):
        indexer.execute_full()

        assert index_writer.clean_index.call_args_list == [call(1), call(2)]
        saved = index_writer.save_index.call_args_list
        assert [c.args[0] for c in saved] == [1, 1, 1, 2, 2, 2]
        assert list(saved[0].args[1]) == [1, 2]
        assert saved[0].args[1][1]["mapped_for"] == "product"
        assert not registry.is_registered(IDENTIFIER)

    def test_execute_deletes_then_saves_requested_ids(self, indexer, index_writer):
        indexer.execute([3, 5])

        assert index_writer.delete_index.call_args_list == [call(1, [3, 5]), call(2, [3, 5])]
        saved_ids = [list(c.args[1]) for c in index_writer.save_index.call_args_list]
        assert saved_ids == [[3, 5], [3, 5]]
        index_writer.clean_index.assert_not_called()

    def test_execute_row(self, indexer, index_writer):
        indexer.execute_row(4)

        assert index_writer.delete_index.call_args_list == [call(1, [4]), call(2, [4])]

    def test_resolver_receives_active_entity_type(self, indexer, resolver):
        indexer.execute_list([1])

        assert resolver.map.call_args.kwargs["entity_type"] == "product"

    def test_identifier_unregistered_after_failure(self, indexer, resolver, registry):
        resolver.map.side_effect = RuntimeError("provider failed")

        with pytest.raises(RuntimeError):
            indexer.execute_full()

        assert not registry.is_registered(IDENTIFIER)

    def test_stale_identifier_replaced(self, indexer, registry, resolver):
        registry.register(IDENTIFIER, "order")

        indexer.execute_row(1)

        assert resolver.map.call_args.kwargs["entity_type"] == "product"

    def test_register_current_index(self, indexer, registry):
        registry.register(IDENTIFIER, "order")

        indexer.register_current_index()

        assert registry.get(IDENTIFIER) == "product"

    def test_consumer_aliases(self, indexer):
        indexer.execute_full = MagicMock()
        indexer.execute_list = MagicMock()
        indexer.execute_row = MagicMock()

        indexer.reindex_all()
        indexer.reindex_list([1, 2])
        indexer.reindex_row(3)

        indexer.execute_full.assert_called_once_with()
        indexer.execute_list.assert_called_once_with([1, 2])
        indexer.execute_row.assert_called_once_with(3)


@pytest.mark.unit
class TestConfiguration:
    def test_defaults_from_settings(self, document_source, resolver, index_writer, registry, monkeypatch):
        monkeypatch.setenv("SIH_STORE_IDS", "[1, 3]")
        monkeypatch.setenv("SIH_INDEX_BATCH_SIZE", "50")

        indexer = FulltextIndexer("product", document_source, resolver, index_writer, registry)

        assert indexer.store_ids == [1, 3]
        assert indexer.batch_size == 50

    def test_scheduled_flag(self, document_source, resolver, index_writer, registry):
        indexer = FulltextIndexer(
            "product", document_source, resolver, index_writer, registry, [1], 10, scheduled=True
        )

        assert indexer.is_scheduled()
        assert indexer.get_id() == "product"

    def test_invalid_batch_size(self, document_source, resolver, index_writer, registry):
        with pytest.raises(ValueError):
            FulltextIndexer("product", document_source, resolver, index_writer, registry, [1], 0)
