"""
Fulltext indexer for one indexable entity type.

Each run registers the indexer's entity type as the active identifier, pages
indexable rows out of the document source per store, maps them in batches
through the document mapping resolver and hands the mapped batches to the
index writer.
"""

from __future__ import annotations

from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
)

from search_index_hub.config.settings import get_settings
from search_index_hub.infrastructure.datasource.resolver import DocumentMappingResolver
from search_index_hub.infrastructure.registry import IDENTIFIER, IndexerRegistry, active_entity_type
from search_index_hub.utils.logging import get_logger

from .actions import RecordId

logger = get_logger(__name__)

# Document field carrying the entity id once the primary key is folded in
ID = "id"

Document = Dict[str, Any]


class DocumentSource(Protocol):
    """Pages indexable rows for one entity type, ordered by primary key."""

    primary_key: str

    def get_indexable_documents(
        self,
        store_id: int,
        ids: Optional[Sequence[RecordId]] = None,
        last_entity_id: Optional[RecordId] = None,
        limit: int = 100,
    ) -> List[Mapping[str, Any]]: ...


class IndexWriter(Protocol):
    """Search index persistence boundary."""

    def clean_index(self, store_id: int) -> None: ...

    def delete_index(self, store_id: int, ids: Sequence[RecordId]) -> None: ...

    def save_index(self, store_id: int, documents: Mapping[RecordId, Document]) -> None: ...


class FulltextIndexer:
    """
    Full and partial reindex runs for one entity type.

    Attributes:
        indexable_id: Entity type this indexer builds (also its registry id).
        document_source: Row source paged with a last-entity-id cursor.
        resolver: Resolver enriching each batch of rows.
        index_writer: Destination search index.
        registry: Registry receiving the active identifier during a run.
        store_ids: Store scopes rebuilt by every run.
        batch_size: Rows per page and per resolver call.

    Example:
        >>> indexer = FulltextIndexer("product", source, resolver, writer, registry)
        >>> indexer.execute_full()
        >>> indexer.execute_row(42)
    """

    def __init__(
        self,
        indexable_id: str,
        document_source: DocumentSource,
        resolver: DocumentMappingResolver,
        index_writer: IndexWriter,
        registry: IndexerRegistry,
        store_ids: Optional[Iterable[int]] = None,
        batch_size: Optional[int] = None,
        scheduled: bool = False,
    ) -> None:
        if store_ids is None or batch_size is None:
            settings = get_settings()
            if store_ids is None:
                store_ids = settings.store_ids
            if batch_size is None:
                batch_size = settings.index_batch_size
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        self.indexable_id = indexable_id
        self.document_source = document_source
        self.resolver = resolver
        self.index_writer = index_writer
        self.registry = registry
        self.store_ids = list(store_ids)
        self.batch_size = batch_size
        self.scheduled = scheduled

    def get_id(self) -> str:
        return self.indexable_id

    def is_scheduled(self) -> bool:
        """Scheduled indexers are rebuilt by the external scheduler, not on demand."""
        return self.scheduled

    def register_current_index(self) -> None:
        """Make this indexer's entity type the active identifier."""
        self.registry.unregister(IDENTIFIER)
        self.registry.register(IDENTIFIER, self.indexable_id, graceful=True)

    # --- Row paging -----------------------------------------------------------
    def rebuild_store_index(
        self,
        store_id: int,
        ids: Optional[Sequence[RecordId]] = None,
    ) -> Iterator[Tuple[RecordId, Document]]:
        """
        Yield ``(entity_id, row)`` for every indexable row of a store.

        Rows are paged by primary key until the source returns an empty page.
        The primary key is folded into the ``id`` field.
        """
        primary_key = getattr(self.document_source, "primary_key", ID)
        last_entity_id: Optional[RecordId] = 0

        while True:
            rows = self.document_source.get_indexable_documents(
                store_id, ids, last_entity_id, self.batch_size
            )
            if not rows:
                break

            page_start = last_entity_id
            for row in rows:
                document = dict(row)
                entity_id = document.pop(primary_key, document.get(ID))
                document.setdefault(ID, entity_id)
                last_entity_id = entity_id
                yield entity_id, document

            if last_entity_id == page_start:
                logger.warning(
                    "fulltext_indexer.cursor_stalled",
                    indexer_id=self.indexable_id,
                    store_id=store_id,
                    last_entity_id=last_entity_id,
                )
                break

    def _save_store(self, store_id: int, ids: Optional[Sequence[RecordId]] = None) -> int:
        saved = 0
        batch: Dict[RecordId, Document] = {}
        for entity_id, document in self.rebuild_store_index(store_id, ids):
            batch[entity_id] = document
            if len(batch) >= self.batch_size:
                saved += self._flush(store_id, batch)
                batch = {}
        if batch:
            saved += self._flush(store_id, batch)
        return saved

    def _flush(self, store_id: int, batch: Dict[RecordId, Document]) -> int:
        entity_type = self.registry.get(IDENTIFIER)
        mapped = self.resolver.map(batch, store_id, entity_type=entity_type)
        self.index_writer.save_index(store_id, mapped)
        return len(mapped)

    # --- Runs -----------------------------------------------------------------
    def execute_full(self) -> None:
        """Clean and rebuild the index of every store."""
        with active_entity_type(self.registry, self.indexable_id):
            for store_id in self.store_ids:
                self.index_writer.clean_index(store_id)
                saved = self._save_store(store_id)
                logger.info(
                    "fulltext_indexer.store_rebuilt",
                    indexer_id=self.indexable_id,
                    store_id=store_id,
                    documents=saved,
                )

    def execute(self, ids: Sequence[RecordId]) -> None:
        """Delete and rebuild the given rows in every store."""
        ids = list(ids)
        with active_entity_type(self.registry, self.indexable_id):
            for store_id in self.store_ids:
                self.index_writer.delete_index(store_id, ids)
                saved = self._save_store(store_id, ids)
                logger.info(
                    "fulltext_indexer.rows_reindexed",
                    indexer_id=self.indexable_id,
                    store_id=store_id,
                    requested=len(ids),
                    documents=saved,
                )

    def execute_list(self, ids: Sequence[RecordId]) -> None:
        self.execute(ids)

    def execute_row(self, entity_id: RecordId) -> None:
        self.execute([entity_id])

    # Names used by the reindex consumer
    def reindex_all(self) -> None:
        self.execute_full()

    def reindex_list(self, ids: Sequence[RecordId]) -> None:
        self.execute_list(ids)

    def reindex_row(self, entity_id: RecordId) -> None:
        self.execute_row(entity_id)
