"""
Reindex requests raised from the domain save path.

``Reindexer`` turns "this record changed" into a queue message for the
indexer consumer. Publishing never breaks the caller: failures are logged
and dropped.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from search_index_hub.infrastructure.registry import IndexerRegistry
from search_index_hub.utils.logging import get_logger

from .actions import QUEUE_NAME, IndexMessage, RecordId, ReindexAction

logger = get_logger(__name__)


class Publisher(Protocol):
    """Message queue boundary."""

    def dispatch(self, queue_name: str, payload: Mapping[str, Any]) -> None: ...


class Reindexer:
    """
    Publishes reindex requests for one registry of indexers.

    Attributes:
        publisher: Queue publisher with ``dispatch(queue_name, payload)``.
        registry: Registry resolving an indexable id to its indexer.
        queue_name: Destination queue.

    Example:
        >>> reindexer = Reindexer(publisher, registry)
        >>> reindexer.reindex("product", ids=[42])
    """

    def __init__(
        self,
        publisher: Publisher,
        registry: IndexerRegistry,
        queue_name: str = QUEUE_NAME,
    ) -> None:
        self.publisher = publisher
        self.registry = registry
        self.queue_name = queue_name

    def reindex(
        self,
        indexable_id: str,
        ids: Optional[Sequence[RecordId]] = None,
        action: ReindexAction = ReindexAction.ROW,
        record_id: Optional[RecordId] = None,
    ) -> Optional[IndexMessage]:
        """
        Queue a reindex of ``indexable_id``.

        For ``ROW`` the first requested id is sent; for other actions the
        saved record's own id.

        Returns:
            The published message, or None when publishing failed
        """
        try:
            action = ReindexAction(action)
            indexer = self.registry.get(indexable_id)
            indexer_id = indexer.get_id() if hasattr(indexer, "get_id") else indexable_id

            message = IndexMessage(
                indexer_id=indexer_id,
                action=action,
                ids=self._ids_for(action, ids, record_id),
            )
            self.publisher.dispatch(self.queue_name, message.to_payload())
        except Exception as exc:
            logger.error(
                "reindex.publish_failed",
                indexable_id=indexable_id,
                action=str(getattr(action, "value", action)),
                error=str(exc),
            )
            return None

        logger.info(
            "reindex.dispatched",
            indexer_id=message.indexer_id,
            action=message.action.value,
            queue=self.queue_name,
        )
        return message

    @staticmethod
    def _ids_for(
        action: ReindexAction,
        ids: Optional[Sequence[RecordId]],
        record_id: Optional[RecordId],
    ) -> Optional[RecordId]:
        if action is ReindexAction.ROW:
            if not ids:
                raise ValueError("Row reindex requires at least one id")
            return list(ids)[0]
        return record_id
