"""Queue consumer dispatching reindex messages to registered indexers."""

from __future__ import annotations

from typing import Any, Mapping, Union

from search_index_hub.infrastructure.registry import IndexerRegistry
from search_index_hub.utils.logging import get_logger

from .actions import QUEUE_NAME, IndexMessage, ReindexAction

logger = get_logger(__name__)


class IndexerConsumer:
    """
    Handles messages from the ``elastic.indexer`` queue.

    Scheduled indexers are skipped; the external scheduler owns them.
    Errors are logged and re-raised so the transport can redeliver.
    """

    queue_name = QUEUE_NAME

    def __init__(self, registry: IndexerRegistry) -> None:
        self.registry = registry

    def handle(self, payload: Union[IndexMessage, Mapping[str, Any]]) -> bool:
        """
        Process one message.

        Returns:
            True when a reindex ran, False when the indexer is scheduled

        Raises:
            IndexMessageError: If the payload is malformed
        """
        try:
            message = IndexMessage.from_payload(payload)
            indexer = self.registry.get(message.indexer_id)
            return self._process(indexer, message)
        except Exception as exc:
            logger.error("indexer_consumer.failed", error=str(exc))
            raise

    def _process(self, indexer: Any, message: IndexMessage) -> bool:
        if indexer.is_scheduled():
            logger.info("indexer_consumer.skipped_scheduled", indexer_id=message.indexer_id)
            return False

        if message.action is ReindexAction.ROW:
            if not message.ids_list:
                raise ValueError("Row reindex message carries no id")
            indexer.reindex_row(message.ids_list[0])
        elif message.action is ReindexAction.IDS:
            indexer.reindex_list(message.ids_list)
        else:
            indexer.reindex_all()

        logger.info(
            "indexer_consumer.reindexed",
            indexer_id=message.indexer_id,
            action=message.action.value,
            ids=len(message.ids_list),
        )
        return True
