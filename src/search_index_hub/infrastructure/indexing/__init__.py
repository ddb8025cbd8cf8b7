"""Reindex triggers, queue consumer and the fulltext indexer."""

from .actions import QUEUE_NAME, IndexMessage, IndexMessageError, ReindexAction
from .consumer import IndexerConsumer
from .fulltext import DocumentSource, FulltextIndexer, IndexWriter
from .reindexer import Publisher, Reindexer

__all__ = [
    "QUEUE_NAME",
    "DocumentSource",
    "FulltextIndexer",
    "IndexMessage",
    "IndexMessageError",
    "IndexWriter",
    "IndexerConsumer",
    "Publisher",
    "ReindexAction",
    "Reindexer",
]
