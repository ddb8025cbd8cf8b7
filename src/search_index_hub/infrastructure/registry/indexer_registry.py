"""
Keyed lazy registry for indexers and the active entity type.

The registry maps string keys to arbitrary values. Values missing on ``get``
are loaded through a loader supplied at construction and memoized, so the
loader runs at most once per key for the lifetime of the registry.

The same instance also carries the "currently active" entity type under the
``IDENTIFIER`` key for the duration of one indexing operation. Instances are
not thread-safe: one registry serves one single-threaded reindex run and is
passed explicitly through that run's call chain.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional

from search_index_hub.utils.logging import get_logger

logger = get_logger(__name__)

# Key under which the active entity type (indexable id) is registered
IDENTIFIER = "identifier"

Loader = Callable[[str], Any]
ReleaseHook = Callable[[str, Any], None]


class DuplicateKeyError(KeyError):
    """Raised when a key is registered twice without the graceful flag."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f'Registry key "{key}" already exists')

    def __str__(self) -> str:
        return str(self.args[0])


class IndexerRegistry:
    """
    Identifier -> value store with lazy-load-on-miss and graceful registration.

    Attributes:
        loader: Callable invoked with a key the first time ``get`` misses.
        release_hook: Optional callable invoked with ``(key, value)`` whenever
            an entry is unregistered, including during ``reset`` and teardown.

    Example:
        >>> registry = IndexerRegistry(loader=indexers.__getitem__)
        >>> registry.register(IDENTIFIER, "product")
        >>> registry.get(IDENTIFIER)
        'product'
        >>> registry.register(IDENTIFIER, "order", graceful=True)  # no-op
        >>> registry.get(IDENTIFIER)
        'product'
    """

    def __init__(
        self,
        loader: Optional[Loader] = None,
        release_hook: Optional[ReleaseHook] = None,
    ) -> None:
        self.loader = loader
        self.release_hook = release_hook
        self._entries: Dict[str, Any] = {}
        self._closed = False

    def get(self, key: str) -> Any:
        """
        Return the value under ``key``, loading and caching it on a miss.

        A cached ``None`` counts as loaded; the loader is not called again.

        Raises:
            KeyError: If the key is absent and no loader was configured.
        """
        if key in self._entries:
            return self._entries[key]

        if self.loader is None:
            raise KeyError(key)

        value = self.loader(key)
        self._entries[key] = value
        logger.debug("indexer_registry.loaded", key=key)
        return value

    def register(self, key: str, value: Any, graceful: bool = False) -> None:
        """
        Insert ``value`` under ``key``.

        Args:
            key: Registry key
            value: Value to store
            graceful: When True, an existing key is left untouched instead of
                raising

        Raises:
            DuplicateKeyError: If ``key`` exists and ``graceful`` is False
        """
        if key in self._entries:
            if graceful:
                logger.debug("indexer_registry.duplicate_ignored", key=key)
                return
            raise DuplicateKeyError(key)

        self._entries[key] = value

    def is_registered(self, key: str) -> bool:
        return key in self._entries

    def unregister(self, key: str) -> None:
        """Remove ``key``; absent keys are ignored."""
        if key not in self._entries:
            return

        value = self._entries.pop(key)
        if self.release_hook is not None:
            self.release_hook(key, value)

    def get_all(self) -> Dict[str, Any]:
        """Snapshot of all loaded and registered entries."""
        return dict(self._entries)

    def reset(self) -> None:
        """Clear every entry, returning the registry to its initial state."""
        for key in list(self._entries):
            self.unregister(key)

    def close(self) -> None:
        """Unregister every held key so release hooks fire deterministically."""
        if self._closed:
            return
        self.reset()
        self._closed = True
        logger.debug("indexer_registry.closed")

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __enter__(self) -> "IndexerRegistry":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        # Interpreter shutdown may have torn down module globals already
        try:
            self.close()
        except Exception:  # pragma: no cover
            pass


@contextmanager
def active_entity_type(registry: IndexerRegistry, entity_type: str) -> Iterator[str]:
    """
    Register ``entity_type`` as the active indexer identifier for a scope.

    Any stale identifier left by a previous operation is dropped first; the
    identifier is unregistered again when the scope exits, even on error.
    """
    registry.unregister(IDENTIFIER)
    registry.register(IDENTIFIER, entity_type, graceful=True)
    try:
        yield entity_type
    finally:
        registry.unregister(IDENTIFIER)
