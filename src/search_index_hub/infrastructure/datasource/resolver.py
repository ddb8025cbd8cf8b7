"""
Document mapping resolver.

Fans every document of a batch out to all providers registered for the
batch's entity type, runs the provider tasks on a concurrency executor and
deep-merges the partial documents in provider priority order. Concurrent
execution affects latency only; merge order is fixed by priority.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Hashable, List, Mapping, Optional

from search_index_hub.config.settings import get_settings
from search_index_hub.infrastructure.concurrency import ConcurrencyExecutor, create_executor
from search_index_hub.infrastructure.registry import IDENTIFIER, IndexerRegistry
from search_index_hub.utils.logging import get_logger

from .base import DataProvider
from .container import reference_label
from .exceptions import ConfigurationError, ProviderExecutionError
from .merge import merge_documents
from .registry import EntityDataSourceRegistry

logger = get_logger(__name__)

# Context key carrying the entity type handed to providers
ENTITY_TYPE = "entityType"

Document = Dict[str, Any]
DocumentBatch = Mapping[Hashable, Mapping[str, Any]]


class ProviderTask:
    """
    One provider applied to one document.

    Module-level and free of closures so process pools can pickle it.
    """

    def __init__(
        self,
        provider: DataProvider,
        fields: Document,
        store_id: int,
        context: Dict[str, Any],
        document_id: Hashable,
    ) -> None:
        self.provider = provider
        self.fields = fields
        self.store_id = store_id
        self.context = context
        self.document_id = document_id

    @property
    def provider_name(self) -> str:
        return getattr(self.provider, "name", None) or reference_label(self.provider)

    def __call__(self) -> Document:
        try:
            result = self.provider.map(self.fields, self.store_id, self.context)
        except ProviderExecutionError:
            raise
        except Exception as exc:
            raise ProviderExecutionError(
                f"Provider failed: {exc}",
                provider=self.provider_name,
                document_id=self.document_id,
            ) from exc

        if result is None:
            return {}
        if not isinstance(result, Mapping):
            raise ProviderExecutionError(
                f"Provider returned {type(result).__name__} instead of a mapping",
                provider=self.provider_name,
                document_id=self.document_id,
            )
        return dict(result)


class DocumentMappingResolver:
    """
    Batch entry point that enriches documents through registered providers.

    Entity type resolution order: explicit argument, then the identifier
    registered as active in the indexer registry, then ``entityType`` in the
    context, then the configured default.

    Attributes:
        datasource_registry: Registry providing ordered providers per entity type.
        executor: Concurrency executor running provider tasks.
        indexer_registry: Optional registry carrying the active entity type.
        default_entity_type: Fallback entity type.

    Example:
        >>> resolver = DocumentMappingResolver(registry, executor=SequentialExecutor())
        >>> resolver.map({1: {"sku": "A-1"}}, store_id=1, entity_type="product")
        {1: {'sku': 'A-1', 'price': 9.5, 'tags': ['sale', 'new']}}
    """

    def __init__(
        self,
        datasource_registry: EntityDataSourceRegistry,
        executor: Optional[ConcurrencyExecutor] = None,
        indexer_registry: Optional[IndexerRegistry] = None,
        default_entity_type: Optional[str] = None,
    ) -> None:
        self.datasource_registry = datasource_registry
        self.indexer_registry = indexer_registry
        self._owns_executor = executor is None

        if executor is None or default_entity_type is None:
            settings = get_settings()
            if executor is None:
                executor = create_executor(settings.executor_policy, settings.MAX_WORKERS)
            if default_entity_type is None:
                default_entity_type = settings.default_entity_type

        self.executor = executor
        self.default_entity_type = default_entity_type

    def resolve_entity_type(
        self,
        entity_type: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        Decide which entity type a batch belongs to.

        Raises:
            ConfigurationError: If no entity type can be found or it is not a string
        """
        candidate: Any = entity_type
        if candidate is None and self.indexer_registry is not None:
            if self.indexer_registry.is_registered(IDENTIFIER):
                candidate = self.indexer_registry.get(IDENTIFIER)
        if candidate is None and context:
            candidate = context.get(ENTITY_TYPE)
        if candidate is None:
            candidate = self.default_entity_type

        if candidate is None:
            raise ConfigurationError("Entity type identifier is missing from the context")
        if not isinstance(candidate, str) or not candidate:
            raise ConfigurationError(
                f"Entity type identifier must be a non-empty string, got {candidate!r}"
            )
        return candidate

    def map(
        self,
        documents: DocumentBatch,
        store_id: int,
        entity_type: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Dict[Hashable, Document]:
        """
        Enrich a batch of documents.

        Args:
            documents: Document id -> field map
            store_id: Store scope passed to every provider
            entity_type: Entity type of the batch (optional, see class docs)
            context: Extra context handed to providers

        Returns:
            Document id -> merged field map. The input batch itself when no
            provider is registered for the entity type.

        Raises:
            ConfigurationError: Invalid provider configuration or merge type clash
            ProviderExecutionError: A provider failed for some document
        """
        resolved_type = self.resolve_entity_type(entity_type, context)

        # Validation happens here, before any task is scheduled
        providers = self.datasource_registry.get_datasources_for_entity(resolved_type)
        if not providers:
            logger.debug("document_mapping.no_providers", entity_type=resolved_type)
            return documents  # type: ignore[return-value]

        provider_context: Dict[str, Any] = {**(context or {}), ENTITY_TYPE: resolved_type}

        results: Dict[Hashable, Document] = {}
        for document_id, fields in documents.items():
            results[document_id] = self.map_document(
                document_id, fields, store_id, providers, provider_context
            )

        logger.info(
            "document_mapping.batch_mapped",
            entity_type=resolved_type,
            store_id=store_id,
            documents=len(results),
            providers=len(providers),
        )
        return results

    def map_document(
        self,
        document_id: Hashable,
        fields: Mapping[str, Any],
        store_id: int,
        providers: List[DataProvider],
        context: Dict[str, Any],
    ) -> Document:
        """Run every provider on one document and merge their partials."""
        tasks = [
            ProviderTask(
                provider,
                copy.deepcopy(dict(fields)),
                store_id,
                dict(context),
                document_id,
            )
            for provider in providers
        ]

        try:
            partials = self.executor.run(tasks)
        except ProviderExecutionError as exc:
            logger.error(
                "document_mapping.provider_failed",
                entity_type=context.get(ENTITY_TYPE),
                document_id=str(document_id),
                provider=exc.provider,
                error=str(exc),
            )
            raise

        return merge_documents(fields, partials)

    def close(self) -> None:
        """Shut down the executor when the resolver created it."""
        shutdown = getattr(self.executor, "shutdown", None)
        if self._owns_executor and callable(shutdown):
            shutdown()
