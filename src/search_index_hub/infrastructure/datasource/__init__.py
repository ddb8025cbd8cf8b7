"""
Document enrichment core.

Usage:
    from search_index_hub.infrastructure.datasource import (
        DocumentMappingResolver,
        EntityDataSourceRegistry,
    )

    registry = EntityDataSourceRegistry()
    registry.add_datasource("product", "pricing", "acme.providers.PricingProvider")
    resolver = DocumentMappingResolver(registry)
    documents = resolver.map({42: {"sku": "A-1"}}, store_id=1, entity_type="product")
"""

from .base import BaseDataProvider, DataProvider, ProviderCapability
from .container import ImportPathContainer, ProviderContainer, import_reference
from .exceptions import ConfigurationError, DatasourceError, ProviderExecutionError
from .factory import ProviderFactory
from .merge import Replace, deep_merge, merge_documents
from .registry import EntityDataSourceRegistry
from .resolver import ENTITY_TYPE, DocumentMappingResolver, ProviderTask
from .types import DatasourceSlot, ProviderDescriptor

__all__ = [
    "ENTITY_TYPE",
    "BaseDataProvider",
    "ConfigurationError",
    "DataProvider",
    "DatasourceError",
    "DatasourceSlot",
    "DocumentMappingResolver",
    "EntityDataSourceRegistry",
    "ImportPathContainer",
    "ProviderCapability",
    "ProviderContainer",
    "ProviderDescriptor",
    "ProviderExecutionError",
    "ProviderFactory",
    "ProviderTask",
    "Replace",
    "deep_merge",
    "import_reference",
    "merge_documents",
]
