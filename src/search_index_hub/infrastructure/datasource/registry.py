"""
Entity datasource registry.

Holds, per entity type, the provider descriptors registered under each slot
key. Populated once at bootstrap and read on every mapping call; resolved
provider lists are cached per entity type until the registry changes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from search_index_hub.utils.logging import get_logger

from .base import DataProvider
from .factory import ProviderFactory
from .types import DatasourceSlot, ProviderDescriptor

logger = get_logger(__name__)


class EntityDataSourceRegistry:
    """
    Entity type -> ordered provider slots.

    Attributes:
        factory: ProviderFactory used to order and instantiate descriptors.

    Example:
        >>> registry = EntityDataSourceRegistry()
        >>> registry.add_datasource("product", "pricing", "acme.providers.PricingProvider")
        >>> registry.add_datasource("product", "facets", "acme.providers.ColorFacet")
        >>> registry.add_datasource("product", "facets", "acme.providers.SizeFacet")
        >>> providers = registry.get_datasources_for_entity("product")
    """

    def __init__(self, factory: Optional[ProviderFactory] = None) -> None:
        self.factory = factory or ProviderFactory()
        self._slots: Dict[str, Dict[str, DatasourceSlot]] = {}
        self._providers: Dict[str, List[DataProvider]] = {}

    def add_datasource(self, entity_type: str, slot_key: str, descriptor: Any) -> None:
        """
        Append a descriptor under ``(entity_type, slot_key)``.

        Args:
            entity_type: Entity type the provider enriches
            slot_key: Logical slot; descriptors sharing a key form a group
            descriptor: ProviderDescriptor, bare reference or
                ``{"class": ..., "priority": ...}`` mapping
        """
        resolved = ProviderFactory.descriptor_from_spec(descriptor)
        slots = self._slots.setdefault(entity_type, {})
        slot = slots.setdefault(slot_key, DatasourceSlot(key=slot_key))
        slot.descriptors.append(resolved)
        self._providers.pop(entity_type, None)

        logger.debug(
            "datasource_registry.added",
            entity_type=entity_type,
            slot=slot_key,
            provider=resolved.label,
            sort_order=resolved.sort_order,
        )

    def add_datasources(self, entity_type: str, raw_slots: Mapping[str, Any]) -> None:
        """Register a ``{slot_key: spec}`` mapping, nested groups included."""
        for slot_key, descriptor in ProviderFactory.normalize(raw_slots):
            self.add_datasource(entity_type, slot_key, descriptor)

    def get_datasources_for_entity(self, entity_type: str) -> List[DataProvider]:
        """
        Ordered, validated provider instances for ``entity_type``.

        Returns an empty list when nothing is registered.

        Raises:
            ConfigurationError: If any registered provider is invalid
        """
        if entity_type in self._providers:
            return list(self._providers[entity_type])

        slots = self._slots.get(entity_type)
        if not slots:
            return []

        providers = self.factory.create(slots.values(), entity_type)
        self._providers[entity_type] = providers
        return list(providers)

    def get_descriptors(self, entity_type: str) -> List[ProviderDescriptor]:
        """Priority-ordered descriptors for ``entity_type`` without instantiating them."""
        return self.factory.order(self._slots.get(entity_type, {}).values())

    def get_slots(self, entity_type: str) -> Dict[str, DatasourceSlot]:
        return dict(self._slots.get(entity_type, {}))

    def has_datasources(self, entity_type: str) -> bool:
        return bool(self._slots.get(entity_type))

    def entity_types(self) -> List[str]:
        return sorted(self._slots)

    def clear(self, entity_type: Optional[str] = None) -> None:
        """Drop registrations for one entity type, or for all when omitted."""
        if entity_type is None:
            self._slots.clear()
            self._providers.clear()
            return
        self._slots.pop(entity_type, None)
        self._providers.pop(entity_type, None)
