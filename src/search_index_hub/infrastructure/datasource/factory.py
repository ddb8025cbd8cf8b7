"""
Provider factory: ordering and instantiation of registered descriptors.

Raw provider declarations (references with optional explicit priority,
optionally grouped under one slot) become ``ProviderDescriptor`` objects;
descriptor slots become an ordered list of validated provider instances.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Tuple

from search_index_hub.utils.logging import get_logger

from .base import BaseDataProvider, DataProvider, ProviderCapability
from .container import ImportPathContainer, ProviderContainer
from .exceptions import ConfigurationError
from .types import DatasourceSlot, ProviderDescriptor

logger = get_logger(__name__)

CLASS_KEY = "class"
PRIORITY_KEY = "priority"


class ProviderFactory:
    """
    Turns descriptor slots into ordered, instantiated providers.

    Ordering: slots are sorted ascending by priority (a group slot sorts by
    its lowest member priority), then each group's members are sorted the
    same way. Both sorts are stable, so equal priorities keep registration
    order.

    Every instance is obtained from the injected container and validated
    against the provider contract before it is returned. A provider that
    fails validation fails the whole resolution.

    Attributes:
        container: Instantiation collaborator with ``resolve(reference)``.
    """

    def __init__(self, container: Optional[ProviderContainer] = None) -> None:
        self.container = container or ImportPathContainer()

    # --- Raw declarations ---------------------------------------------------
    @staticmethod
    def descriptor_from_spec(spec: Any) -> ProviderDescriptor:
        """
        Build a descriptor from a bare reference or a ``{class, priority}`` mapping.

        Raises:
            ConfigurationError: If a mapping spec has no ``class`` entry
        """
        if isinstance(spec, ProviderDescriptor):
            return spec
        if isinstance(spec, Mapping):
            if CLASS_KEY not in spec:
                raise ConfigurationError(
                    f"Provider entry {dict(spec)!r} is missing '{CLASS_KEY}'"
                )
            priority = spec.get(PRIORITY_KEY)
            return ProviderDescriptor.of(
                spec[CLASS_KEY],
                priority=int(priority) if priority is not None else None,
            )
        return ProviderDescriptor.of(spec)

    @classmethod
    def normalize(cls, raw_slots: Mapping[str, Any]) -> List[Tuple[str, ProviderDescriptor]]:
        """
        Flatten ``{slot_key: spec}`` declarations into ``(slot_key, descriptor)`` pairs.

        A spec that is a mapping without a ``class`` entry is a nested group:
        each of its values becomes a descriptor under the same slot key.
        """
        pairs: List[Tuple[str, ProviderDescriptor]] = []
        for slot_key, spec in raw_slots.items():
            if isinstance(spec, Mapping) and CLASS_KEY not in spec:
                for member in spec.values():
                    pairs.append((str(slot_key), cls.descriptor_from_spec(member)))
            elif isinstance(spec, (list, tuple)):
                for member in spec:
                    pairs.append((str(slot_key), cls.descriptor_from_spec(member)))
            else:
                pairs.append((str(slot_key), cls.descriptor_from_spec(spec)))
        return pairs

    # --- Ordering ------------------------------------------------------------
    @staticmethod
    def order(slots: Iterable[DatasourceSlot]) -> List[ProviderDescriptor]:
        """Flatten slots into one priority-ordered descriptor list."""
        ordered_slots = sorted(slots, key=lambda slot: slot.sort_order)
        descriptors: List[ProviderDescriptor] = []
        for slot in ordered_slots:
            descriptors.extend(slot.ordered())
        return descriptors

    # --- Instantiation --------------------------------------------------------
    def instantiate(
        self,
        descriptor: ProviderDescriptor,
        entity_type: Optional[str] = None,
    ) -> DataProvider:
        """
        Resolve one descriptor through the container and validate the result.

        Raises:
            ConfigurationError: If resolution fails or the instance does not
                satisfy the provider contract or its declared capabilities
        """
        try:
            provider = self.container.resolve(descriptor.reference)
        except ConfigurationError:
            raise
        except Exception as exc:
            raise ConfigurationError(
                f"Provider could not be resolved: {exc}",
                entity_type=entity_type,
                provider=descriptor.label,
            ) from exc

        if not callable(getattr(provider, "map", None)):
            raise ConfigurationError(
                f"Data provider must implement {DataProvider.__name__}.map()",
                entity_type=entity_type,
                provider=descriptor.label,
            )

        missing = self._missing_capabilities(provider, descriptor.capabilities)
        if missing:
            raise ConfigurationError(
                f"Data provider declares capabilities it does not implement: {missing}",
                entity_type=entity_type,
                provider=descriptor.label,
            )

        return provider

    def create(
        self,
        slots: Iterable[DatasourceSlot],
        entity_type: Optional[str] = None,
    ) -> List[DataProvider]:
        """Order ``slots`` and instantiate every descriptor, failing on the first invalid one."""
        descriptors = self.order(slots)
        providers = [self.instantiate(descriptor, entity_type) for descriptor in descriptors]
        logger.debug(
            "provider_factory.created",
            entity_type=entity_type,
            providers=[descriptor.label for descriptor in descriptors],
        )
        return providers

    @staticmethod
    def _missing_capabilities(
        provider: Any, declared: ProviderCapability
    ) -> ProviderCapability:
        if isinstance(provider, BaseDataProvider):
            return type(provider).missing_capabilities() | (
                declared & ~type(provider).capabilities
            )

        missing = ProviderCapability.NONE
        if ProviderCapability.TRANSFORMS in declared and not callable(
            getattr(provider, "transform", None)
        ):
            missing |= ProviderCapability.TRANSFORMS
        if ProviderCapability.APPENDS in declared and not callable(
            getattr(provider, "append", None)
        ):
            missing |= ProviderCapability.APPENDS
        return missing
