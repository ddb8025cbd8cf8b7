"""
Descriptor types for registered enrichment providers.

A ``ProviderDescriptor`` names one provider and carries its resolved
priority and capability flags. Descriptors are grouped in
``DatasourceSlot`` objects: a slot holding one descriptor is a plain entry,
a slot holding several is a nested group whose members are ordered among
themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .base import ProviderCapability, declared_capabilities, declared_sort_order
from .container import reference_label, try_import_reference


@dataclass(frozen=True)
class ProviderDescriptor:
    """
    Immutable reference to one enrichment provider.

    Attributes:
        reference: Dotted import path, class, factory or instance handed to
            the provider container.
        priority: Explicit priority, None when the class default applies.
        sort_order: Effective priority (ascending = earlier). Explicit
            priority wins, then the class-level ``sort_order``, then 0.
        capabilities: Capability flags declared by the provider class,
            captured once when the descriptor is created.
    """

    reference: Any
    priority: Optional[int] = None
    sort_order: int = 0
    capabilities: ProviderCapability = ProviderCapability.NONE

    @classmethod
    def of(
        cls,
        reference: Any,
        priority: Optional[int] = None,
        capabilities: Optional[ProviderCapability] = None,
    ) -> "ProviderDescriptor":
        """
        Build a descriptor, resolving priority and capabilities from the class.

        References that cannot be imported resolve to priority 0 and no
        capabilities; instantiation reports them later as configuration
        errors.
        """
        if isinstance(reference, ProviderDescriptor):
            return reference

        target = (
            try_import_reference(reference) if isinstance(reference, str) else reference
        )

        if priority is not None:
            sort_order = int(priority)
        elif target is not None:
            sort_order = declared_sort_order(target)
        else:
            sort_order = 0

        if capabilities is None:
            capabilities = (
                declared_capabilities(target)
                if target is not None
                else ProviderCapability.NONE
            )

        return cls(
            reference=reference,
            priority=priority,
            sort_order=sort_order,
            capabilities=capabilities,
        )

    @property
    def label(self) -> str:
        return reference_label(self.reference)


@dataclass
class DatasourceSlot:
    """Descriptors registered under one slot key, in insertion order."""

    key: str
    descriptors: List[ProviderDescriptor] = field(default_factory=list)

    @property
    def is_group(self) -> bool:
        return len(self.descriptors) > 1

    @property
    def sort_order(self) -> int:
        """Slot priority: the lowest priority among its members."""
        if not self.descriptors:
            return 0
        return min(descriptor.sort_order for descriptor in self.descriptors)

    def ordered(self) -> List[ProviderDescriptor]:
        """Members sorted by priority; ties keep insertion order."""
        return sorted(self.descriptors, key=lambda descriptor: descriptor.sort_order)
