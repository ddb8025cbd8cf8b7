"""
Provider contract and base classes.

A provider is a stateless unit that enriches one document for one entity
type. Anything exposing ``map(fields, store_id, context) -> dict`` satisfies
the contract; ``BaseDataProvider`` adds the common transform/append flow
driven by capability flags declared on the class.
"""

from __future__ import annotations

import copy
import enum
from abc import ABC
from typing import Any, ClassVar, Dict, Mapping, Optional, Protocol, runtime_checkable

from .merge import Replace

Document = Dict[str, Any]


class ProviderCapability(enum.Flag):
    """Optional behaviours a provider declares up front."""

    NONE = 0
    TRANSFORMS = enum.auto()
    APPENDS = enum.auto()


@runtime_checkable
class DataProvider(Protocol):
    """Capability contract every enrichment provider must satisfy."""

    def map(
        self,
        fields: Mapping[str, Any],
        store_id: int,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Document: ...


def declared_capabilities(provider: Any) -> ProviderCapability:
    """Capabilities declared by a provider class or instance (``NONE`` if absent)."""
    capabilities = getattr(provider, "capabilities", ProviderCapability.NONE)
    if not isinstance(capabilities, ProviderCapability):
        return ProviderCapability.NONE
    return capabilities


def declared_sort_order(provider: Any) -> int:
    """Static priority declared by a provider class or instance (0 if absent)."""
    sort_order = getattr(provider, "sort_order", 0)
    if isinstance(sort_order, bool) or not isinstance(sort_order, int):
        return 0
    return sort_order


class BaseDataProvider(ABC):
    """
    Base class for providers built from transform and append hooks.

    Subclasses set ``capabilities`` and override the matching hooks:

    - ``TRANSFORMS``: ``transform(attribute, value, store_id)`` rewrites every
      field of the incoming document.
    - ``APPENDS``: ``append(document, store_id)`` returns extra fields.

    ``map`` returns the provider's partial document: the fields a transform
    actually changed, wrapped in ``Replace`` so they overwrite rather than
    merge, plus the appended fields. Fields the provider does not change are
    left to the resolver, which carries them through.

    Example:
        >>> class StockProvider(BaseDataProvider):
        ...     sort_order = 20
        ...     capabilities = ProviderCapability.APPENDS
        ...
        ...     def append(self, document, store_id):
        ...         return {"in_stock": lookup_stock(document["sku"], store_id)}
    """

    sort_order: ClassVar[int] = 0
    capabilities: ClassVar[ProviderCapability] = ProviderCapability.NONE

    @property
    def name(self) -> str:
        return type(self).__name__

    def map(
        self,
        fields: Mapping[str, Any],
        store_id: int,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Document:
        document: Document = copy.deepcopy(dict(fields))
        contribution: Document = {}

        if ProviderCapability.TRANSFORMS in self.capabilities:
            if not document:
                return document
            transformed: Document = {}
            for attribute, value in document.items():
                transformed[attribute] = self.transform(attribute, value, store_id)
                # Unchanged fields are left to the resolver
                if transformed[attribute] != fields[attribute]:
                    contribution[attribute] = Replace(transformed[attribute])
            document = transformed

        if ProviderCapability.APPENDS in self.capabilities:
            appended = self.append(document, store_id)
            if appended:
                contribution.update(appended)

        return contribution

    def transform(self, attribute: str, value: Any, store_id: int) -> Any:
        raise NotImplementedError(f"{self.name} does not implement transform()")

    def append(self, document: Document, store_id: int) -> Document:
        raise NotImplementedError(f"{self.name} does not implement append()")

    @classmethod
    def missing_capabilities(cls) -> ProviderCapability:
        """Declared capabilities whose hook is not overridden."""
        missing = ProviderCapability.NONE
        if (
            ProviderCapability.TRANSFORMS in cls.capabilities
            and cls.transform is BaseDataProvider.transform
        ):
            missing |= ProviderCapability.TRANSFORMS
        if (
            ProviderCapability.APPENDS in cls.capabilities
            and cls.append is BaseDataProvider.append
        ):
            missing |= ProviderCapability.APPENDS
        return missing
