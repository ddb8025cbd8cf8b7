"""
Exception hierarchy for the document enrichment core.

Configuration errors describe deployment defects and are never retried;
execution errors wrap failures raised by individual providers and abort the
batch they occurred in.
"""

from typing import Any, Optional


class DatasourceError(Exception):
    """Base exception for all enrichment-related errors."""

    pass


class ConfigurationError(DatasourceError):
    """
    Raised when providers or their inputs are misconfigured.

    Covers descriptors that do not resolve to a provider, providers that do
    not satisfy the capability contract, missing or non-string entity types
    and field type mismatches detected while merging provider output.

    Args:
        message: Error description
        entity_type: Entity type being resolved (optional)
        provider: Provider reference involved (optional)
    """

    def __init__(
        self,
        message: str,
        entity_type: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        self.entity_type = entity_type
        self.provider = provider

        context_parts = []
        if entity_type:
            context_parts.append(f"entity_type='{entity_type}'")
        if provider:
            context_parts.append(f"provider='{provider}'")

        if context_parts:
            full_message = f"{message} ({', '.join(context_parts)})"
        else:
            full_message = message

        super().__init__(full_message)


class ProviderExecutionError(DatasourceError):
    """
    Raised when a provider fails while mapping a document.

    The original exception is chained as ``__cause__``.

    Args:
        message: Error description
        provider: Name of the provider that failed (optional)
        document_id: Id of the document being mapped (optional)
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        document_id: Optional[Any] = None,
    ):
        self.provider = provider
        self.document_id = document_id

        context_parts = []
        if provider:
            context_parts.append(f"provider='{provider}'")
        if document_id is not None:
            context_parts.append(f"document_id={document_id!r}")

        if context_parts:
            full_message = f"{message} ({', '.join(context_parts)})"
        else:
            full_message = message

        super().__init__(full_message)
