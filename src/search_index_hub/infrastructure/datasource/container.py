"""
Provider instantiation collaborator.

The factory never constructs providers itself; it asks a container to
``resolve`` a reference. ``ImportPathContainer`` is the default container: it
accepts dotted import paths, classes, zero-argument factories and ready
instances, and caches one instance per reference.
"""

import importlib
import logging
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@runtime_checkable
class ProviderContainer(Protocol):
    """Dependency injection boundary for provider instantiation."""

    def resolve(self, reference: Any) -> Any: ...


def import_reference(import_path: str) -> Any:
    """
    Import the object named by a dotted path.

    Supports module attributes (``pkg.module.Class``) and one level of class
    attribute (``pkg.module.Class.factory``).

    Raises:
        ConfigurationError: If the path is malformed or nothing can be imported
    """
    if not isinstance(import_path, str) or "." not in import_path:
        raise ConfigurationError(
            f"Invalid import path format: {import_path!r}", provider=str(import_path)
        )

    parts = import_path.split(".")

    # Try module attribute first
    module_path, attr_name = ".".join(parts[:-1]), parts[-1]
    try:
        module = importlib.import_module(module_path)
    except ImportError:
        module = None
    if module is not None and hasattr(module, attr_name):
        return getattr(module, attr_name)

    # Then Class.attribute
    if len(parts) >= 3:
        module_path, class_name = ".".join(parts[:-2]), parts[-2]
        try:
            module = importlib.import_module(module_path)
        except ImportError as exc:
            raise ConfigurationError(
                f"Failed to import '{import_path}': {exc}", provider=import_path
            ) from exc
        owner = getattr(module, class_name, None)
        if owner is not None and hasattr(owner, attr_name):
            return getattr(owner, attr_name)

    raise ConfigurationError(
        f"Could not import class or factory from '{import_path}'",
        provider=import_path,
    )


def try_import_reference(import_path: str) -> Optional[Any]:
    """Like ``import_reference`` but returns None when the path cannot be imported."""
    try:
        return import_reference(import_path)
    except ConfigurationError:
        return None


class ImportPathContainer:
    """
    Default container resolving references to shared provider instances.

    Providers are stateless, so one instance per reference is reused across
    batches and entity types.
    """

    def __init__(self) -> None:
        self._instances: Dict[Any, Any] = {}

    def resolve(self, reference: Any) -> Any:
        cacheable = _is_hashable(reference)
        if cacheable and reference in self._instances:
            return self._instances[reference]

        target = import_reference(reference) if isinstance(reference, str) else reference
        if not (isinstance(target, type) or (callable(target) and not hasattr(target, "map"))):
            # Ready-made instance
            return target

        try:
            instance = target()
        except TypeError as exc:
            raise ConfigurationError(
                f"Provider could not be constructed without arguments: {exc}",
                provider=reference_label(reference),
            ) from exc

        logger.debug("Resolved provider %s", reference_label(reference))
        # Keyed on the reference itself, which the cache keeps alive
        if cacheable:
            self._instances[reference] = instance
        return instance

    def clear(self) -> None:
        self._instances.clear()


def reference_label(reference: Any) -> str:
    """Readable name for a provider reference (dotted path or class path)."""
    if isinstance(reference, str):
        return reference
    if isinstance(reference, type):
        return f"{reference.__module__}.{reference.__qualname__}"
    return f"{type(reference).__module__}.{type(reference).__qualname__}"


def _is_hashable(reference: Any) -> bool:
    try:
        hash(reference)
    except TypeError:
        return False
    return True
