"""
Deep merge policy for partial documents returned by providers.

Partials are merged onto the original document in provider priority order:

- scalar fields: the later partial wins
- mapping fields: merged recursively with the same rules
- list fields: concatenated (earlier items first)
- ``Replace`` values: written as is, whatever the existing value

A field that is a list or mapping on one side and something else on the
other is a configuration defect and raises ``ConfigurationError``.
"""

from dataclasses import dataclass
from functools import reduce
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .exceptions import ConfigurationError

Document = Dict[str, Any]


@dataclass(frozen=True)
class Replace:
    """Field value that overwrites the existing value instead of merging into it."""

    value: Any


def _clone(value: Any) -> Any:
    """Copy containers so merged output never aliases provider output."""
    if isinstance(value, Replace):
        return _clone(value.value)
    if isinstance(value, Mapping):
        return {key: _clone(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_clone(item) for item in value]
    return value


def _kind(value: Any) -> str:
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, list):
        return "list"
    return "scalar"


def deep_merge(
    base: Mapping[str, Any],
    incoming: Mapping[str, Any],
    _path: Tuple[str, ...] = (),
) -> Document:
    """
    Merge ``incoming`` over ``base`` and return a new mapping.

    Neither argument is modified. Existing keys keep their position; new
    keys follow in the order ``incoming`` lists them.

    Raises:
        ConfigurationError: On a list/mapping vs. other type clash at a key

    Example:
        >>> deep_merge({"tags": ["x"], "price": 1}, {"tags": ["y"], "price": 2})
        {'tags': ['x', 'y'], 'price': 2}
        >>> deep_merge({"tags": ["x"]}, {"tags": Replace(["X"])})
        {'tags': ['X']}
    """
    result: Document = {key: _clone(value) for key, value in base.items()}

    for key, value in incoming.items():
        if key not in result or isinstance(value, Replace):
            result[key] = _clone(value)
            continue

        existing = result[key]
        existing_kind, value_kind = _kind(existing), _kind(value)

        # Differing kinds always involve a list or mapping
        if existing_kind != value_kind:
            field_path = ".".join((*_path, str(key)))
            raise ConfigurationError(
                f"Cannot merge field '{field_path}': {existing_kind} "
                f"value conflicts with {value_kind} value"
            )

        if value_kind == "mapping":
            result[key] = deep_merge(existing, value, (*_path, str(key)))
        elif value_kind == "list":
            result[key] = existing + _clone(value)
        else:
            result[key] = value

    return result


def merge_documents(
    original: Mapping[str, Any],
    partials: Sequence[Optional[Mapping[str, Any]]],
) -> Document:
    """
    Merge provider partials onto the original document.

    The original document is the merge base, so its nested mappings gain
    keys and its lists gain items rather than being overwritten. Original
    fields keep their position; new fields follow in the order providers
    contributed them.
    """
    return reduce(
        deep_merge,
        (partial for partial in partials if partial),
        _clone(original),
    )
