"""
Datasource configuration loader.

Reads the YAML file declaring enrichment providers per entity type and
registers them with an ``EntityDataSourceRegistry``. Three slot shapes are
accepted:

    datasources:
      product:
        pricing: acme.providers.PricingProvider
        stock:
          class: acme.providers.StockProvider
          priority: 20
        facets:
          color: acme.providers.ColorFacetProvider
          size: {class: acme.providers.SizeFacetProvider, priority: 5}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from search_index_hub.config.settings import get_settings, validate_datasources_config

if TYPE_CHECKING:
    from search_index_hub.infrastructure.datasource.registry import EntityDataSourceRegistry

logger = logging.getLogger(__name__)


class DatasourceConfigError(Exception):
    """Raised when the datasource configuration file cannot be loaded or is invalid."""

    pass


class ProviderEntry(BaseModel):
    """One provider reference with optional explicit priority."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    class_path: str = Field(..., alias="class", min_length=1)
    priority: Optional[int] = Field(None, description="Explicit priority, lower runs first")

    def as_spec(self) -> Dict[str, Any]:
        spec: Dict[str, Any] = {"class": self.class_path}
        if self.priority is not None:
            spec["priority"] = self.priority
        return spec


SlotEntry = Union[ProviderEntry, Dict[str, ProviderEntry]]


def _expand(spec: Any) -> Any:
    """Expand bare-string shorthand into ``{"class": ...}`` entries."""
    if isinstance(spec, str):
        return {"class": spec}
    if isinstance(spec, dict) and "class" not in spec:
        return {str(member): _expand(value) for member, value in spec.items()}
    if isinstance(spec, list):
        return {str(position): _expand(value) for position, value in enumerate(spec)}
    return spec


class DatasourcesConfig(BaseModel):
    """Schema for the complete datasources.yml structure."""

    datasources: Dict[str, Dict[str, SlotEntry]] = Field(
        default_factory=dict, description="Entity type -> slot key -> provider(s)"
    )

    @field_validator("datasources", mode="before")
    @classmethod
    def _expand_shorthand(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, dict):
            return value
        expanded: Dict[str, Any] = {}
        for entity_type, slots in value.items():
            if slots is None:
                expanded[entity_type] = {}
            elif isinstance(slots, dict):
                expanded[entity_type] = {
                    str(slot_key): _expand(spec) for slot_key, spec in slots.items()
                }
            else:
                expanded[entity_type] = slots
        return expanded

    def slots_for(self, entity_type: str) -> Dict[str, Any]:
        """Raw slot specs for one entity type, in the form the registry accepts."""
        slots: Dict[str, Any] = {}
        for slot_key, entry in self.datasources.get(entity_type, {}).items():
            if isinstance(entry, ProviderEntry):
                slots[slot_key] = entry.as_spec()
            else:
                slots[slot_key] = {member: item.as_spec() for member, item in entry.items()}
        return slots


def load_datasources_config(path: Optional[str] = None) -> DatasourcesConfig:
    """
    Load and validate the datasource configuration file.

    Args:
        path: YAML file path, defaults to ``Settings.datasources_config``

    Returns:
        Validated DatasourcesConfig

    Raises:
        DatasourceConfigError: If the file is missing, unreadable or invalid
    """
    if path is None:
        settings = get_settings()
        config_path = Path(settings.datasources_config)
        found = validate_datasources_config(settings)
    else:
        config_path = Path(path)
        found = config_path.is_file()

    if not found:
        raise DatasourceConfigError(f"Datasource configuration not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise DatasourceConfigError(f"Invalid YAML in datasource configuration: {e}") from e
    except OSError as e:
        raise DatasourceConfigError(f"Failed to load datasource configuration: {e}") from e

    if not isinstance(data, dict):
        raise DatasourceConfigError("Datasource configuration must be a mapping")

    try:
        config = DatasourcesConfig(**data)
    except ValidationError as e:
        raise DatasourceConfigError(f"datasources.yml validation failed: {e}") from e

    logger.debug(
        "Loaded datasource configuration for %d entity types from %s",
        len(config.datasources),
        config_path,
    )
    return config


def register_datasources(
    registry: "EntityDataSourceRegistry",
    config: Union[DatasourcesConfig, Dict[str, Any]],
) -> int:
    """
    Register every configured provider with ``registry``.

    Returns:
        Number of entity types registered
    """
    if not isinstance(config, DatasourcesConfig):
        try:
            config = DatasourcesConfig(**config)
        except ValidationError as e:
            raise DatasourceConfigError(f"datasources validation failed: {e}") from e

    for entity_type in config.datasources:
        registry.add_datasources(entity_type, config.slots_for(entity_type))

    logger.info("Registered datasources for %d entity types", len(config.datasources))
    return len(config.datasources)
