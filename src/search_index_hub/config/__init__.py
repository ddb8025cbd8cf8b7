"""
Configuration package for SearchIndexHub.

Exposes environment settings and the datasource configuration loader.
"""

from .settings import Settings, get_settings, validate_datasources_config
from .datasource_loader import (
    DatasourceConfigError,
    DatasourcesConfig,
    ProviderEntry,
    load_datasources_config,
    register_datasources,
)

__all__ = [
    "DatasourceConfigError",
    "DatasourcesConfig",
    "ProviderEntry",
    "Settings",
    "get_settings",
    "load_datasources_config",
    "register_datasources",
    "validate_datasources_config",
]
