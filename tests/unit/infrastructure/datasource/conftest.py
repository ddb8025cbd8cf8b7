"""Fixtures for the enrichment core tests."""

from __future__ import annotations

import pytest

from provider_fakes import ACME_PROVIDERS
from search_index_hub.infrastructure.concurrency import SequentialExecutor
from search_index_hub.infrastructure.datasource import (
    DocumentMappingResolver,
    EntityDataSourceRegistry,
)


@pytest.fixture
def acme_providers(tmp_path, monkeypatch):
    """Importable ``acme_providers`` module holding sample provider classes."""
    (tmp_path / "acme_providers.py").write_text(ACME_PROVIDERS, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    return "acme_providers"


@pytest.fixture
def datasource_registry() -> EntityDataSourceRegistry:
    return EntityDataSourceRegistry()


@pytest.fixture
def resolver(datasource_registry) -> DocumentMappingResolver:
    return DocumentMappingResolver(datasource_registry, executor=SequentialExecutor())
