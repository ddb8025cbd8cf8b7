"""Unit tests for structured logging.

Covers logger creation, JSON rendering, sanitization of sensitive fields and
the events emitted by the enrichment core.
"""

import json
import logging

import pytest
import structlog

from search_index_hub.infrastructure.concurrency import SequentialExecutor
from search_index_hub.infrastructure.datasource import (
    DocumentMappingResolver,
    EntityDataSourceRegistry,
)
from search_index_hub.utils.logging import (
    _get_log_file_path,
    bind_context,
    get_logger,
    sanitize_for_logging,
)


class _Pricing:
    name = "pricing"

    def map(self, fields, store_id, context=None):
        return {"price": 9.5}


def _events(caplog):
    return [
        json.loads(record.message)
        for record in caplog.records
        if record.message.startswith("{")
    ]


@pytest.mark.unit
def test_get_logger_returns_bound_logger() -> None:
    logger = get_logger("search_index_hub.tests")

    assert hasattr(logger, "bind")
    assert hasattr(logger, "info")


@pytest.mark.unit
def test_json_output_structure(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    get_logger("indexing_logger").info("reindex.dispatched", indexer_id="product")

    log_data = json.loads(caplog.records[-1].message)
    assert log_data["event"] == "reindex.dispatched"
    assert log_data["level"] == "info"
    assert log_data["logger"] == "indexing_logger"
    assert log_data["indexer_id"] == "product"
    assert "T" in log_data["timestamp"]


@pytest.mark.unit
@pytest.mark.parametrize(
    "key",
    ["password", "access_token", "api_key", "client_secret", "DATABASE_URL", "search_dsn"],
)
def test_sanitize_for_logging_redacts_sensitive_keys(key: str) -> None:
    sanitized = sanitize_for_logging({key: "value", "entity_type": "product"})

    assert sanitized[key] == "[REDACTED]"
    assert sanitized["entity_type"] == "product"


@pytest.mark.unit
def test_sanitize_for_logging_handles_nested_dicts() -> None:
    data = {"index": {"name": "products", "Token": "abc123"}}

    assert sanitize_for_logging(data) == {"index": {"name": "products", "Token": "[REDACTED]"}}


@pytest.mark.unit
def test_sanitization_in_logged_output(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    get_logger("search_client").info("index.connected", host="localhost", password="hunter2")

    log_data = json.loads(caplog.records[-1].message)
    assert log_data["password"] == "[REDACTED]"
    assert log_data["host"] == "localhost"


@pytest.mark.unit
def test_context_binding_persists(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    logger = bind_context(entity_type="product", store_id=1)
    logger.info("reindex.batch_saved", documents=2)
    logger.info("reindex.batch_saved", documents=3)

    bound = [event for event in _events(caplog) if event.get("event") == "reindex.batch_saved"]
    assert len(bound) == 2
    assert all(event["entity_type"] == "product" and event["store_id"] == 1 for event in bound)
    assert isinstance(logger, structlog.stdlib.BoundLogger)


@pytest.mark.unit
def test_log_file_name(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FILE_DIR", str(tmp_path / "logs"))

    path = _get_log_file_path()

    assert path.parent == tmp_path / "logs"
    assert path.parent.is_dir()
    assert path.name.startswith("searchindexhub-")
    assert path.suffix == ".log"


@pytest.mark.unit
def test_resolver_logs_mapped_batch(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)
    registry = EntityDataSourceRegistry()
    registry.add_datasource("product", "pricing", _Pricing())
    resolver = DocumentMappingResolver(registry, executor=SequentialExecutor())

    resolver.map({1: {}, 2: {}}, store_id=1, entity_type="product")

    mapped = [e for e in _events(caplog) if e.get("event") == "document_mapping.batch_mapped"]
    assert len(mapped) == 1
    assert mapped[0]["entity_type"] == "product"
    assert mapped[0]["documents"] == 2
    assert mapped[0]["providers"] == 1
