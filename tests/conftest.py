"""Shared pytest configuration.

Settings are cached process-wide; every test starts from a clean cache and
deterministic environment defaults so a developer's local ``.env`` cannot
change the outcome.
"""

from __future__ import annotations

import os
from typing import Generator

import pytest

# Must be set before search_index_hub.config.settings is imported
os.environ.setdefault("SIH_ENV_FILE", "tests/.env.test-nonexistent")

from search_index_hub.config import get_settings  # noqa: E402

SETTINGS_ENV_DEFAULTS = {
    "SIH_EXECUTOR_POLICY": "sequential",
    "SIH_INDEX_BATCH_SIZE": "500",
    "SIH_STORE_IDS": "[0]",
}


@pytest.fixture(autouse=True)
def _settings_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Pin settings-relevant env vars and reset the settings cache."""
    for name in list(os.environ):
        if name.startswith("SIH_") and name != "SIH_ENV_FILE":
            monkeypatch.delenv(name, raising=False)
    for name, value in SETTINGS_ENV_DEFAULTS.items():
        monkeypatch.setenv(name, value)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
