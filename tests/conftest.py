"""Pytest configuration for kairos tests."""

import logging

import pytest

from kairos.config import reset_config

logging.getLogger("kairos").handlers.clear()

_KAIROS_ENV = (
    "KAIROS_LLM_ENABLED",
    "KAIROS_LLM_PARSE_TIMEOUT_MS",
    "KAIROS_LLM_CONFIDENCE_THRESHOLD",
    "KAIROS_LOG_LEVEL",
    "KAIROS_LOG_STDERR",
    "KAIROS_BACKEND",
)


def pytest_collection_modifyitems(config, items):
    """Set per-marker timeouts: unit=1s, integration=5s."""
    for item in items:
        if "unit" in item.keywords:
            item.add_marker(pytest.mark.timeout(1))
        elif "integration" in item.keywords:
            item.add_marker(pytest.mark.timeout(5))


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep every test away from ~/.kairos: no env overrides, config read from an empty temp path."""
    for name in _KAIROS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("KAIROS_CONFIG", str(tmp_path / "config.yml"))
    reset_config()
    yield
    reset_config()
