"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient

from runmetrics.central import MetricStore, create_app

ENV_OVERRIDES = ("ADDRESS", "POLL_INTERVAL", "REPORT_INTERVAL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's environment from leaking into configuration."""
    for key in ENV_OVERRIDES:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def store() -> MetricStore:
    return MetricStore()


@pytest.fixture
def client(store) -> TestClient:
    """HTTP client bound to an app around the ``store`` fixture."""
    return TestClient(create_app(store))
