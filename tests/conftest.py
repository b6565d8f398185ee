# tests/conftest.py

from typing import Dict, List, Optional, Tuple

import pytest


def _datadog_payload(*pointlists: List[Tuple[int, Optional[float]]]) -> Dict:
    return {
        "status": "ok",
        "series": [
            {"metric": "test.metric", "scope": f"tag:{index}", "pointlist": [list(point) for point in pointlist]}
            for index, pointlist in enumerate(pointlists)
        ],
    }


@pytest.fixture
def datadog_payload():
    """Builds a Datadog /api/v1/query response with one tagged series per pointlist."""
    return _datadog_payload


@pytest.fixture(autouse=True)
def mock_settings_env_vars(monkeypatch):
    """
    Pytest fixture to mock environment variables for the config module.

    This fixture runs automatically for every test (`autouse=True`). It uses
    monkeypatch to set the Datadog credentials, ensuring that the
    application's config is predictable and isolated from the actual
    environment.
    """
    monkeypatch.setenv("DD_API_KEY", "test-api-key")
    monkeypatch.setenv("DD_APP_KEY", "test-app-key")
    monkeypatch.delenv("DD_SITE", raising=False)
    for key in ("AUDIT_DEFAULT_WINDOW", "INCIDENT_DEFAULT_WINDOW", "INCIDENT_DEFAULT_DEPLOYMENT", "CAPACITY_TARGETS"):
        monkeypatch.delenv(key, raising=False)
