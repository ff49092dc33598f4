"""
Pytest Configuration for Fleet Risk Tests

Environment is pinned BEFORE any fleet_risk import so a developer .env
cannot leak into the settings the tests see.
"""

import os

os.environ.setdefault("GPS_API_BASE", "https://gps.test/api")
os.environ.setdefault("GPS_API_USER", "test")
os.environ.setdefault("GPS_API_PASSWORD", "test")
os.environ["WEATHER_ENABLED"] = "false"

import pytest

# Import all fixtures
from tests.fixtures.fleet_fixtures import *  # noqa


@pytest.fixture
def test_client():
    """Provide a test client for API tests (lifespan not started)."""
    from fastapi.testclient import TestClient

    from fleet_risk.main import create_app
    from fleet_risk.settings import Settings

    app = create_app(Settings())
    return TestClient(app)
