"""
Shared configuration and fixtures for the Earth Insights test suite.

No test touches the network: external calls are patched at the service
module boundary.
"""
from datetime import date

import pytest

from earthinsights.core.config import Settings
from earthinsights.schemas.common import GeoTarget, Timeframe

TEST_ENV = {
    "NASA_API_KEY": "test-nasa-key",
    "OPENAI_API_KEY": "test-openai-key",
    "GNEWS_API_KEY": "test-gnews-key",
    "GOOGLE_VISION_API_KEY": "test-vision-key",
    "LOG_LEVEL": "DEBUG",
}

UNSET_ENV = ("SMTP_USERNAME", "SMTP_PASSWORD", "SENDER_EMAIL")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Automatically configure a fake environment for all tests"""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    for key in UNSET_ENV:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def cfg():
    """Settings built from the test environment only, ignoring any .env file"""
    return Settings(_env_file=None)


@pytest.fixture
def bare_cfg(monkeypatch):
    """Settings with every API key missing"""
    for key in ("NASA_API_KEY", "OPENAI_API_KEY", "GNEWS_API_KEY", "GOOGLE_VISION_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    return Settings(_env_file=None)


@pytest.fixture
def smtp_cfg(monkeypatch):
    monkeypatch.setenv("SMTP_USERNAME", "briefings@example.com")
    monkeypatch.setenv("SMTP_PASSWORD", "app-password")
    monkeypatch.setenv("SENDER_EMAIL", "briefings@example.com")
    return Settings(_env_file=None)


@pytest.fixture
def london():
    return GeoTarget(name="London", kind="city", lat=51.5074, lon=-0.1278, iso2="GB", region="city")


@pytest.fixture
def europe():
    return GeoTarget(name="Europe", kind="continent", lat=54.5260, lon=15.2551, region="continent",
                     countries=("Germany", "France"))


@pytest.fixture
def june_2024():
    return Timeframe(start=date(2024, 6, 1), end=date(2024, 6, 30))
