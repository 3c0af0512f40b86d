"""Shared pytest fixtures."""

import pytest


@pytest.fixture(autouse=True)
def mock_env_for_tests(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin environment variables for reproducible tests."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000")
    monkeypatch.delenv("PROVIDER_CONFIG_URL", raising=False)
    monkeypatch.delenv("PROVIDER_CONFIG_TOKEN", raising=False)
    monkeypatch.delenv("PROVIDER_FALLBACK_TOKEN", raising=False)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock injected into caches under test."""
    return FakeClock()
