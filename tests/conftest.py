# bluebind test configuration and shared fixtures
from __future__ import annotations

import pytest

from bluebind.config import CONFIG_ENV, Settings


# ─────────────────────────────────────────────────────────────────────────────
# Settings fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of any config file."""
    return Settings()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the config lookup at an empty temporary location."""
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    monkeypatch.setattr("bluebind.config.CONFFILE", str(tmp_path / "missing.yaml"))
    return tmp_path


# ─────────────────────────────────────────────────────────────────────────────
# Pytest configuration
# ─────────────────────────────────────────────────────────────────────────────


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "bus: tests driving bindings over the mock bus")
