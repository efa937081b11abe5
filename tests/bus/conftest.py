# Fixtures for tests which drive bindings over the mock bus
from __future__ import annotations

import pytest

from .mock_bus import MockBus
from .samples import (
    DEVICE_INTERFACE,
    DEVICE_PATH,
    PBAP_INTERFACE,
    PBAP_PATH,
    device_properties,
    phonebook_properties,
)


@pytest.fixture
def mock_bus() -> MockBus:
    """Mock bus serving one device and one phonebook session."""
    bus = MockBus()
    bus.add_object(DEVICE_PATH, DEVICE_INTERFACE, device_properties())
    bus.add_object(PBAP_PATH, PBAP_INTERFACE, phonebook_properties())
    return bus
