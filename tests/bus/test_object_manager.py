#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

"""Tests for bluebind.object_manager."""

from __future__ import annotations

import asyncio

from dbus_fast import Variant

from bluebind.client import BusClient
from bluebind.dbus_utils import OBJECT_MANAGER_INTERFACE
from bluebind.object_manager import ObjectManagerObserver
from bluebind.profile.device import Device1

from .samples import DEVICE_INTERFACE, DEVICE_PATH

NEW_DEVICE_PATH = "/org/bluez/hci0/dev_11_22_33_44_55_66"


def make_observer(bus) -> ObjectManagerObserver:
    return ObjectManagerObserver(BusClient(bus, "org.bluez", DEVICE_INTERFACE, DEVICE_PATH))


class TestObjectManagerObserver:
    """Tests for ObjectManagerObserver."""

    def test_subscription_is_shared(self, mock_bus):
        observer = make_observer(mock_bus)

        async def run():
            first, cancel = await observer.subscribe()
            second, _ = await observer.subscribe()
            await cancel()
            return first, second

        first, second = asyncio.run(run())

        assert first is second
        assert len(mock_bus.calls_to("AddMatch")) == 1
        assert mock_bus.match_rules == []
        assert not observer.active

    def test_match_rule(self, mock_bus):
        observer = make_observer(mock_bus)

        async def run():
            _, cancel = await observer.subscribe()
            rules = list(mock_bus.match_rules)
            await cancel()
            return rules

        assert asyncio.run(run()) == [
            "type='signal',sender='org.bluez',"
            "interface='org.freedesktop.DBus.ObjectManager',path='/'"
        ]

    def test_receives_added_and_removed(self, mock_bus):
        observer = make_observer(mock_bus)

        async def run():
            channel, cancel = await observer.subscribe()
            mock_bus.emit_interfaces_added(NEW_DEVICE_PATH, {
                DEVICE_INTERFACE: {"Address": Variant("s", "11:22:33:44:55:66")},
            })
            mock_bus.emit_interfaces_removed(NEW_DEVICE_PATH, [DEVICE_INTERFACE])
            added = await asyncio.wait_for(channel.get(), 1)
            removed = await asyncio.wait_for(channel.get(), 1)
            await cancel()
            return added, removed

        added, removed = asyncio.run(run())

        assert added.member == "InterfacesAdded"
        assert added.interface == OBJECT_MANAGER_INTERFACE
        assert added.body[0] == NEW_DEVICE_PATH
        assert DEVICE_INTERFACE in added.body[1]
        assert removed.member == "InterfacesRemoved"
        assert removed.body == [NEW_DEVICE_PATH, [DEVICE_INTERFACE]]

    def test_cancel_sends_sentinel_first(self, mock_bus):
        """A consumer sees the end of the stream before anything queued later."""
        observer = make_observer(mock_bus)

        async def run():
            channel, cancel = await observer.subscribe()
            mock_bus.emit_interfaces_removed(NEW_DEVICE_PATH, [DEVICE_INTERFACE])
            await cancel()
            await cancel()
            return [item async for item in channel], channel

        received, channel = asyncio.run(run())

        assert [item.member for item in received] == ["InterfacesRemoved"]
        assert channel.closed

    def test_subscribe_after_cancel(self, mock_bus):
        observer = make_observer(mock_bus)

        async def run():
            first, cancel = await observer.subscribe()
            await cancel()
            second, cancel = await observer.subscribe()
            active = observer.active
            await cancel()
            return first, second, active

        first, second, active = asyncio.run(run())

        assert first is not second
        assert active

    def test_get_managed_objects(self, mock_bus):
        observer = make_observer(mock_bus)

        objects = asyncio.run(observer.get_managed_objects())

        assert objects[DEVICE_PATH][DEVICE_INTERFACE]["RSSI"] == Variant("n", -67)
        msg = mock_bus.calls_to("GetManagedObjects")[0]
        assert msg.path == "/"
        assert msg.interface == OBJECT_MANAGER_INTERFACE


def test_binding_object_manager_signal(mock_bus, settings):
    async def run():
        dev = await Device1.create(DEVICE_PATH, bus=mock_bus, settings=settings)
        channel, cancel = await dev.get_object_manager_signal()
        again, _ = await dev.get_object_manager_signal()
        objects = await dev.get_managed_objects()
        await cancel()
        await dev.close()
        return channel, again, objects

    channel, again, objects = asyncio.run(run())

    assert channel is again
    assert channel.closed
    assert DEVICE_PATH in objects
