#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

"""Tests for bluebind.client."""

from __future__ import annotations

import asyncio

import pytest
from dbus_fast import BusType, Variant

from bluebind import client as client_module
from bluebind.client import BusClient, SignalEnvelope, connect_bus, disconnect_buses
from bluebind.dbus_utils import PROPERTIES_INTERFACE
from bluebind.errors import (
    BindingClosedError,
    DecodeError,
    InProgressError,
    MarshallingError,
    RemoteError,
    TransportError,
)
from bluebind.profile.device import Device1Properties

from .samples import DEVICE_INTERFACE, DEVICE_PATH

OTHER_PATH = "/org/bluez/hci0/dev_11_22_33_44_55_66"


def make_client(bus) -> BusClient:
    return BusClient(bus, "org.bluez", DEVICE_INTERFACE, DEVICE_PATH)


# ─────────────────────────────────────────────────────────────────────────────
# Method calls
# ─────────────────────────────────────────────────────────────────────────────


class TestCall:
    """Tests for BusClient.call."""

    def test_call_sends_to_object(self, mock_bus):
        """Calls are addressed to the client's service, path and interface."""
        mock_bus.reply("ConnectProfile")
        client = make_client(mock_bus)

        result = asyncio.run(client.call("ConnectProfile", "s", "0000110b"))

        assert result == []
        msg = mock_bus.calls_to("ConnectProfile")[0]
        assert msg.destination == "org.bluez"
        assert msg.path == DEVICE_PATH
        assert msg.interface == DEVICE_INTERFACE
        assert msg.signature == "s"
        assert msg.body == ["0000110b"]

    def test_call_returns_body(self, mock_bus):
        mock_bus.reply("GetSize", "q", [42])
        client = make_client(mock_bus)

        assert asyncio.run(client.call("GetSize", out_signature="q")) == [42]

    def test_remote_error_keeps_name(self, mock_bus):
        """Error replies surface with their symbolic name and message."""
        mock_bus.fail("Connect", "org.bluez.Error.InProgress", "Operation already in progress")
        client = make_client(mock_bus)

        with pytest.raises(InProgressError) as exc_info:
            asyncio.run(client.call("Connect"))

        assert exc_info.value.name == "org.bluez.Error.InProgress"
        assert exc_info.value.message == "Operation already in progress"

    def test_unknown_remote_error(self, mock_bus):
        mock_bus.fail("Connect", "org.bluez.Error.AuthenticationTimeout")
        client = make_client(mock_bus)

        with pytest.raises(RemoteError) as exc_info:
            asyncio.run(client.call("Connect"))

        assert type(exc_info.value) is RemoteError
        assert exc_info.value.name == "org.bluez.Error.AuthenticationTimeout"

    def test_transport_failure(self, mock_bus):
        """I/O failures become TransportError and are not retried."""
        mock_bus.raise_on("Connect", EOFError("connection lost"))
        client = make_client(mock_bus)

        with pytest.raises(TransportError):
            asyncio.run(client.call("Connect"))

        assert len(mock_bus.calls_to("Connect")) == 1

    def test_marshalling_error_sends_nothing(self, mock_bus):
        client = make_client(mock_bus)

        with pytest.raises(MarshallingError):
            asyncio.run(client.call("ConnectProfile", "s", 42))

        assert mock_bus.calls == []

    def test_unexpected_reply_signature(self, mock_bus):
        mock_bus.reply("GetSize", "s", ["many"])
        client = make_client(mock_bus)

        with pytest.raises(DecodeError):
            asyncio.run(client.call("GetSize", out_signature="q"))


# ─────────────────────────────────────────────────────────────────────────────
# Properties
# ─────────────────────────────────────────────────────────────────────────────


class TestProperties:
    """Tests for property access through the client."""

    def test_get_property(self, mock_bus):
        client = make_client(mock_bus)

        variant = asyncio.run(client.get_property("RSSI"))

        assert variant == Variant("n", -67)
        msg = mock_bus.calls_to("Get")[0]
        assert msg.interface == PROPERTIES_INTERFACE
        assert msg.body == [DEVICE_INTERFACE, "RSSI"]

    def test_get_missing_property(self, mock_bus):
        client = make_client(mock_bus)

        with pytest.raises(RemoteError) as exc_info:
            asyncio.run(client.get_property("Icon"))

        assert exc_info.value.name == "org.freedesktop.DBus.Error.InvalidArgs"

    def test_set_property_with_signature(self, mock_bus):
        client = make_client(mock_bus)

        asyncio.run(client.set_property("Alias", "Headset", "s"))

        assert mock_bus.objects[DEVICE_PATH][DEVICE_INTERFACE]["Alias"] == Variant("s", "Headset")

    def test_set_property_needs_signature(self, mock_bus):
        client = make_client(mock_bus)

        with pytest.raises(MarshallingError):
            asyncio.run(client.set_property("Alias", "Headset"))

        assert mock_bus.calls == []

    def test_get_all_properties_fills_record(self, mock_bus):
        client = make_client(mock_bus)
        record = Device1Properties()

        asyncio.run(client.get_all_properties(record))

        assert record.Address == "AA:BB:CC:DD:EE:FF"
        assert record.RSSI == -67
        assert record.Paired is True


# ─────────────────────────────────────────────────────────────────────────────
# Signals
# ─────────────────────────────────────────────────────────────────────────────


class TestSubscribe:
    """Tests for signal subscriptions."""

    def test_subscribe_is_idempotent(self, mock_bus):
        client = make_client(mock_bus)

        async def run():
            first = await client.subscribe(DEVICE_PATH, PROPERTIES_INTERFACE)
            second = await client.subscribe(DEVICE_PATH, PROPERTIES_INTERFACE)
            return first, second

        first, second = asyncio.run(run())

        assert first is second
        assert len(mock_bus.calls_to("AddMatch")) == 1
        assert len(mock_bus.handlers) == 1
        assert mock_bus.match_rules == [
            "type='signal',sender='org.bluez',"
            "interface='org.freedesktop.DBus.Properties',"
            "path='/org/bluez/hci0/dev_AA_BB_CC_DD_EE_FF'"
        ]

    def test_signals_are_demultiplexed(self, mock_bus):
        """Only signals on the subscribed path and interface are delivered."""
        client = make_client(mock_bus)

        async def run():
            channel = await client.subscribe(DEVICE_PATH, PROPERTIES_INTERFACE)
            mock_bus.emit(OTHER_PATH, PROPERTIES_INTERFACE, "PropertiesChanged",
                          "sa{sv}as", [DEVICE_INTERFACE, {}, []])
            mock_bus.emit(DEVICE_PATH, DEVICE_INTERFACE, "Bogus", "", [])
            mock_bus.emit(DEVICE_PATH, PROPERTIES_INTERFACE, "PropertiesChanged",
                          "sa{sv}as", [DEVICE_INTERFACE, {"RSSI": Variant("n", -50)}, []])
            return channel.qsize(), await asyncio.wait_for(channel.get(), 1)

        size, envelope = asyncio.run(run())

        assert size == 1
        assert isinstance(envelope, SignalEnvelope)
        assert envelope.path == DEVICE_PATH
        assert envelope.interface == PROPERTIES_INTERFACE
        assert envelope.member == "PropertiesChanged"
        assert envelope.sender == mock_bus.sender
        assert envelope.body[1] == {"RSSI": Variant("n", -50)}

    def test_unsubscribe_closes_channel(self, mock_bus):
        client = make_client(mock_bus)

        async def run():
            channel = await client.subscribe(DEVICE_PATH, PROPERTIES_INTERFACE)
            await client.unsubscribe(channel)
            # second call is ignored
            await client.unsubscribe(channel)
            return channel

        channel = asyncio.run(run())

        assert channel.closed
        assert mock_bus.match_rules == []
        assert len(mock_bus.calls_to("RemoveMatch")) == 1

    def test_resubscribe_after_unsubscribe(self, mock_bus):
        client = make_client(mock_bus)

        async def run():
            first = await client.subscribe(DEVICE_PATH, PROPERTIES_INTERFACE)
            await client.unsubscribe(first)
            second = await client.subscribe(DEVICE_PATH, PROPERTIES_INTERFACE)
            return first, second

        first, second = asyncio.run(run())

        assert first is not second
        assert not second.closed
        assert len(mock_bus.match_rules) == 1


# ─────────────────────────────────────────────────────────────────────────────
# Lifecycle
# ─────────────────────────────────────────────────────────────────────────────


class TestClose:
    """Tests for BusClient.close."""

    def test_close_releases_everything(self, mock_bus):
        client = make_client(mock_bus)

        async def run():
            channel = await client.subscribe(DEVICE_PATH, PROPERTIES_INTERFACE)
            await client.close()
            await client.close()
            return channel

        channel = asyncio.run(run())

        assert client.closed
        assert channel.closed
        assert mock_bus.match_rules == []
        assert mock_bus.handlers == []
        # the bus is shared, never disconnected by a client
        assert mock_bus.connected

    def test_use_after_close(self, mock_bus):
        client = make_client(mock_bus)
        asyncio.run(client.close())

        with pytest.raises(BindingClosedError):
            asyncio.run(client.get_property("RSSI"))

        with pytest.raises(TransportError):
            asyncio.run(client.subscribe())

    def test_close_on_lost_connection(self, mock_bus):
        """Match rules of a dead connection are not removed remotely."""
        client = make_client(mock_bus)

        async def run():
            await client.subscribe(DEVICE_PATH, PROPERTIES_INTERFACE)
            mock_bus.disconnect()
            await client.close()

        asyncio.run(run())

        assert client.closed
        assert mock_bus.calls_to("RemoveMatch") == []


# ─────────────────────────────────────────────────────────────────────────────
# Shared connections
# ─────────────────────────────────────────────────────────────────────────────


class FakeMessageBus:
    instances: list[FakeMessageBus] = []

    def __init__(self, bus_type=BusType.SESSION):
        self.bus_type = bus_type
        self.connected = False
        FakeMessageBus.instances.append(self)

    async def connect(self):
        self.connected = True
        return self

    def disconnect(self):
        self.connected = False


class TestConnectBus:
    """Tests for the shared bus connections."""

    @pytest.fixture(autouse=True)
    def fake_bus(self, monkeypatch):
        FakeMessageBus.instances = []
        monkeypatch.setattr(client_module, "MessageBus", FakeMessageBus)
        monkeypatch.setattr(client_module, "_BUSES", {})

    def test_connection_is_shared(self):
        async def run():
            return await connect_bus(BusType.SYSTEM), await connect_bus(BusType.SYSTEM)

        first, second = asyncio.run(run())

        assert first is second
        assert len(FakeMessageBus.instances) == 1
        assert first.bus_type == BusType.SYSTEM

    def test_reconnects_after_disconnect(self):
        async def run():
            first = await connect_bus(BusType.SYSTEM)
            first.disconnect()
            return first, await connect_bus(BusType.SYSTEM)

        first, second = asyncio.run(run())

        assert first is not second
        assert second.connected

    def test_disconnect_buses(self):
        async def run():
            return await connect_bus(BusType.SYSTEM), await connect_bus(BusType.SESSION)

        system, session = asyncio.run(run())
        disconnect_buses()

        assert not system.connected
        assert not session.connected
        assert client_module._BUSES == {}

    def test_connect_failure(self, monkeypatch):
        async def refuse(self):
            raise FileNotFoundError("no bus socket")

        monkeypatch.setattr(FakeMessageBus, "connect", refuse)

        with pytest.raises(TransportError):
            asyncio.run(connect_bus(BusType.SYSTEM))
