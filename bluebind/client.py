#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name, too-many-arguments
"""
Thin async client for one remote D-Bus object

BusClient turns semantic operations on a single (service, interface,
path) into messages on a shared dbus-fast connection. It never
retries: transport failures surface as TransportError, error replies
as RemoteError with their symbolic name intact.
"""
import asyncio
from typing import NamedTuple

from dbus_fast import BusType, Message, MessageType
from dbus_fast.aio import MessageBus

from bluebind.channel import Channel
from bluebind.dbus_utils import DBUS_PATH, DBUS_SERVICE, PROPERTIES_INTERFACE, \
        make_variant, match_rule, verify_body
from bluebind.errors import BindingClosedError, DecodeError, MarshallingError, \
        RemoteError, TransportError
from bluebind.util import LOG_TRACE, get_logger


class SignalEnvelope(NamedTuple):
    """
    A signal received from the bus
    """
    sender: str
    path: str
    interface: str
    member: str
    body: list


_BUSES = {}

async def connect_bus(bus_type: BusType = BusType.SYSTEM) -> MessageBus:
    """
    Get the shared connection for a bus, connecting if needed.

    Connections are shared by every binding in the process and
    are only replaced if they were disconnected.
    """
    bus = _BUSES.get(bus_type)
    if bus is None or not bus.connected:
        try:
            bus = await MessageBus(bus_type=bus_type).connect()
        except (OSError, EOFError) as err:
            raise TransportError('Unable to connect to the %s bus: %s' \
                % (bus_type.name.lower(), err)) from err
        _BUSES[bus_type] = bus
    return bus


def disconnect_buses():
    """
    Disconnect and forget all shared connections
    """
    while _BUSES:
        _, bus = _BUSES.popitem()
        if bus.connected:
            bus.disconnect()


class BusClient:
    """
    Client for one interface of one remote object.

    :param bus: A connected dbus_fast MessageBus (shared, not owned)
    :param service: Well-known service name, e.g. org.bluez
    :param interface: Interface name, e.g. org.bluez.Device1
    :param path: Object path
    """

    def __init__(self, bus, service: str, interface: str, path: str):
        self._bus = bus
        self._service = service
        self._interface = interface
        self._path = path
        self._logger = get_logger('bluebind.client')

        # (path, interface) -> (channel, match rule)
        self._subscriptions = {}
        self._handler_installed = False


    @property
    def service(self) -> str:
        return self._service


    @property
    def interface(self) -> str:
        return self._interface


    @property
    def path(self) -> str:
        return self._path


    @property
    def bus(self):
        """
        The shared connection, None after close()
        """
        return self._bus


    @property
    def closed(self) -> bool:
        return self._bus is None


    def _check_open(self):
        if self._bus is None:
            raise BindingClosedError('Client for %s on %s is closed' \
                % (self._interface, self._path))


    async def _send(self, msg: Message) -> Message:
        self._check_open()
        try:
            return await self._bus.call(msg)
        except (OSError, EOFError, asyncio.IncompleteReadError) as err:
            raise TransportError('%s.%s on %s failed: %s' \
                % (msg.interface, msg.member, msg.path, err)) from err


    async def call(self, method: str, signature: str = '', *args,
                   interface: str = None, path: str = None,
                   out_signature: str = None) -> list:
        """
        Invoke a method and wait for the reply

        :param method: Member name
        :param signature: Signature of args
        :param args: Positional arguments
        :param interface: Interface to call on, defaults to the client's
        :param path: Object path, defaults to the client's
        :param out_signature: If given, the reply must have this signature

        :return: The reply body as a list
        """
        self._check_open()
        verify_body(signature, args)

        msg = Message(destination=self._service,
                      path=path or self._path,
                      interface=interface or self._interface,
                      member=method,
                      signature=signature,
                      body=list(args))

        self._logger.log(LOG_TRACE, 'call %s.%s%r on %s', msg.interface, method,
                         tuple(args), msg.path)

        reply = await self._send(msg)

        if reply.message_type == MessageType.ERROR:
            raise RemoteError.from_reply(reply)

        if out_signature is not None and reply.signature != out_signature:
            raise DecodeError(None, '%s returned signature %r, expected %r' \
                % (method, reply.signature, out_signature))

        return list(reply.body)


    async def get_property(self, name: str):
        """
        Fetch a single property

        :return: The Variant returned by the remote
        """
        body = await self.call('Get', 'ss', self._interface, name,
                               interface=PROPERTIES_INTERFACE, out_signature='v')
        return body[0]


    async def set_property(self, name: str, value, signature: str = None):
        """
        Store a single property

        :param name: Property name
        :param value: A Variant, or a plain value plus its signature
        """
        if signature is not None:
            value = make_variant(signature, value)
        elif not hasattr(value, 'signature'):
            raise MarshallingError('%s: a signature is required for %r' % (name, value))

        await self.call('Set', 'ssv', self._interface, name, value,
                        interface=PROPERTIES_INTERFACE, out_signature='')


    async def get_all(self) -> dict:
        """
        Fetch all properties as a name -> Variant map
        """
        body = await self.call('GetAll', 's', self._interface,
                               interface=PROPERTIES_INTERFACE, out_signature='a{sv}')
        return body[0]


    async def get_all_properties(self, record):
        """
        Fetch all properties and store them into a PropertyRecord

        :raises DecodeError: if a value does not match its declared type
        """
        props = await self.get_all()
        return record.update_from_variant_map(props)


    def _on_message(self, msg: Message):
        if msg.message_type != MessageType.SIGNAL:
            return

        sub = self._subscriptions.get((msg.path, msg.interface))
        if sub is None:
            return

        self._logger.log(LOG_TRACE, 'signal %s.%s on %s: %r', msg.interface,
                         msg.member, msg.path, msg.body)

        sub[0].put_nowait(SignalEnvelope(msg.sender, msg.path, msg.interface,
                                         msg.member, list(msg.body)))


    async def subscribe(self, path: str = None, interface: str = None) -> Channel:
        """
        Start delivery of signals emitted on (path, interface)

        Subscribing twice to the same pair returns the same channel.

        :return: Channel of SignalEnvelope
        """
        self._check_open()
        key = (path or self._path, interface or self._interface)
        sub = self._subscriptions.get(key)
        if sub is not None and not sub[0].closed:
            return sub[0]

        rule = match_rule(sender=self._service, interface=key[1], path=key[0])
        await self.call('AddMatch', 's', rule, interface=DBUS_SERVICE,
                        path=DBUS_PATH, out_signature='')

        if not self._handler_installed:
            self._bus.add_message_handler(self._on_message)
            self._handler_installed = True

        channel = Channel()
        self._subscriptions[key] = (channel, rule)
        self._logger.debug('Subscribed to %s on %s', key[1], key[0])
        return channel


    async def unsubscribe(self, channel: Channel):
        """
        Stop delivery to a channel returned by subscribe() and close it.
        Unknown or already released channels are ignored.
        """
        for key, (sub, rule) in list(self._subscriptions.items()):
            if sub is not channel:
                continue

            del self._subscriptions[key]
            channel.close()
            await self._remove_match(rule)
            self._logger.debug('Unsubscribed from %s on %s', key[1], key[0])


    async def _remove_match(self, rule: str):
        if self._bus is None or not getattr(self._bus, 'connected', True):
            return
        try:
            await self.call('RemoveMatch', 's', rule, interface=DBUS_SERVICE,
                            path=DBUS_PATH, out_signature='')
        except (TransportError, RemoteError) as err:
            # the daemon drops rules of a closed connection anyway
            self._logger.debug('RemoveMatch %s failed: %s', rule, err)


    async def close(self):
        """
        Release all subscriptions and drop the bus reference.
        Safe to call more than once.
        """
        if self._bus is None:
            return

        for channel, _ in list(self._subscriptions.values()):
            await self.unsubscribe(channel)

        if self._handler_installed:
            self._bus.remove_message_handler(self._on_message)
            self._handler_installed = False

        self._bus = None
        self._logger.debug('Closed client for %s on %s', self._interface, self._path)
