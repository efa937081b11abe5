#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name
"""
Observation of objects appearing and disappearing under a service
"""
from bluebind.dbus_utils import OBJECT_MANAGER_INTERFACE
from bluebind.util import get_logger


class ObjectManagerObserver:
    """
    Shares one subscription to the InterfacesAdded and
    InterfacesRemoved signals of a service's object manager.

    :param client: BusClient used for the subscription (not owned)
    :param root: Path of the object manager, '/' for BlueZ
    """

    def __init__(self, client, root: str = '/'):
        self._client = client
        self._root = root
        self._channel = None

        self._logger = get_logger('bluebind.object_manager')


    @property
    def active(self) -> bool:
        return self._channel is not None


    async def subscribe(self) -> tuple:
        """
        Start receiving object manager signals

        Only one subscription is held; calling this again while it
        is active returns the same channel.

        :return: (channel of SignalEnvelope, cancel coroutine function)
        """
        if self._channel is None:
            self._channel = await self._client.subscribe(self._root, OBJECT_MANAGER_INTERFACE)
            self._logger.debug('Observing objects under %s', self._root)

        return self._channel, self.cancel


    async def cancel(self):
        """
        End the subscription. The consumer reads None before the
        subscription is released. Safe to call more than once.
        """
        channel = self._channel
        if channel is None:
            return

        self._channel = None
        channel.put_nowait(None)
        await self._client.unsubscribe(channel)
        self._logger.debug('Stopped observing objects under %s', self._root)


    async def get_managed_objects(self) -> dict:
        """
        Get all objects of the service with their interfaces and properties

        :return: {path: {interface: {name: Variant}}}
        """
        body = await self._client.call('GetManagedObjects',
                                       interface=OBJECT_MANAGER_INTERFACE,
                                       path=self._root,
                                       out_signature='a{oa{sa{sv}}}')
        return body[0]
