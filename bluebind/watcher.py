#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name
"""
Property change reconciliation

A PropertyWatcher consumes the PropertiesChanged signals of one
object, applies every change to the object's PropertyRecord and then
republishes it as a PropertyChangeEvent. The record is always written
before the event for the same property is published, so a consumer
reading the record on receipt never sees an older value.
"""
import asyncio
from enum import Enum
from typing import NamedTuple

from bluebind.channel import Channel
from bluebind.dbus_utils import PROPERTIES_CHANGED, PROPERTIES_INTERFACE
from bluebind.errors import BindingError
from bluebind.util import LOG_TRACE, ensure_future, get_logger


class WatchState(Enum):
    """
    Lifecycle of a PropertyWatcher
    """
    IDLE = 0
    SUBSCRIBED = 1
    RUNNING = 2
    STOPPING = 3
    CLOSED = 4


class PropertyChangeEvent(NamedTuple):
    """
    A single property update published by a watcher
    """
    interface: str
    name: str
    variant: object

    @property
    def value(self):
        """
        The new value, unwrapped from the variant
        """
        return self.variant.value


class PropertyWatcher:
    """
    Keeps a PropertyRecord in sync with the remote object

    :param client: BusClient of the watched object
    :param record: The PropertyRecord to update
    :param queue_size: Bound of the event channel, 0 for unbounded
    """

    def __init__(self, client, record, queue_size: int = 1):
        self._client = client
        self._record = record
        self._queue_size = queue_size

        self._logger = get_logger('bluebind.watcher')

        self._state = WatchState.IDLE
        self._input = None
        self._output = None
        self._task = None
        self._released = False


    @property
    def state(self) -> WatchState:
        return self._state


    @property
    def channel(self) -> Channel:
        """
        The event channel, None until watch() has been called
        """
        return self._output


    async def watch(self) -> Channel:
        """
        Subscribe to property changes and start the reconciliation task

        Calling watch() again while running returns the same channel.

        :return: Channel of PropertyChangeEvent
        """
        if self._state == WatchState.RUNNING:
            return self._output

        if self._state != WatchState.IDLE:
            raise BindingError('Watcher for %s is %s' \
                % (self._client.path, self._state.name.lower()))

        self._input = await self._client.subscribe(self._client.path, PROPERTIES_INTERFACE)
        self._output = Channel(self._queue_size)
        self._state = WatchState.SUBSCRIBED

        self._task = ensure_future(self._run())
        self._state = WatchState.RUNNING

        self._logger.debug('Watching %s on %s', self._client.interface, self._client.path)
        return self._output


    async def _run(self):
        try:
            async for envelope in self._input:
                if self._state != WatchState.RUNNING:
                    break
                if not await self._dispatch(envelope):
                    break
        finally:
            await self._release()


    async def _dispatch(self, envelope) -> bool:
        if envelope.member != PROPERTIES_CHANGED or envelope.path != self._client.path:
            return True

        body = envelope.body
        if len(body) != 3 or not isinstance(body[1], dict):
            self._logger.warning('Malformed %s signal on %s: %r',
                                 PROPERTIES_CHANGED, envelope.path, body)
            return True

        interface, changed, invalidated = body
        if interface != self._client.interface:
            return True

        self._logger.log(LOG_TRACE, '%s changed on %s: %r', interface, envelope.path, changed)

        for name, variant in changed.items():
            if not self._record.apply_change(name, variant):
                continue
            if not await self._output.put(PropertyChangeEvent(interface, name, variant)):
                return False

        if invalidated:
            self._logger.debug('Invalidated on %s: %s', envelope.path, ', '.join(invalidated))

        return True


    async def unwatch(self, channel: Channel = None):
        """
        Stop the reconciliation task and close the event channel.

        A channel which does not belong to this watcher is ignored,
        and so are calls after the watcher has stopped.
        """
        if channel is not None and channel is not self._output:
            return

        if self._state != WatchState.RUNNING:
            return

        self._state = WatchState.STOPPING
        self._output.close()

        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            # a consumer may have stalled, don't wait on its channel
            task.cancel()
            await asyncio.wait([task])

        # a task cancelled before its first step never reaches its finally
        await self._release()


    async def _release(self):
        if self._released:
            return

        self._released = True
        self._state = WatchState.STOPPING
        self._output.close()
        try:
            await self._client.unsubscribe(self._input)
        finally:
            self._state = WatchState.CLOSED
            self._logger.debug('Stopped watching %s on %s',
                               self._client.interface, self._client.path)
