#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name

import asyncio


class Channel:
    """
    Asynchronous single-consumer channel

    A thin wrapper around asyncio.Queue which can be closed.
    Reading None ends the stream: it is returned once the channel
    is closed and drained, or when a producer puts the None sentinel.
    Producers are ignored after close(), so a late sentinel or event
    is never delivered twice.

    A maxsize of 0 makes the channel unbounded. A bounded channel
    makes the producer wait for the consumer.
    """

    def __init__(self, maxsize: int = 0):
        self._queue = asyncio.Queue(maxsize)
        self._closed = False


    @property
    def closed(self) -> bool:
        """
        True once close() has been called
        """
        return self._closed


    @property
    def maxsize(self) -> int:
        return self._queue.maxsize


    def qsize(self) -> int:
        return self._queue.qsize()


    async def put(self, item) -> bool:
        """
        Put an item, waiting for room if the channel is bounded

        :return: False if the channel is closed and the item was dropped
        """
        if self._closed:
            return False
        await self._queue.put(item)
        return True


    def put_nowait(self, item) -> bool:
        """
        Put an item without waiting

        :return: False if the channel is closed and the item was dropped
        """
        if self._closed:
            return False
        self._queue.put_nowait(item)
        return True


    async def get(self):
        """
        Get the next item, or None when the stream has ended
        """
        if self._closed and self._queue.empty():
            return None
        return await self._queue.get()


    def close(self):
        """
        Close the channel and wake up a waiting consumer.
        Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            # the consumer sees the end after draining
            pass


    def __aiter__(self):
        return self


    async def __anext__(self):
        item = await self.get()
        if item is None:
            raise StopAsyncIteration
        return item
