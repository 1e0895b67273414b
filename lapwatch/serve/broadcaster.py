"""Fan engine snapshots out to websocket clients using asyncio queues."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional


class Broadcaster:
    def __init__(self, maxsize: int = 256):
        self.connections: List[asyncio.Queue] = []
        self.maxsize = maxsize
        self._lock = asyncio.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Remember the loop that owns the queues, for :meth:`publish_threadsafe`."""

        self._loop = loop

    async def register(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.maxsize)
        async with self._lock:
            self.connections.append(queue)
        return queue

    async def unregister(self, queue: asyncio.Queue) -> None:
        async with self._lock:
            if queue in self.connections:
                self.connections.remove(queue)

    def publish_threadsafe(self, message: Dict[str, Any]) -> None:
        """Schedule ``message`` for every client from a non-loop thread."""

        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._fan_out, message)

    def _fan_out(self, message: Dict[str, Any]) -> None:
        for queue in list(self.connections):
            self._offer(queue, message)

    @staticmethod
    def _offer(queue: asyncio.Queue, message: Dict[str, Any]) -> None:
        # slow clients only need the latest state
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(message)


__all__ = ["Broadcaster"]
