"""Location sources: where position samples come from."""
from __future__ import annotations

import asyncio
from typing import AsyncIterator, Iterable, Optional, Union

from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.errors import LocationError, UnsupportedEnvironment
from parcel_nav.providers.base import LocationSource


class QueueLocationSource(LocationSource):
    """
    Push-driven source: ``push()`` a position (or ``fail()`` with an error)
    and the active watch receives it. ``drain()`` waits until every pushed
    item has been consumed by the watcher.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Union[LatLng, LocationError]] = asyncio.Queue()
        self.subscriptions = 0

    def push(self, position: LatLng) -> None:
        self._queue.put_nowait(position)

    def fail(self, error: LocationError) -> None:
        self._queue.put_nowait(error)

    async def drain(self) -> None:
        await self._queue.join()

    async def watch(self) -> AsyncIterator[LatLng]:
        self.subscriptions += 1
        while True:
            item = await self._queue.get()
            try:
                if isinstance(item, LocationError):
                    raise item
                yield item
            finally:
                # runs once the consumer asks for the next item
                self._queue.task_done()


class ScriptedLocationSource(LocationSource):
    """Replays a fixed sequence of positions, optionally ending in an error."""

    def __init__(
        self,
        positions: Iterable[LatLng],
        interval_s: float = 0.0,
        error: Optional[LocationError] = None,
    ):
        self.positions = list(positions)
        self.interval_s = interval_s
        self.error = error
        self.subscriptions = 0

    async def watch(self) -> AsyncIterator[LatLng]:
        self.subscriptions += 1
        for pos in self.positions:
            if self.interval_s:
                await asyncio.sleep(self.interval_s)
            yield pos
        if self.error is not None:
            raise self.error


class NoLocationSource(LocationSource):
    """Environment without any location capability."""

    @property
    def available(self) -> bool:
        return False

    async def watch(self) -> AsyncIterator[LatLng]:
        raise UnsupportedEnvironment("Geolocation is not supported in this environment.")
        yield  # pragma: no cover  (makes this an async generator)
