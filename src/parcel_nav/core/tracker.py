from __future__ import annotations

import asyncio
import logging
from typing import Optional

from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.errors import LocationError, UnsupportedEnvironment
from parcel_nav.core.routing import RouteCoordinator
from parcel_nav.core.session import Session
from parcel_nav.geo.distance import haversine_m
from parcel_nav.providers.base import LocationSource

log = logging.getLogger(__name__)

USER_MARKER_TEXT = "You are here"


class LocationTracker:
    """
    Owns the single position watch.

    A sample counts only if it is the first one or lies strictly more than
    ``threshold_m`` from the last accepted sample; everything closer is GPS
    jitter and must not trigger a new route.
    """

    def __init__(
        self,
        session: Session,
        source: Optional[LocationSource],
        coordinator: RouteCoordinator,
        threshold_m: float = 160.0,
    ):
        self.session = session
        self.source = source
        self.coordinator = coordinator
        self.threshold_m = threshold_m

    @property
    def watching(self) -> bool:
        task = self.session.watch_task
        return task is not None and not task.done()

    def start(self) -> None:
        """Begin watching, or force a route refresh if already watching."""
        if self.source is None or not self.source.available:
            raise UnsupportedEnvironment("Geolocation is not supported in this environment.")

        if self.watching:
            log.debug("Watch already active; forcing route refresh")
            self.refresh()
            return

        self.session.watch_task = asyncio.get_running_loop().create_task(self._watch())
        log.info("Position watch started")

    def refresh(self) -> Optional[asyncio.Task]:
        """Recompute the route from the last accepted position, ignoring jitter."""
        s = self.session
        if s.selection is None or s.last_position is None:
            return None
        return self.coordinator.request_route(s.last_position, s.selection)

    async def stop(self) -> None:
        task = self.session.watch_task
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.session.watch_task = None

    def handle_position(self, position: LatLng) -> bool:
        """Process one raw sample. Returns True if it was accepted."""
        s = self.session
        last = s.last_position
        if last is not None:
            moved = haversine_m(last, position)
            if moved <= self.threshold_m:
                log.debug("Ignoring position %.0f m from last fix", moved)
                return False

        s.last_position = position
        s.user_marker = s.map.set_user_marker(position, USER_MARKER_TEXT)

        if s.selection is not None:
            self.coordinator.request_route(position, s.selection)
        return True

    async def _watch(self) -> None:
        s = self.session
        try:
            async for position in self.source.watch():
                self.handle_position(position)
        except (LocationError, UnsupportedEnvironment) as e:
            # not retried: the user has to ask for directions again
            log.warning("Position watch failed: %s", e)
            s.prompt.alert(f"Unable to get your location: {e}")
        except Exception as e:
            log.warning("Position source crashed", exc_info=True)
            s.prompt.alert(f"Unable to get your location: {e}")
        finally:
            if s.watch_task is asyncio.current_task():
                s.watch_task = None
