"""Route coordinator: one live route from the user to the selected parcel.

State per selection::

    NO_ROUTE -> REQUESTED -> DISPLAYED -> (REQUESTED | CLEARED)
                    |
                    +-> NO_ROUTE (provider found nothing or failed)

Every request gets a generation number. A response is drawn only if its
generation is still the newest and the selection has not changed; older
responses arriving late are dropped.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.errors import RouteUnavailable
from parcel_nav.core.models import Parcel, RouteCandidate, RouteRequest
from parcel_nav.core.session import RouteState, Session
from parcel_nav.providers.base import RoutingProvider

log = logging.getLogger(__name__)

ROUTE_LINE_STYLE = {"color": "red", "weight": 4}
ROUTE_POPUP_CLASS = "route-popup"


def route_popup_html(route: RouteCandidate) -> str:
    s = route.summary
    return (
        f"<strong>Distance:</strong> {s.distance_km_text} km<br>"
        f"<strong>Estimated time:</strong> {s.minutes} mins"
    )


class RouteCoordinator:
    def __init__(self, session: Session, provider: RoutingProvider, padding_px: int = 50):
        self.session = session
        self.provider = provider
        self.padding_px = padding_px
        self._tasks: Set[asyncio.Task] = set()

    # ---- artifact lifecycle ----

    def retire(self) -> None:
        """Remove the drawn route line and its summary popup, if any."""
        s = self.session
        if s.route_line is not None:
            s.map.remove_route_line(s.route_line)
            s.route_line = None
        if s.route_popup is not None:
            s.map.close_popup(s.route_popup)
            s.route_popup = None
        s.route = None

    def clear(self) -> None:
        """Retire artifacts and invalidate any request still in flight."""
        self.retire()
        self.session.route_generation += 1
        self.session.route_state = RouteState.CLEARED

    # ---- requests ----

    def request_route(self, position: LatLng, parcel: Parcel) -> asyncio.Task:
        """Retire the current route now and start computing a new one.

        Retirement is synchronous so no stale line survives past the
        triggering event; the returned task resolves to the drawn route or
        ``None``.
        """
        s = self.session
        self.retire()
        s.route_generation += 1
        s.route_state = RouteState.REQUESTED

        request = RouteRequest(origin=position, destination=parcel.center)
        task = asyncio.get_running_loop().create_task(self._run(s.route_generation, parcel, request))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def update_route(self, position: LatLng, parcel: Parcel) -> Optional[RouteCandidate]:
        return await self.request_route(position, parcel)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _is_current(self, generation: int, parcel: Parcel) -> bool:
        s = self.session
        return generation == s.route_generation and s.selection == parcel

    async def _run(self, generation: int, parcel: Parcel, request: RouteRequest) -> Optional[RouteCandidate]:
        try:
            candidates = await self.provider.route(request)
        except RouteUnavailable as e:
            log.warning("No route to %s: %s", parcel.parcel_id, e)
            if self._is_current(generation, parcel):
                self.session.route_state = RouteState.NO_ROUTE
            return None
        except Exception:
            log.warning("Routing provider failed for %s", parcel.parcel_id, exc_info=True)
            if self._is_current(generation, parcel):
                self.session.route_state = RouteState.NO_ROUTE
            return None

        if not self._is_current(generation, parcel):
            log.debug(
                "Dropping stale route #%d to %s (current #%d)",
                generation, parcel.parcel_id, self.session.route_generation,
            )
            return None

        if not candidates:
            log.warning("Routing provider returned no candidates for %s", parcel.parcel_id)
            self.session.route_state = RouteState.NO_ROUTE
            return None

        return self._draw(candidates[0])

    def _draw(self, route: RouteCandidate) -> RouteCandidate:
        s = self.session
        self.retire()

        s.route = route
        s.route_line = s.map.add_route_line(route.coordinates, ROUTE_LINE_STYLE)
        s.map.fit_bounds(route.bounds, padding=(self.padding_px, self.padding_px))
        s.route_popup = s.map.open_popup(
            route.midpoint,
            route_popup_html(route),
            auto_close=False,
            close_on_click=False,
            class_name=ROUTE_POPUP_CLASS,
        )
        s.route_state = RouteState.DISPLAYED

        log.info(
            "Route drawn: %s km, %d min",
            route.summary.distance_km_text, route.summary.minutes,
        )
        return route

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("Route update failed", exc_info=exc)
