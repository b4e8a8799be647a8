from __future__ import annotations

import asyncio
import logging
from typing import Optional

from parcel_nav.core.errors import NotFound, UnsupportedEnvironment
from parcel_nav.core.models import Parcel
from parcel_nav.core.routing import RouteCoordinator
from parcel_nav.core.session import RouteState, Session
from parcel_nav.core.store import ParcelStore
from parcel_nav.core.tracker import LocationTracker

log = logging.getLogger(__name__)

HIGHLIGHT_STYLE = {"color": "blue", "weight": 3, "fill_opacity": 0.3}
ROUTING_QUESTION = "Do you want directions to this parcel?"
NOT_FOUND_MESSAGE = "Parcel not found!"
SEARCH_DISABLED_MESSAGE = "Parcel data is unavailable; search is disabled."


def parcel_popup_html(parcel: Parcel) -> str:
    return f"<strong>Parcel:</strong> {parcel.number}<br><strong>Acreage:</strong> {parcel.acreage:g}"


class SelectionController:
    """
    Owns the current selection and its attribute popup.

    Every transition retires the previous selection completely (popup,
    route, styling) before the new one is applied, in one synchronous step.
    """

    def __init__(
        self,
        session: Session,
        store: ParcelStore,
        tracker: LocationTracker,
        coordinator: RouteCoordinator,
        region_prefix: str = "Muranga",
        prompt_delay_s: float = 0.3,
        max_zoom: int = 18,
    ):
        self.session = session
        self.store = store
        self.tracker = tracker
        self.coordinator = coordinator
        self.region_prefix = region_prefix
        self.prompt_delay_s = prompt_delay_s
        self.max_zoom = max_zoom
        self._pending_prompt: Optional[asyncio.Task] = None

    # ---- transitions ----

    def clear(self) -> None:
        s = self.session
        self._cancel_prompt()
        if s.parcel_popup is not None:
            s.map.close_popup(s.parcel_popup)
            s.parcel_popup = None
        self.coordinator.clear()
        s.map.reset_parcel_styles()
        s.selection = None

    def select_by_interaction(self, parcel: Parcel) -> None:
        s = self.session
        self.clear()

        s.selection = parcel
        s.route_state = RouteState.NO_ROUTE
        s.map.highlight_parcel(parcel, HIGHLIGHT_STYLE)
        s.parcel_popup = s.map.open_popup(parcel.center, parcel_popup_html(parcel))
        s.map.fit_bounds(parcel.bounds, max_zoom=self.max_zoom)
        log.info("Selected parcel %s", parcel.parcel_id)

        if s.routing_enabled:
            # visual feedback first, routing question a beat later
            self._pending_prompt = asyncio.get_running_loop().create_task(self._offer_routing(parcel))

    def resolve(self, identifier: str) -> Parcel:
        parcel = self.store.find_by_id(identifier)
        if parcel is None:
            raise NotFound(identifier)
        return parcel

    def select_by_id(self, identifier: str) -> Optional[Parcel]:
        """Select by full identifier; unknown ids leave the state untouched."""
        s = self.session
        if not (self.store.loaded and s.search_enabled):
            s.prompt.alert(SEARCH_DISABLED_MESSAGE)
            return None

        try:
            parcel = self.resolve(identifier)
        except NotFound as e:
            log.info("%s", e)
            s.prompt.alert(NOT_FOUND_MESSAGE)
            return None

        self.select_by_interaction(parcel)
        return parcel

    def search(self, raw_input: str) -> Optional[Parcel]:
        """Search-box entry point: a bare parcel number within the region."""
        text = (raw_input or "").strip()
        if not text:
            return None
        return self.select_by_id(f"{self.region_prefix}/{text}")

    # ---- routing gate ----

    def start_routing(self) -> None:
        s = self.session
        try:
            self.tracker.start()
        except UnsupportedEnvironment as e:
            log.warning("Routing disabled: %s", e)
            s.routing_enabled = False
            s.prompt.alert(str(e))

    async def _offer_routing(self, parcel: Parcel) -> None:
        s = self.session
        await asyncio.sleep(self.prompt_delay_s)
        if s.selection != parcel or not s.routing_enabled:
            return
        if await s.prompt.confirm(ROUTING_QUESTION):
            self.start_routing()

    async def wait_prompt(self) -> None:
        """Wait for the pending routing prompt (if any) to finish."""
        task = self._pending_prompt
        if task is not None and not task.done():
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _cancel_prompt(self) -> None:
        task = self._pending_prompt
        self._pending_prompt = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
