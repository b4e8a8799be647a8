from __future__ import annotations

import asyncio
import logging
from typing import Optional

from parcel_nav.config import Settings, settings as default_settings
from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.errors import DataLoadFailure, NotFound
from parcel_nav.core.models import Parcel
from parcel_nav.core.routing import RouteCoordinator
from parcel_nav.core.selection import SelectionController
from parcel_nav.core.session import Session
from parcel_nav.core.store import ParcelStore
from parcel_nav.core.tracker import LocationTracker
from parcel_nav.display.map_surface import InMemoryMap, MapSurface
from parcel_nav.display.prompt import UserPrompt
from parcel_nav.providers.base import LocationSource, RoutingProvider

log = logging.getLogger(__name__)


class ParcelNavigator:
    """Wires the store, session and the three core components together."""

    def __init__(
        self,
        map_surface: MapSurface,
        prompt: UserPrompt,
        routing: RoutingProvider,
        location: Optional[LocationSource],
        cfg: Optional[Settings] = None,
        store: Optional[ParcelStore] = None,
    ):
        self.cfg = cfg or default_settings
        self.store = store or ParcelStore(id_field=self.cfg.id_field, acreage_field=self.cfg.acreage_field)
        self.session = Session(map=map_surface, prompt=prompt)
        self.coordinator = RouteCoordinator(self.session, routing, padding_px=self.cfg.route_padding_px)
        self.tracker = LocationTracker(
            self.session, location, self.coordinator, threshold_m=self.cfg.jitter_threshold_m
        )
        self.selection = SelectionController(
            self.session,
            self.store,
            self.tracker,
            self.coordinator,
            region_prefix=self.cfg.region_prefix,
            prompt_delay_s=self.cfg.prompt_delay_s,
            max_zoom=self.cfg.max_zoom,
        )

    async def startup(self, source: Optional[str] = None) -> bool:
        """Load parcels once. A failure is reported and disables search."""
        src = source or self.cfg.parcels_source
        try:
            await asyncio.to_thread(self.store.load, src)
        except DataLoadFailure as e:
            log.error("Parcel load failed: %s", e)
            self.session.search_enabled = False
            self.session.prompt.alert(f"Could not load parcel data: {e}")
            return False
        return True

    def click(self, parcel_id: str) -> Parcel:
        """A map-feature activation on the parcel drawn for *parcel_id*."""
        parcel = self.store.find_by_id(parcel_id)
        if parcel is None:
            raise NotFound(parcel_id)
        self.selection.select_by_interaction(parcel)
        return parcel

    def search(self, raw_input: str) -> Optional[Parcel]:
        return self.selection.search(raw_input)

    def clear(self) -> None:
        self.selection.clear()

    async def settle(self) -> None:
        """Wait for the routing prompt and any in-flight routes."""
        await self.selection.wait_prompt()
        await self.coordinator.wait_idle()

    async def shutdown(self) -> None:
        await self.tracker.stop()
        await self.coordinator.wait_idle()


def build_routing_provider(name: str) -> RoutingProvider:
    """
    "osrm"            -> OSRM with the configured profile
    "osrm:driving"    -> OSRM driving profile
    "mock"            -> deterministic straight-line routes
    """
    token, _, profile = name.strip().lower().partition(":")

    if token == "osrm":
        from parcel_nav.providers.osrm import OSRMRoutingProvider

        return OSRMRoutingProvider(profile=profile or None)
    if token == "mock":
        from parcel_nav.providers.mock import MockRoutingProvider

        return MockRoutingProvider()
    raise ValueError(f"Unknown routing provider: '{name}' (supported: osrm, osrm:<profile>, mock)")


def build_navigator(
    prompt: UserPrompt,
    routing: str | RoutingProvider = "osrm",
    location: Optional[LocationSource] = None,
    cfg: Optional[Settings] = None,
) -> ParcelNavigator:
    cfg = cfg or default_settings
    provider = build_routing_provider(routing) if isinstance(routing, str) else routing
    surface = InMemoryMap(center=LatLng(cfg.map_center_lat, cfg.map_center_lng), zoom=cfg.map_zoom)
    return ParcelNavigator(surface, prompt, provider, location, cfg=cfg)
