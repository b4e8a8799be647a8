from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.models import Parcel, RouteCandidate
from parcel_nav.display.map_surface import MapSurface, Marker, Popup, RouteLine
from parcel_nav.display.prompt import UserPrompt


class RouteState(str, Enum):
    NO_ROUTE = "no_route"
    REQUESTED = "requested"
    DISPLAYED = "displayed"
    CLEARED = "cleared"


@dataclass
class Session:
    """
    All mutable viewer state, owned by one object for the life of the app.

    Only the selection controller, route coordinator and location tracker
    write to it; everything else reads.
    """

    map: MapSurface
    prompt: UserPrompt

    # selection
    selection: Optional[Parcel] = None
    parcel_popup: Optional[Popup] = None

    # route
    route_state: RouteState = RouteState.NO_ROUTE
    route_generation: int = 0
    route: Optional[RouteCandidate] = None
    route_line: Optional[RouteLine] = None
    route_popup: Optional[Popup] = None

    # location
    last_position: Optional[LatLng] = None
    user_marker: Optional[Marker] = None
    watch_task: Optional[asyncio.Task] = None
    routing_enabled: bool = True
    search_enabled: bool = True
