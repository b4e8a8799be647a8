from __future__ import annotations

import asyncio

from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.errors import RouteUnavailable
from parcel_nav.core.models import RouteCandidate, RouteRequest, RouteSummary
from parcel_nav.geo.distance import haversine_m
from parcel_nav.providers.base import RoutingProvider


class MockRoutingProvider(RoutingProvider):
    """
    Deterministic fake routes so the viewer runs end-to-end without OSRM.
    The "route" is the straight line between the endpoints, sampled into
    ``steps`` segments; distance is inflated by ``detour`` to look road-like.
    """

    def __init__(
        self,
        speed_mps: float = 1.4,  # walking pace
        detour: float = 1.3,
        steps: int = 10,
        delay_s: float = 0.0,
        fail: bool = False,
    ):
        self.speed_mps = speed_mps
        self.detour = detour
        self.steps = max(1, steps)
        self.delay_s = delay_s
        self.fail = fail
        self.requests: list[RouteRequest] = []

    async def route(self, request: RouteRequest) -> list[RouteCandidate]:
        self.requests.append(request)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.fail:
            raise RouteUnavailable("mock provider configured to fail")

        o, d = request.origin, request.destination
        coords = [
            LatLng(o.lat + (d.lat - o.lat) * i / self.steps, o.lng + (d.lng - o.lng) * i / self.steps)
            for i in range(self.steps + 1)
        ]
        dist = haversine_m(o, d) * self.detour

        return [
            RouteCandidate(
                coordinates=coords,
                summary=RouteSummary(
                    total_distance_m=round(dist, 1),
                    total_time_s=round(dist / self.speed_mps, 1),
                ),
            )
        ]
