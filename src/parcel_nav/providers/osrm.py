"""OSRM routing provider (project-osrm.org compatible /route/v1 API)."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from parcel_nav.cache.keys import osrm_route
from parcel_nav.cache.redis_client import cache_get_json, cache_set_json
from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.errors import RouteUnavailable
from parcel_nav.core.models import RouteCandidate, RouteRequest, RouteSummary
from parcel_nav.providers.base import RoutingProvider
from parcel_nav.providers.http import HTTPClient

log = logging.getLogger(__name__)


class OSRMRoutingProvider(RoutingProvider):
    """
    Routes come from the OSRM HTTP API:

      GET {base}/{profile}/{lng},{lat};{lng},{lat}?overview=full&geometries=geojson

    Responses are cached in Redis (when configured) keyed by the rounded
    endpoints, so re-evaluating the same leg is free.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        profile: Optional[str] = None,
        http: Optional[HTTPClient] = None,
        cache_ttl_s: Optional[int] = None,
    ):
        from parcel_nav.config import settings

        self.base_url = (base_url or settings.osrm_base_url).rstrip("/")
        self.profile = profile or settings.osrm_profile
        self.http = http or HTTPClient.from_settings()
        self.cache_ttl_s = cache_ttl_s if cache_ttl_s is not None else settings.ttl_route

    def _url(self, request: RouteRequest) -> str:
        o, d = request.origin, request.destination
        return f"{self.base_url}/{self.profile}/{o.lng},{o.lat};{d.lng},{d.lat}"

    def _fetch(self, request: RouteRequest) -> Dict[str, Any]:
        key = osrm_route(self.profile, request.origin, request.destination)
        cached = cache_get_json(key)
        if cached is not None:
            return cached

        data = self.http.get_json(
            self._url(request),
            params={"overview": "full", "geometries": "geojson", "alternatives": "false"},
        )
        if data.get("code") == "Ok":
            cache_set_json(key, data, self.cache_ttl_s)
        return data

    async def route(self, request: RouteRequest) -> list[RouteCandidate]:
        try:
            data = await asyncio.to_thread(self._fetch, request)
        except requests.RequestException as e:
            raise RouteUnavailable(f"OSRM request failed: {e}") from e

        if data.get("code") != "Ok":
            raise RouteUnavailable(f"OSRM returned {data.get('code')}: {data.get('message', '')}")

        candidates = parse_osrm_routes(data)
        if not candidates:
            raise RouteUnavailable("OSRM returned no routes")
        return candidates


def parse_osrm_routes(data: Dict[str, Any]) -> List[RouteCandidate]:
    out: List[RouteCandidate] = []
    for route in data.get("routes") or []:
        coords = (route.get("geometry") or {}).get("coordinates") or []
        if not coords:
            continue
        out.append(
            RouteCandidate(
                coordinates=[LatLng(lat=float(c[1]), lng=float(c[0])) for c in coords],
                summary=RouteSummary(
                    total_distance_m=float(route.get("distance", 0.0)),
                    total_time_s=float(route.get("duration", 0.0)),
                ),
            )
        )
    return out
