"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import pytest

from parcel_nav.config import Settings
from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.engine import ParcelNavigator
from parcel_nav.core.models import RouteCandidate, RouteRequest, RouteSummary
from parcel_nav.core.store import ParcelStore
from parcel_nav.display.map_surface import InMemoryMap
from parcel_nav.display.prompt import AutoPrompt
from parcel_nav.providers.base import LocationSource, RoutingProvider
from parcel_nav.providers.location import QueueLocationSource


def square_feature(parcel_id: str, acreage: float, lat: float, lng: float, size: float = 0.001) -> dict:
    ring = [
        [lng, lat],
        [lng + size, lat],
        [lng + size, lat + size],
        [lng, lat + size],
        [lng, lat],
    ]
    return {
        "type": "Feature",
        "properties": {"parcel_num": parcel_id, "acreage": acreage, "owner": "County"},
        "geometry": {"type": "Polygon", "coordinates": [ring]},
    }


def write_collection(path: Path, features: List[dict]) -> Path:
    path.write_text(json.dumps({"type": "FeatureCollection", "features": features}), encoding="utf-8")
    return path


def make_route(points: int = 5, distance_m: float = 1873.0, time_s: float = 754.0) -> RouteCandidate:
    coords = [LatLng(-0.92 + i * 0.001, 37.11 + i * 0.001) for i in range(points)]
    return RouteCandidate(
        coordinates=coords,
        summary=RouteSummary(total_distance_m=distance_m, total_time_s=time_s),
    )


class StaticRoutingProvider(RoutingProvider):
    """Always answers with the same route; records every request."""

    def __init__(self, route: Optional[RouteCandidate] = None):
        self.result = route or make_route()
        self.requests: List[RouteRequest] = []

    async def route(self, request: RouteRequest) -> list[RouteCandidate]:
        self.requests.append(request)
        return [self.result]


class GatedRoutingProvider(RoutingProvider):
    """Each request blocks until the test resolves it, in any order."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []

    async def route(self, request: RouteRequest) -> list[RouteCandidate]:
        fut = asyncio.get_running_loop().create_future()
        self.calls.append((request, fut))
        return await fut

    def resolve(self, index: int, route: RouteCandidate) -> None:
        self.calls[index][1].set_result([route])

    def reject(self, index: int, exc: Exception) -> None:
        self.calls[index][1].set_exception(exc)


@pytest.fixture
def cfg() -> Settings:
    return Settings(prompt_delay_s=0.0, redis_url="")


@pytest.fixture
def parcels_path(tmp_path: Path) -> Path:
    return write_collection(
        tmp_path / "parcels.geojson",
        [
            square_feature("Muranga/1", 2.5, -0.920, 37.110),
            square_feature("Muranga/2", 4.0, -0.925, 37.115),
            square_feature("Muranga/12", 1.25, -0.930, 37.120),
            square_feature("Muranga/120", 3.0, -0.935, 37.125),
            square_feature("Kiharu/12", 7.0, -0.940, 37.130),
        ],
    )


@pytest.fixture
def store(parcels_path: Path) -> ParcelStore:
    s = ParcelStore()
    s.load(str(parcels_path))
    return s


@pytest.fixture
def make_nav(store: ParcelStore, cfg: Settings):
    def _make(
        provider: Optional[RoutingProvider] = None,
        location: Optional[LocationSource] = None,
        prompt: Optional[AutoPrompt] = None,
    ) -> ParcelNavigator:
        return ParcelNavigator(
            InMemoryMap(),
            prompt or AutoPrompt(answer=False),
            provider or StaticRoutingProvider(),
            location if location is not None else QueueLocationSource(),
            cfg=cfg,
            store=store,
        )

    return _make
