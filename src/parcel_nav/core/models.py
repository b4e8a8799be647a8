from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, Field

from parcel_nav.contracts.geometry import Bounds, LatLng


@dataclass(frozen=True)
class Parcel:
    """A land unit, immutable after load. Identity is the identifier."""

    parcel_id: str  # "<region>/<number>"
    acreage: float = field(compare=False)
    rings: Tuple[Tuple[LatLng, ...], ...] = field(compare=False, repr=False)
    bounds: Bounds = field(compare=False, repr=False)
    properties: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def region(self) -> str:
        return self.parcel_id.split("/", 1)[0]

    @property
    def number(self) -> str:
        parts = self.parcel_id.split("/", 1)
        return parts[1] if len(parts) > 1 else parts[0]

    @property
    def center(self) -> LatLng:
        # Bounds center, not polygon centroid: popups and route targets use this
        return self.bounds.center

    def to_feature(self, id_field: str = "parcel_num", acreage_field: str = "acreage") -> Dict[str, Any]:
        """GeoJSON Feature with [lng, lat] coordinate order."""
        props = dict(self.properties)
        props[id_field] = self.parcel_id
        props[acreage_field] = self.acreage
        return {
            "type": "Feature",
            "properties": props,
            "geometry": {
                "type": "MultiPolygon",
                "coordinates": [[[[p.lng, p.lat] for p in ring]] for ring in self.rings],
            },
        }


class RouteRequest(BaseModel):
    """Read-only route between two points; waypoints are never editable."""

    model_config = {"frozen": True}

    origin: LatLng
    destination: LatLng
    draggable_waypoints: bool = False
    add_waypoints: bool = False
    route_while_dragging: bool = False


class RouteSummary(BaseModel):
    total_distance_m: float = Field(..., ge=0)
    total_time_s: float = Field(..., ge=0)

    @property
    def distance_km_text(self) -> str:
        return f"{self.total_distance_m / 1000:.2f}"

    @property
    def minutes(self) -> int:
        # half-up, not banker's rounding
        return int(math.floor(self.total_time_s / 60 + 0.5))


class RouteCandidate(BaseModel):
    coordinates: List[LatLng] = Field(..., min_length=1)
    summary: RouteSummary

    @property
    def midpoint(self) -> LatLng:
        return self.coordinates[len(self.coordinates) // 2]

    @property
    def bounds(self) -> Bounds:
        return Bounds.from_points(self.coordinates)
