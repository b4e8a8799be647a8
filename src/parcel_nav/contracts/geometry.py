# path: parcel-nav/src/parcel_nav/contracts/geometry.py

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Tuple


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


@dataclass(frozen=True)
class Bounds:
    south: float
    west: float
    north: float
    east: float

    @property
    def center(self) -> LatLng:
        return LatLng((self.south + self.north) / 2.0, (self.west + self.east) / 2.0)

    @property
    def south_west(self) -> LatLng:
        return LatLng(self.south, self.west)

    @property
    def north_east(self) -> LatLng:
        return LatLng(self.north, self.east)

    @classmethod
    def from_points(cls, points: Iterable[LatLng]) -> Bounds:
        pts = list(points)
        if not pts:
            raise ValueError("Bounds need at least one point")
        lats = [p.lat for p in pts]
        lngs = [p.lng for p in pts]
        return cls(south=min(lats), west=min(lngs), north=max(lats), east=max(lngs))
