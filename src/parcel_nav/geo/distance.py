"""Great-circle helpers for position filtering."""
from __future__ import annotations

from math import asin, atan2, cos, degrees, radians, sin, sqrt

from parcel_nav.contracts.geometry import LatLng


EARTH_RADIUS_M = 6_371_000.0


def haversine_m(a: LatLng, b: LatLng) -> float:
    """Great-circle distance in metres between two WGS-84 points."""
    lat1r, lon1r, lat2r, lon2r = map(radians, [a.lat, a.lng, b.lat, b.lng])
    dlat = lat2r - lat1r
    dlon = lon2r - lon1r
    h = sin(dlat / 2) ** 2 + cos(lat1r) * cos(lat2r) * sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * 2 * atan2(sqrt(h), sqrt(1 - h))


def destination(origin: LatLng, distance_m: float, bearing_deg: float) -> LatLng:
    """Point reached by travelling *distance_m* from *origin* on *bearing_deg*.

    Used to build synthetic positions (mock providers, tests) at a known
    displacement.
    """
    d = distance_m / EARTH_RADIUS_M
    brg = radians(bearing_deg)
    lat1 = radians(origin.lat)
    lon1 = radians(origin.lng)

    lat2 = asin(sin(lat1) * cos(d) + cos(lat1) * sin(d) * cos(brg))
    lon2 = lon1 + atan2(sin(brg) * sin(d) * cos(lat1), cos(d) - sin(lat1) * sin(lat2))
    return LatLng(degrees(lat2), (degrees(lon2) + 540.0) % 360.0 - 180.0)
