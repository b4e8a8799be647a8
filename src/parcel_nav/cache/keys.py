"""Redis key naming conventions for the parcel-nav cache layer."""
from __future__ import annotations

from parcel_nav.contracts.geometry import LatLng

_PREFIX = "pn"


# ── OSRM ─────────────────────────────────────────────────────────────────

def osrm_route(profile: str, origin: LatLng, destination: LatLng) -> str:
    """Key for an OSRM /route response; ~1 m precision on both ends."""
    return (
        f"{_PREFIX}:osrm:{profile}:"
        f"{origin.lat:.5f},{origin.lng:.5f};{destination.lat:.5f},{destination.lng:.5f}"
    )
