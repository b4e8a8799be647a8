"""Centralized settings for the parcel-nav viewer."""
from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "PARCEL_NAV_"}

    # Parcel data: local path, http(s) URL or .shp
    parcels_source: str = "data/parcels.geojson"
    region_prefix: str = "Muranga"
    id_field: str = "parcel_num"
    acreage_field: str = "acreage"

    # Initial viewport (Murang'a town)
    map_center_lat: float = -0.92
    map_center_lng: float = 37.11
    map_zoom: int = 14
    max_zoom: int = 18

    # Selection / tracking behaviour
    jitter_threshold_m: float = 160.0  # samples closer than this are ignored
    prompt_delay_s: float = 0.3        # selection feedback -> routing prompt
    route_padding_px: int = 50

    # Routing provider
    osrm_base_url: str = "https://router.project-osrm.org/route/v1"
    osrm_profile: str = "foot"         # "foot" | "driving"
    http_timeout_s: int = 20
    http_tries: int = 3
    http_backoff_s: float = 0.8
    user_agent: str = "ParcelNav/0.1.0 (contact: you@example.com)"

    # Redis; empty string disables the cache
    redis_url: str = ""
    ttl_route: int = 600               # OSRM route response


settings = Settings()
