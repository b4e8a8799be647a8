"""FastAPI backend serving parcel data and the viewer page."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from parcel_nav.config import settings
from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.engine import ParcelNavigator
from parcel_nav.core.errors import DataLoadFailure
from parcel_nav.core.store import ParcelStore
from parcel_nav.display.map_surface import InMemoryMap
from parcel_nav.display.prompt import AutoPrompt
from parcel_nav.providers.location import NoLocationSource
from parcel_nav.providers.mock import MockRoutingProvider
from parcel_nav.tools.make_map import render_html

log = logging.getLogger(__name__)

app = FastAPI(title="Parcel Nav", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Parcel store singleton (loaded on first use)
# ---------------------------------------------------------------------------
_store: Optional[ParcelStore] = None


def get_store() -> ParcelStore:
    global _store
    if _store is None:
        # a failed load is kept too, so it is reported once and never retried
        _store = ParcelStore(id_field=settings.id_field, acreage_field=settings.acreage_field)
        try:
            _store.load(settings.parcels_source)
        except DataLoadFailure as e:
            log.error("Parcel load failed: %s", e)
    if not _store.loaded:
        raise HTTPException(status_code=503, detail="Parcel data unavailable")
    return _store


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class LatLngOut(BaseModel):
    lat: float
    lng: float


class ParcelOut(BaseModel):
    parcel_id: str
    region: str
    number: str
    acreage: float
    center: LatLngOut
    bounds: List[List[float]]  # [[south, west], [north, east]]
    properties: Dict[str, Any] = {}


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health():
    redis_ok = False
    from parcel_nav.cache.redis_client import get_redis

    r = get_redis()
    if r is not None:
        try:
            r.ping()
            redis_ok = True
        except Exception as exc:
            log.warning("Redis ping failed: %s", exc)

    return {"status": "ok", "parcels_loaded": _store is not None and _store.loaded, "redis": redis_ok}


@app.get("/parcels")
def list_parcels(store: ParcelStore = Depends(get_store)):
    return {
        "type": "FeatureCollection",
        "features": [p.to_feature(store.id_field, store.acreage_field) for p in store],
    }


@app.get("/parcels/{region}/{number}", response_model=ParcelOut)
def get_parcel(region: str, number: str, store: ParcelStore = Depends(get_store)):
    parcel = store.find_by_id(f"{region}/{number}")
    if parcel is None:
        raise HTTPException(status_code=404, detail="Parcel not found")

    b = parcel.bounds
    c = parcel.center
    return ParcelOut(
        parcel_id=parcel.parcel_id,
        region=parcel.region,
        number=parcel.number,
        acreage=parcel.acreage,
        center=LatLngOut(lat=c.lat, lng=c.lng),
        bounds=[[b.south, b.west], [b.north, b.east]],
        properties=parcel.properties,
    )


@app.get("/map", response_class=HTMLResponse)
async def map_page(parcel: Optional[str] = None, store: ParcelStore = Depends(get_store)):
    """Viewer snapshot, optionally with one parcel (bare number) selected."""
    surface = InMemoryMap(center=LatLng(settings.map_center_lat, settings.map_center_lng), zoom=settings.map_zoom)
    nav = ParcelNavigator(surface, AutoPrompt(answer=False), MockRoutingProvider(), NoLocationSource(), store=store)
    # server-side snapshot: no directions prompt
    nav.session.routing_enabled = False

    if parcel and nav.search(parcel) is None:
        raise HTTPException(status_code=404, detail="Parcel not found")
    return render_html(store, surface)
