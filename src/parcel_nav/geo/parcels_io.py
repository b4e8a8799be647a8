"""Read parcel feature collections (GeoJSON or ESRI shapefile) into Parcels."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
import shapefile  # pyshp
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from parcel_nav.contracts.geometry import Bounds, LatLng
from parcel_nav.core.errors import DataLoadFailure
from parcel_nav.core.models import Parcel
from parcel_nav.providers.http import HTTPClient

log = logging.getLogger(__name__)


def _is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def read_feature_collection(source: str, http: Optional[HTTPClient] = None) -> Dict[str, Any]:
    """Fetch *source* and return it as a GeoJSON FeatureCollection dict."""
    try:
        if _is_url(source):
            client = http or HTTPClient(user_agent="ParcelNav")
            return client.get_json(source)

        path = Path(source)
        if path.suffix.lower() == ".shp":
            return _read_shapefile(path)
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError, requests.RequestException, shapefile.ShapefileException) as e:
        raise DataLoadFailure(f"Could not read parcels from {source}: {e}") from e


def _read_shapefile(path: Path) -> Dict[str, Any]:
    reader = shapefile.Reader(str(path))
    features = []
    for sr in reader.iterShapeRecords():
        features.append(
            {
                "type": "Feature",
                "properties": sr.record.as_dict(),
                "geometry": sr.shape.__geo_interface__,
            }
        )
    return {"type": "FeatureCollection", "features": features}


def _exterior_rings(geom: BaseGeometry) -> List[tuple]:
    if geom.geom_type == "Polygon":
        polys = [geom]
    elif geom.geom_type == "MultiPolygon":
        polys = list(geom.geoms)
    else:
        raise ValueError(f"expected Polygon or MultiPolygon, got {geom.geom_type}")

    rings = []
    for poly in polys:
        # GeoJSON is (lng, lat)
        rings.append(tuple(LatLng(float(y), float(x)) for x, y, *_ in poly.exterior.coords))
    return rings


def parcels_from_geojson(
    data: Dict[str, Any],
    id_field: str = "parcel_num",
    acreage_field: str = "acreage",
) -> List[Parcel]:
    """
    Convert a FeatureCollection into Parcels.

    Any malformed feature rejects the whole collection.
    """
    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise DataLoadFailure("Parcel source is not a GeoJSON FeatureCollection")

    features = data.get("features")
    if not isinstance(features, list):
        raise DataLoadFailure("FeatureCollection has no 'features' list")

    out: List[Parcel] = []
    for idx, feat in enumerate(features):
        if not isinstance(feat, dict):
            raise DataLoadFailure(f"Feature #{idx} is not an object")
        props = feat.get("properties") or {}
        if not isinstance(props, dict):
            raise DataLoadFailure(f"Feature #{idx} properties are not an object")
        props = dict(props)

        parcel_id = props.pop(id_field, None)
        if not isinstance(parcel_id, str) or not parcel_id.strip():
            raise DataLoadFailure(f"Feature #{idx} has no '{id_field}' identifier")

        try:
            acreage = float(props.pop(acreage_field))
        except (KeyError, TypeError, ValueError) as e:
            raise DataLoadFailure(f"Feature {parcel_id} has no numeric '{acreage_field}'") from e

        try:
            geom = shape(feat["geometry"])
            rings = _exterior_rings(geom)
        except Exception as e:
            raise DataLoadFailure(f"Feature {parcel_id} has invalid geometry: {e}") from e

        minx, miny, maxx, maxy = geom.bounds
        out.append(
            Parcel(
                parcel_id=parcel_id.strip(),
                acreage=acreage,
                rings=tuple(rings),
                bounds=Bounds(south=miny, west=minx, north=maxy, east=maxx),
                properties=props,
            )
        )

    log.debug("Parsed %d parcel feature(s)", len(out))
    return out
