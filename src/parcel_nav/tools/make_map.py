from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from parcel_nav.core.store import ParcelStore
from parcel_nav.display.map_surface import InMemoryMap


PARCEL_STYLE = {"color": "#ff7800", "weight": 2, "opacity": 0.7, "fillOpacity": 0.2}

LEGEND = [
    ("#ff7800", "Parcel"),
    ("blue", "Selected Parcel"),
    ("red", "Route"),
]


def _leaflet_style(style: Dict[str, Any]) -> Dict[str, Any]:
    # fill_opacity -> fillOpacity
    out = {}
    for k, v in style.items():
        head, *rest = k.split("_")
        out[head + "".join(w.capitalize() for w in rest)] = v
    return out


def snapshot(store: ParcelStore, surface: InMemoryMap) -> Dict[str, Any]:
    """Everything the page needs, as JSON-ready data."""
    features = []
    for p in store:
        feat = p.to_feature(store.id_field, store.acreage_field)
        style = dict(PARCEL_STYLE)
        if p.parcel_id in surface.highlighted:
            style.update(_leaflet_style(surface.highlighted[p.parcel_id]))
        feat["properties"]["_style"] = style
        features.append(feat)

    popups = [
        {
            "lat": pp.anchor.lat,
            "lng": pp.anchor.lng,
            "html": pp.content,
            "autoClose": pp.auto_close,
            "closeOnClick": pp.close_on_click,
            "className": pp.class_name or "",
        }
        for pp in surface.popups.values()
    ]
    lines = [
        {"coords": [[c.lat, c.lng] for c in ln.coordinates], "style": _leaflet_style(ln.style)}
        for ln in surface.route_lines.values()
    ]

    marker: Optional[Dict[str, Any]] = None
    if surface.user_marker is not None:
        m = surface.user_marker
        marker = {"lat": m.position.lat, "lng": m.position.lng, "text": m.popup_text or ""}

    view: Optional[Dict[str, Any]] = None
    fit = surface.last_fit
    if fit is not None:
        pad = list(fit.padding) if fit.padding else None
        view = {
            "bounds": [[fit.bounds.south, fit.bounds.west], [fit.bounds.north, fit.bounds.east]],
            "maxZoom": fit.max_zoom,
            "padding": pad,
        }

    center = surface.center
    return {
        "center": [center.lat, center.lng] if center else [0.0, 0.0],
        "zoom": surface.zoom,
        "parcels": {"type": "FeatureCollection", "features": features},
        "popups": popups,
        "lines": lines,
        "marker": marker,
        "view": view,
    }


def _legend_html() -> str:
    rows: List[str] = []
    for color, label in LEGEND:
        rows.append(
            f'<div class="legend-item"><div class="legend-color" style="background:{color};"></div>{label}</div>'
        )
    return "".join(rows)


def render_html(store: ParcelStore, surface: InMemoryMap, title: str = "Parcel Navigator") -> str:
    data = snapshot(store, surface)
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
  <style>
    body {{ margin: 0; font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; }}
    #map {{ height: 100vh; width: 100vw; }}
    .legend {{ background: white; padding: 6px 8px; border-radius: 4px; font-size: 12px; }}
    .legend-item {{ display: flex; align-items: center; margin: 2px 0; }}
    .legend-color {{ width: 14px; height: 14px; margin-right: 6px; opacity: 0.7; }}
  </style>
</head>
<body>
<div id="map"></div>
<script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
<script>
  const data = {json.dumps(data)};

  const map = L.map('map', {{ center: data.center, zoom: data.zoom }});

  L.tileLayer('https://{{s}}.tile.openstreetmap.org/{{z}}/{{x}}/{{y}}.png', {{
    maxZoom: 19,
    attribution: '&copy; OpenStreetMap contributors'
  }}).addTo(map);

  L.geoJSON(data.parcels, {{
    style: (f) => f.properties._style
  }}).addTo(map);

  data.lines.forEach((ln) => L.polyline(ln.coords, ln.style).addTo(map));

  data.popups.forEach((p) => {{
    L.popup({{ autoClose: p.autoClose, closeOnClick: p.closeOnClick, className: p.className }})
      .setLatLng([p.lat, p.lng])
      .setContent(p.html)
      .addTo(map);
  }});

  if (data.marker) {{
    L.marker([data.marker.lat, data.marker.lng]).addTo(map).bindPopup(data.marker.text);
  }}

  if (data.view) {{
    const opts = {{}};
    if (data.view.maxZoom) opts.maxZoom = data.view.maxZoom;
    if (data.view.padding) opts.padding = data.view.padding;
    map.fitBounds(data.view.bounds, opts);
  }}

  const legend = L.control({{ position: 'bottomleft' }});
  legend.onAdd = function () {{
    const div = L.DomUtil.create('div', 'legend');
    div.innerHTML = `{_legend_html()}`;
    return div;
  }};
  legend.addTo(map);
</script>
</body>
</html>
"""


def write_html(store: ParcelStore, surface: InMemoryMap, out_path: Path) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(render_html(store, surface), encoding="utf-8")
    return out_path
