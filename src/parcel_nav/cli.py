from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List

from rich.console import Console
from rich.table import Table

from parcel_nav.config import settings
from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.engine import ParcelNavigator, build_navigator
from parcel_nav.core.errors import NotFound
from parcel_nav.display.prompt import ConsolePrompt
from parcel_nav.providers.location import NoLocationSource, ScriptedLocationSource
from parcel_nav.tools.make_map import write_html


def _parse_latlng(text: str) -> LatLng:
    try:
        lat, lng = (float(x) for x in text.split(","))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected 'lat,lng', got '{text}'") from e
    return LatLng(lat, lng)


def _read_positions(path: Path) -> List[LatLng]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return [LatLng(float(p[0]), float(p[1])) for p in data]


def _summary_table(nav: ParcelNavigator) -> Table:
    s = nav.session
    table = Table(title="Parcel Navigator")
    table.add_column("Parcel")
    table.add_column("Acreage")
    table.add_column("Position")
    table.add_column("Route")
    table.add_column("Distance km")
    table.add_column("Time min")

    sel = s.selection
    pos = s.last_position
    route = s.route
    table.add_row(
        sel.parcel_id if sel else "-",
        f"{sel.acreage:g}" if sel else "-",
        f"{pos.lat:.5f}, {pos.lng:.5f}" if pos else "-",
        s.route_state.value,
        route.summary.distance_km_text if route else "",
        str(route.summary.minutes) if route else "",
    )
    return table


async def _run(args: argparse.Namespace, console: Console) -> int:
    positions: List[LatLng] = list(args.at or [])
    if args.positions:
        positions.extend(_read_positions(Path(args.positions)))

    location = (
        ScriptedLocationSource(positions, interval_s=args.interval)
        if positions
        else NoLocationSource()
    )
    prompt = ConsolePrompt(console, assume_yes=args.yes)
    nav = build_navigator(prompt, routing=args.routing, location=location)

    if not await nav.startup(args.parcels):
        return 1

    if args.search:
        nav.search(args.search)
    elif args.click:
        try:
            nav.click(args.click)
        except NotFound as e:
            prompt.alert(str(e))

    await nav.selection.wait_prompt()
    watch = nav.session.watch_task
    if watch is not None:
        await watch
    await nav.coordinator.wait_idle()

    console.print(_summary_table(nav))

    if args.out:
        out = write_html(nav.store, nav.session.map, Path(args.out))
        console.print(f"Saved: {out.resolve()}")

    await nav.shutdown()
    return 0


def main() -> None:
    ap = argparse.ArgumentParser(description="Select a parcel and route to it.")
    ap.add_argument("--parcels", default=settings.parcels_source, help="GeoJSON/shapefile path or URL")
    ap.add_argument("--search", help=f"Parcel number within the '{settings.region_prefix}' region")
    ap.add_argument("--click", help="Full parcel identifier, as if clicked on the map")
    ap.add_argument("--routing", default="osrm", help="osrm | osrm:driving | mock")
    ap.add_argument("--at", type=_parse_latlng, action="append", help="Position 'lat,lng' (repeatable)")
    ap.add_argument("--positions", help="JSON file with [[lat, lng], ...]")
    ap.add_argument("--interval", type=float, default=0.0, help="Seconds between scripted positions")
    ap.add_argument("--yes", action="store_true", help="Accept the directions prompt")
    ap.add_argument("--out", default="trips/parcel_map.html", help="Write an HTML snapshot here")
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [parcel-nav] %(levelname)s %(message)s",
    )

    raise SystemExit(asyncio.run(_run(args, Console())))


if __name__ == "__main__":
    main()
