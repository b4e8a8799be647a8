"""Tests for the command-line runner."""

from __future__ import annotations

import argparse
import io
from pathlib import Path

import pytest
from rich.console import Console

from parcel_nav.cli import _parse_latlng, _run
from parcel_nav.contracts.geometry import LatLng


def make_args(parcels: Path, out: Path, **overrides) -> argparse.Namespace:
    base = dict(
        parcels=str(parcels),
        search=None,
        click=None,
        routing="mock",
        at=None,
        positions=None,
        interval=0.0,
        yes=True,
        out=str(out),
        debug=False,
    )
    base.update(overrides)
    return argparse.Namespace(**base)


def test_parse_latlng() -> None:
    assert _parse_latlng("-0.92,37.11") == LatLng(-0.92, 37.11)
    with pytest.raises(argparse.ArgumentTypeError):
        _parse_latlng("north")


@pytest.mark.asyncio
async def test_run_routes_and_writes_map(parcels_path: Path, tmp_path: Path) -> None:
    out = tmp_path / "map.html"
    buf = io.StringIO()
    args = make_args(parcels_path, out, search="2", at=[LatLng(-0.93, 37.10)])

    code = await _run(args, Console(file=buf, width=200))

    assert code == 0
    text = buf.getvalue()
    assert "Muranga/2" in text
    assert "displayed" in text
    html = out.read_text(encoding="utf-8")
    assert "route-popup" in html


@pytest.mark.asyncio
async def test_run_without_positions_reports_unsupported(parcels_path: Path, tmp_path: Path) -> None:
    buf = io.StringIO()
    args = make_args(parcels_path, tmp_path / "map.html", click="Muranga/1")

    code = await _run(args, Console(file=buf, width=200))

    assert code == 0
    assert "not supported" in buf.getvalue()


@pytest.mark.asyncio
async def test_run_with_bad_source(tmp_path: Path) -> None:
    buf = io.StringIO()
    args = make_args(tmp_path / "missing.geojson", tmp_path / "map.html", search="1")
    assert await _run(args, Console(file=buf, width=200)) == 1
    assert "Could not load parcel data" in buf.getvalue()
