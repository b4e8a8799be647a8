"""The map the core draws on.

The core never touches tiles or the DOM; it only asks a ``MapSurface`` to
style parcels, open/close popups, draw route lines, move the user marker
and fit the viewport. ``InMemoryMap`` keeps all of that as plain state, which
the HTML snapshot renderer and the tests read back.
"""
from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from parcel_nav.contracts.geometry import Bounds, LatLng
from parcel_nav.core.models import Parcel


@dataclass
class Popup:
    id: int
    anchor: LatLng
    content: str
    auto_close: bool = True
    close_on_click: bool = True
    class_name: Optional[str] = None


@dataclass
class RouteLine:
    id: int
    coordinates: List[LatLng]
    style: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Marker:
    position: LatLng
    popup_text: Optional[str] = None


@dataclass(frozen=True)
class ViewportFit:
    bounds: Bounds
    max_zoom: Optional[int] = None
    padding: Optional[Tuple[int, int]] = None


class MapSurface(ABC):
    @abstractmethod
    def reset_parcel_styles(self) -> None: ...

    @abstractmethod
    def highlight_parcel(self, parcel: Parcel, style: Dict[str, Any]) -> None: ...

    @abstractmethod
    def open_popup(
        self,
        anchor: LatLng,
        content: str,
        *,
        auto_close: bool = True,
        close_on_click: bool = True,
        class_name: Optional[str] = None,
    ) -> Popup: ...

    @abstractmethod
    def close_popup(self, popup: Popup) -> None: ...

    @abstractmethod
    def add_route_line(self, coordinates: Sequence[LatLng], style: Dict[str, Any]) -> RouteLine: ...

    @abstractmethod
    def remove_route_line(self, line: RouteLine) -> None: ...

    @abstractmethod
    def set_user_marker(self, position: LatLng, popup_text: Optional[str] = None) -> Marker:
        """Create the marker on first call, move it afterwards."""

    @abstractmethod
    def fit_bounds(
        self,
        bounds: Bounds,
        *,
        max_zoom: Optional[int] = None,
        padding: Optional[Tuple[int, int]] = None,
    ) -> None: ...


class InMemoryMap(MapSurface):
    def __init__(self, center: Optional[LatLng] = None, zoom: int = 14):
        self.center = center
        self.zoom = zoom
        self.highlighted: Dict[str, Dict[str, Any]] = {}
        self.popups: Dict[int, Popup] = {}
        self.route_lines: Dict[int, RouteLine] = {}
        self.user_marker: Optional[Marker] = None
        self.fits: List[ViewportFit] = []
        self._ids = itertools.count(1)

    def reset_parcel_styles(self) -> None:
        self.highlighted.clear()

    def highlight_parcel(self, parcel: Parcel, style: Dict[str, Any]) -> None:
        self.highlighted[parcel.parcel_id] = dict(style)

    def open_popup(self, anchor, content, *, auto_close=True, close_on_click=True, class_name=None) -> Popup:
        popup = Popup(
            id=next(self._ids),
            anchor=anchor,
            content=content,
            auto_close=auto_close,
            close_on_click=close_on_click,
            class_name=class_name,
        )
        self.popups[popup.id] = popup
        return popup

    def close_popup(self, popup: Popup) -> None:
        self.popups.pop(popup.id, None)

    def add_route_line(self, coordinates, style) -> RouteLine:
        line = RouteLine(id=next(self._ids), coordinates=list(coordinates), style=dict(style))
        self.route_lines[line.id] = line
        return line

    def remove_route_line(self, line: RouteLine) -> None:
        self.route_lines.pop(line.id, None)

    def set_user_marker(self, position: LatLng, popup_text: Optional[str] = None) -> Marker:
        if self.user_marker is None:
            self.user_marker = Marker(position=position, popup_text=popup_text)
        else:
            self.user_marker.position = position
        return self.user_marker

    def fit_bounds(self, bounds, *, max_zoom=None, padding=None) -> None:
        self.fits.append(ViewportFit(bounds=bounds, max_zoom=max_zoom, padding=padding))

    # ---- read-back helpers ----

    @property
    def last_fit(self) -> Optional[ViewportFit]:
        return self.fits[-1] if self.fits else None

    def popups_with_class(self, class_name: Optional[str]) -> List[Popup]:
        return [p for p in self.popups.values() if p.class_name == class_name]
