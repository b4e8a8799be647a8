from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.models import RouteCandidate, RouteRequest


class RoutingProvider(ABC):
    """Compute candidate routes between two points."""

    @abstractmethod
    async def route(self, request: RouteRequest) -> list[RouteCandidate]:
        """Return one or more candidates, best first.

        Raises ``RouteUnavailable`` when no route exists.
        """
        raise NotImplementedError


class LocationSource(ABC):
    """Continuous stream of the user's position."""

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    def watch(self) -> AsyncIterator[LatLng]:
        """Start a subscription; iterate it for positions.

        May raise ``LocationError`` mid-stream (permission denied etc.).
        """
        raise NotImplementedError
