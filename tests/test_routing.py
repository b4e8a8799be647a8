"""Tests for the route coordinator state machine."""

from __future__ import annotations

import asyncio

import pytest

from parcel_nav.contracts.geometry import LatLng
from parcel_nav.core.errors import RouteUnavailable
from parcel_nav.core.models import RouteSummary
from parcel_nav.core.routing import ROUTE_POPUP_CLASS
from parcel_nav.core.session import RouteState
from parcel_nav.providers.mock import MockRoutingProvider

from conftest import GatedRoutingProvider, StaticRoutingProvider, make_route

HERE = LatLng(-0.915, 37.105)


def route_popups(nav):
    return nav.session.map.popups_with_class(ROUTE_POPUP_CLASS)


class TestRouteSummary:
    def test_distance_two_decimals(self) -> None:
        assert RouteSummary(total_distance_m=1873.0, total_time_s=0).distance_km_text == "1.87"
        assert RouteSummary(total_distance_m=500.0, total_time_s=0).distance_km_text == "0.50"

    @pytest.mark.parametrize(
        "seconds,minutes",
        [(754.0, 13), (750.0, 13), (749.0, 12), (150.0, 3), (90.0, 2), (0.0, 0)],
    )
    def test_minutes_round_half_up(self, seconds: float, minutes: int) -> None:
        assert RouteSummary(total_distance_m=0, total_time_s=seconds).minutes == minutes

    def test_midpoint_is_floor_half(self) -> None:
        route = make_route(points=5)
        assert route.midpoint == route.coordinates[2]
        route = make_route(points=4)
        assert route.midpoint == route.coordinates[2]


class TestUpdateRoute:
    @pytest.mark.asyncio
    async def test_draws_line_popup_and_fits(self, make_nav, store) -> None:
        provider = StaticRoutingProvider(make_route(points=5, distance_m=1873.0, time_s=754.0))
        nav = make_nav(provider=provider)
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)

        route = await nav.coordinator.update_route(HERE, parcel)

        m = nav.session.map
        assert route is provider.result
        assert nav.session.route_state is RouteState.DISPLAYED
        assert len(m.route_lines) == 1
        line = next(iter(m.route_lines.values()))
        assert line.style == {"color": "red", "weight": 4}

        popups = route_popups(nav)
        assert len(popups) == 1
        popup = popups[0]
        assert popup.anchor == route.coordinates[2]
        assert "1.87 km" in popup.content
        assert "13 mins" in popup.content
        assert popup.auto_close is False
        assert popup.close_on_click is False

        assert m.last_fit.padding == (50, 50)
        assert m.last_fit.bounds == route.bounds

    @pytest.mark.asyncio
    async def test_request_targets_parcel_center_read_only(self, make_nav, store) -> None:
        provider = StaticRoutingProvider()
        nav = make_nav(provider=provider)
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)

        await nav.coordinator.update_route(HERE, parcel)

        req = provider.requests[0]
        assert req.origin == HERE
        assert req.destination == parcel.center
        assert not req.draggable_waypoints
        assert not req.add_waypoints
        assert not req.route_while_dragging

    @pytest.mark.asyncio
    async def test_recompute_replaces_previous_route(self, make_nav, store) -> None:
        nav = make_nav()
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)

        await nav.coordinator.update_route(HERE, parcel)
        await nav.coordinator.update_route(LatLng(-0.91, 37.10), parcel)

        assert len(nav.session.map.route_lines) == 1
        assert len(route_popups(nav)) == 1

    @pytest.mark.asyncio
    async def test_request_retires_old_route_before_response(self, make_nav, store) -> None:
        provider = GatedRoutingProvider()
        nav = make_nav(provider=provider)
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)

        first = nav.coordinator.request_route(HERE, parcel)
        await asyncio.sleep(0)
        provider.resolve(0, make_route())
        await first
        assert len(nav.session.map.route_lines) == 1

        nav.coordinator.request_route(LatLng(-0.91, 37.10), parcel)
        # old artifacts gone synchronously, before the provider answers
        assert nav.session.map.route_lines == {}
        assert route_popups(nav) == []
        assert nav.session.route_state is RouteState.REQUESTED

        await asyncio.sleep(0)
        provider.resolve(1, make_route())
        await nav.coordinator.wait_idle()
        assert nav.session.route_state is RouteState.DISPLAYED

    @pytest.mark.asyncio
    async def test_failure_leaves_no_artifacts(self, make_nav, store) -> None:
        nav = make_nav(provider=MockRoutingProvider(fail=True))
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)

        result = await nav.coordinator.update_route(HERE, parcel)

        assert result is None
        assert nav.session.map.route_lines == {}
        assert route_popups(nav) == []
        assert nav.session.route_state is RouteState.NO_ROUTE

    @pytest.mark.asyncio
    async def test_unexpected_provider_error_ends_in_no_route(self, make_nav, store) -> None:
        provider = GatedRoutingProvider()
        nav = make_nav(provider=provider)
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)

        task = nav.coordinator.request_route(HERE, parcel)
        await asyncio.sleep(0)
        provider.reject(0, KeyError("routes"))
        await nav.coordinator.wait_idle()

        assert await task is None
        assert nav.session.map.route_lines == {}
        assert route_popups(nav) == []
        assert nav.session.route_state is RouteState.NO_ROUTE

    @pytest.mark.asyncio
    async def test_update_route_does_not_raise_provider_error(self, make_nav, store) -> None:
        provider = GatedRoutingProvider()
        nav = make_nav(provider=provider)
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)

        pending = asyncio.ensure_future(nav.coordinator.update_route(HERE, parcel))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        provider.reject(0, AttributeError("'list' object has no attribute 'get'"))

        assert await pending is None
        assert nav.session.route_state is RouteState.NO_ROUTE

    @pytest.mark.asyncio
    async def test_failure_after_success_clears_old_route(self, make_nav, store) -> None:
        provider = GatedRoutingProvider()
        nav = make_nav(provider=provider)
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)

        nav.coordinator.request_route(HERE, parcel)
        await asyncio.sleep(0)
        provider.resolve(0, make_route())
        await nav.coordinator.wait_idle()

        nav.coordinator.request_route(LatLng(-0.91, 37.10), parcel)
        await asyncio.sleep(0)
        provider.reject(1, RouteUnavailable("no road"))
        await nav.coordinator.wait_idle()

        assert nav.session.map.route_lines == {}
        assert route_popups(nav) == []
        assert nav.session.route is None


class TestStaleResponses:
    @pytest.mark.asyncio
    async def test_older_response_arriving_last_is_dropped(self, make_nav, store) -> None:
        provider = GatedRoutingProvider()
        nav = make_nav(provider=provider)
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)

        nav.coordinator.request_route(HERE, parcel)
        nav.coordinator.request_route(LatLng(-0.91, 37.10), parcel)
        await asyncio.sleep(0)
        assert len(provider.calls) == 2

        newer = make_route(points=3, distance_m=1000.0, time_s=600.0)
        older = make_route(points=7, distance_m=9000.0, time_s=5400.0)
        provider.resolve(1, newer)
        await asyncio.sleep(0)
        provider.resolve(0, older)
        await nav.coordinator.wait_idle()

        assert nav.session.route is newer
        assert len(nav.session.map.route_lines) == 1
        popups = route_popups(nav)
        assert len(popups) == 1
        assert "1.00 km" in popups[0].content

    @pytest.mark.asyncio
    async def test_response_after_clear_is_dropped(self, make_nav, store) -> None:
        provider = GatedRoutingProvider()
        nav = make_nav(provider=provider)
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)

        nav.coordinator.request_route(HERE, parcel)
        await asyncio.sleep(0)
        nav.selection.clear()
        provider.resolve(0, make_route())
        await nav.coordinator.wait_idle()

        assert nav.session.map.route_lines == {}
        assert route_popups(nav) == []
        assert nav.session.route_state is RouteState.CLEARED

    @pytest.mark.asyncio
    async def test_response_for_replaced_selection_is_dropped(self, make_nav, store) -> None:
        provider = GatedRoutingProvider()
        nav = make_nav(provider=provider)
        nav.selection.select_by_interaction(store.find_by_id("Muranga/2"))

        nav.coordinator.request_route(HERE, store.find_by_id("Muranga/2"))
        await asyncio.sleep(0)
        nav.selection.select_by_interaction(store.find_by_id("Muranga/1"))
        provider.resolve(0, make_route())
        await nav.coordinator.wait_idle()

        assert nav.session.map.route_lines == {}
        assert nav.session.selection.parcel_id == "Muranga/1"


class TestClear:
    @pytest.mark.asyncio
    async def test_clear_removes_line_and_summary(self, make_nav, store) -> None:
        nav = make_nav()
        parcel = store.find_by_id("Muranga/2")
        nav.selection.select_by_interaction(parcel)
        await nav.coordinator.update_route(HERE, parcel)
        assert nav.session.map.route_lines

        nav.selection.clear()

        assert nav.session.map.route_lines == {}
        assert route_popups(nav) == []
        assert nav.session.route_state is RouteState.CLEARED
        assert nav.session.selection is None
