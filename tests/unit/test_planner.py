"""
Unit tests for RoutePlanner.plan_route() and the itinerary it returns.

Covers:
- full pipeline over fake collaborators (300 km scenario)
- itinerary shape: origin first, stops in distance order, destination last
- off-corridor stations reported in diagnostics but kept off the itinerary
- endpoint naming and free-text endpoints
- typed errors: invalid vehicle, unresolvable endpoint, no route, cancellation
- NoViableStops warning, event hook, summary() / to_dict()
"""

import json
import threading
from datetime import datetime

import pytest

from conftest import (
    FakeGeocoder,
    FakeRouteProvider,
    make_geometry,
    make_station,
    point_at_km,
)
from ev_route_planner.config import PlannerConfig
from ev_route_planner.errors import (
    GeocodeUnavailable,
    InvalidVehicleConfig,
    NoViableStopsWarning,
    PlanCancelled,
    RouteUnavailable,
)
from ev_route_planner.planner import RoutePlanner, StepKind
from ev_route_planner.providers import InMemoryStationRegistry
from ev_route_planner.selection import Landmark
from ev_route_planner.vehicle import Recommendation, VehicleConfig

ORIGIN = point_at_km(0.0)
DESTINATION = point_at_km(300.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_vehicle(current=80.0, final=20.0, max_range=300.0):
    return VehicleConfig(current_charge_pct=current, final_charge_pct=final,
                         max_range_km=max_range)


def scenario_stations():
    return [
        make_station("s100", 100.0, offset_km=2.0, name="Highway Charge Hub"),
        make_station("s250", 250.0, name="Lakeside Chargers"),
        make_station("s45", 180.0, offset_km=45.0, name="Hilltop EV Point"),
        make_station("s-far", 150.0, offset_km=500.0, name="Elsewhere"),
    ]


def make_planner(geocoder, stations=None, config=None, geometry=None, **kwargs):
    provider = FakeRouteProvider(default=geometry or make_geometry(300.0))
    registry = InMemoryStationRegistry(scenario_stations() if stations is None else stations)
    return RoutePlanner(
        provider,
        geocoder=geocoder,
        station_registry=registry,
        config=config or PlannerConfig(landmarks=[]),
        **kwargs,
    )


def stop_by_name(result, name):
    return next(s for s in result.stops if s.name == name)


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------

class TestPlanRoute:
    def test_itinerary_shape(self, named_geocoder):
        result = make_planner(named_geocoder).plan_route(ORIGIN, DESTINATION, make_vehicle())
        kinds = [s.kind for s in result.itinerary]
        assert kinds[0] is StepKind.ORIGIN
        assert kinds[-1] is StepKind.DESTINATION
        assert all(k is StepKind.STOP for k in kinds[1:-1])
        kms = [s.distance_along_route_km for s in result.stops]
        assert kms == sorted(kms)
        assert [s.name for s in result.stops] == [
            "Highway Charge Hub", "Ramgarh", "Sitapur", "Lakeside Chargers",
        ]
        assert not result.no_viable_stops

    def test_range_scenario(self, named_geocoder):
        result = make_planner(named_geocoder).plan_route(ORIGIN, DESTINATION, make_vehicle())

        required = stop_by_name(result, "Highway Charge Hub")
        assert required.is_registered
        assert required.is_reachable
        assert required.needs_charging_to_reach_destination
        assert required.recommendation is Recommendation.REQUIRED

        unreachable = stop_by_name(result, "Lakeside Chargers")
        assert unreachable.is_reachable is False
        assert unreachable.recommendation is Recommendation.UNREACHABLE

        settlement = stop_by_name(result, "Ramgarh")
        assert not settlement.is_registered
        assert settlement.recommendation is Recommendation.INFORMATIONAL
        assert settlement.address == "Madhya Pradesh"

    def test_off_corridor_station_only_in_diagnostics(self, named_geocoder):
        result = make_planner(named_geocoder).plan_route(ORIGIN, DESTINATION, make_vehicle())
        diag = result.diagnostics
        assert diag.stations_along_route == ["s100", "s250", "s45"]
        assert diag.station_candidates == 2
        assert "Hilltop EV Point" not in [s.name for s in result.itinerary]

    def test_stations_listed_within_corridor_bounds(self, named_geocoder):
        result = make_planner(named_geocoder).plan_route(ORIGIN, DESTINATION, make_vehicle())
        # The InMemory registry applies the bounds hint: the far station never arrives
        assert result.diagnostics.stations_listed == 3

    def test_station_beats_settlement_with_same_name(self, named_geocoder):
        stations = [make_station("rg", 121.0, name="Ramgarh")]
        result = make_planner(named_geocoder, stations=stations).plan_route(
            ORIGIN, DESTINATION, make_vehicle()
        )
        ramgarh = [s for s in result.stops if s.name == "Ramgarh"]
        assert len(ramgarh) == 1
        assert ramgarh[0].is_registered

    def test_landmark_included_from_config(self, named_geocoder):
        fort = point_at_km(60.0, offset_km=3.0)
        config = PlannerConfig(landmarks=[Landmark("Old Fort", fort.lat, fort.lng)])
        result = make_planner(named_geocoder, config=config).plan_route(
            ORIGIN, DESTINATION, make_vehicle()
        )
        assert "Old Fort" in [s.name for s in result.stops]
        assert result.diagnostics.landmark_candidates == 1

    def test_no_station_registry(self, named_geocoder):
        planner = RoutePlanner(
            FakeRouteProvider(default=make_geometry(300.0)),
            geocoder=named_geocoder,
            config=PlannerConfig(landmarks=[]),
        )
        result = planner.plan_route(ORIGIN, DESTINATION, make_vehicle())
        assert [s.name for s in result.stops] == ["Ramgarh", "Sitapur"]

    def test_arrival_estimates(self, named_geocoder):
        start = datetime(2024, 5, 1, 8, 0)
        result = make_planner(named_geocoder).plan_route(
            ORIGIN, DESTINATION, make_vehicle(), start_time=start
        )
        hub = stop_by_name(result, "Highway Charge Hub")
        assert hub.estimated_arrival == datetime(2024, 5, 1, 9, 15)
        # ~120 km of range to add at 50 km per hour
        assert hub.charge_duration_min == pytest.approx(144, abs=1)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class TestEndpoints:
    def test_names_default_to_route_addresses(self, named_geocoder):
        result = make_planner(named_geocoder).plan_route(ORIGIN, DESTINATION, make_vehicle())
        assert result.itinerary[0].name == "Start Town"
        assert result.itinerary[-1].name == "End City"

    def test_display_names_take_precedence(self, named_geocoder):
        result = make_planner(named_geocoder).plan_route(
            ORIGIN, DESTINATION, make_vehicle(),
            origin_name="Home", destination_name="Office",
        )
        assert result.itinerary[0].name == "Home"
        assert result.itinerary[0].address == "Start Town"
        assert result.itinerary[-1].name == "Office"

    def test_free_text_endpoints_are_geocoded(self, named_geocoder):
        named_geocoder.places = {
            "Ramtek": (ORIGIN, "Ramtek, Maharashtra, India"),
            "Sagar": (DESTINATION, "Sagar, Madhya Pradesh, India"),
        }
        provider = FakeRouteProvider(default=make_geometry(300.0))
        planner = RoutePlanner(provider, geocoder=named_geocoder,
                               config=PlannerConfig(landmarks=[]))
        result = planner.plan_route("Ramtek", "Sagar", make_vehicle())
        assert result.itinerary[0].name == "Ramtek, Maharashtra, India"
        assert result.itinerary[0].coordinate == ORIGIN
        assert result.itinerary[-1].name == "Sagar, Madhya Pradesh, India"

    def test_coordinate_text_needs_no_geocoder(self):
        planner = RoutePlanner(FakeRouteProvider(default=make_geometry(300.0)),
                               config=PlannerConfig(landmarks=[]))
        with pytest.warns(Warning):
            result = planner.plan_route("20.0,80.0", (22.0, 80.0), make_vehicle())
        assert result.itinerary[0].coordinate == (20.0, 80.0)

    def test_out_of_range_tuple_rejected_before_routing(self, named_geocoder):
        planner = make_planner(named_geocoder)
        with pytest.raises(ValueError):
            planner.plan_route((500.0, 900.0), DESTINATION, make_vehicle())
        assert planner.route_provider.calls == []

    def test_unresolvable_endpoint_is_fatal(self, named_geocoder):
        provider = FakeRouteProvider(default=make_geometry(300.0))
        planner = RoutePlanner(provider, geocoder=named_geocoder)
        with pytest.raises(GeocodeUnavailable):
            planner.plan_route("Atlantis", DESTINATION, make_vehicle())
        assert provider.calls == []


# ---------------------------------------------------------------------------
# Errors, warnings and observability
# ---------------------------------------------------------------------------

class TestPlanFailures:
    def test_invalid_vehicle_rejected_before_any_call(self, named_geocoder):
        planner = make_planner(named_geocoder)
        with pytest.raises(InvalidVehicleConfig):
            planner.plan_route(ORIGIN, DESTINATION, make_vehicle(max_range=0.0))
        assert planner.route_provider.calls == []

    def test_route_unavailable_propagates(self, named_geocoder):
        planner = RoutePlanner(
            FakeRouteProvider(default=RouteUnavailable("no road")),
            geocoder=named_geocoder,
        )
        with pytest.raises(RouteUnavailable):
            planner.plan_route(ORIGIN, DESTINATION, make_vehicle())

    def test_cancelled_request(self, named_geocoder):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(PlanCancelled):
            make_planner(named_geocoder).plan_route(
                ORIGIN, DESTINATION, make_vehicle(), cancel_event=cancel
            )

    def test_invalid_config_rejected(self, named_geocoder):
        with pytest.raises(ValueError):
            make_planner(named_geocoder, config=PlannerConfig(
                landmarks=[], strict_tolerance_km=60.0
            ))


class TestNoViableStops:
    def test_only_endpoints_and_warning(self):
        # 80 km route: no settlement sample, no stations, no landmarks
        planner = make_planner(FakeGeocoder(), stations=[], geometry=make_geometry(80.0))
        with pytest.warns(NoViableStopsWarning):
            result = planner.plan_route(ORIGIN, point_at_km(80.0), make_vehicle())
        assert result.no_viable_stops
        assert [s.kind for s in result.itinerary] == [StepKind.ORIGIN, StepKind.DESTINATION]
        assert "No viable stops" in result.summary()


class TestObservability:
    def test_event_hook_sees_each_stage(self, named_geocoder):
        events = []
        planner = make_planner(
            named_geocoder,
            event_hook=lambda event_type, details, extra: events.append(event_type),
        )
        planner.plan_route(ORIGIN, DESTINATION, make_vehicle())
        assert events == [
            "ROUTE_SELECTED", "STATIONS_FILTERED", "SETTLEMENTS_SAMPLED",
            "CANDIDATES_SELECTED", "PLAN_COMPLETE",
        ]

    def test_summary_lists_stops(self, named_geocoder):
        result = make_planner(named_geocoder).plan_route(ORIGIN, DESTINATION, make_vehicle())
        text = result.summary()
        assert text.startswith("Start Town -> End City")
        assert "Highway Charge Hub [station]" in text
        assert "300 km (4 hours)" in text

    def test_to_dict_is_json_serializable(self, named_geocoder):
        result = make_planner(named_geocoder).plan_route(
            ORIGIN, DESTINATION, make_vehicle(), start_time=datetime(2024, 5, 1, 8, 0)
        )
        data = json.loads(json.dumps(result.to_dict()))
        assert data["leg_summary"] == {"distance_text": "300 km", "duration_text": "4 hours"}
        assert data["itinerary"][0]["kind"] == "origin"
        assert data["itinerary"][1]["recommendation"] == Recommendation.REQUIRED.value
        assert len(data["map_overlay_points"]) == len(data["itinerary"])
        assert data["map_overlay_points"][1]["kind"] == "registered_station"
