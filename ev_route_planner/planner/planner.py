"""
Route Planner - main user-facing class of the engine.

Typical usage::

    from ev_route_planner import CsvStationRegistry, RoutePlanner, VehicleConfig
    from ev_route_planner.providers.google_maps import (
        GoogleMapsGeocoder, GoogleMapsRouteProvider, create_client,
    )

    client = create_client()
    planner = RoutePlanner(
        GoogleMapsRouteProvider(client),
        geocoder=GoogleMapsGeocoder(client),
        station_registry=CsvStationRegistry("stations.csv"),
    )
    result = planner.plan_route(
        "Delhi", "Agra",
        VehicleConfig(current_charge_pct=80, final_charge_pct=20, max_range_km=300),
    )
    print(result.summary())

One call runs the whole pipeline: route strategy selection, corridor
filtering of registered stations, settlement sampling, landmark matching,
deduplication, downsampling, range evaluation and itinerary assembly.
Nothing is published until every stage has completed.
"""

from __future__ import annotations

import logging
import threading
import warnings
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ev_route_planner.concurrency import check_cancelled
from ev_route_planner.config import PlannerConfig
from ev_route_planner.errors import GeocodeUnavailable, NoViableStopsWarning
from ev_route_planner.geometry.corridor import CorridorFilter
from ev_route_planner.geometry.geo_utils import Coordinate, is_valid_coordinate
from ev_route_planner.geometry.route_path import RoutePath
from ev_route_planner.providers.base import Geocoder, RouteGeometryProvider, StationRegistry
from ev_route_planner.routing.strategy import RouteOptions, StrategyAttempt, select_route
from ev_route_planner.selection.candidates import (
    aggregate_candidates,
    count_by_source,
    landmark_candidates,
    settlement_candidates,
    station_candidates,
)
from ev_route_planner.selection.dedup import deduplicate, downsample, target_stop_count
from ev_route_planner.vehicle.range_model import VehicleConfig, evaluate_waypoints

from .itinerary import ItineraryStep, OverlayPoint, StepKind, build_itinerary, overlay_points

logger = logging.getLogger(__name__)

Endpoint = Union[Coordinate, Tuple[float, float], str]
EventHook = Callable[[str, str, Optional[Dict[str, Any]]], None]


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LegSummary:
    distance_text: str
    duration_text: str


@dataclass
class PlanDiagnostics:
    """Counts and intermediate sets recorded while planning."""
    route_length_km: float = 0.0
    path_points: int = 0
    strategy_attempts: List[StrategyAttempt] = field(default_factory=list)
    used_fallback_route: bool = False
    stations_listed: int = 0
    stations_skipped_unavailable: int = 0
    stations_along_route: List[str] = field(default_factory=list)
    station_candidates: int = 0
    settlement_samples: int = 0
    settlement_fallback_names: int = 0
    settlement_names_discarded: int = 0
    landmark_candidates: int = 0
    candidates_by_source: Dict[str, int] = field(default_factory=dict)
    after_dedup: int = 0
    target_stops: int = 0
    after_downsample: int = 0


@dataclass
class PlanResult:
    """
    Complete result of one planning call.

    ``itinerary`` always starts with the origin and ends with the
    destination.  ``no_viable_stops`` is True when nothing passed strict
    corridor acceptance; the itinerary then holds only the two endpoints.
    """
    leg_summary: LegSummary
    itinerary: List[ItineraryStep]
    map_overlay_points: List[OverlayPoint]
    diagnostics: PlanDiagnostics
    no_viable_stops: bool = False

    @property
    def stops(self) -> List[ItineraryStep]:
        return [s for s in self.itinerary if s.kind is StepKind.STOP]

    def summary(self) -> str:
        """Return a human-readable summary of the plan."""
        origin, destination = self.itinerary[0], self.itinerary[-1]
        diag = self.diagnostics
        lines = [
            f"{origin.name} -> {destination.name}",
            f"  Route   : {self.leg_summary.distance_text} "
            f"({self.leg_summary.duration_text})",
            f"  Stations: {len(diag.stations_along_route)} along the corridor, "
            f"{diag.station_candidates} within itinerary tolerance",
            f"  Stops   : {len(self.stops)} (of {diag.after_dedup} unique candidates)",
            "",
        ]
        for step in self.stops:
            marker = " [station]" if step.is_registered else ""
            line = (f"    km {step.distance_along_route_km:6.1f}  |  {step.name}{marker}"
                    f"  |  {step.recommendation.value}")
            if step.charge_duration_min:
                line += f" (~{step.charge_duration_min} min)"
            if step.estimated_arrival is not None:
                line += f"  |  ETA {step.estimated_arrival:%H:%M}"
            lines.append(line)
        if self.no_viable_stops:
            lines.append("    No viable stops found along this route.")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        diag = self.diagnostics
        return {
            "leg_summary": {
                "distance_text": self.leg_summary.distance_text,
                "duration_text": self.leg_summary.duration_text,
            },
            "itinerary": [step.to_dict() for step in self.itinerary],
            "map_overlay_points": [
                {"lat": p.coordinate.lat, "lng": p.coordinate.lng, "kind": p.kind}
                for p in self.map_overlay_points
            ],
            "no_viable_stops": self.no_viable_stops,
            "diagnostics": {
                "route_length_km": round(diag.route_length_km, 3),
                "path_points": diag.path_points,
                "used_fallback_route": diag.used_fallback_route,
                "strategy_attempts": [
                    {
                        "avoid_highways": a.avoid_highways,
                        "avoid_tolls": a.avoid_tolls,
                        "total_distance_m": a.total_distance_m,
                        "error": a.error,
                    }
                    for a in diag.strategy_attempts
                ],
                "stations_listed": diag.stations_listed,
                "stations_skipped_unavailable": diag.stations_skipped_unavailable,
                "stations_along_route": list(diag.stations_along_route),
                "station_candidates": diag.station_candidates,
                "settlement_samples": diag.settlement_samples,
                "settlement_fallback_names": diag.settlement_fallback_names,
                "settlement_names_discarded": diag.settlement_names_discarded,
                "landmark_candidates": diag.landmark_candidates,
                "candidates_by_source": dict(diag.candidates_by_source),
                "after_dedup": diag.after_dedup,
                "target_stops": diag.target_stops,
                "after_downsample": diag.after_downsample,
            },
        }


# ---------------------------------------------------------------------------
# Main planner class
# ---------------------------------------------------------------------------

class RoutePlanner:
    """
    Plan an EV trip over the given collaborators.

    Args:
        route_provider: Source of route geometry.
        geocoder: Reverse geocoder for settlements and forward geocoder for
                  free-text endpoints.  Without one, settlements get
                  placeholder names and endpoints must be coordinates.
        station_registry: Registered charging stations.  Without one the
                          itinerary holds only settlements and landmarks.
        config: Engine thresholds; defaults to ``PlannerConfig()``.
        event_hook: Optional ``(event_type, details, extra)`` callable
                    invoked after each pipeline stage.
    """

    def __init__(
        self,
        route_provider: RouteGeometryProvider,
        geocoder: Optional[Geocoder] = None,
        station_registry: Optional[StationRegistry] = None,
        config: Optional[PlannerConfig] = None,
        event_hook: Optional[EventHook] = None,
    ) -> None:
        self.route_provider = route_provider
        self.geocoder = geocoder
        self.station_registry = station_registry
        self.config = config or PlannerConfig()
        self.config.validate()
        self.event_hook = event_hook

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def plan_route(
        self,
        origin: Endpoint,
        destination: Endpoint,
        vehicle: VehicleConfig,
        route_options: Optional[RouteOptions] = None,
        origin_name: Optional[str] = None,
        destination_name: Optional[str] = None,
        start_time: Optional[datetime] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> PlanResult:
        """
        Run the full pipeline for one trip.

        Raises:
            InvalidVehicleConfig: Before any provider call, on bad vehicle parameters.
            GeocodeUnavailable: If a free-text endpoint cannot be resolved.
            RouteUnavailable: If no route geometry can be obtained.
            PlanCancelled: If ``cancel_event`` is set before the plan completes.
        """
        cfg = self.config
        vehicle.validate()
        options = route_options or RouteOptions()
        diagnostics = PlanDiagnostics()

        origin_coord, origin_name = self._resolve_endpoint(origin, origin_name, "origin")
        dest_coord, destination_name = self._resolve_endpoint(
            destination, destination_name, "destination"
        )
        check_cancelled(cancel_event, "endpoint resolution")

        # -- Route strategy ------------------------------------------------
        strategy = select_route(
            self.route_provider, origin_coord, dest_coord, options,
            max_workers=cfg.max_geometry_workers, cancel_event=cancel_event,
        )
        diagnostics.strategy_attempts = list(strategy.attempts)
        diagnostics.used_fallback_route = strategy.used_fallback

        path = RoutePath(strategy.geometry.path_points)
        total_km = path.total_length_km
        diagnostics.route_length_km = total_km
        diagnostics.path_points = len(path)
        self._log_event(
            "ROUTE_SELECTED",
            f"{total_km:.1f} km over {len(path)} points",
            {"avoid_highways": strategy.avoid_highways, "avoid_tolls": strategy.avoid_tolls},
        )
        check_cancelled(cancel_event, "route selection")

        # -- Registered stations ---------------------------------------------
        corridor = CorridorFilter(
            path,
            buffer_km=cfg.corridor_buffer_km,
            loose_tolerance_km=cfg.loose_tolerance_km,
            strict_tolerance_km=cfg.strict_tolerance_km,
            km_per_degree=cfg.km_per_degree,
        )
        stations = []
        if self.station_registry is not None:
            stations = list(self.station_registry.list_stations(corridor.bounds))
        diagnostics.stations_listed = len(stations)

        station_sel = station_candidates(
            stations, corridor, only_available=cfg.only_available_stations
        )
        diagnostics.stations_skipped_unavailable = station_sel.skipped_unavailable
        diagnostics.stations_along_route = [m.item.id for m in station_sel.along_route]
        diagnostics.station_candidates = len(station_sel.candidates)
        self._log_event(
            "STATIONS_FILTERED",
            f"{len(station_sel.along_route)} along route, "
            f"{len(station_sel.candidates)} itinerary-eligible",
            {"listed": len(stations)},
        )
        check_cancelled(cancel_event, "station filtering")

        # -- Settlements and landmarks ---------------------------------------
        settlement_sel = settlement_candidates(
            path,
            self.geocoder,
            interval_km=cfg.settlement_interval_km,
            max_samples=cfg.max_settlement_samples,
            max_workers=cfg.max_geocode_workers,
            cancel_event=cancel_event,
        )
        diagnostics.settlement_samples = settlement_sel.samples
        diagnostics.settlement_fallback_names = settlement_sel.fallback_names
        diagnostics.settlement_names_discarded = settlement_sel.discarded
        self._log_event(
            "SETTLEMENTS_SAMPLED",
            f"{len(settlement_sel.candidates)} of {settlement_sel.samples} samples kept",
            {"fallback_names": settlement_sel.fallback_names},
        )
        check_cancelled(cancel_event, "settlement sampling")

        landmarks = landmark_candidates(cfg.landmarks, path, cfg.strict_tolerance_km)
        diagnostics.landmark_candidates = len(landmarks)

        # -- Aggregate, deduplicate, downsample ------------------------------
        pool = aggregate_candidates(station_sel.candidates, settlement_sel.candidates, landmarks)
        diagnostics.candidates_by_source = count_by_source(pool)

        unique = deduplicate(pool)
        diagnostics.after_dedup = len(unique)
        diagnostics.target_stops = target_stop_count(
            total_km, cfg.km_per_target_stop, cfg.min_target_stops, cfg.max_target_stops
        )
        selected = downsample(
            unique,
            total_km,
            km_per_stop=cfg.km_per_target_stop,
            min_stops=cfg.min_target_stops,
            max_stops=cfg.max_target_stops,
            spacing_factor=cfg.spacing_factor,
        )
        diagnostics.after_downsample = len(selected)
        self._log_event(
            "CANDIDATES_SELECTED",
            f"{len(pool)} candidates -> {len(unique)} unique -> {len(selected)} stops",
            {"target": diagnostics.target_stops},
        )

        # -- Range evaluation and itinerary ----------------------------------
        evaluated = evaluate_waypoints(
            selected,
            vehicle,
            total_km,
            low_range_threshold_km=cfg.low_range_threshold_km,
            start_time=start_time,
            average_speed_kmh=cfg.average_speed_kmh,
            charge_rate_km_per_hour=cfg.charge_rate_km_per_hour,
        )
        itinerary = build_itinerary(
            strategy.geometry, evaluated, origin_coord, dest_coord,
            origin_name=origin_name, destination_name=destination_name,
        )
        check_cancelled(cancel_event, "itinerary assembly")

        no_viable_stops = not evaluated
        if no_viable_stops:
            warnings.warn(
                "No waypoint passed strict corridor acceptance; the itinerary "
                "holds only the origin and destination.",
                NoViableStopsWarning,
            )

        self._log_event(
            "PLAN_COMPLETE",
            f"{len(evaluated)} stops, "
            f"{sum(1 for e in evaluated if e.recommendation.is_recommended)} recommended",
        )
        return PlanResult(
            leg_summary=_leg_summary(strategy.leg_texts),
            itinerary=itinerary,
            map_overlay_points=overlay_points(itinerary),
            diagnostics=diagnostics,
            no_viable_stops=no_viable_stops,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve_endpoint(
        self,
        endpoint: Endpoint,
        display_name: Optional[str],
        label: str,
    ) -> Tuple[Coordinate, Optional[str]]:
        """Turn an endpoint into a coordinate, geocoding free text."""
        if isinstance(endpoint, str):
            try:
                return Coordinate.parse(endpoint), display_name
            except ValueError:
                pass
            if self.geocoder is None:
                raise GeocodeUnavailable(
                    f"Cannot resolve {label} {endpoint!r} without a geocoder."
                )
            result = self.geocoder.forward_geocode(endpoint)
            logger.info("Resolved %s %r to %s", label, endpoint, result.formatted_address)
            return result.coordinate, display_name or result.formatted_address
        lat, lng = endpoint
        coordinate = Coordinate(float(lat), float(lng))
        if not is_valid_coordinate(coordinate):
            raise ValueError(f"{label.capitalize()} coordinate out of range: {endpoint!r}")
        return coordinate, display_name

    def _log_event(self, event_type: str, details: str,
                   extra_data: Optional[Dict[str, Any]] = None) -> None:
        logger.debug("%s: %s", event_type, details)
        if self.event_hook is not None:
            self.event_hook(event_type, details, extra_data)


def _leg_summary(leg_texts: Sequence[Tuple[str, str]]) -> LegSummary:
    """Join per-leg texts; a single-leg route keeps its texts unchanged."""
    if not leg_texts:
        return LegSummary("", "")
    return LegSummary(
        distance_text=" + ".join(d for d, _ in leg_texts),
        duration_text=" + ".join(t for _, t in leg_texts),
    )
