"""
Candidate Aggregator - builds the pool of possible itinerary waypoints.

Three producers feed one pool:

1. Registered stations that pass the corridor filter (phases 1-3).
2. Settlements obtained by reverse-geocoding points sampled along the route,
   with deterministic placeholder names when geocoding fails.
3. Landmarks from a fixed list, kept only when they lie within the strict
   tolerance of the route.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ev_route_planner.concurrency import run_bounded
from ev_route_planner.errors import GeocodeFallbackWarning, GeocodeUnavailable
from ev_route_planner.geometry.corridor import CorridorFilter, CorridorMatch
from ev_route_planner.geometry.geo_utils import Coordinate
from ev_route_planner.geometry.route_path import Projection, RoutePath
from ev_route_planner.providers.base import Geocoder, ReverseGeocodeResult, StationRecord

from .landmarks import Landmark, landmark_id

logger = logging.getLogger(__name__)

# Placeholder names for samples whose reverse geocoding failed.
# Name for sample i = prefix[i % len] + " " + suffix[i % len].
FALLBACK_NAME_PREFIXES: Tuple[str, ...] = (
    "Shanti", "Harit", "Surya", "Chandra", "Ganga",
    "Vijay", "Kamal", "Ashok", "Indra", "Moti",
)
FALLBACK_NAME_SUFFIXES: Tuple[str, ...] = (
    "Nagar", "Pur", "Garh", "Pura", "Ganj",
)

# Keywords that mark a short name as a real locality
LOCALITY_KEYWORDS: Tuple[str, ...] = (
    "nagar", "pur", "garh", "pura", "ganj", "abad", "gaon", "halli",
    "chowk", "city", "town", "village",
)


class SourceKind(Enum):
    """Where a candidate waypoint came from."""
    REGISTERED_STATION = "registered_station"
    GEOCODED_SETTLEMENT = "geocoded_settlement"
    LANDMARK = "landmark"


@dataclass(frozen=True)
class CandidateWaypoint:
    """
    A possible itinerary stop.

    ``distance_along_route_km`` and ``distance_from_route_km`` are None until
    the waypoint has been projected onto the route; unprojected waypoints are
    never itinerary-eligible.
    """
    id: str
    name: str
    coordinate: Coordinate
    source_kind: SourceKind
    distance_along_route_km: Optional[float] = None
    distance_from_route_km: Optional[float] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_projected(self) -> bool:
        return self.distance_along_route_km is not None

    @property
    def is_registered(self) -> bool:
        return self.source_kind is SourceKind.REGISTERED_STATION

    def with_projection(self, projection: Projection) -> "CandidateWaypoint":
        """Return a copy carrying the projection's distances."""
        return dataclasses.replace(
            self,
            distance_along_route_km=projection.distance_along_km,
            distance_from_route_km=projection.perpendicular_km,
        )


@dataclass
class StationSelection:
    """Stations near the route: the loose corridor set and the eligible candidates."""
    along_route: List[CorridorMatch[StationRecord]]
    candidates: List[CandidateWaypoint]
    skipped_unavailable: int = 0


@dataclass
class SettlementSelection:
    candidates: List[CandidateWaypoint]
    samples: int = 0
    fallback_names: int = 0
    discarded: int = 0


# ---------------------------------------------------------------------------
# Registered stations
# ---------------------------------------------------------------------------

def station_candidates(
    stations: Sequence[StationRecord],
    corridor: CorridorFilter,
    only_available: bool = False,
) -> StationSelection:
    """
    Run the corridor filter over the registry snapshot.

    Stations in the loose corridor are reported in ``along_route``; only those
    within the strict tolerance become candidates.  The rest are dropped with
    a debug log line.
    """
    pool = list(stations)
    skipped = 0
    if only_available:
        available = [s for s in pool if s.is_available]
        skipped = len(pool) - len(available)
        pool = available

    matches = corridor.filter(pool, lambda s: s.coordinate)

    candidates: List[CandidateWaypoint] = []
    for match in matches:
        station = match.item
        if not match.within_strict:
            logger.debug(
                "Station %r is %.1f km from the route; outside %.1f km itinerary tolerance",
                station.name, match.projection.perpendicular_km, corridor.strict_tolerance_km,
            )
            continue
        waypoint = CandidateWaypoint(
            id=station.id,
            name=station.name,
            coordinate=station.coordinate,
            source_kind=SourceKind.REGISTERED_STATION,
            attributes=station.attributes(),
        )
        candidates.append(waypoint.with_projection(match.projection))

    return StationSelection(
        along_route=matches,
        candidates=candidates,
        skipped_unavailable=skipped,
    )


# ---------------------------------------------------------------------------
# Geocoded settlements
# ---------------------------------------------------------------------------

def fallback_settlement_name(sample_index: int) -> str:
    """Deterministic placeholder name for the sample at ``sample_index``."""
    prefix = FALLBACK_NAME_PREFIXES[sample_index % len(FALLBACK_NAME_PREFIXES)]
    suffix = FALLBACK_NAME_SUFFIXES[sample_index % len(FALLBACK_NAME_SUFFIXES)]
    return f"{prefix} {suffix}"


def is_probable_place(name: str) -> bool:
    """A name is kept if it is longer than 3 characters or contains a locality keyword."""
    cleaned = name.strip()
    if len(cleaned) > 3:
        return True
    lowered = cleaned.lower()
    return any(keyword in lowered for keyword in LOCALITY_KEYWORDS)


def sample_route(
    path: RoutePath,
    interval_km: float,
    max_samples: int,
) -> List[int]:
    """
    Vertex indices at every ``interval_km`` along the route.

    Samples start one interval after the origin and stop before the end of
    the route or once ``max_samples`` have been taken.
    """
    indices: List[int] = []
    total_km = path.total_length_km
    k = 1
    while len(indices) < max_samples and k * interval_km < total_km:
        indices.append(path.vertex_at_distance(k * interval_km * 1000.0))
        k += 1
    return indices


def settlement_candidates(
    path: RoutePath,
    geocoder: Optional[Geocoder],
    interval_km: float = 120.0,
    max_samples: int = 10,
    max_workers: int = 4,
    cancel_event: Optional[threading.Event] = None,
) -> SettlementSelection:
    """
    Reverse-geocode sample points along the route into settlement waypoints.

    Lookups run with bounded concurrency but results are assembled in sample
    order, since the sample index drives fallback naming.  With no geocoder
    every sample gets its fallback name.
    """
    vertex_indices = sample_route(path, interval_km, max_samples)
    points = [path.points[i] for i in vertex_indices]

    if geocoder is not None:
        tasks = [lambda p=p: geocoder.reverse_geocode(p) for p in points]
        outcomes = run_bounded(
            tasks, max_workers, cancel_event=cancel_event, stage="settlement geocoding"
        )
    else:
        outcomes = []

    candidates: List[CandidateWaypoint] = []
    fallback_count = 0
    discarded = 0

    for sample_index, (vertex, point) in enumerate(zip(vertex_indices, points)):
        result: Optional[ReverseGeocodeResult] = None
        if sample_index < len(outcomes):
            outcome = outcomes[sample_index]
            if outcome.ok:
                result = outcome.value
            elif isinstance(outcome.error, GeocodeUnavailable):
                logger.info(
                    "Reverse geocoding failed for sample %d at %.4f,%.4f: %s",
                    sample_index, point.lat, point.lng, outcome.error,
                )
            else:
                raise outcome.error

        name = ""
        admin_area = ""
        if result is not None:
            admin_area = result.admin_area_name.strip()
            name = result.place_name.strip() or admin_area

        synthetic = not name
        if synthetic:
            name = fallback_settlement_name(sample_index)
            fallback_count += 1
        elif not is_probable_place(name):
            logger.debug("Discarding unlikely settlement name %r", name)
            discarded += 1
            continue

        candidates.append(CandidateWaypoint(
            id=f"settlement-{sample_index}",
            name=name,
            coordinate=point,
            source_kind=SourceKind.GEOCODED_SETTLEMENT,
            distance_along_route_km=float(path.cumulative_m[vertex]) / 1000.0,
            distance_from_route_km=0.0,
            attributes={"admin_area": admin_area, "synthetic_name": synthetic},
        ))

    if fallback_count:
        warnings.warn(
            f"{fallback_count} of {len(points)} route samples could not be "
            "reverse-geocoded; placeholder settlement names were used.",
            GeocodeFallbackWarning,
        )

    return SettlementSelection(
        candidates=candidates,
        samples=len(points),
        fallback_names=fallback_count,
        discarded=discarded,
    )


# ---------------------------------------------------------------------------
# Landmarks
# ---------------------------------------------------------------------------

def landmark_candidates(
    landmarks: Sequence[Landmark],
    path: RoutePath,
    strict_tolerance_km: float = 10.0,
) -> List[CandidateWaypoint]:
    """Project each landmark and keep those within the strict tolerance."""
    candidates: List[CandidateWaypoint] = []
    for landmark in landmarks:
        projection = path.project(landmark.coordinate)
        if projection.perpendicular_km > strict_tolerance_km:
            continue
        waypoint = CandidateWaypoint(
            id=landmark_id(landmark),
            name=landmark.name,
            coordinate=landmark.coordinate,
            source_kind=SourceKind.LANDMARK,
            attributes={"region": landmark.region},
        )
        candidates.append(waypoint.with_projection(projection))
    return candidates


def aggregate_candidates(
    stations: Sequence[CandidateWaypoint],
    settlements: Sequence[CandidateWaypoint],
    landmarks: Sequence[CandidateWaypoint],
) -> List[CandidateWaypoint]:
    """Concatenate the three sources into one pool, keeping only projected waypoints."""
    pool = [*stations, *settlements, *landmarks]
    projected = [w for w in pool if w.is_projected]
    if len(projected) != len(pool):
        logger.warning("Dropped %d unprojected candidates", len(pool) - len(projected))
    return projected


def count_by_source(waypoints: Sequence[CandidateWaypoint]) -> Dict[str, int]:
    counts: Dict[str, int] = {kind.value: 0 for kind in SourceKind}
    for w in waypoints:
        counts[w.source_kind.value] += 1
    return counts
