"""
Station registries that do not need a remote API.

``CsvStationRegistry`` reads a station export with pandas on every call, so
edits to the file are picked up by the next planning run.
``CompositeStationRegistry`` merges several registries (for example the
operator's own stations plus OpenStreetMap) and drops near-identical entries.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

import pandas as pd

from ev_route_planner.geometry.geo_utils import BoundingBox, Coordinate, is_valid_coordinate

from .base import StationRecord, StationRegistry

REQUIRED_COLUMNS = ("id", "name", "lat", "lng")

# Two stations closer than this (in degrees, on both axes) are the same site
DUPLICATE_TOLERANCE_DEG = 1e-4


class InMemoryStationRegistry:
    """Registry over a fixed list of stations."""

    def __init__(self, stations: Iterable[StationRecord]) -> None:
        self._stations = tuple(stations)

    def list_stations(self, bounds: Optional[BoundingBox] = None) -> List[StationRecord]:
        if bounds is None:
            return list(self._stations)
        return [s for s in self._stations if bounds.contains(s.coordinate)]


class CsvStationRegistry:
    """
    Registry backed by a CSV file.

    Expected columns: id, name, lat, lng; optional address, price_per_hour,
    available_slots, total_ports, status, amenities (semicolon-separated).
    Rows without valid coordinates are skipped.
    """

    def __init__(self, csv_path: Union[str, Path]) -> None:
        self.csv_path = Path(csv_path)

    def list_stations(self, bounds: Optional[BoundingBox] = None) -> List[StationRecord]:
        df = pd.read_csv(self.csv_path, dtype={"id": str})
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"{self.csv_path} is missing columns: {', '.join(missing)}")

        stations: List[StationRecord] = []
        for _, row in df.iterrows():
            lat, lng = _as_float(row.get("lat")), _as_float(row.get("lng"))
            if lat is None or lng is None or not is_valid_coordinate((lat, lng)):
                continue
            coordinate = Coordinate(lat, lng)
            if bounds is not None and not bounds.contains(coordinate):
                continue

            station_id = _as_str(row["id"])
            name = _as_str(row["name"]) or f"Charging Station ({station_id})"
            amenities = _as_str(row.get("amenities"))
            stations.append(StationRecord(
                id=station_id,
                name=name,
                coordinate=coordinate,
                address=_as_str(row.get("address")),
                price_per_hour=_as_float(row.get("price_per_hour")),
                available_slots=_as_int(row.get("available_slots")),
                total_ports=_as_int(row.get("total_ports")),
                status=_as_str(row.get("status")) or "available",
                amenities=tuple(a.strip() for a in amenities.split(";") if a.strip()),
            ))
        return stations


class CompositeStationRegistry:
    """
    Merge several registries in priority order.

    A station whose coordinate lies within ``tolerance_deg`` of one already
    listed by an earlier registry is dropped.
    """

    def __init__(
        self,
        registries: Sequence[StationRegistry],
        tolerance_deg: float = DUPLICATE_TOLERANCE_DEG,
    ) -> None:
        self.registries = list(registries)
        self.tolerance_deg = tolerance_deg

    def list_stations(self, bounds: Optional[BoundingBox] = None) -> List[StationRecord]:
        merged: List[StationRecord] = []
        for registry in self.registries:
            for station in registry.list_stations(bounds):
                if not any(self._same_site(station, kept) for kept in merged):
                    merged.append(station)
        return merged

    def _same_site(self, a: StationRecord, b: StationRecord) -> bool:
        return (abs(a.coordinate.lat - b.coordinate.lat) < self.tolerance_deg
                and abs(a.coordinate.lng - b.coordinate.lng) < self.tolerance_deg)


# ---------------------------------------------------------------------------
# Cell converters (pandas gives NaN for empty cells)
# ---------------------------------------------------------------------------

def _as_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(f) else f


def _as_int(value) -> Optional[int]:
    f = _as_float(value)
    return None if f is None else int(f)


def _as_str(value) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()
