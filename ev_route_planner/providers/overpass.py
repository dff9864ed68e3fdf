"""
OpenStreetMap Overpass API station registry.

Lists public charging stations (``amenity=charging_station``) inside a
bounding box.  The primary Overpass endpoint is tried first, then the LZ4
mirror on timeout or server error.  Responses are never cached: charging
station data changes too often to reuse between planning runs.
"""

from __future__ import annotations

import warnings
from typing import Any, Dict, List, Optional

import requests

from ev_route_planner.config import get_overpass_url
from ev_route_planner.geometry.geo_utils import BoundingBox, Coordinate

from .base import StationRecord

# ---------------------------------------------------------------------------
# Overpass API endpoints (primary + fallback mirror)
# ---------------------------------------------------------------------------
OVERPASS_PRIMARY_URL = "https://overpass-api.de/api/interpreter"
OVERPASS_FALLBACK_URL = "https://lz4.overpass-api.de/api/interpreter"

_USER_AGENT = "ev-route-planner/1.0"


class OverpassStationRegistry:
    """
    StationRegistry backed by OpenStreetMap.

    Args:
        timeout_sec: HTTP request timeout in seconds.
        url: Primary endpoint; defaults to ``OVERPASS_URL`` or the public server.
        session: Optional pre-built ``requests.Session``.
    """

    DEFAULT_TIMEOUT_SEC = 60

    def __init__(
        self,
        timeout_sec: int = DEFAULT_TIMEOUT_SEC,
        url: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout_sec = timeout_sec
        self.urls = [url or get_overpass_url() or OVERPASS_PRIMARY_URL, OVERPASS_FALLBACK_URL]
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": _USER_AGENT})

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_stations(self, bounds: Optional[BoundingBox] = None) -> List[StationRecord]:
        """
        Fetch charging stations inside ``bounds``.

        Returns an empty list (with a RuntimeWarning) if every endpoint fails.

        Raises:
            ValueError: If no bounding box is given; Overpass cannot list the planet.
        """
        if bounds is None:
            raise ValueError("OverpassStationRegistry needs a bounding box.")
        query = self._build_stations_query(bounds)
        data = self._execute_query(query)
        if data is None:
            return []
        return self._parse_stations_response(data)

    # ------------------------------------------------------------------
    # Query builder / parser
    # ------------------------------------------------------------------

    def _build_stations_query(self, bounds: BoundingBox) -> str:
        timeout = min(self.timeout_sec, 60)
        return (
            f'[out:json][timeout:{timeout}]'
            f'[bbox:{bounds.south},{bounds.west},{bounds.north},{bounds.east}];\n'
            f'(\n'
            f'  node["amenity"="charging_station"];\n'
            f'  way["amenity"="charging_station"];\n'
            f');\n'
            f'out center;'
        )

    def _parse_stations_response(self, data: Dict[str, Any]) -> List[StationRecord]:
        """
        Parse Overpass JSON into StationRecords.

        Nodes carry lat/lon directly; ways use the Overpass 'center'.
        Elements are deduplicated by (type, id).
        """
        seen = set()
        stations: List[StationRecord] = []

        for elem in data.get("elements", []):
            osm_type = elem.get("type", "node")
            osm_id = elem.get("id")
            if (osm_type, osm_id) in seen:
                continue
            seen.add((osm_type, osm_id))

            if osm_type == "node":
                lat, lon = elem.get("lat"), elem.get("lon")
            else:
                center = elem.get("center", {})
                lat, lon = center.get("lat"), center.get("lon")
            if lat is None or lon is None:
                continue

            tags = elem.get("tags", {})
            name = (tags.get("name") or tags.get("operator") or "").strip()
            if not name:
                name = f"Charging Station ({osm_type}/{osm_id})"

            stations.append(StationRecord(
                id=f"osm-{osm_type}-{osm_id}",
                name=name,
                coordinate=Coordinate(float(lat), float(lon)),
                address=_format_address(tags),
                total_ports=_parse_int(tags.get("capacity")),
                status=_status_from_tags(tags),
                amenities=tuple(sorted(
                    key.split(":", 1)[1] for key in tags
                    if key.startswith("socket:") and key.count(":") == 1
                )),
            ))

        return stations

    # ------------------------------------------------------------------
    # HTTP execution with failover
    # ------------------------------------------------------------------

    def _execute_query(self, query: str) -> Optional[Dict[str, Any]]:
        for i, url in enumerate(self.urls):
            data = self._http_post(url, query)
            if data is not None:
                return data
            if i + 1 < len(self.urls):
                warnings.warn(
                    "Overpass endpoint failed, trying fallback mirror...",
                    RuntimeWarning,
                )
        return None

    def _http_post(self, url: str, query: str) -> Optional[Dict[str, Any]]:
        """POST a query to the Overpass API and return parsed JSON, or None."""
        try:
            response = self._session.post(
                url,
                data={"data": query},
                timeout=self.timeout_sec,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            warnings.warn(
                f"Overpass API request to {url} timed out after {self.timeout_sec}s.",
                RuntimeWarning,
            )
        except requests.exceptions.HTTPError as exc:
            warnings.warn(f"Overpass API HTTP error from {url}: {exc}", RuntimeWarning)
        except requests.exceptions.RequestException as exc:
            warnings.warn(f"Overpass API request to {url} failed: {exc}", RuntimeWarning)
        except ValueError as exc:
            warnings.warn(
                f"Failed to parse Overpass API response from {url}: {exc}",
                RuntimeWarning,
            )
        return None


def _format_address(tags: Dict[str, str]) -> str:
    parts = [
        " ".join(p for p in (tags.get("addr:housenumber", ""), tags.get("addr:street", "")) if p),
        tags.get("addr:city", ""),
        tags.get("addr:postcode", ""),
    ]
    return ", ".join(p for p in parts if p)


def _status_from_tags(tags: Dict[str, str]) -> str:
    if tags.get("disused") == "yes" or "disused:amenity" in tags:
        return "disused"
    if tags.get("access") in ("private", "no"):
        return "private"
    return "available"


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None
