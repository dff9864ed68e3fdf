"""
Landmark registry.

Hand-maintained named coordinates that are always offered as candidate
waypoints when they lie on the route.  The built-in set covers the major
Indian highway corridors; callers planning elsewhere pass their own list via
``PlannerConfig.landmarks``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from ev_route_planner.geometry.geo_utils import Coordinate


@dataclass(frozen=True)
class Landmark:
    """A named point of interest used as a force-included waypoint."""
    name: str
    lat: float
    lng: float
    region: str = "IN"

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)


# Keyed by a stable slug so landmark ids stay constant across runs
LANDMARK_REGISTRY: Dict[str, Landmark] = {
    # --- Delhi - Agra - Gwalior - Jhansi (NH44 / Yamuna Expressway) ---
    "mathura-junction":   Landmark("Mathura Junction", 27.4924, 77.6737),
    "taj-mahal":          Landmark("Taj Mahal", 27.1751, 78.0421),
    "gwalior-fort":       Landmark("Gwalior Fort", 26.2300, 78.1694),
    "jhansi-fort":        Landmark("Jhansi Fort", 25.4580, 78.5753),
    "nagpur-zero-mile":   Landmark("Zero Mile Stone", 21.1497, 79.0806),
    # --- Delhi - Chandigarh (NH44 north) ---
    "murthal":            Landmark("Murthal Dhaba Stretch", 29.0276, 77.0727),
    "karnal-lake":        Landmark("Karna Lake", 29.6857, 76.9905),
    "ambala-cantonment":  Landmark("Ambala Cantonment", 30.3398, 76.8386),
    # --- Delhi - Jaipur (NH48) ---
    "neemrana-fort":      Landmark("Neemrana Fort Palace", 27.9866, 76.3866),
    "amber-fort":         Landmark("Amber Fort", 26.9855, 75.8513),
    # --- Mumbai - Pune - Vadodara ---
    "lonavala":           Landmark("Lonavala", 18.7546, 73.4062),
    "khandala-ghat":      Landmark("Khandala Ghat", 18.7610, 73.3750),
    "vadodara-palace":    Landmark("Laxmi Vilas Palace", 22.2937, 73.1913),
    # --- Bengaluru - Chennai (NH48 south) ---
    "nandi-hills":        Landmark("Nandi Hills", 13.3702, 77.6835),
    "krishnagiri-dam":    Landmark("Krishnagiri Dam", 12.4667, 78.1833),
    "vellore-fort":       Landmark("Vellore Fort", 12.9209, 79.1293),
}


def list_landmarks(region: Optional[str] = None) -> List[Landmark]:
    """
    Return the built-in landmarks, optionally restricted to one region code.

    The order is the registry's insertion order, which keeps candidate
    ordering deterministic.
    """
    landmarks = list(LANDMARK_REGISTRY.values())
    if region is None:
        return landmarks
    return [lm for lm in landmarks if lm.region == region.upper()]


def landmark_id(landmark: Landmark) -> str:
    """Stable id for a landmark: its registry slug, or a slug of its name."""
    for slug, registered in LANDMARK_REGISTRY.items():
        if registered == landmark:
            return f"landmark-{slug}"
    slug = "-".join(landmark.name.lower().split())
    return f"landmark-{slug}"
