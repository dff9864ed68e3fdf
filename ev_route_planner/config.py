"""
Planner configuration.

``PlannerConfig`` centralizes every engine threshold.  Provider credentials
are read from the environment (a ``.env`` file is honoured).
"""

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from dotenv import load_dotenv

if TYPE_CHECKING:
    from ev_route_planner.selection.landmarks import Landmark

load_dotenv()


def _default_landmarks() -> List["Landmark"]:
    from ev_route_planner.selection.landmarks import list_landmarks
    return list_landmarks()


@dataclass
class PlannerConfig:
    """Thresholds and limits for one planning run."""
    # Corridor filter (km)
    corridor_buffer_km: float = 50.0       # Bounding-box inflation
    loose_tolerance_km: float = 50.0       # "Along the route" membership
    strict_tolerance_km: float = 10.0      # Itinerary eligibility
    km_per_degree: float = 111.0

    # Geocoded settlements
    settlement_interval_km: float = 120.0
    max_settlement_samples: int = 10

    # Downsampling
    km_per_target_stop: float = 25.0
    min_target_stops: int = 8
    max_target_stops: int = 12
    spacing_factor: float = 0.5            # Fraction of min spacing required in pass 1

    # Range evaluation
    low_range_threshold_km: float = 50.0

    # Trip timing estimates
    average_speed_kmh: float = 80.0
    charge_rate_km_per_hour: float = 50.0  # Range added per hour of charging

    # Concurrency
    max_geometry_workers: int = 4
    max_geocode_workers: int = 4

    # Candidate sources
    landmarks: List["Landmark"] = field(default_factory=_default_landmarks)
    only_available_stations: bool = False

    def validate(self) -> None:
        """
        Check that the thresholds are mutually consistent.

        Raises:
            ValueError: On any inconsistent or non-positive setting.
        """
        if self.strict_tolerance_km <= 0 or self.loose_tolerance_km <= 0:
            raise ValueError("Corridor tolerances must be positive.")
        if self.strict_tolerance_km > self.loose_tolerance_km:
            raise ValueError(
                f"strict_tolerance_km ({self.strict_tolerance_km}) must not exceed "
                f"loose_tolerance_km ({self.loose_tolerance_km})."
            )
        if self.corridor_buffer_km < 0:
            raise ValueError("corridor_buffer_km must be non-negative.")
        if self.settlement_interval_km <= 0:
            raise ValueError("settlement_interval_km must be positive.")
        if self.max_settlement_samples < 0:
            raise ValueError("max_settlement_samples must be non-negative.")
        if self.km_per_target_stop <= 0:
            raise ValueError("km_per_target_stop must be positive.")
        if not 0 < self.min_target_stops <= self.max_target_stops:
            raise ValueError(
                f"Need 0 < min_target_stops ({self.min_target_stops}) <= "
                f"max_target_stops ({self.max_target_stops})."
            )
        if self.max_geometry_workers < 1 or self.max_geocode_workers < 1:
            raise ValueError("Worker limits must be at least 1.")
        if self.average_speed_kmh <= 0 or self.charge_rate_km_per_hour <= 0:
            raise ValueError("Speed and charge rate must be positive.")


def get_google_maps_config() -> Dict[str, str]:
    """Get Google Maps configuration."""
    return {
        "api_key": os.getenv("GOOGLE_MAPS_API_KEY", ""),
        "language": os.getenv("GOOGLE_MAPS_LANGUAGE", "en"),
        "region": os.getenv("GOOGLE_MAPS_REGION", "in"),
    }


def get_overpass_url() -> Optional[str]:
    """Custom Overpass endpoint, if one is configured."""
    return os.getenv("OVERPASS_URL") or None
