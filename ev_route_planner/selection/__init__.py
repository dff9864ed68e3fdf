"""selection – candidate waypoints, landmarks, deduplication and downsampling."""

from .landmarks import LANDMARK_REGISTRY, Landmark, list_landmarks
from .candidates import (
    CandidateWaypoint,
    SettlementSelection,
    SourceKind,
    StationSelection,
    aggregate_candidates,
    fallback_settlement_name,
    landmark_candidates,
    settlement_candidates,
    station_candidates,
)
from .dedup import deduplicate, downsample, normalize_name, target_stop_count

__all__ = [
    "Landmark", "LANDMARK_REGISTRY", "list_landmarks",
    "CandidateWaypoint", "SourceKind", "StationSelection", "SettlementSelection",
    "station_candidates", "settlement_candidates", "landmark_candidates",
    "aggregate_candidates", "fallback_settlement_name",
    "normalize_name", "deduplicate", "downsample", "target_stop_count",
]
