"""
Deduplicator & Downsampler.

Candidates from different sources often name the same place ("Agra",
"Agra City", "The Agra (Cantt)").  Names are normalized, duplicate groups
are collapsed with registered stations taking priority, and the survivors
are thinned to a target count with a greedy spacing pass.
"""

from __future__ import annotations

import logging
import math
import re
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence, Tuple

from .candidates import CandidateWaypoint

logger = logging.getLogger(__name__)

LOCALITY_SUFFIXES: Tuple[str, ...] = (
    "city", "town", "village", "nagar", "pur", "garh", "pura", "chowk",
    "road", "market", "division", "district", "state", "india",
)

# Also written fused to the stem ("Gandhinagar", "Ramgarh").
FUSED_SUFFIXES: Tuple[str, ...] = ("nagar", "pura", "garh", "pur")
MIN_FUSED_STEM = 3

_BRACKETED = re.compile(r"[\(\[\{][^\)\]\}]*[\)\]\}]")
_NON_WORD = re.compile(r"[^\w\s]+")
_LEADING_THE = re.compile(r"^the\s+")


def normalize_name(name: str) -> str:
    """
    Canonical form of a place name for duplicate detection.

    Lowercases, removes bracketed annotations and punctuation, drops a
    leading "the" and strips trailing locality suffixes repeatedly, either as
    separate words or fused to the last word ("Gandhinagar" -> "gandhi") as
    long as the stem keeps ``MIN_FUSED_STEM`` characters.  A name made only
    of locality words keeps its first word.
    """
    text = _BRACKETED.sub(" ", name.lower())
    text = _NON_WORD.sub(" ", text)
    text = " ".join(text.split())
    text = _LEADING_THE.sub("", text)

    words = text.split()
    while words:
        last = words[-1]
        if len(words) > 1 and last in LOCALITY_SUFFIXES:
            words.pop()
            continue
        stem = _strip_fused_suffix(last)
        if stem is None:
            break
        words[-1] = stem
    return " ".join(words)


def _strip_fused_suffix(word: str) -> Optional[str]:
    for suffix in FUSED_SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= MIN_FUSED_STEM:
            return word[:-len(suffix)]
    return None


def deduplicate(waypoints: Sequence[CandidateWaypoint]) -> List[CandidateWaypoint]:
    """
    Collapse waypoints that share a normalized name.

    Within a group the first registered station wins; a group without
    stations keeps its first member.  Output follows the order in which each
    group was first seen.  Waypoints whose name normalizes to nothing are
    never merged with each other.
    """
    groups: "OrderedDict[Tuple[str, str], List[CandidateWaypoint]]" = OrderedDict()
    for waypoint in waypoints:
        key = normalize_name(waypoint.name)
        group_key = ("name", key) if key else ("id", waypoint.id)
        groups.setdefault(group_key, []).append(waypoint)

    kept: List[CandidateWaypoint] = []
    for (_, key), members in groups.items():
        if len(members) == 1:
            kept.append(members[0])
            continue
        station = next((m for m in members if m.is_registered), None)
        winner = station if station is not None else members[0]
        logger.debug(
            "Collapsed %d entries named %r into %r (%s)",
            len(members), key, winner.name, winner.source_kind.value,
        )
        kept.append(winner)

    return kept


def target_stop_count(
    total_km: float,
    km_per_stop: float = 25.0,
    min_stops: int = 8,
    max_stops: int = 12,
) -> int:
    """``clamp(floor(total_km / km_per_stop), min_stops, max_stops)``."""
    raw = int(math.floor(total_km / km_per_stop)) if total_km > 0 else 0
    return max(min_stops, min(max_stops, raw))


def downsample(
    waypoints: Sequence[CandidateWaypoint],
    total_km: float,
    km_per_stop: float = 25.0,
    min_stops: int = 8,
    max_stops: int = 12,
    spacing_factor: float = 0.5,
) -> List[CandidateWaypoint]:
    """
    Thin projected waypoints to at most the target count.

    Pass 1 walks the waypoints in distance order and accepts one whenever it
    lies at least ``spacing_factor`` x min spacing beyond the last accepted
    one.  If that yields fewer than ``min(min_stops, target)``, pass 2 tops
    up with the remaining waypoints in distance order, ignoring spacing.
    """
    ordered = sorted(
        (w for w in waypoints if w.is_projected),
        key=lambda w: w.distance_along_route_km,
    )
    target = target_stop_count(total_km, km_per_stop, min_stops, max_stops)
    min_spacing_km = total_km / (target + 1)
    required_gap = spacing_factor * min_spacing_km

    accepted: Dict[int, CandidateWaypoint] = {}
    last_km = None
    for idx, waypoint in enumerate(ordered):
        if len(accepted) >= target:
            break
        if last_km is None or waypoint.distance_along_route_km - last_km >= required_gap:
            accepted[idx] = waypoint
            last_km = waypoint.distance_along_route_km

    spaced = len(accepted)
    if spaced < min(min_stops, target):
        for idx, waypoint in enumerate(ordered):
            if len(accepted) >= target:
                break
            if idx not in accepted:
                accepted[idx] = waypoint

    logger.debug(
        "Downsampled %d candidates to %d (target %d, %d by spacing of %.1f km)",
        len(ordered), len(accepted), target, spaced, required_gap,
    )
    return [ordered[i] for i in sorted(accepted)]
