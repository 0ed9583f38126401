"""Great-circle geometry for geofence checks."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..core.constants import EARTH_RADIUS_METERS
from ..locations.model import Location
from .model import GeoPoint


@dataclass(frozen=True)
class RankedLocation:
    location: Location
    distance: float

    @property
    def in_range(self) -> bool:
        return self.distance <= self.location.radius

    def as_dict(self) -> dict:
        return {
            "id": self.location.location_id,
            "name": self.location.name,
            "distance": round(self.distance),
        }


def distance(a: GeoPoint, b: GeoPoint) -> float:
    """Haversine distance between two points, in meters."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Clamp: rounding can push h a hair above 1 for antipodal points.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def rank(point: GeoPoint, locations: Iterable[Location]) -> list[RankedLocation]:
    """Every active location with its distance from ``point``, nearest first."""
    ranked = [RankedLocation(location=loc, distance=distance(point, loc.point)) for loc in locations if loc.is_active]
    ranked.sort(key=lambda r: (r.distance, str(r.location.location_id)))
    return ranked


def in_range(ranked: Sequence[RankedLocation]) -> list[RankedLocation]:
    return [r for r in ranked if r.in_range]
