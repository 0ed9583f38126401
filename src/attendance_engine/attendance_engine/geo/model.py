from __future__ import annotations

from dataclasses import dataclass

from ..common.validators import require_coordinates


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def __post_init__(self):
        require_coordinates(self.lat, self.lng)

    def as_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}
