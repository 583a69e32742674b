"""Core data contracts for radar visibility calculations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from math import floor, isfinite
from typing import Any

from radar_visibility.geo.polygon import polygon_geometry

_EPS = 1e-9


class InvalidReceiverConfigError(ValueError):
    """Raised when receiver parameters cannot be used for a calculation."""


def _require_finite(value: float, label: str) -> float:
    """Convert to float and reject NaN/inf values."""
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidReceiverConfigError(f"{label} must be a number") from exc
    if not isfinite(number):
        raise InvalidReceiverConfigError(f"{label} must be finite")
    return number


@dataclass(frozen=True, slots=True)
class Coordinate:
    """WGS84 point stored as (lon, lat) decimal degrees."""

    lon: float
    lat: float

    def as_lon_lat(self) -> list[float]:
        """Return GeoJSON position pair."""
        return [self.lon, self.lat]


@dataclass(frozen=True, slots=True)
class ElevationSample:
    """One elevation query result along a bearing."""

    coordinate: Coordinate
    elevation_m: float
    bearing_deg: float
    distance_m: float

    def to_dict(self) -> dict[str, Any]:
        """Serialize the sample to a JSON-compatible dictionary."""
        return {
            "lon": self.coordinate.lon,
            "lat": self.coordinate.lat,
            "elevation_m": self.elevation_m,
            "bearing_deg": self.bearing_deg,
            "distance_m": self.distance_m,
        }


class BoundaryMode(StrEnum):
    """Policy used to pick polygon vertices from per-bearing samples."""

    OUTER = "outer"
    BLOCKED_ONLY = "blocked_only"
    CLEAR = "clear"


@dataclass(frozen=True, slots=True)
class ReceiverConfig:
    """Receiver placement and sampling parameters."""

    center: Coordinate
    radius_m: float
    height_m: float
    cone_angle_deg: float
    bearing_step_deg: float
    step_distance_m: float = 100.0
    use_ground_offset: bool = False

    def __post_init__(self) -> None:
        """Validate numeric ranges; invalid input never reaches geometry code."""
        lon = _require_finite(self.center.lon, "center.lon")
        lat = _require_finite(self.center.lat, "center.lat")
        if not -180.0 <= lon <= 180.0:
            raise InvalidReceiverConfigError("center.lon must be within [-180, 180]")
        if not -90.0 <= lat <= 90.0:
            raise InvalidReceiverConfigError("center.lat must be within [-90, 90]")

        radius = _require_finite(self.radius_m, "radius_m")
        height = _require_finite(self.height_m, "height_m")
        cone = _require_finite(self.cone_angle_deg, "cone_angle_deg")
        bearing_step = _require_finite(self.bearing_step_deg, "bearing_step_deg")
        step_distance = _require_finite(self.step_distance_m, "step_distance_m")

        if radius < 0.0:
            raise InvalidReceiverConfigError("radius_m must be non-negative")
        if height < 0.0:
            raise InvalidReceiverConfigError("height_m must be non-negative")
        if not 0.0 <= cone < 90.0:
            raise InvalidReceiverConfigError("cone_angle_deg must be within [0, 90)")
        if not 0.0 < bearing_step <= 360.0:
            raise InvalidReceiverConfigError("bearing_step_deg must be within (0, 360]")
        if step_distance <= 0.0:
            raise InvalidReceiverConfigError("step_distance_m must be positive")

        object.__setattr__(self, "center", Coordinate(lon=lon, lat=lat))
        object.__setattr__(self, "radius_m", radius)
        object.__setattr__(self, "height_m", height)
        object.__setattr__(self, "cone_angle_deg", cone)
        object.__setattr__(self, "bearing_step_deg", bearing_step)
        object.__setattr__(self, "step_distance_m", step_distance)

    def bearings(self) -> list[float]:
        """Return compass bearings 0, step, 2*step, ... below 360."""
        count = int(floor(360.0 / self.bearing_step_deg + _EPS))
        return [i * self.bearing_step_deg for i in range(count)]

    def distances(self) -> list[float]:
        """Return sampling distances S, 2S, ... up to the largest multiple <= radius."""
        return sampling_distances(self.radius_m, self.step_distance_m)


def sampling_distances(radius_m: float, step_distance_m: float) -> list[float]:
    """Return multiples of the step distance that fit inside the radius."""
    if step_distance_m <= 0.0:
        raise ValueError("step_distance_m must be positive")
    if radius_m < step_distance_m:
        return []
    count = int(floor(radius_m / step_distance_m + _EPS))
    return [k * step_distance_m for k in range(1, count + 1)]


@dataclass(frozen=True, slots=True)
class BearingResult:
    """Samples collected along one bearing and the detected boundary."""

    bearing_deg: float
    samples: tuple[ElevationSample, ...]
    boundary: ElevationSample | None
    exceeded: bool
    failed_queries: int = 0


@dataclass(frozen=True, slots=True)
class VisibilityPolygon:
    """Closed ring of coordinates approximating the visible area."""

    ring: tuple[Coordinate, ...]

    def __post_init__(self) -> None:
        """Validate that the ring is closed and has at least three vertices."""
        if len(self.ring) < 4:
            raise ValueError("polygon ring needs at least 3 vertices plus closing point")
        if self.ring[0] != self.ring[-1]:
            raise ValueError("polygon ring must be closed")

    @property
    def vertex_count(self) -> int:
        """Number of vertices excluding the closing point."""
        return len(self.ring) - 1

    def to_geojson(self) -> dict[str, Any]:
        """Return a GeoJSON Polygon geometry."""
        return polygon_geometry(self.ring)


@dataclass(frozen=True, slots=True)
class CircleZone:
    """Tessellated circle around the receiver."""

    center: Coordinate
    radius_m: float
    ring: tuple[Coordinate, ...]

    def to_geojson(self) -> dict[str, Any]:
        """Return a GeoJSON Polygon geometry."""
        return polygon_geometry(self.ring)


@dataclass(frozen=True, slots=True)
class VisibilityResult:
    """Immutable outcome of one visibility calculation."""

    config: ReceiverConfig
    mode: BoundaryMode
    effective_height_m: float
    center_elevation_m: float | None
    bearings: tuple[BearingResult, ...]
    polygon: VisibilityPolygon | None
    blind_zone: CircleZone
    coverage: CircleZone
    center_lookup_failed: bool = False
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def samples(self) -> list[ElevationSample]:
        """All recorded samples in query order."""
        return [sample for result in self.bearings for sample in result.samples]

    @property
    def failed_queries(self) -> int:
        """Number of elevation queries that were dropped, center lookup included."""
        dropped = sum(result.failed_queries for result in self.bearings)
        return dropped + int(self.center_lookup_failed)

    def blocking_samples(self) -> list[ElevationSample]:
        """Samples whose elevation exceeds the effective height."""
        return [s for s in self.samples if s.elevation_m > self.effective_height_m]

    def to_feature_collection(self) -> dict[str, Any]:
        """Render the result as a GeoJSON FeatureCollection for map front ends."""
        features: list[dict[str, Any]] = [
            {
                "type": "Feature",
                "geometry": self.coverage.to_geojson(),
                "properties": {"kind": "coverage", "radius_m": self.coverage.radius_m},
            }
        ]
        if self.polygon is not None:
            features.append(
                {
                    "type": "Feature",
                    "geometry": self.polygon.to_geojson(),
                    "properties": {"kind": "visibility", "mode": self.mode.value},
                }
            )
        features.append(
            {
                "type": "Feature",
                "geometry": self.blind_zone.to_geojson(),
                "properties": {"kind": "blind_zone", "radius_m": self.blind_zone.radius_m},
            }
        )
        for sample in self.blocking_samples():
            features.append(
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": sample.coordinate.as_lon_lat()},
                    "properties": {
                        "kind": "blocking_sample",
                        "elevation_m": sample.elevation_m,
                        "bearing_deg": sample.bearing_deg,
                        "distance_m": sample.distance_m,
                    },
                }
            )
        return {"type": "FeatureCollection", "features": features}
