"""Deterministic elevation sources for offline runs and tests."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from math import exp

from radar_visibility.contracts import Coordinate
from radar_visibility.geo.geodesy import destination, distance_and_bearing
from radar_visibility.ingest.interfaces import ElevationLookupError


class FlatElevationSource:
    """Constant elevation everywhere."""

    def __init__(self, elevation_m: float = 0.0) -> None:
        self.elevation_m = float(elevation_m)
        self.calls: list[Coordinate] = []

    async def get_elevation(self, point: Coordinate) -> float:
        """Return the configured constant elevation."""
        self.calls.append(point)
        return self.elevation_m


class ScriptedElevationSource:
    """Replay a fixed sequence of elevations (or errors) in query order.

    Entries that are exceptions are raised instead of returned; running
    past the end of the script raises ElevationLookupError.
    """

    def __init__(self, script: Iterable[float | Exception]) -> None:
        self._script: list[float | Exception] = list(script)
        self.calls: list[Coordinate] = []

    async def get_elevation(self, point: Coordinate) -> float:
        """Return the next scripted value."""
        index = len(self.calls)
        self.calls.append(point)
        if index >= len(self._script):
            raise ElevationLookupError("elevation script exhausted")
        value = self._script[index]
        if isinstance(value, Exception):
            raise value
        return float(value)


@dataclass(frozen=True)
class Hill:
    """Gaussian bump placed at a bearing/distance from the terrain origin."""

    bearing_deg: float
    distance_m: float
    peak_m: float
    spread_m: float


class SyntheticTerrainSource:
    """Smooth synthetic terrain made of a base level plus Gaussian hills.

    Hill centers are expressed relative to `origin`, so the same layout can
    be reused for any receiver location.
    """

    def __init__(self, origin: Coordinate, base_m: float = 0.0, hills: Sequence[Hill] = ()) -> None:
        self.origin = origin
        self.base_m = float(base_m)
        self.hills = tuple(hills)
        self._centers = [destination(origin, h.bearing_deg, h.distance_m) for h in self.hills]
        self.calls: list[Coordinate] = []

    @classmethod
    def default(cls, origin: Coordinate) -> SyntheticTerrainSource:
        """Ridge to the north-east, low hill to the south, plain elsewhere."""
        return cls(
            origin,
            base_m=20.0,
            hills=(
                Hill(bearing_deg=45.0, distance_m=800.0, peak_m=180.0, spread_m=250.0),
                Hill(bearing_deg=80.0, distance_m=1200.0, peak_m=120.0, spread_m=300.0),
                Hill(bearing_deg=180.0, distance_m=600.0, peak_m=60.0, spread_m=150.0),
            ),
        )

    def elevation_at(self, point: Coordinate) -> float:
        """Evaluate terrain height at point without recording a call."""
        total = self.base_m
        for hill, center in zip(self.hills, self._centers):
            dist, _ = distance_and_bearing(center, point)
            total += hill.peak_m * exp(-0.5 * (dist / hill.spread_m) ** 2)
        return total

    async def get_elevation(self, point: Coordinate) -> float:
        """Return synthetic terrain height at point."""
        self.calls.append(point)
        return self.elevation_at(point)
