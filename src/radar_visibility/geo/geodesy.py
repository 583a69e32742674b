"""Geodesic projection helpers on the WGS84 ellipsoid."""

from __future__ import annotations

import numpy as np
from pyproj import Geod

from radar_visibility.contracts import Coordinate

_GEOD = Geod(ellps="WGS84")


def destination(origin: Coordinate, bearing_deg: float, distance_m: float) -> Coordinate:
    """Return the point reached from origin along a bearing after distance_m meters."""
    if distance_m < 0.0:
        raise ValueError("distance_m must be non-negative")
    lon, lat, _ = _GEOD.fwd(origin.lon, origin.lat, bearing_deg, distance_m)
    return Coordinate(lon=float(lon), lat=float(lat))


def distance_and_bearing(origin: Coordinate, target: Coordinate) -> tuple[float, float]:
    """Return (distance_m, bearing_deg in [0, 360)) from origin to target."""
    az, _, dist = _GEOD.inv(origin.lon, origin.lat, target.lon, target.lat)
    return float(dist), float(az) % 360.0


def circle_ring(center: Coordinate, radius_m: float, steps: int = 64) -> list[Coordinate]:
    """Tessellate a geodesic circle into a closed ring of `steps` vertices.

    Vertices start due north and proceed clockwise, matching compass bearings.
    A zero radius yields a degenerate ring made of the center point.
    """
    if steps < 3:
        raise ValueError("steps must be >= 3")
    if radius_m < 0.0:
        raise ValueError("radius_m must be non-negative")
    if radius_m == 0.0:
        return [center] * (steps + 1)

    azimuths = np.linspace(0.0, 360.0, num=steps, endpoint=False)
    lons, lats, _ = _GEOD.fwd(
        np.full(steps, center.lon),
        np.full(steps, center.lat),
        azimuths,
        np.full(steps, radius_m),
    )
    ring = [Coordinate(lon=float(lon), lat=float(lat)) for lon, lat in zip(lons, lats)]
    ring.append(ring[0])
    return ring
