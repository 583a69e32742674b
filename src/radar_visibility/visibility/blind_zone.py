"""Blind-zone and coverage circles around the receiver."""

from __future__ import annotations

from math import isfinite, radians, tan

from radar_visibility.contracts import CircleZone, Coordinate
from radar_visibility.geo.geodesy import circle_ring


def blind_zone_radius(cone_angle_deg: float, effective_height_m: float) -> float:
    """Return tan(cone angle) * effective height in meters.

    Zero when either input is zero; increases monotonically with both on
    cone angle in [0, 90) and height >= 0.
    """
    if not isfinite(cone_angle_deg) or not 0.0 <= cone_angle_deg < 90.0:
        raise ValueError("cone_angle_deg must be within [0, 90)")
    if not isfinite(effective_height_m) or effective_height_m < 0.0:
        raise ValueError("effective_height_m must be a non-negative number")
    if cone_angle_deg == 0.0 or effective_height_m == 0.0:
        return 0.0
    return tan(radians(cone_angle_deg)) * effective_height_m


def blind_zone_circle(
    center: Coordinate,
    cone_angle_deg: float,
    effective_height_m: float,
    steps: int = 64,
) -> CircleZone:
    """Circle the radar cannot observe because of its look-down limit."""
    radius = blind_zone_radius(cone_angle_deg, effective_height_m)
    return CircleZone(center=center, radius_m=radius, ring=tuple(circle_ring(center, radius, steps)))


def coverage_circle(center: Coordinate, radius_m: float, steps: int = 64) -> CircleZone:
    """Circle of the full sampling radius."""
    return CircleZone(center=center, radius_m=radius_m, ring=tuple(circle_ring(center, radius_m, steps)))
