"""Ring helpers and GeoJSON conversion backed by shapely."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from shapely.geometry import Polygon, mapping

if TYPE_CHECKING:
    from radar_visibility.contracts import Coordinate


def close_ring(points: Sequence[Coordinate]) -> list[Coordinate]:
    """Return points with the first point repeated at the end."""
    if not points:
        raise ValueError("points must be non-empty")
    ring = list(points)
    if ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def distinct_vertex_count(points: Sequence[Coordinate]) -> int:
    """Count distinct coordinates, ignoring order."""
    return len({(p.lon, p.lat) for p in points})


def polygon_geometry(ring: Sequence[Coordinate]) -> dict[str, Any]:
    """Convert a closed ring into a GeoJSON Polygon geometry dict."""
    coords = [(p.lon, p.lat) for p in ring]
    if distinct_vertex_count(ring) < 3:
        # shapely rejects rings that collapse to a point or line
        return {"type": "Polygon", "coordinates": [[list(c) for c in coords]]}
    geometry = mapping(Polygon(coords))
    return {
        "type": geometry["type"],
        "coordinates": [[list(c) for c in part] for part in geometry["coordinates"]],
    }
