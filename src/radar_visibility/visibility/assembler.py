"""Assemble per-bearing boundary points into a closed visibility polygon."""

from __future__ import annotations

from collections.abc import Sequence

from radar_visibility.contracts import BearingResult, BoundaryMode, ElevationSample, VisibilityPolygon
from radar_visibility.geo.polygon import close_ring, distinct_vertex_count


def select_boundary_points(
    results: Sequence[BearingResult],
    effective_height_m: float,
    mode: BoundaryMode = BoundaryMode.OUTER,
) -> list[ElevationSample]:
    """Pick polygon vertices from sampled bearings, ordered by bearing then distance.

    - outer: first sample above threshold, else the farthest sample.
    - blocked_only: first sample above threshold; clear bearings are dropped.
    - clear: every sample at or below threshold.
    """
    selected: list[ElevationSample] = []
    for result in results:
        if mode is BoundaryMode.OUTER:
            if result.boundary is not None:
                selected.append(result.boundary)
        elif mode is BoundaryMode.BLOCKED_ONLY:
            if result.exceeded and result.boundary is not None:
                selected.append(result.boundary)
        elif mode is BoundaryMode.CLEAR:
            selected.extend(s for s in result.samples if s.elevation_m <= effective_height_m)
        else:
            raise ValueError(f"unsupported boundary mode: {mode!r}")
    selected.sort(key=lambda s: (s.bearing_deg, s.distance_m))
    return selected


def assemble_polygon(
    results: Sequence[BearingResult],
    effective_height_m: float,
    mode: BoundaryMode = BoundaryMode.OUTER,
    min_vertices: int = 3,
) -> VisibilityPolygon | None:
    """Close the selected boundary points into a ring.

    Returns None when fewer than `min_vertices` distinct points are selected.
    """
    if min_vertices < 3:
        raise ValueError("min_vertices must be >= 3")
    points = [s.coordinate for s in select_boundary_points(results, effective_height_m, mode)]
    if len(points) < min_vertices or distinct_vertex_count(points) < 3:
        return None
    return VisibilityPolygon(ring=tuple(close_ring(points)))
