"""Demo: run a visibility calculation over synthetic terrain and print a summary."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from radar_visibility.contracts import BoundaryMode, Coordinate, ReceiverConfig  # noqa: E402
from radar_visibility.ingest.mock_providers import SyntheticTerrainSource  # noqa: E402
from radar_visibility.orchestrate.calculate import calculate_visibility  # noqa: E402


def main() -> int:
    """Run one offline calculation and print per-bearing boundaries."""
    center = Coordinate(lon=30.281996992887677, lat=59.79052973571955)
    config = ReceiverConfig(
        center=center,
        radius_m=1500.0,
        height_m=60.0,
        cone_angle_deg=10.0,
        bearing_step_deg=30.0,
        step_distance_m=100.0,
    )
    source = SyntheticTerrainSource.default(center)

    result = asyncio.run(calculate_visibility(config, source, mode=BoundaryMode.OUTER))

    print("=== Radar Visibility Local Demo ===")
    print(f"center: lat={center.lat:.5f}, lon={center.lon:.5f}")
    print(f"effective height: {result.effective_height_m:.1f} m")
    print(f"blind zone radius: {result.blind_zone.radius_m:.1f} m\n")
    print("bearing | boundary_m | elevation_m | blocked")
    print("--------+------------+-------------+--------")
    for bearing in result.bearings:
        if bearing.boundary is None:
            print(f"{bearing.bearing_deg:>7.1f} | {'-':>10} | {'-':>11} | -")
            continue
        print(
            f"{bearing.bearing_deg:>7.1f} | {bearing.boundary.distance_m:>10.0f} | "
            f"{bearing.boundary.elevation_m:>11.1f} | {'yes' if bearing.exceeded else 'no'}"
        )
    vertices = result.polygon.vertex_count if result.polygon else 0
    print(f"\npolygon vertices: {vertices}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
