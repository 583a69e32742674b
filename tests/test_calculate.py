"""Tests for end-to-end calculation and superseding sessions."""

from __future__ import annotations

import asyncio

import pytest

from radar_visibility.contracts import BoundaryMode, Coordinate, ReceiverConfig
from radar_visibility.geo.geodesy import destination
from radar_visibility.ingest.interfaces import ElevationLookupError
from radar_visibility.ingest.mock_providers import (
    FlatElevationSource,
    ScriptedElevationSource,
    SyntheticTerrainSource,
)
from radar_visibility.ingest.rate_limit import AsyncRateLimiter
from radar_visibility.orchestrate.calculate import calculate_visibility, resolve_effective_height
from radar_visibility.orchestrate.cancel import CalculationCancelledError, CancellationToken
from radar_visibility.orchestrate.session import VisibilitySession

CENTER = Coordinate(lon=30.0, lat=59.0)


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


def _config(**overrides: object) -> ReceiverConfig:
    values: dict[str, object] = {
        "center": CENTER,
        "radius_m": 300.0,
        "height_m": 50.0,
        "cone_angle_deg": 10.0,
        "bearing_step_deg": 360.0,
        "step_distance_m": 100.0,
    }
    values.update(overrides)
    return ReceiverConfig(**values)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_single_bearing_example_produces_boundary_but_no_polygon() -> None:
    """One bearing with profile [10, 60, 80] stops at 200 m; no polygon from one point."""
    source = ScriptedElevationSource([10.0, 60.0, 80.0])

    result = await calculate_visibility(_config(), source)

    assert len(result.bearings) == 1
    boundary = result.bearings[0].boundary
    assert boundary is not None
    assert boundary.coordinate == destination(CENTER, 0.0, 200.0)
    assert [s.distance_m for s in result.samples] == [100.0, 200.0]
    assert result.polygon is None
    assert result.effective_height_m == 50.0
    assert result.center_elevation_m is None


@pytest.mark.asyncio
async def test_polygon_from_flat_terrain_reaches_radius() -> None:
    """Terrain below the receiver yields a polygon at full radius."""
    source = FlatElevationSource(0.0)

    result = await calculate_visibility(_config(bearing_step_deg=90.0, radius_m=200.0), source)

    assert result.polygon is not None
    assert result.polygon.vertex_count == 4
    assert result.polygon.ring[0] == destination(CENTER, 0.0, 200.0)
    assert result.blocking_samples() == []
    assert result.coverage.radius_m == 200.0
    assert result.failed_queries == 0


@pytest.mark.asyncio
async def test_ground_offset_adds_center_elevation() -> None:
    """With ground offset the first query is the center and it raises the threshold."""
    source = ScriptedElevationSource([100.0, 120.0, 160.0])

    result = await calculate_visibility(_config(use_ground_offset=True, radius_m=200.0), source)

    assert source.calls[0] == CENTER
    assert result.center_elevation_m == 100.0
    assert result.effective_height_m == 150.0
    bearing = result.bearings[0]
    assert bearing.exceeded is True
    assert bearing.boundary is not None and bearing.boundary.distance_m == 200.0


@pytest.mark.asyncio
async def test_ground_offset_failure_falls_back_to_raw_height() -> None:
    """A failed center lookup keeps the configured height."""
    source = ScriptedElevationSource([ElevationLookupError("timeout")])

    height, ground = await resolve_effective_height(_config(use_ground_offset=True), source)

    assert height == 50.0
    assert ground is None


@pytest.mark.asyncio
async def test_blind_zone_uses_effective_height() -> None:
    """Blind zone radius is tan(cone) * effective height."""
    source = FlatElevationSource(0.0)

    result = await calculate_visibility(_config(cone_angle_deg=45.0, height_m=80.0), source, circle_steps=32)

    assert result.blind_zone.radius_m == pytest.approx(80.0)
    assert len(result.blind_zone.ring) == 33


@pytest.mark.asyncio
async def test_feature_collection_contains_layers() -> None:
    """GeoJSON output includes coverage, polygon, blind zone and blocking markers."""
    source = SyntheticTerrainSource.default(CENTER)
    config = _config(radius_m=1500.0, height_m=60.0, bearing_step_deg=30.0)

    result = await calculate_visibility(config, source, mode=BoundaryMode.OUTER)
    collection = result.to_feature_collection()

    kinds = [f["properties"]["kind"] for f in collection["features"]]
    assert collection["type"] == "FeatureCollection"
    assert kinds[0] == "coverage"
    assert "visibility" in kinds
    assert "blind_zone" in kinds
    assert kinds.count("blocking_sample") == len(result.blocking_samples())
    assert result.blocking_samples()


@pytest.mark.asyncio
async def test_session_new_run_supersedes_in_flight_run() -> None:
    """Starting a second run cancels the first; only the second result is kept."""

    class _GatedSource:
        def __init__(self) -> None:
            self.started = asyncio.Event()
            self.gate = asyncio.Event()
            self.calls = 0

        async def get_elevation(self, point: Coordinate) -> float:
            self.calls += 1
            self.started.set()
            await self.gate.wait()
            return 0.0

    source = _GatedSource()
    session = VisibilitySession(source)

    first = asyncio.create_task(session.run(_config(radius_m=200.0)))
    await source.started.wait()
    assert session.busy is True

    second = asyncio.create_task(session.run(_config(radius_m=100.0)))
    await asyncio.sleep(0)
    source.gate.set()

    result = await second
    with pytest.raises(CalculationCancelledError):
        await first

    assert session.latest is result
    assert result.config.radius_m == 100.0
    assert session.run_count == 2
    assert session.busy is False


@pytest.mark.asyncio
async def test_center_below_sea_level_collapses_blind_zone() -> None:
    """A negative effective height still produces a result with a zero blind zone."""
    source = ScriptedElevationSource([-28.0, -30.0, -30.0, -30.0])

    result = await calculate_visibility(_config(height_m=10.0, use_ground_offset=True), source)

    assert len(source.calls) == 4
    assert result.effective_height_m == pytest.approx(-18.0)
    assert result.center_elevation_m == -28.0
    assert result.blind_zone.radius_m == 0.0
    assert set(result.blind_zone.ring) == {CENTER}
    assert result.bearings[0].exceeded is False


@pytest.mark.asyncio
async def test_rate_limiter_spaces_every_query_including_failures() -> None:
    """Center lookup and failed samples each take a slot at one query per second."""
    clock = _FakeClock()
    limiter = AsyncRateLimiter(1.0, clock=clock, sleep=clock.sleep)
    source = ScriptedElevationSource(
        [ElevationLookupError("center"), 10.0, ElevationLookupError("timeout"), 20.0]
    )

    result = await calculate_visibility(_config(use_ground_offset=True), source, limiter=limiter)

    assert len(source.calls) == 4
    assert source.calls[0] == CENTER
    assert clock.sleeps == pytest.approx([1.0, 1.0, 1.0])
    assert clock.now == pytest.approx(3.0)
    assert result.center_lookup_failed is True
    assert result.failed_queries == 2
    assert result.effective_height_m == 50.0


@pytest.mark.asyncio
async def test_center_lookup_skipped_when_cancelled_while_throttled() -> None:
    """A run cancelled during the limiter wait never issues the center lookup."""
    token = CancellationToken()

    class _CancellingClock(_FakeClock):
        async def sleep(self, delay: float) -> None:
            await super().sleep(delay)
            token.cancel("superseded")

    clock = _CancellingClock()
    limiter = AsyncRateLimiter(1.0, clock=clock, sleep=clock.sleep)
    await limiter.acquire()
    source = ScriptedElevationSource([100.0])

    with pytest.raises(CalculationCancelledError):
        await resolve_effective_height(
            _config(use_ground_offset=True), source, limiter=limiter, token=token
        )

    assert clock.sleeps == pytest.approx([1.0])
    assert source.calls == []


@pytest.mark.asyncio
async def test_min_vertices_below_three_rejected_before_sampling() -> None:
    """An invalid vertex minimum fails before any elevation query."""
    source = FlatElevationSource(0.0)

    with pytest.raises(ValueError):
        await calculate_visibility(_config(), source, min_vertices=2)

    assert source.calls == []
