"""Walk outward along compass bearings and find where terrain blocks the view."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from radar_visibility.contracts import BearingResult, Coordinate, ElevationSample, sampling_distances
from radar_visibility.geo.geodesy import destination
from radar_visibility.ingest.interfaces import ElevationLookupError, ElevationSource
from radar_visibility.ingest.rate_limit import AsyncRateLimiter
from radar_visibility.orchestrate.cancel import CancellationToken

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class _Progress:
    def __init__(self, total: int, callback: ProgressCallback | None) -> None:
        self.total = total
        self.done = 0
        self._callback = callback

    def step(self) -> None:
        self.done += 1
        if self._callback is not None:
            self._callback(self.done, self.total)


async def _query(
    source: ElevationSource,
    point: Coordinate,
    limiter: AsyncRateLimiter | None,
    token: CancellationToken | None,
) -> float:
    if token is not None:
        token.raise_if_cancelled()
    if limiter is not None:
        await limiter.acquire()
    if token is not None:
        token.raise_if_cancelled()
    return await source.get_elevation(point)


async def sample_bearing(
    center: Coordinate,
    bearing_deg: float,
    distances: Sequence[float],
    effective_height_m: float,
    source: ElevationSource,
    *,
    limiter: AsyncRateLimiter | None = None,
    token: CancellationToken | None = None,
    progress: _Progress | None = None,
) -> BearingResult:
    """Sample one bearing until terrain exceeds the effective height.

    Failed queries are logged and skipped. When nothing exceeds the
    threshold the boundary is the farthest recorded sample.
    """
    samples: list[ElevationSample] = []
    failed = 0
    for distance in distances:
        point = destination(center, bearing_deg, distance)
        try:
            elevation = await _query(source, point, limiter, token)
        except ElevationLookupError as exc:
            failed += 1
            logger.warning(
                "Elevation query failed at bearing=%.1f distance=%.0f: %s",
                bearing_deg,
                distance,
                exc,
            )
            if progress is not None:
                progress.step()
            continue
        if progress is not None:
            progress.step()

        sample = ElevationSample(
            coordinate=point,
            elevation_m=elevation,
            bearing_deg=bearing_deg,
            distance_m=distance,
        )
        samples.append(sample)
        logger.debug("bearing=%.1f distance=%.0f elevation=%.1f", bearing_deg, distance, elevation)
        if elevation > effective_height_m:
            return BearingResult(
                bearing_deg=bearing_deg,
                samples=tuple(samples),
                boundary=sample,
                exceeded=True,
                failed_queries=failed,
            )

    return BearingResult(
        bearing_deg=bearing_deg,
        samples=tuple(samples),
        boundary=samples[-1] if samples else None,
        exceeded=False,
        failed_queries=failed,
    )


async def sample_visibility(
    center: Coordinate,
    bearings: Sequence[float],
    radius_m: float,
    step_distance_m: float,
    effective_height_m: float,
    source: ElevationSource,
    *,
    limiter: AsyncRateLimiter | None = None,
    token: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> list[BearingResult]:
    """Sample every bearing sequentially and return per-bearing results.

    `on_progress(done, total)` fires after each attempted query; `total` is
    the upper bound bearings * steps, so early stops finish below it.
    """
    distances = sampling_distances(radius_m, step_distance_m)
    progress = _Progress(len(bearings) * len(distances), on_progress)
    results: list[BearingResult] = []
    for bearing in bearings:
        results.append(
            await sample_bearing(
                center,
                bearing,
                distances,
                effective_height_m,
                source,
                limiter=limiter,
                token=token,
                progress=progress,
            )
        )
    return results
