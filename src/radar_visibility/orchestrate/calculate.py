"""End-to-end visibility calculation returning an immutable result."""

from __future__ import annotations

import logging
import time

from radar_visibility.contracts import BoundaryMode, ReceiverConfig, VisibilityResult
from radar_visibility.ingest.interfaces import ElevationLookupError, ElevationSource
from radar_visibility.ingest.rate_limit import AsyncRateLimiter
from radar_visibility.orchestrate.cancel import CancellationToken
from radar_visibility.visibility.assembler import assemble_polygon
from radar_visibility.visibility.blind_zone import blind_zone_circle, coverage_circle
from radar_visibility.visibility.sampler import ProgressCallback, sample_visibility

logger = logging.getLogger(__name__)


async def resolve_effective_height(
    config: ReceiverConfig,
    source: ElevationSource,
    *,
    limiter: AsyncRateLimiter | None = None,
    token: CancellationToken | None = None,
) -> tuple[float, float | None]:
    """Return (effective height, ground elevation at center or None).

    With ground offset enabled the receiver height is added to the ground
    elevation at the center; a failed lookup falls back to the raw height.
    """
    if not config.use_ground_offset:
        return config.height_m, None
    if token is not None:
        token.raise_if_cancelled()
    if limiter is not None:
        await limiter.acquire()
    if token is not None:
        token.raise_if_cancelled()
    try:
        ground = await source.get_elevation(config.center)
    except ElevationLookupError as exc:
        logger.warning("Center elevation lookup failed, using raw height: %s", exc)
        return config.height_m, None
    return config.height_m + ground, ground


async def calculate_visibility(
    config: ReceiverConfig,
    source: ElevationSource,
    *,
    mode: BoundaryMode = BoundaryMode.OUTER,
    min_vertices: int = 3,
    circle_steps: int = 64,
    limiter: AsyncRateLimiter | None = None,
    token: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> VisibilityResult:
    """Sample terrain around the receiver and build polygon and circles."""
    if min_vertices < 3:
        raise ValueError("min_vertices must be >= 3")
    started = time.monotonic()
    effective_height, center_elevation = await resolve_effective_height(
        config, source, limiter=limiter, token=token
    )
    bearings = config.bearings()
    logger.info(
        "Visibility calculation: center=%.6f,%.6f radius=%.0f m bearings=%d height=%.1f m mode=%s",
        config.center.lat,
        config.center.lon,
        config.radius_m,
        len(bearings),
        effective_height,
        mode.value,
    )

    results = await sample_visibility(
        config.center,
        bearings,
        config.radius_m,
        config.step_distance_m,
        effective_height,
        source,
        limiter=limiter,
        token=token,
        on_progress=on_progress,
    )
    polygon = assemble_polygon(results, effective_height, mode=mode, min_vertices=min_vertices)
    if effective_height < 0.0:
        logger.warning(
            "Effective height %.1f m is below zero, blind zone collapses to the center", effective_height
        )
    blind_zone = blind_zone_circle(
        config.center, config.cone_angle_deg, max(effective_height, 0.0), circle_steps
    )
    coverage = coverage_circle(config.center, config.radius_m, circle_steps)

    result = VisibilityResult(
        config=config,
        mode=mode,
        effective_height_m=effective_height,
        center_elevation_m=center_elevation,
        bearings=tuple(results),
        polygon=polygon,
        blind_zone=blind_zone,
        coverage=coverage,
        center_lookup_failed=config.use_ground_offset and center_elevation is None,
        meta={
            "elapsed_s": round(time.monotonic() - started, 3),
            "min_vertices": min_vertices,
            "circle_steps": circle_steps,
        },
    )
    logger.info(
        "Visibility calculation done: samples=%d failed=%d polygon=%s blind_zone=%.1f m",
        len(result.samples),
        result.failed_queries,
        "yes" if polygon is not None else "no",
        blind_zone.radius_m,
    )
    return result
