"""FastAPI app exposing the elevation lookup proxy and visibility endpoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from radar_visibility.contracts import (
    BoundaryMode,
    Coordinate,
    InvalidReceiverConfigError,
    ReceiverConfig,
)
from radar_visibility.ingest.factory import create_elevation_source
from radar_visibility.ingest.interfaces import ElevationLookupError, ElevationSource
from radar_visibility.ingest.open_elevation import OpenElevationSource
from radar_visibility.ingest.rate_limit import AsyncRateLimiter
from radar_visibility.orchestrate.calculate import calculate_visibility
from radar_visibility.settings import Settings, settings_from_env

logger = logging.getLogger(__name__)

SourceFactory = Callable[[Coordinate], ElevationSource]


class VisibilityRequest(BaseModel):
    """Request schema for one visibility calculation."""

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    radius_m: float = Field(ge=0.0)
    height_m: float = Field(ge=0.0)
    cone_angle_deg: float = Field(default=10.0, ge=0.0, lt=90.0)
    bearing_step_deg: float = Field(default=10.0, gt=0.0, le=360.0)
    step_distance_m: float = Field(default=100.0, gt=0.0)
    use_ground_offset: bool = False
    mode: BoundaryMode = BoundaryMode.OUTER
    min_vertices: int | None = Field(default=None, ge=3)

    def to_config(self) -> ReceiverConfig:
        """Convert API model into a validated ReceiverConfig."""
        return ReceiverConfig(
            center=Coordinate(lon=self.lon, lat=self.lat),
            radius_m=self.radius_m,
            height_m=self.height_m,
            cone_angle_deg=self.cone_angle_deg,
            bearing_step_deg=self.bearing_step_deg,
            step_distance_m=self.step_distance_m,
            use_ground_offset=self.use_ground_offset,
        )


class VisibilitySummary(BaseModel):
    """Headline numbers of a visibility calculation."""

    effective_height_m: float
    center_elevation_m: float | None
    blind_zone_radius_m: float
    sample_count: int
    failed_queries: int
    polygon_vertices: int | None


class VisibilityResponse(BaseModel):
    """Response schema: GeoJSON layers plus summary."""

    summary: VisibilitySummary
    geojson: dict[str, Any]


def _default_source_factory(settings: Settings) -> SourceFactory:
    def factory(origin: Coordinate) -> ElevationSource:
        return create_elevation_source(settings, origin)

    return factory


def create_app(
    settings: Settings | None = None,
    *,
    lookup_client: OpenElevationSource | None = None,
    source_factory: SourceFactory | None = None,
) -> FastAPI:
    """Create and configure the FastAPI app."""
    cfg = settings or settings_from_env()
    upstream = lookup_client or OpenElevationSource(
        cfg.elevation_url, timeout_s=cfg.request_timeout_s
    )
    make_source = source_factory or _default_source_factory(cfg)
    limiter = AsyncRateLimiter(cfg.rate_limit_per_s)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await upstream.aclose()

    app = FastAPI(title="Radar Visibility API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = cfg
    app.state.lookup_client = upstream

    @app.get("/health")
    def get_health() -> dict[str, str]:
        """Liveness probe with configured provider."""
        return {"status": "ok", "elevation_provider": cfg.elevation_provider}

    @app.get("/api/lookup", response_model=None)
    async def get_lookup(locations: str = Query(min_length=1)) -> JSONResponse | PlainTextResponse:
        """Forward an elevation lookup to the upstream API."""
        logger.info("Fetching elevation data for locations: %s", locations)
        try:
            payload = await upstream.lookup(locations)
        except ElevationLookupError as exc:
            logger.error("Error fetching elevation data: %s", exc)
            return PlainTextResponse(f"Server error: {exc}", status_code=500)
        return JSONResponse(payload)

    @app.post("/visibility", response_model=VisibilityResponse)
    async def post_visibility(payload: VisibilityRequest) -> VisibilityResponse:
        """Run one visibility calculation and return GeoJSON layers."""
        try:
            config = payload.to_config()
        except InvalidReceiverConfigError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        source = make_source(config.center)
        try:
            result = await calculate_visibility(
                config,
                source,
                mode=payload.mode,
                min_vertices=cfg.min_vertices if payload.min_vertices is None else payload.min_vertices,
                circle_steps=cfg.circle_steps,
                limiter=limiter,
            )
        finally:
            close = getattr(source, "aclose", None)
            if close is not None:
                await close()

        return VisibilityResponse(
            summary=VisibilitySummary(
                effective_height_m=result.effective_height_m,
                center_elevation_m=result.center_elevation_m,
                blind_zone_radius_m=result.blind_zone.radius_m,
                sample_count=len(result.samples),
                failed_queries=result.failed_queries,
                polygon_vertices=result.polygon.vertex_count if result.polygon else None,
            ),
            geojson=result.to_feature_collection(),
        )

    return app


app = create_app()
