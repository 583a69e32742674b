"""Elevation source factory with lazy network client construction."""

from __future__ import annotations

from radar_visibility.contracts import Coordinate
from radar_visibility.ingest.interfaces import ElevationSource
from radar_visibility.ingest.mock_providers import SyntheticTerrainSource
from radar_visibility.settings import Settings


def create_elevation_source(settings: Settings, origin: Coordinate) -> ElevationSource:
    """Create an elevation source for the configured provider mode.

    `origin` anchors the synthetic terrain in mock mode and is ignored
    by network-backed sources.
    """
    if settings.elevation_provider == "mock":
        return SyntheticTerrainSource.default(origin)

    from radar_visibility.ingest.open_elevation import OpenElevationSource

    return OpenElevationSource(settings.elevation_url, timeout_s=settings.request_timeout_s)
