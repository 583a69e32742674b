"""Elevation source interfaces."""

from __future__ import annotations

from typing import Protocol

from radar_visibility.contracts import Coordinate


class ElevationLookupError(RuntimeError):
    """Raised when a single elevation query fails or returns an unusable body."""


class ElevationSource(Protocol):
    """Interface for retrieving ground elevation at a WGS84 point."""

    async def get_elevation(self, point: Coordinate) -> float:
        """Return ground elevation in meters, or raise ElevationLookupError."""
