"""Open-Elevation lookup client (aiohttp).

The same client talks to the public API or to the local proxy
(`GET /api/lookup`); both accept `?locations=lat,lon` and answer with
`{"results": [{"elevation": <meters>, ...}]}`.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from radar_visibility.contracts import Coordinate
from radar_visibility.ingest.interfaces import ElevationLookupError

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_URL = "https://api.open-elevation.com/api/v1/lookup"


def format_locations(point: Coordinate) -> str:
    """Encode a point as the `lat,lon` query value expected by the API."""
    return f"{point.lat},{point.lon}"


def parse_elevation_payload(payload: Any) -> float:
    """Extract `results[0].elevation` from a lookup response body."""
    try:
        value = payload["results"][0]["elevation"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ElevationLookupError(f"malformed elevation payload: {payload!r}") from exc
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ElevationLookupError(f"elevation is not a number: {value!r}")
    return float(value)


def make_http_session(timeout_s: float = 10.0) -> aiohttp.ClientSession:
    """Create an aiohttp session with certifi CA bundle and total timeout."""
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    connector = aiohttp.TCPConnector(ssl=ssl_context)
    timeout = aiohttp.ClientTimeout(total=timeout_s)
    return aiohttp.ClientSession(connector=connector, timeout=timeout)


class OpenElevationSource:
    """Elevation source backed by an Open-Elevation compatible endpoint.

    Usage:
        async with OpenElevationSource() as source:
            meters = await source.get_elevation(Coordinate(lon=30.28, lat=59.79))
    """

    def __init__(
        self,
        base_url: str = DEFAULT_LOOKUP_URL,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout_s: float = 10.0,
    ) -> None:
        if timeout_s <= 0.0:
            raise ValueError("timeout_s must be positive")
        self.base_url = base_url
        self._timeout_s = timeout_s
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> OpenElevationSource:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = make_http_session(self._timeout_s)
            self._owns_session = True
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def lookup(self, locations: str) -> dict[str, Any]:
        """Run one raw lookup and return the decoded JSON body.

        Network errors, timeouts, non-2xx responses and non-JSON bodies
        raise ElevationLookupError.
        """
        session = self._ensure_session()
        try:
            async with session.get(self.base_url, params={"locations": locations}) as resp:
                if resp.status < 200 or resp.status >= 300:
                    text = await resp.text()
                    raise ElevationLookupError(
                        f"elevation lookup failed with HTTP {resp.status}: {text[:200]}"
                    )
                payload = await resp.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError, ValueError) as exc:
            raise ElevationLookupError(f"elevation lookup failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise ElevationLookupError(f"unexpected elevation payload: {payload!r}")
        return payload

    async def get_elevation(self, point: Coordinate) -> float:
        """Return ground elevation in meters at point."""
        payload = await self.lookup(format_locations(point))
        elevation = parse_elevation_payload(payload)
        logger.debug("Elevation at %.6f,%.6f = %.1f m", point.lat, point.lon, elevation)
        return elevation
