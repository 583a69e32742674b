"""Holder for the latest result where a new run supersedes an in-flight one."""

from __future__ import annotations

import logging
from typing import Any

from radar_visibility.contracts import ReceiverConfig, VisibilityResult
from radar_visibility.ingest.interfaces import ElevationSource
from radar_visibility.ingest.rate_limit import AsyncRateLimiter
from radar_visibility.orchestrate.calculate import calculate_visibility
from radar_visibility.orchestrate.cancel import CancellationToken

logger = logging.getLogger(__name__)


class VisibilitySession:
    """Run calculations one after another, cancelling the previous run on start.

    `latest` only ever holds the result of a run that was not superseded.
    """

    def __init__(self, source: ElevationSource, limiter: AsyncRateLimiter | None = None) -> None:
        self._source = source
        self._limiter = limiter
        self._active: CancellationToken | None = None
        self.latest: VisibilityResult | None = None
        self.run_count = 0

    @property
    def busy(self) -> bool:
        """Whether a calculation is currently in flight."""
        return self._active is not None and not self._active.cancelled

    def cancel(self) -> None:
        """Cancel the in-flight calculation, if any."""
        if self._active is not None:
            self._active.cancel("cancelled by caller")

    async def run(self, config: ReceiverConfig, **options: Any) -> VisibilityResult:
        """Start a calculation, superseding any in-flight one.

        Extra keyword options are passed to calculate_visibility. Raises
        CalculationCancelledError if this run is itself superseded.
        """
        if self._active is not None:
            logger.info("Superseding in-flight visibility calculation")
            self._active.cancel("superseded by a newer calculation")
        token = CancellationToken()
        self._active = token
        self.run_count += 1
        try:
            result = await calculate_visibility(
                config, self._source, limiter=self._limiter, token=token, **options
            )
        finally:
            if self._active is token:
                self._active = None
        token.raise_if_cancelled()
        self.latest = result
        return result
