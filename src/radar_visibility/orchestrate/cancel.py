"""Cooperative cancellation for long-running visibility calculations."""

from __future__ import annotations


class CalculationCancelledError(RuntimeError):
    """Raised inside a calculation after its token has been cancelled."""


class CancellationToken:
    """Flag checked by the sampler between elevation queries."""

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._cancelled

    def cancel(self, reason: str = "cancelled") -> None:
        """Request cancellation; idempotent, first reason wins."""
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    def raise_if_cancelled(self) -> None:
        """Raise CalculationCancelledError when cancellation was requested."""
        if self._cancelled:
            raise CalculationCancelledError(self.reason or "cancelled")
